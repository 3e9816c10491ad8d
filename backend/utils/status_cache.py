# backend/utils/status_cache.py
"""
In-memory status cache keyed by station id.

Stores the latest classification per station together with how many
consecutive evaluations it has been alerting. Entries older than the TTL
are treated as missing.
"""

import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Optional, Tuple

from config import PERSISTENT_ALERT_COUNT, STATUS_CACHE_TTL_SECONDS

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class StationStatus:
    level: str                      # normal | medium | high | critical
    is_alert: bool
    last_status_change: datetime
    consecutive_alerts: int
    height: float
    timestamp: datetime
    location: Tuple[float, float]   # (lat, lon)

    def to_dict(self) -> dict:
        return {
            "level": self.level,
            "is_alert": self.is_alert,
            "last_status_change": self.last_status_change.isoformat(),
            "consecutive_alerts": self.consecutive_alerts,
            "last_reading": {
                "height": round(self.height, 3),
                "timestamp": self.timestamp.isoformat(),
                "location": {"lat": self.location[0], "lon": self.location[1]},
            },
        }


class StatusCache:
    def __init__(self, ttl_seconds: float = STATUS_CACHE_TTL_SECONDS, time_source: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._time_source = time_source
        # station id -> (stored_at, status)
        self._entries: Dict[str, Tuple[float, StationStatus]] = {}
        # update() is a read-modify-write; request threads must not interleave it
        self._lock = threading.RLock()

    def _fresh(self, stored_at: float) -> bool:
        return self._time_source() - stored_at < self.ttl_seconds

    def get(self, station_id: str) -> Optional[StationStatus]:
        entry = self._entries.get(station_id)
        if entry is None or not self._fresh(entry[0]):
            return None
        return entry[1]

    def update(
        self,
        station_id: str,
        level: str,
        is_alert: bool,
        height: float,
        timestamp: datetime,
        location: Tuple[float, float],
    ) -> StationStatus:
        """
        Record a new classification. timestamp is the (simulated) instant of the
        reading; it also stamps last_status_change when the level changes.
        """
        with self._lock:
            previous = self.get(station_id)
            changed = previous is None or previous.level != level

            if is_alert:
                consecutive = previous.consecutive_alerts + 1 if previous is not None and previous.is_alert else 1
            else:
                consecutive = 0

            status = StationStatus(
                level=level,
                is_alert=is_alert,
                last_status_change=timestamp if changed else previous.last_status_change,
                consecutive_alerts=consecutive,
                height=height,
                timestamp=timestamp,
                location=location,
            )
            self._entries[station_id] = (self._time_source(), status)
            return status

    def statuses(self) -> Dict[str, StationStatus]:
        with self._lock:
            return {sid: status for sid, (stored_at, status) in self._entries.items() if self._fresh(stored_at)}

    def summary(self) -> dict:
        statuses = list(self.statuses().values())
        counts = {level: 0 for level in ("normal", "medium", "high", "critical")}
        for s in statuses:
            counts[s.level] = counts.get(s.level, 0) + 1

        return {
            "total_stations": len(statuses),
            "normal_count": counts["normal"],
            "medium_count": counts["medium"],
            "high_count": counts["high"],
            "critical_count": counts["critical"],
            "alert_count": sum(1 for s in statuses if s.is_alert),
            "persistent_alerts": sum(1 for s in statuses if s.consecutive_alerts >= PERSISTENT_ALERT_COUNT),
            "last_update": max(s.timestamp for s in statuses).isoformat() if statuses else None,
        }

    def clear(self):
        with self._lock:
            self._entries.clear()
        log.info("Status cache cleared")

    def info(self) -> dict:
        now = self._time_source()
        with self._lock:
            ages = [now - stored_at for stored_at, _ in self._entries.values()]
        return {
            "entries": len(ages),
            "fresh_entries": len(self.statuses()),
            "oldest_age_s": max(ages) if ages else None,
            "ttl_s": self.ttl_seconds,
        }
