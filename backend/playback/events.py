# backend/playback/events.py
"""
Static catalog of historical tsunami-generating earthquakes.

Adding an event means appending to EVENT_CATALOG; order matters because the
playback clock cycles through it with next/previous.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Tuple


@dataclass(frozen=True)
class SeismicEvent:
    id: str
    name: str
    lat: float
    lon: float
    magnitude: float
    depth_km: float
    reference_time: datetime  # UTC instant the earthquake occurred

    @property
    def epicenter(self) -> Tuple[float, float]:
        """(lat, lon) of the epicenter."""
        return (self.lat, self.lon)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "epicenter": {"lat": self.lat, "lon": self.lon},
            "magnitude": self.magnitude,
            "depth_km": self.depth_km,
            "reference_time": self.reference_time.isoformat(),
        }


EVENT_CATALOG: Tuple[SeismicEvent, ...] = (
    SeismicEvent(
        id="tohoku_2011",
        name="2011 Tōhoku Earthquake and Tsunami",
        lat=38.297,
        lon=142.373,
        magnitude=9.1,
        depth_km=32.0,
        reference_time=datetime(2011, 3, 11, 5, 46, 24, tzinfo=timezone.utc),
    ),
    SeismicEvent(
        id="alaska_2020",
        name="2020 Alaska Peninsula Earthquake",
        lat=55.325,
        lon=-158.541,
        magnitude=7.8,
        depth_km=28.0,
        reference_time=datetime(2020, 7, 22, 6, 12, 44, tzinfo=timezone.utc),
    ),
    SeismicEvent(
        id="chile_2015",
        name="2015 Illapel Earthquake",
        lat=-31.573,
        lon=-71.674,
        magnitude=8.3,
        depth_km=25.0,
        reference_time=datetime(2015, 9, 16, 22, 54, 33, tzinfo=timezone.utc),
    ),
)

_BY_ID = {event.id: event for event in EVENT_CATALOG}


def get_event(event_id: str) -> Optional[SeismicEvent]:
    """Return the catalog entry for event_id, or None if it is not in the catalog."""
    return _BY_ID.get(event_id)


def event_ids() -> Tuple[str, ...]:
    return tuple(event.id for event in EVENT_CATALOG)
