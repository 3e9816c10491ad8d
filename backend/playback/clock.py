# backend/playback/clock.py
"""
Playback clock for historical tsunami events.

The clock owns the only mutable simulation state (PlaybackState) and advances
simulated minutes against a wall-clock timer while playing. Every mutation
hands an immutable snapshot to each subscriber, synchronously.

States: Stopped (initial), Playing, Paused. Reaching the end of the horizon
while playing pauses the clock at total_duration.

Usage
-----
    clock = PlaybackClock()
    unsubscribe = clock.subscribe(lambda state: print(state.progress_percent))
    clock.play()
    ...
    clock.shutdown()
"""

import logging
import threading
import time
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Dict, Optional

from config import (
    DEFAULT_EVENT_ID,
    DEFAULT_SPEED,
    PLAYBACK_SPEEDS,
    SIM_MINUTES_PER_REAL_SECOND,
    TICK_INTERVAL_SECONDS,
    TOTAL_DURATION_MINUTES,
)
from .events import SeismicEvent, event_ids, get_event
from .propagation import arrival_time

log = logging.getLogger(__name__)


class PlaybackStatus(Enum):
    STOPPED = "stopped"
    PLAYING = "playing"
    PAUSED = "paused"


@dataclass(frozen=True)
class PlaybackState:
    is_playing: bool = False
    is_paused: bool = False
    current_sim_time: float = 0.0          # minutes since the event's reference time
    total_duration: float = TOTAL_DURATION_MINUTES
    speed_multiplier: float = DEFAULT_SPEED
    current_event_id: str = DEFAULT_EVENT_ID

    @property
    def progress_percent(self) -> float:
        return self.current_sim_time / self.total_duration * 100

    @property
    def status(self) -> PlaybackStatus:
        if self.is_playing:
            return PlaybackStatus.PLAYING
        if self.is_paused:
            return PlaybackStatus.PAUSED
        return PlaybackStatus.STOPPED

    def to_dict(self) -> dict:
        return {
            "is_playing": self.is_playing,
            "is_paused": self.is_paused,
            "status": self.status.value,
            "current_sim_time": self.current_sim_time,
            "total_duration": self.total_duration,
            "speed_multiplier": self.speed_multiplier,
            "current_event_id": self.current_event_id,
            "progress_percent": self.progress_percent,
        }


Subscriber = Callable[[PlaybackState], None]


# -------------------------
# Timers
# -------------------------
class ThreadTicker:
    """
    Recurring timer on a daemon thread. callback runs every interval seconds
    until cancel(); cancel() may be called from inside the callback.
    """

    def __init__(self, interval: float, callback: Callable[[], None]):
        self.interval = interval
        self.callback = callback
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, name="playback-ticker", daemon=True)

    def start(self):
        self._thread.start()

    def _run(self):
        while not self._stop.wait(self.interval):
            self.callback()

    def cancel(self):
        self._stop.set()

    @property
    def active(self) -> bool:
        return self._thread.is_alive() and not self._stop.is_set()


TickerFactory = Callable[[float, Callable[[], None]], object]


# -------------------------
# Clock
# -------------------------
class PlaybackClock:
    def __init__(
        self,
        initial_state: Optional[PlaybackState] = None,
        ticker_factory: TickerFactory = ThreadTicker,
        time_source: Callable[[], float] = time.monotonic,
        tick_interval: float = TICK_INTERVAL_SECONDS,
    ):
        """
        Parameters
        ----------
        initial_state: starting state; defaults come from config
        ticker_factory: builds a ticker from (interval_seconds, callback); must offer start()/cancel()
        time_source: monotonic seconds, used to measure real time between ticks
        tick_interval: seconds between ticks while playing
        """
        self._state = initial_state or PlaybackState()
        self._ticker_factory = ticker_factory
        self._time_source = time_source
        self._tick_interval = tick_interval
        self._ticker = None
        self._last_tick = 0.0
        self._subscribers: Dict[int, Subscriber] = {}
        self._next_handle = 0
        # all mutations and notifications are serialised through this lock
        self._lock = threading.RLock()

    # -------------------------
    # State + subscription
    # -------------------------
    def get_state(self) -> PlaybackState:
        return self._state

    @property
    def current_event(self) -> SeismicEvent:
        return get_event(self._state.current_event_id)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Attach callback; returns a disposer that detaches it (safe to call twice)."""
        with self._lock:
            handle = self._next_handle
            self._next_handle += 1
            self._subscribers[handle] = callback

        def unsubscribe():
            with self._lock:
                self._subscribers.pop(handle, None)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def _update(self, **changes):
        self._state = replace(self._state, **changes)
        self._notify()

    def _notify(self):
        snapshot = self._state
        # iterate over a copy so callbacks may unsubscribe while we notify
        for callback in list(self._subscribers.values()):
            callback(snapshot)

    # -------------------------
    # Timer control
    # -------------------------
    def _start_ticking(self):
        if self._ticker is not None:
            return
        self._last_tick = self._time_source()
        self._ticker = self._ticker_factory(self._tick_interval, self._tick)
        self._ticker.start()

    def _stop_ticking(self):
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None

    @property
    def is_ticking(self) -> bool:
        return self._ticker is not None

    def _tick(self):
        with self._lock:
            if not self._state.is_playing:
                return

            # measure the real gap; ticks may be late or throttled
            now = self._time_source()
            elapsed = max(0.0, now - self._last_tick)
            self._last_tick = now

            delta = elapsed * SIM_MINUTES_PER_REAL_SECOND * self._state.speed_multiplier
            new_time = self._state.current_sim_time + delta

            if new_time >= self._state.total_duration:
                self._stop_ticking()
                log.info("Reached end of playback for %s, pausing", self._state.current_event_id)
                self._update(current_sim_time=self._state.total_duration, is_playing=False, is_paused=True)
                return

            self._update(current_sim_time=new_time)

    # -------------------------
    # Transport controls
    # -------------------------
    def play(self):
        with self._lock:
            if self._state.current_sim_time >= self._state.total_duration:
                self._state = replace(self._state, current_sim_time=0.0)
            log.info("Playback started at %.1f min", self._state.current_sim_time)
            self._update(is_playing=True, is_paused=False)
            self._start_ticking()

    def pause(self):
        with self._lock:
            self._stop_ticking()
            self._update(is_playing=False, is_paused=True)

    def stop(self):
        with self._lock:
            self._stop_ticking()
            log.info("Playback stopped")
            self._update(is_playing=False, is_paused=False, current_sim_time=0.0)

    def restart(self):
        with self._lock:
            self.stop()
            self.play()

    def seek_to(self, minutes: float):
        with self._lock:
            clamped = max(0.0, min(float(minutes), self._state.total_duration))
            self._update(current_sim_time=clamped)

    def seek_to_progress(self, percent: float):
        with self._lock:
            clamped = max(0.0, min(float(percent), 100.0))
            self.seek_to(clamped / 100 * self._state.total_duration)

    def set_speed(self, multiplier: float):
        with self._lock:
            if multiplier in PLAYBACK_SPEEDS:
                speed = multiplier
            else:
                log.warning("Unsupported playback speed %r, using %sx", multiplier, DEFAULT_SPEED)
                speed = DEFAULT_SPEED
            self._update(speed_multiplier=speed)

    # -------------------------
    # Event selection
    # -------------------------
    def set_event(self, event_id: str) -> bool:
        """Switch to event_id; unknown ids are ignored. Returns True if switched."""
        with self._lock:
            if get_event(event_id) is None:
                log.warning("Unknown event %r, keeping %s", event_id, self._state.current_event_id)
                return False
            self._switch_event(event_id)
            return True

    def next_event(self):
        self._cycle_event(1)

    def previous_event(self):
        self._cycle_event(-1)

    def _cycle_event(self, step: int):
        with self._lock:
            ids = event_ids()
            try:
                index = ids.index(self._state.current_event_id)
            except ValueError:
                index = 0
            self._switch_event(ids[(index + step) % len(ids)])

    def _switch_event(self, event_id: str):
        self._stop_ticking()
        log.info("Selected event %s", event_id)
        self._update(current_event_id=event_id, current_sim_time=0.0, is_playing=False, is_paused=False)

    # -------------------------
    # Simulated time
    # -------------------------
    def get_current_timestamp(self) -> datetime:
        """Wall-clock instant the simulation currently represents."""
        state = self._state
        return self.current_event.reference_time + timedelta(minutes=state.current_sim_time)

    def calculate_wave_arrival(self, lat: float, lon: float) -> float:
        """Arrival time (minutes) at (lat, lon) for the selected event."""
        return arrival_time((lat, lon), self.current_event.epicenter)

    def shutdown(self):
        with self._lock:
            self._stop_ticking()
            self._subscribers.clear()
