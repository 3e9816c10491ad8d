# backend/playback/agents.py
from datetime import timedelta

from mesa import Agent

from config import SAMPLE_INTERVAL_MIN, TREND_WINDOW
from .geodesy import great_circle_distance_km
from .propagation import arrival_time_for_distance, sample_at
from .severity import NORMAL_RESULT, classify


class StationAgent(Agent):
    def __init__(self, model, station):
        """
        station: utils.geo_loader.Station (id, name, lat, lon, ...)
        """
        super().__init__(model)
        self.station = station
        self.distance_km = 0.0
        self.arrival_minutes = 0.0
        self.samples = []             # recent WaveSample window, oldest first
        self.result = NORMAL_RESULT   # classification of the recent window
        self.has_arrived = False
        self.status = None            # last StationStatus written to the cache
        self.recorded_period = None   # sample period of that write

    # -------------------------
    # Event geometry
    # -------------------------
    def set_event(self, event):
        """Recompute distance and arrival time for a newly selected event."""
        self.distance_km = great_circle_distance_km(self.station.coord, event.epicenter)
        self.arrival_minutes = arrival_time_for_distance(self.distance_km)
        self.samples = []
        self.result = NORMAL_RESULT
        self.has_arrived = False
        self.status = None
        self.recorded_period = None

    @property
    def display_level(self):
        """Level shown on the map: stations stay normal until the wave arrives."""
        return self.result.level if self.has_arrived else NORMAL_RESULT.level

    @property
    def current_height(self):
        return self.samples[-1].height if self.samples else 0.0

    # -------------------------
    # Step
    # -------------------------
    def step(self):
        """Sample the recent window at the model's simulated time and classify it."""
        event = self.model.seismic_event
        now = self.model.sim_time

        times = [now - i * SAMPLE_INTERVAL_MIN for i in range(TREND_WINDOW - 1, -1, -1)]
        self.samples = [
            sample_at(t, event.reference_time, self.distance_km, event.magnitude, self.arrival_minutes, self.model.random)
            for t in times
            if t >= 0
        ]
        self.result = classify(self.samples)
        self.has_arrived = now >= self.arrival_minutes

        # one cache write per sample period (or level change), so
        # consecutive_alerts counts periods rather than evaluations
        period = int(now // SAMPLE_INTERVAL_MIN)
        level = self.display_level
        cache = self.model.status_cache
        if cache is not None and self._needs_record(cache, period, level):
            self.status = cache.update(
                self.station.id,
                level.label,
                level > NORMAL_RESULT.level,
                self.current_height,
                event.reference_time + timedelta(minutes=now),
                self.station.coord,
            )
            self.recorded_period = period

    def _needs_record(self, cache, period, level):
        if period != self.recorded_period or self.status is None:
            return True
        if cache.get(self.station.id) is None:
            return True
        return self.status.level != level.label

    def info(self):
        return {
            "id": self.station.id,
            "name": self.station.name,
            "lat": self.station.lat,
            "lon": self.station.lon,
            "distance_km": round(self.distance_km, 1),
            "arrival_minutes": round(self.arrival_minutes, 2),
            "time_to_arrival": round(self.arrival_minutes - self.model.sim_time, 2),
            "has_arrived": self.has_arrived,
            "height": round(self.current_height, 3),
            "level": self.display_level.label,
            "is_alert": self.has_arrived and self.result.is_alert,
            "consecutive_alerts": self.status.consecutive_alerts if self.status is not None else 0,
        }
