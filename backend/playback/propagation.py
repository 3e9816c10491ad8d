# backend/playback/propagation.py
"""
Synthetic tsunami propagation.

Not an oceanographic model: arrival is straight great-circle distance over a
fixed deep-ocean speed, and the height series is an ambient sinusoid plus a
few exponentially decaying pulses once the wave has arrived.

Main entry points:
  - arrival_time(station, epicenter): minutes from event until arrival
  - wave_height_at(...): one evaluation of the height model
  - wave_series(...): evenly spaced WaveSample list for a station
"""

import math
import random
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional, Sequence, Tuple

from config import (
    BACKGROUND_AMPLITUDE_M,
    BACKGROUND_LEVEL_M,
    BACKGROUND_PERIOD_RANGE_S,
    BACKGROUND_PERIOD_SCALE_MIN,
    DECAY_CONSTANT_MIN,
    DEFAULT_SERIES_HOURS,
    DISTANCE_ATTENUATION_KM,
    DISTANCE_EPSILON_KM,
    MAGNITUDE_BASELINE,
    MAGNITUDE_GAIN_M,
    MIN_WAVE_HEIGHT_M,
    NOISE_THRESHOLD_M,
    SAMPLE_INTERVAL_MIN,
    TSUNAMI_ACTIVE_WINDOW_MIN,
    TSUNAMI_PERIOD_RANGE_S,
    WAVE_PULSES,
    WAVE_SPEED_KM_PER_MIN,
)
from .geodesy import LatLon, great_circle_distance_km


@dataclass(frozen=True)
class WaveSample:
    timestamp: datetime
    height: float             # meters
    period: float             # seconds
    in_tsunami_window: bool   # after arrival, before the attenuation cutoff
    is_tsunami_wave: bool     # window AND signal above the noise threshold

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp.isoformat(),
            "height": round(self.height, 3),
            "period": round(self.period, 1),
            "in_tsunami_window": self.in_tsunami_window,
            "is_tsunami_wave": self.is_tsunami_wave,
        }


# -------------------------
# Arrival
# -------------------------
def arrival_time_for_distance(distance_km: float, speed_km_per_min: float = WAVE_SPEED_KM_PER_MIN) -> float:
    """Minutes for the wave to travel distance_km. Below epsilon arrival is instant."""
    if distance_km < DISTANCE_EPSILON_KM:
        return 0.0
    return distance_km / speed_km_per_min


def arrival_time(station: LatLon, epicenter: LatLon, speed_km_per_min: float = WAVE_SPEED_KM_PER_MIN) -> float:
    """
    Minutes since the event at which the wave reaches station.
    Both coordinates are (lat, lon) in degrees.
    """
    distance = great_circle_distance_km(station, epicenter)
    return arrival_time_for_distance(distance, speed_km_per_min)


# -------------------------
# Height model
# -------------------------
def tsunami_amplitude(magnitude: float, distance_km: float) -> float:
    """Peak amplitude (m) of the principal pulse; zero for weak or degenerate events."""
    if magnitude is None or not math.isfinite(magnitude) or magnitude <= 0:
        return 0.0
    amplitude = (magnitude - MAGNITUDE_BASELINE) * MAGNITUDE_GAIN_M - distance_km / DISTANCE_ATTENUATION_KM
    return max(0.0, amplitude)


def background_height(minutes_since_event: float) -> float:
    return BACKGROUND_LEVEL_M + math.sin(minutes_since_event / BACKGROUND_PERIOD_SCALE_MIN) * BACKGROUND_AMPLITUDE_M


def _pulse_sum(amplitude: float, minutes_since_arrival: float) -> float:
    total = 0.0
    for onset, relative, period_scale in WAVE_PULSES:
        local = minutes_since_arrival - onset
        if local < 0:
            continue
        total += amplitude * relative * math.exp(-local / DECAY_CONSTANT_MIN) * math.sin(local / period_scale)
    return total


def wave_height_at(
    minutes_since_event: float,
    distance_km: float,
    magnitude: float,
    arrival_minutes: Optional[float] = None,
) -> Tuple[float, bool, bool]:
    """
    Evaluate the height model at one instant.

    Returns (height_m, in_tsunami_window, is_tsunami_wave).
    """
    if arrival_minutes is None:
        arrival_minutes = arrival_time_for_distance(distance_km)

    height = background_height(minutes_since_event)
    since_arrival = minutes_since_event - arrival_minutes
    in_window = 0 < since_arrival < TSUNAMI_ACTIVE_WINDOW_MIN
    is_tsunami = False

    if in_window:
        amplitude = tsunami_amplitude(magnitude, distance_km)
        if amplitude > 0:
            component = max(0.0, _pulse_sum(amplitude, since_arrival))
            # wobble below the threshold is noise, not a wave
            if component > NOISE_THRESHOLD_M:
                height += component
                is_tsunami = True

    return max(MIN_WAVE_HEIGHT_M, height), in_window, is_tsunami


def _period(is_tsunami: bool, rng: Optional[random.Random]) -> float:
    low, high = TSUNAMI_PERIOD_RANGE_S if is_tsunami else BACKGROUND_PERIOD_RANGE_S
    if rng is None:
        return (low + high) / 2.0
    return rng.uniform(low, high)


def sample_at(
    minutes_since_event: float,
    event_start: datetime,
    distance_km: float,
    magnitude: float,
    arrival_minutes: float,
    rng: Optional[random.Random] = None,
) -> WaveSample:
    height, in_window, is_tsunami = wave_height_at(minutes_since_event, distance_km, magnitude, arrival_minutes)
    return WaveSample(
        timestamp=event_start + timedelta(minutes=minutes_since_event),
        height=height,
        period=_period(is_tsunami, rng),
        in_tsunami_window=in_window,
        is_tsunami_wave=is_tsunami,
    )


# -------------------------
# Series
# -------------------------
def wave_series(
    station: LatLon,
    epicenter: LatLon,
    magnitude: float,
    event_start: datetime,
    duration_hours: float = DEFAULT_SERIES_HOURS,
    interval_minutes: float = SAMPLE_INTERVAL_MIN,
    rng: Optional[random.Random] = None,
) -> List[WaveSample]:
    """
    Synthetic height series for station, one sample every interval_minutes
    starting at event_start and covering duration_hours.

    rng jitters the reported wave period; without it periods are the range midpoints.
    """
    distance = great_circle_distance_km(station, epicenter)
    arrival = arrival_time_for_distance(distance)
    # a partial trailing interval still gets a sample; rounding absorbs float noise
    count = math.ceil(round(duration_hours * 60 / interval_minutes, 9))

    return [
        sample_at(i * interval_minutes, event_start, distance, magnitude, arrival, rng)
        for i in range(count)
    ]


def max_wave_height(samples: Sequence[WaveSample]) -> float:
    if not samples:
        return 0.0
    return max(s.height for s in samples)
