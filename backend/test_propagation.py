# backend/test_propagation.py
import math
import random
from datetime import timedelta

import pytest

from config import (
    BACKGROUND_AMPLITUDE_M,
    BACKGROUND_LEVEL_M,
    SAMPLE_INTERVAL_MIN,
    TSUNAMI_PERIOD_RANGE_S,
    WAVE_SPEED_KM_PER_MIN,
)
from playback.events import get_event
from playback.geodesy import great_circle_distance_km
from playback.propagation import (
    arrival_time,
    background_height,
    max_wave_height,
    tsunami_amplitude,
    wave_height_at,
    wave_series,
)

TOHOKU = get_event("tohoku_2011")
ONAHAMA = (36.5, 141.0)


# -------------------------
# Geodesy
# -------------------------
def test_distance_one_degree_on_equator():
    assert great_circle_distance_km((0.0, 0.0), (0.0, 1.0)) == pytest.approx(111.19, abs=0.01)


def test_distance_is_symmetric_and_zero_for_same_point():
    a, b = (38.297, 142.373), (-31.573, -71.674)
    assert great_circle_distance_km(a, b) == pytest.approx(great_circle_distance_km(b, a))
    assert great_circle_distance_km(a, a) == 0.0


def test_distance_antipodes():
    assert great_circle_distance_km((0.0, 0.0), (0.0, 180.0)) == pytest.approx(math.pi * 6371.0)


# -------------------------
# Arrival
# -------------------------
def test_arrival_is_monotonic_in_distance():
    epicenter = TOHOKU.epicenter
    stations = [(epicenter[0] - d, epicenter[1]) for d in (0.0, 0.5, 1.0, 5.0, 20.0, 60.0)]
    arrivals = [arrival_time(s, epicenter) for s in stations]
    assert arrivals == sorted(arrivals)
    assert arrivals[0] == 0.0


def test_coincident_station_arrives_instantly():
    assert arrival_time(TOHOKU.epicenter, TOHOKU.epicenter) == 0.0


def test_arrival_uses_configured_speed():
    distance = great_circle_distance_km(ONAHAMA, TOHOKU.epicenter)
    assert arrival_time(ONAHAMA, TOHOKU.epicenter) == pytest.approx(distance / WAVE_SPEED_KM_PER_MIN)


# -------------------------
# Height model
# -------------------------
def test_tohoku_wave_rises_above_background_after_arrival():
    arrival = arrival_time(ONAHAMA, TOHOKU.epicenter)
    assert 0 < arrival < 60

    distance = great_circle_distance_km(ONAHAMA, TOHOKU.epicenter)
    t = arrival + 10
    height, in_window, is_tsunami = wave_height_at(t, distance, TOHOKU.magnitude, arrival)

    assert in_window and is_tsunami
    assert height > background_height(t)
    assert height > BACKGROUND_LEVEL_M + BACKGROUND_AMPLITUDE_M


def test_no_signal_before_arrival():
    distance = great_circle_distance_km(ONAHAMA, TOHOKU.epicenter)
    arrival = arrival_time(ONAHAMA, TOHOKU.epicenter)
    height, in_window, is_tsunami = wave_height_at(arrival - 1, distance, TOHOKU.magnitude, arrival)
    assert not in_window and not is_tsunami
    assert height == pytest.approx(background_height(arrival - 1))


@pytest.mark.parametrize("magnitude", [0.0, -2.0, 6.5, float("nan"), float("inf")])
def test_weak_or_degenerate_magnitude_is_background_only(magnitude):
    samples = wave_series(ONAHAMA, TOHOKU.epicenter, magnitude, TOHOKU.reference_time, duration_hours=4)
    assert not any(s.is_tsunami_wave for s in samples)
    for i, s in enumerate(samples):
        assert s.height == pytest.approx(background_height(i * SAMPLE_INTERVAL_MIN))


def test_amplitude_attenuates_with_distance():
    assert tsunami_amplitude(9.1, 100) > tsunami_amplitude(9.1, 2000) > 0
    assert tsunami_amplitude(7.8, 5000) == 0.0


def test_series_spacing_and_length():
    samples = wave_series(ONAHAMA, TOHOKU.epicenter, TOHOKU.magnitude, TOHOKU.reference_time)
    assert len(samples) == 60
    assert samples[0].timestamp == TOHOKU.reference_time
    gaps = {b.timestamp - a.timestamp for a, b in zip(samples, samples[1:])}
    assert gaps == {timedelta(minutes=SAMPLE_INTERVAL_MIN)}


@pytest.mark.parametrize("hours, expected", [(0.95, 10), (0.1, 1), (1.0, 10), (0, 0)])
def test_partial_interval_gets_a_sample(hours, expected):
    samples = wave_series(ONAHAMA, TOHOKU.epicenter, TOHOKU.magnitude, TOHOKU.reference_time, duration_hours=hours)
    assert len(samples) == expected


def test_series_flags_tsunami_window():
    samples = wave_series(ONAHAMA, TOHOKU.epicenter, TOHOKU.magnitude, TOHOKU.reference_time)
    arrival = arrival_time(ONAHAMA, TOHOKU.epicenter)
    for s in samples:
        minutes = (s.timestamp - TOHOKU.reference_time).total_seconds() / 60
        if minutes <= arrival:
            assert not s.in_tsunami_window
        if s.is_tsunami_wave:
            assert s.in_tsunami_window
    assert any(s.is_tsunami_wave for s in samples)
    assert max_wave_height(samples) > BACKGROUND_LEVEL_M + BACKGROUND_AMPLITUDE_M


def test_heights_never_below_floor():
    samples = wave_series(ONAHAMA, TOHOKU.epicenter, TOHOKU.magnitude, TOHOKU.reference_time)
    assert min(s.height for s in samples) >= 0.1


def test_rng_jitters_period_within_range():
    samples = wave_series(ONAHAMA, TOHOKU.epicenter, TOHOKU.magnitude, TOHOKU.reference_time, rng=random.Random(7))
    low, high = TSUNAMI_PERIOD_RANGE_S
    tsunami_periods = [s.period for s in samples if s.is_tsunami_wave]
    assert tsunami_periods
    assert all(low <= p <= high for p in tsunami_periods)


def test_max_wave_height_of_empty_series():
    assert max_wave_height([]) == 0.0
