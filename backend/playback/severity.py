# backend/playback/severity.py
"""
Trend-aware severity classification of wave-height readings.

classify() is pure: counting consecutive alerts is the status cache's job.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import IntEnum
from numbers import Real
from typing import Sequence

from config import (
    CRITICAL_HEIGHT_M,
    EMERGENCY_HEIGHT_M,
    INCREASE_PCT,
    LARGE_HEIGHT_M,
    MODERATE_HEIGHT_M,
    RAPID_INCREASE_PCT,
    REFERENCE_EPSILON_M,
    TREND_AVERAGE_M,
    TREND_SLACK,
    TREND_WINDOW,
)


class Severity(IntEnum):
    NORMAL = 0
    MEDIUM = 1
    HIGH = 2
    CRITICAL = 3

    @property
    def label(self) -> str:
        return self.name.lower()

    @classmethod
    def from_label(cls, label: str) -> "Severity":
        return cls[label.upper()]


@dataclass(frozen=True)
class SeverityResult:
    is_alert: bool
    level: Severity


NORMAL_RESULT = SeverityResult(is_alert=False, level=Severity.NORMAL)


def _height(reading) -> float:
    # accepts WaveSample-like objects, {"height": ...} mappings or bare numbers
    if isinstance(reading, Real):
        return float(reading)
    if isinstance(reading, Mapping):
        return float(reading.get("height") or 0.0)
    return float(getattr(reading, "height", 0.0) or 0.0)


def is_rising(heights: Sequence[float], slack: float = TREND_SLACK) -> bool:
    """True if every height is at least slack x the one before it."""
    return all(heights[i] >= heights[i - 1] * slack for i in range(1, len(heights)))


def classify(readings: Sequence, newest_first: bool = False) -> SeverityResult:
    """
    Classify a short ordered window of readings.

    Parameters
    ----------
    readings: sequence of readings with a height (oldest first by default)
    newest_first: set when readings[0] is the most recent one
    """
    heights = [_height(r) for r in readings]
    if newest_first:
        heights.reverse()

    if len(heights) < 2:
        return NORMAL_RESULT

    current = heights[-1]
    previous = heights[-2]
    percent_change = (current - previous) / max(previous, REFERENCE_EPSILON_M) * 100

    trending = False
    if len(heights) >= 3:
        recent = heights[-TREND_WINDOW:]
        average = sum(recent) / len(recent)
        trending = average > TREND_AVERAGE_M and is_rising(recent)

    if current > CRITICAL_HEIGHT_M or current > EMERGENCY_HEIGHT_M:
        level = Severity.CRITICAL
    elif current > LARGE_HEIGHT_M or (current > MODERATE_HEIGHT_M and percent_change > RAPID_INCREASE_PCT):
        level = Severity.HIGH
    elif current > MODERATE_HEIGHT_M or percent_change > INCREASE_PCT or trending:
        level = Severity.MEDIUM
    else:
        level = Severity.NORMAL

    return SeverityResult(is_alert=level != Severity.NORMAL, level=level)
