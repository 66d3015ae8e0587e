from __future__ import annotations

import math
from enum import Enum


class ClockfaceScale(str, Enum):
    """One full revolution of the dial at a given zoom level."""

    SECONDS_60 = "seconds60"
    MINUTES_5 = "minutes5"
    MINUTES_9 = "minutes9"
    MINUTES_15 = "minutes15"
    MINUTES_30 = "minutes30"
    MINUTES_60 = "minutes60"
    MINUTES_90 = "minutes90"
    MINUTES_120 = "minutes120"
    HOURS_4 = "hours4"
    HOURS_8 = "hours8"
    HOURS_12 = "hours12"
    HOURS_16 = "hours16"
    HOURS_24 = "hours24"
    HOURS_48 = "hours48"
    HOURS_72 = "hours72"
    HOURS_96 = "hours96"

    @property
    def seconds(self) -> int:
        return _SECONDS[self]

    @property
    def units(self) -> int:
        """Face size in the unit its numerals are printed in."""
        total = self.seconds
        if total < 60 * 5:
            return total
        if total <= 120 * 60:
            return total // 60
        return total // 3600

    @property
    def label(self) -> str:
        suffix = "s" if self.seconds < 60 * 5 else "m" if self.seconds <= 120 * 60 else "h"
        return f"{self.units}{suffix}"

    @property
    def tick_labels(self) -> list[int]:
        """Numerals printed around the face, in the face's own unit."""
        units = self.units
        if self.seconds < 60 * 5:
            return list(range(0, units, 5))
        return list(range(0, units, _LABEL_STEP.get(units, max(1, units // 12))))


_SECONDS: dict[ClockfaceScale, int] = {
    ClockfaceScale.SECONDS_60: 60,
    ClockfaceScale.MINUTES_5: 5 * 60,
    ClockfaceScale.MINUTES_9: 9 * 60,
    ClockfaceScale.MINUTES_15: 15 * 60,
    ClockfaceScale.MINUTES_30: 30 * 60,
    ClockfaceScale.MINUTES_60: 60 * 60,
    ClockfaceScale.MINUTES_90: 90 * 60,
    ClockfaceScale.MINUTES_120: 120 * 60,
    ClockfaceScale.HOURS_4: 4 * 3600,
    ClockfaceScale.HOURS_8: 8 * 3600,
    ClockfaceScale.HOURS_12: 12 * 3600,
    ClockfaceScale.HOURS_16: 16 * 3600,
    ClockfaceScale.HOURS_24: 24 * 3600,
    ClockfaceScale.HOURS_48: 48 * 3600,
    ClockfaceScale.HOURS_72: 72 * 3600,
    ClockfaceScale.HOURS_96: 96 * 3600,
}

# Numeral spacing per face size; faces not listed get roughly 12 numerals.
_LABEL_STEP = {
    5: 1,
    9: 1,
    15: 3,
    30: 5,
    60: 5,
    90: 15,
    120: 10,
    4: 1,
    8: 1,
    12: 1,
    16: 2,
    24: 2,
    48: 4,
    72: 6,
    96: 8,
}

# Smallest to largest.
SCALES: list[ClockfaceScale] = sorted(ClockfaceScale, key=lambda scale: scale.seconds)
LARGEST_SCALE = SCALES[-1]


def best_fit(remaining: float) -> ClockfaceScale:
    """Smallest face that shows `remaining` without clipping; the largest otherwise."""
    if not math.isfinite(remaining):
        remaining = 0.0
    for scale in SCALES:
        if scale.seconds >= remaining:
            return scale
    return LARGEST_SCALE


def available_scales(remaining: float) -> list[ClockfaceScale]:
    if not math.isfinite(remaining):
        remaining = 0.0
    fitting = [scale for scale in SCALES if scale.seconds >= remaining]
    return fitting or [LARGEST_SCALE]


def cycle_scale(current: ClockfaceScale, remaining: float) -> ClockfaceScale:
    available = available_scales(remaining)
    if current not in available:
        return available[-1]
    return available[(available.index(current) + 1) % len(available)]


def parse_scale(value: object, default: ClockfaceScale = ClockfaceScale.MINUTES_60) -> ClockfaceScale:
    try:
        return ClockfaceScale(str(value))
    except ValueError:
        return default
