from __future__ import annotations

"""Pointer-angle <-> duration conversion for the pie clock face.

Angles returned by `angle_from_drag` are in degrees, measured clockwise from
12 o'clock in screen coordinates (y grows downward). The sweep direction of
the pie decides whether time grows clockwise or counter-clockwise from the top;
the same direction is used for dragging and painting.
"""

import math
from enum import Enum


SNAP_SECONDS = 30
CENTER_DEAD_ZONE = 0.04


class SweepDirection(str, Enum):
    CLOCKWISE = "clockwise"
    COUNTERCLOCKWISE = "counterclockwise"


def angle_from_drag(dx: float, dy: float, face_radius: float | None = None) -> float | None:
    """Angle of the offset `(dx, dy)` from the dial centre, in `[0, 360)`.

    Returns `None` when the offset is not finite or lies in the dead zone
    around the centre of a face with the given radius.
    """
    if not (math.isfinite(dx) and math.isfinite(dy)):
        return None
    if face_radius is not None and face_radius > 0:
        if math.hypot(dx, dy) < face_radius * CENTER_DEAD_ZONE:
            return None
    angle = math.degrees(math.atan2(dx, -dy))
    if angle < 0:
        angle += 360.0
    if angle >= 360.0:
        angle = 0.0
    return angle


def dial_angle(angle: float, direction: SweepDirection) -> float:
    """Maps a clockwise pointer angle onto the dial's sweep direction."""
    if direction == SweepDirection.CLOCKWISE:
        return angle % 360.0
    return (360.0 - angle) % 360.0


def duration_from_angle(angle: float, scale_max: float, snap: int = SNAP_SECONDS) -> float:
    if not (math.isfinite(angle) and math.isfinite(scale_max)) or scale_max <= 0:
        return 0.0
    angle = max(0.0, min(360.0, angle))
    raw = angle / 360.0 * scale_max
    snapped = math.floor(raw / snap + 0.5) * snap
    ceiling = math.floor(scale_max / snap) * snap
    return float(max(0, min(snapped, ceiling)))


def sweep_angle_from_remaining(remaining: float, scale_max: float) -> float:
    if not (math.isfinite(remaining) and math.isfinite(scale_max)) or scale_max <= 0:
        return 0.0
    return max(0.0, min(360.0, remaining / scale_max * 360.0))


def pie_span(remaining: float, scale_max: float, direction: SweepDirection) -> tuple[int, int]:
    """Start and span for `QPainter.drawPie`, in 1/16th of a degree.

    Qt measures from 3 o'clock with positive values counter-clockwise, so the
    pie always starts at 90 degrees (12 o'clock).
    """
    sweep = sweep_angle_from_remaining(remaining, scale_max)
    span = int(round(sweep * 16))
    if direction == SweepDirection.CLOCKWISE:
        span = -span
    return 90 * 16, span
