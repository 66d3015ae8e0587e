import math

from pieclock.core.dial import (
    SweepDirection,
    angle_from_drag,
    dial_angle,
    duration_from_angle,
    pie_span,
    sweep_angle_from_remaining,
)


def test_cardinal_directions_map_clockwise_from_top() -> None:
    assert angle_from_drag(0, -10) == 0
    assert angle_from_drag(10, 0) == 90
    assert angle_from_drag(0, 10) == 180
    assert angle_from_drag(-10, 0) == 270


def test_angle_ignores_center_dead_zone_and_bad_input() -> None:
    assert angle_from_drag(0.5, 0, face_radius=100) is None
    assert angle_from_drag(math.nan, 4) is None
    assert angle_from_drag(50, 0, face_radius=100) == 90


def test_duration_from_angle_scales_linearly() -> None:
    assert duration_from_angle(90, 3600) == 900
    assert duration_from_angle(180, 60 * 60 * 4) == 7200


def test_duration_snaps_to_nearest_half_minute() -> None:
    assert duration_from_angle(1, 3600) == 0  # 10s
    assert duration_from_angle(2, 3600) == 30  # 20s
    assert duration_from_angle(90, 60) == 30  # 15s rounds up
    assert duration_from_angle(359.9, 3600) == 3600


def test_duration_always_on_snap_grid_and_within_face() -> None:
    for scale in (60, 300, 540, 3600, 96 * 3600):
        angle = 0.0
        while angle < 360:
            seconds = duration_from_angle(angle, scale)
            assert seconds % 30 == 0
            assert 0 <= seconds <= scale
            angle += 0.7


def test_duration_degenerate_inputs_are_zero() -> None:
    assert duration_from_angle(90, 0) == 0
    assert duration_from_angle(-45, 3600) == 0
    assert duration_from_angle(math.nan, 3600) == 0
    assert duration_from_angle(720, 3600) == 3600


def test_sweep_angle_from_remaining() -> None:
    assert sweep_angle_from_remaining(1800, 3600) == 180
    assert sweep_angle_from_remaining(10, 0) == 0
    assert sweep_angle_from_remaining(7200, 3600) == 360
    assert sweep_angle_from_remaining(-5, 3600) == 0


def test_dial_angle_follows_sweep_direction() -> None:
    assert dial_angle(90, SweepDirection.CLOCKWISE) == 90
    assert dial_angle(90, SweepDirection.COUNTERCLOCKWISE) == 270
    assert dial_angle(0, SweepDirection.COUNTERCLOCKWISE) == 0


def test_pie_span_starts_at_twelve_oclock() -> None:
    assert pie_span(1800, 3600, SweepDirection.COUNTERCLOCKWISE) == (90 * 16, 180 * 16)
    assert pie_span(1800, 3600, SweepDirection.CLOCKWISE) == (90 * 16, -180 * 16)
    assert pie_span(0, 3600, SweepDirection.CLOCKWISE) == (90 * 16, 0)
