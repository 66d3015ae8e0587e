import math
from datetime import datetime

from pieclock import config
from pieclock.core.clockface import ClockfaceScale
from pieclock.core.sound import NO_SOUND
from pieclock.core.timer import (
    CountdownTimer,
    TimerState,
    end_at_duration,
    format_duration,
    format_duration_words,
    parse_duration,
)

from conftest import FakeSoundPlayer


def _timer(seconds: float, player: FakeSoundPlayer | None = None) -> CountdownTimer:
    timer = CountdownTimer(clock=lambda: 0.0, sound_player=player)
    timer.set_configured_duration(seconds)
    return timer


def test_basic_countdown_reaches_alarming() -> None:
    timer = _timer(90)
    timer.start(now=0.0)

    assert timer.tick(30.0).remaining_seconds == 60
    expired = timer.tick(95.0)

    assert expired.remaining_seconds == 0
    assert expired.state == TimerState.ALARMING
    assert timer.deadline == 90.0


def test_pause_resume_preserves_remaining() -> None:
    timer = _timer(120)
    timer.start(now=0.0)
    assert timer.tick(50.0).remaining_seconds == 70

    timer.pause(now=50.0)
    frozen = timer.tick(1000.0)
    assert frozen.state == TimerState.PAUSED
    assert frozen.remaining_seconds == 70
    assert timer.deadline is None

    timer.resume(now=1000.0)
    assert timer.deadline == 1070.0
    assert timer.tick(1070.0).remaining_seconds == 0


def test_looping_restarts_in_place(player: FakeSoundPlayer) -> None:
    timer = _timer(10, player)
    timer.looping = True
    timer.start(now=0.0)

    snapshot = timer.tick(10.0)

    assert snapshot.state == TimerState.RUNNING
    assert snapshot.remaining_seconds == 10
    assert timer.deadline == 20.0
    assert len(player.plays) == 1


def test_zero_duration_start_is_ignored() -> None:
    timer = _timer(0)
    timer.start(now=0.0)
    assert timer.state == TimerState.IDLE
    assert timer.deadline is None


def test_alarm_fires_once_per_expiry(player: FakeSoundPlayer) -> None:
    timer = _timer(5, player)
    timer.start(now=0.0)

    timer.tick(5.0)
    timer.tick(5.0)
    timer.tick(6.0)

    assert player.plays == [("Glass", 5.0)]
    assert timer.state == TimerState.ALARMING


def test_countdown_is_monotonic() -> None:
    timer = _timer(600)
    timer.start(now=0.0)
    previous = timer.remaining
    for step in range(1, 60):
        remaining = timer.tick(step * 9.7).remaining_seconds
        assert remaining <= previous
        previous = remaining


def test_ringing_clears_after_play_duration(player: FakeSoundPlayer) -> None:
    timer = _timer(10, player)
    timer.alarm_play_duration = 5
    timer.start(now=0.0)

    assert timer.tick(10.0).is_alarm_ringing is True
    assert timer.tick(14.0).is_alarm_ringing is True
    assert timer.tick(15.0).is_alarm_ringing is False
    assert player.cancels == 1
    assert timer.state == TimerState.ALARMING


def test_dismiss_stops_sound_and_returns_to_idle(player: FakeSoundPlayer) -> None:
    timer = _timer(10, player)
    timer.start(now=0.0)
    timer.tick(11.0)

    timer.dismiss()
    timer.tick(1000.0)

    assert timer.state == TimerState.IDLE
    assert timer.is_alarm_ringing is False
    assert timer.remaining == 0
    assert timer.deadline is None
    assert player.cancels == 1
    assert len(player.plays) == 1


def test_no_sound_still_rings_visually(player: FakeSoundPlayer) -> None:
    timer = _timer(10, player)
    timer.sound_choice = NO_SOUND
    timer.start(now=0.0)

    assert timer.tick(10.0).is_alarm_ringing is True
    assert player.plays == []


def test_missing_sound_falls_back_to_beep() -> None:
    player = FakeSoundPlayer(available=False)
    timer = _timer(10, player)
    timer.start(now=0.0)

    timer.tick(10.0)
    assert player.beeps == 1
    assert timer.is_alarm_ringing is True
    assert timer.tick(10.0 + config.BEEP_SECONDS).is_alarm_ringing is False


def test_cancel_from_running_and_paused() -> None:
    timer = _timer(60)
    timer.start(now=0.0)
    timer.cancel()
    assert timer.state == TimerState.IDLE
    assert timer.remaining == 0
    assert timer.deadline is None

    timer.start(now=0.0)
    timer.pause(now=10.0)
    timer.cancel()
    assert timer.state == TimerState.IDLE


def test_calls_from_invalid_states_are_ignored() -> None:
    timer = _timer(60)
    timer.resume(now=5.0)
    timer.pause(now=5.0)
    timer.dismiss()
    timer.cancel()
    assert timer.state == TimerState.IDLE

    timer.start(now=0.0)
    timer.start(now=30.0)
    assert timer.deadline == 60.0


def test_pause_at_deadline_expires_instead() -> None:
    timer = _timer(30)
    timer.start(now=0.0)
    timer.pause(now=31.0)
    assert timer.state == TimerState.ALARMING


def test_set_remaining_directly_while_running_moves_deadline() -> None:
    timer = _timer(600)
    timer.start(now=0.0)
    timer.set_remaining_directly(300, now=100.0)

    assert timer.deadline == 400.0
    assert timer.tick(200.0).remaining_seconds == 200


def test_set_remaining_directly_keeps_active_timer_alive() -> None:
    timer = _timer(600)
    timer.start(now=0.0)
    timer.set_remaining_directly(0, now=10.0)
    assert timer.remaining == config.MIN_ACTIVE_REMAINING
    assert timer.state == TimerState.RUNNING

    timer.pause(now=10.0)
    timer.set_remaining_directly(90, now=20.0)
    assert timer.remaining == 90
    assert timer.state == TimerState.PAUSED


def test_set_remaining_directly_starts_idle_timer() -> None:
    timer = _timer(0)
    timer.set_remaining_directly(120, now=0.0)
    assert timer.state == TimerState.RUNNING
    assert timer.initial_duration == 120
    assert timer.deadline == 120.0

    idle = _timer(0)
    idle.set_remaining_directly(0, now=0.0)
    assert idle.state == TimerState.IDLE


def test_invalid_durations_clamp_to_zero() -> None:
    timer = _timer(0)
    for bad in (-5, math.nan, math.inf, "abc", None):
        timer.set_configured_duration(bad)
        assert timer.configured_duration == 0
    timer.set_configured_hms(1, 30, 15)
    assert timer.configured_duration == 5415
    assert timer.configured_hms == (1, 30, 15)


def test_urgency_and_auto_color() -> None:
    timer = _timer(100)
    assert timer.urgency == 1.0

    timer.start(now=0.0)
    assert timer.tick(0.0).color == config.AUTO_COLOR_CALM
    assert timer.tick(25.0).urgency == 0.25

    timer.auto_color_enabled = False
    timer.manual_color = "#00ff00"
    assert timer.effective_color == "00FF00"

    timer.manual_color = "nope"
    assert timer.effective_color == config.DEFAULT_COLOR


def test_warning_zone_is_relative_to_displayed_face() -> None:
    timer = _timer(60)
    timer.start(now=0.0)

    assert timer.tick(50.0).in_warning_zone is False
    assert timer.tick(57.5).in_warning_zone is True

    timer.flash_warning_enabled = False
    assert timer.is_in_warning_zone is False


def test_auto_scale_zooms_as_time_runs_down() -> None:
    timer = _timer(3000)
    timer.start(now=0.0)
    assert timer.tick(0.0).scale == ClockfaceScale.MINUTES_60
    assert timer.tick(2800.0).scale == ClockfaceScale.MINUTES_5

    timer.auto_scale_enabled = False
    assert timer.effective_scale == ClockfaceScale.MINUTES_60


def test_end_at_duration_targets_next_occurrence() -> None:
    ten_am = datetime(2026, 1, 15, 10, 0).timestamp()
    assert end_at_duration(11, 30, False, ten_am) == 5400
    assert end_at_duration(9, 0, False, ten_am) == 23 * 3600
    assert end_at_duration(10, 0, False, ten_am) == 24 * 3600

    half_past_noon = datetime(2026, 1, 15, 12, 30).timestamp()
    assert end_at_duration(1, 0, True, half_past_noon) == 1800

    eleven_pm = datetime(2026, 1, 15, 23, 0).timestamp()
    assert end_at_duration(12, 0, False, eleven_pm) == 3600


def test_end_at_mode_derives_duration_on_start() -> None:
    ten_am = datetime(2026, 1, 15, 10, 0).timestamp()
    timer = _timer(0)
    timer.use_end_at_mode = True
    timer.end_at_hour = 11
    timer.end_at_minute = 0
    timer.end_at_is_pm = False

    timer.start(now=ten_am)

    assert timer.state == TimerState.RUNNING
    assert timer.initial_duration == 3600


def test_preset_in_end_at_mode_sets_clock_time() -> None:
    ten_am = datetime(2026, 1, 15, 10, 0).timestamp()
    timer = _timer(0)
    timer.apply_preset(25, now=ten_am)
    assert timer.configured_duration == 1500

    timer.use_end_at_mode = True
    timer.apply_preset(45, now=ten_am)
    assert (timer.end_at_hour, timer.end_at_minute, timer.end_at_is_pm) == (10, 45, False)
    assert timer.configured_duration == 2700


def test_record_round_trip_while_running() -> None:
    timer = _timer(300)
    timer.label = "Tea"
    timer.looping = True
    timer.sound_choice = "Ping"
    timer.alarm_play_duration = 12
    timer.auto_scale_enabled = False
    timer.auto_color_enabled = False
    timer.manual_color = "123ABC"
    timer.flash_warning_enabled = False
    timer.start(now=0.0)
    timer.tick(100.0)

    restored = CountdownTimer.from_record(timer.to_record(), now=100.0)

    assert restored.id == timer.id
    assert restored.state == TimerState.RUNNING
    assert restored.remaining == 200
    assert restored.deadline == 300.0
    assert restored.to_record() == timer.to_record()


def test_record_round_trip_paused_and_alarming() -> None:
    paused = _timer(120)
    paused.start(now=0.0)
    paused.pause(now=50.0)
    restored = CountdownTimer.from_record(paused.to_record(), now=5000.0)
    assert restored.state == TimerState.PAUSED
    assert restored.remaining == 70

    alarming = _timer(10)
    alarming.start(now=0.0)
    alarming.tick(12.0)
    restored = CountdownTimer.from_record(alarming.to_record(), now=5000.0)
    assert restored.state == TimerState.ALARMING
    assert restored.remaining == 0
    assert restored.deadline == 10.0
    assert restored.is_alarm_ringing is False


def test_running_record_expired_while_closed_becomes_idle() -> None:
    record = {"id": "abc", "state": "running", "deadline": 50.0, "remaining": 30.0, "initial_duration": 80.0}
    restored = CountdownTimer.from_record(record, now=100.0)

    assert restored.state == TimerState.IDLE
    assert restored.remaining == 0
    assert restored.deadline is None


def test_record_with_missing_fields_uses_defaults() -> None:
    restored = CountdownTimer.from_record({"id": "a", "configured_duration": 60, "state": "bogus"}, now=0.0)

    assert restored.state == TimerState.IDLE
    assert restored.configured_duration == 60
    assert restored.auto_color_enabled is True
    assert restored.auto_scale_enabled is True
    assert restored.sound_choice == "Glass"
    assert restored.manual_scale == ClockfaceScale.MINUTES_60
    assert restored.alarm_play_duration == config.DEFAULT_ALARM_SECONDS


def test_legacy_sound_names_are_normalized() -> None:
    restored = CountdownTimer.from_record({"sound_choice": "Glass (Default)"}, now=0.0)
    assert restored.sound_choice == "Glass"


def test_markdown_export() -> None:
    timer = _timer(600)
    timer.label = "Tea"
    timer.looping = True
    timer.start(now=datetime(2026, 1, 15, 10, 0).timestamp())

    text = timer.to_markdown(now=datetime(2026, 1, 15, 10, 1).timestamp())

    assert text.startswith("## Tea\n")
    assert "- **Duration:** 10:00" in text
    assert "- **Ends at:** 10:10 AM" in text
    assert "- **Status:** Running" in text
    assert "- **Looping:** Yes" in text


def test_default_name_and_formatting() -> None:
    timer = _timer(5400)
    timer.start(now=0.0)
    assert timer.default_name == "1h30m Timer"

    assert format_duration(59.2) == "01:00"
    assert format_duration(3725) == "1:02:05"
    assert format_duration_words(3725) == "1 hr 2 min 5 sec"
    assert format_duration_words(0) == "0 sec"


def test_parse_duration() -> None:
    assert parse_duration("90") == 90
    assert parse_duration("10m") == 600
    assert parse_duration("1h30m") == 5400
    assert parse_duration("1:30:00") == 5400
    assert parse_duration("2:30") == 150
    assert parse_duration("") == 0
    assert parse_duration("abc") == 0
    assert parse_duration("10x") == 0
    assert parse_duration("-5") == 0
