from __future__ import annotations

import logging
import math
import re
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, Mapping

from pieclock import config
from pieclock.core.clockface import ClockfaceScale, best_fit, parse_scale
from pieclock.core.dial import sweep_angle_from_remaining
from pieclock.core.sound import DEFAULT_SOUND, NO_SOUND, SoundPlayer, SoundUnavailableError, normalize_sound


logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class TimerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    ALARMING = "alarming"


@dataclass(frozen=True)
class DisplayState:
    remaining_seconds: float
    state: TimerState
    scale: ClockfaceScale
    sweep_angle: float
    urgency: float
    color: str
    in_warning_zone: bool
    is_alarm_ringing: bool
    label: str


def clamp_seconds(value: Any) -> float:
    """Coerces user or stored input into a finite, non-negative duration."""
    try:
        seconds = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    if not math.isfinite(seconds) or seconds < 0:
        return 0.0
    return seconds


def normalize_color(value: Any, default: str = config.DEFAULT_COLOR) -> str:
    text = str(value or "").strip().lstrip("#").upper()
    if len(text) != 6:
        return default
    try:
        int(text, 16)
    except ValueError:
        return default
    return text


def blend_color(start: str, end: str, amount: float) -> str:
    amount = max(0.0, min(1.0, amount))
    a = [int(start[i : i + 2], 16) for i in (0, 2, 4)]
    b = [int(end[i : i + 2], 16) for i in (0, 2, 4)]
    mixed = [int(round(x + (y - x) * amount)) for x, y in zip(a, b)]
    return "".join(f"{channel:02X}" for channel in mixed)


def end_at_duration(hour: int, minute: int, is_pm: bool, now: float) -> float:
    """Seconds from `now` until the next local wall-clock time `hour:minute` (12-hour)."""
    hour = max(1, min(12, int(hour)))
    minute = max(0, min(59, int(minute)))
    hour24 = hour % 12 + (12 if is_pm else 0)
    current = datetime.fromtimestamp(now)
    target = current.replace(hour=hour24, minute=minute, second=0, microsecond=0)
    if target <= current:
        target += timedelta(days=1)
    return max(0.0, target.timestamp() - now)


_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)\s*([hms])", re.IGNORECASE)
_UNIT_SECONDS = {"h": 3600, "m": 60, "s": 1}


def parse_duration(text: str) -> float:
    """Parses `"90"`, `"10m"`, `"1h30m"` or `"1:30:00"` into seconds; bad input gives 0."""
    text = (text or "").strip().lower()
    if not text:
        return 0.0
    if ":" in text:
        fields = text.split(":")
        if len(fields) > 3 or not all(field.isdigit() for field in fields):
            return 0.0
        total = 0
        for field in fields:
            total = total * 60 + int(field)
        return float(total)
    try:
        return clamp_seconds(float(text))
    except ValueError:
        pass
    parts = _DURATION_PART.findall(text)
    if not parts or _DURATION_PART.sub("", text).strip():
        return 0.0
    return clamp_seconds(sum(float(value) * _UNIT_SECONDS[unit.lower()] for value, unit in parts))


def format_duration(seconds: float) -> str:
    total = int(math.ceil(clamp_seconds(seconds)))
    h, m, s = total // 3600, (total % 3600) // 60, total % 60
    if h > 0:
        return f"{h}:{m:02d}:{s:02d}"
    return f"{m:02d}:{s:02d}"


def format_duration_words(seconds: float) -> str:
    total = int(clamp_seconds(seconds))
    h, m, s = total // 3600, (total % 3600) // 60, total % 60
    parts = []
    if h:
        parts.append(f"{h} hr")
    if m:
        parts.append(f"{m} min")
    if s:
        parts.append(f"{s} sec")
    return " ".join(parts) or "0 sec"


def _clock_time(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp).strftime("%I:%M %p").lstrip("0")


class CountdownTimer:
    """Deadline-driven countdown behind one pie clock, detached from the UI."""

    def __init__(
        self,
        timer_id: str | None = None,
        clock: Clock = time.time,
        sound_player: SoundPlayer | None = None,
    ) -> None:
        self.id = timer_id or uuid.uuid4().hex
        self.sound_player = sound_player
        self._clock = clock
        self._state = TimerState.IDLE
        self._configured_sec = 0.0
        self._initial_sec = 0.0
        self._remaining_sec = 0.0
        self._deadline: float | None = None
        self._started_at: float | None = None
        self._alarm_play_sec = config.DEFAULT_ALARM_SECONDS
        self._manual_color = config.DEFAULT_COLOR
        self._ringing_until: float | None = None
        self._stop_sound: Callable[[], None] | None = None

        self.label = "Timer"
        self.looping = False
        self.sound_choice = DEFAULT_SOUND
        self.manual_scale = ClockfaceScale.MINUTES_60
        self.auto_scale_enabled = True
        self.auto_color_enabled = True
        self.flash_warning_enabled = True
        self.use_end_at_mode = False
        self.end_at_hour = 12
        self.end_at_minute = 0
        self.end_at_is_pm = False

    @property
    def state(self) -> TimerState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state in {TimerState.RUNNING, TimerState.PAUSED}

    @property
    def configured_duration(self) -> float:
        return self._configured_sec

    @property
    def configured_hms(self) -> tuple[int, int, int]:
        total = int(self._configured_sec)
        return total // 3600, (total % 3600) // 60, total % 60

    @property
    def initial_duration(self) -> float:
        return self._initial_sec

    @property
    def remaining(self) -> float:
        return self._remaining_sec

    @property
    def deadline(self) -> float | None:
        return self._deadline

    @property
    def started_at(self) -> float | None:
        return self._started_at

    @property
    def is_alarm_ringing(self) -> bool:
        return self._ringing_until is not None

    @property
    def alarm_play_duration(self) -> int:
        return self._alarm_play_sec

    @alarm_play_duration.setter
    def alarm_play_duration(self, seconds: Any) -> None:
        try:
            value = int(seconds)
        except (TypeError, ValueError, OverflowError):
            value = config.DEFAULT_ALARM_SECONDS
        self._alarm_play_sec = max(config.MIN_ALARM_SECONDS, min(config.MAX_ALARM_SECONDS, value))

    @property
    def manual_color(self) -> str:
        return self._manual_color

    @manual_color.setter
    def manual_color(self, value: Any) -> None:
        self._manual_color = normalize_color(value)

    # --- derived presentation values ---

    @property
    def effective_scale(self) -> ClockfaceScale:
        if self.auto_scale_enabled:
            return best_fit(self._remaining_sec)
        return self.manual_scale

    @property
    def urgency(self) -> float:
        if self._initial_sec <= 0:
            return 1.0
        elapsed = (self._initial_sec - self._remaining_sec) / self._initial_sec
        return max(0.0, min(1.0, elapsed))

    @property
    def effective_color(self) -> str:
        if not self.auto_color_enabled:
            return self._manual_color
        return blend_color(config.AUTO_COLOR_CALM, config.AUTO_COLOR_URGENT, self.urgency)

    @property
    def is_in_warning_zone(self) -> bool:
        if not self.flash_warning_enabled or not self.is_active:
            return False
        return self._remaining_sec / self.effective_scale.seconds < config.WARNING_FRACTION

    @property
    def default_name(self) -> str:
        total = int(self._initial_sec)
        h, m, s = total // 3600, (total % 3600) // 60, total % 60
        if h > 0:
            return f"{h}h{m}m Timer"
        if m > 0:
            return f"{m}m Timer"
        return f"{s}s Timer"

    # --- configuration ---

    def set_configured_duration(self, seconds: Any) -> None:
        self._configured_sec = clamp_seconds(seconds)

    def set_configured_hms(self, hours: Any, minutes: Any, seconds: Any) -> None:
        total = clamp_seconds(hours) * 3600 + clamp_seconds(minutes) * 60 + clamp_seconds(seconds)
        self.set_configured_duration(total)

    def apply_end_at(self, now: float | None = None) -> None:
        now = self._now(now)
        duration = end_at_duration(self.end_at_hour, self.end_at_minute, self.end_at_is_pm, now)
        self.set_configured_duration(int(duration))

    def apply_preset(self, minutes: int, now: float | None = None) -> None:
        now = self._now(now)
        if not self.use_end_at_mode:
            self.set_configured_duration(clamp_seconds(minutes) * 60)
            return
        end = datetime.fromtimestamp(now) + timedelta(minutes=clamp_seconds(minutes))
        self.end_at_is_pm = end.hour >= 12
        self.end_at_hour = end.hour % 12 or 12
        self.end_at_minute = end.minute
        self.apply_end_at(now)

    # --- transitions ---

    def start(self, now: float | None = None) -> None:
        if self._state != TimerState.IDLE:
            return
        now = self._now(now)
        if self.use_end_at_mode:
            self.apply_end_at(now)
        if self._configured_sec <= 0:
            return
        self._stop_ringing()
        self._initial_sec = self._configured_sec
        self._remaining_sec = self._configured_sec
        self._started_at = now
        self._deadline = now + self._configured_sec
        self.manual_scale = best_fit(self._configured_sec)
        self._state = TimerState.RUNNING
        logger.debug("Timer %s started for %.1fs", self.id, self._configured_sec)

    def pause(self, now: float | None = None) -> None:
        if self._state != TimerState.RUNNING:
            return
        self.tick(now)
        if self._state != TimerState.RUNNING:
            return
        self._deadline = None
        self._state = TimerState.PAUSED

    def resume(self, now: float | None = None) -> None:
        if self._state != TimerState.PAUSED:
            return
        now = self._now(now)
        self._deadline = now + self._remaining_sec
        self._state = TimerState.RUNNING

    def cancel(self) -> None:
        if not self.is_active:
            return
        self._stop_ringing()
        self._reset_to_idle()

    def dismiss(self) -> None:
        if self._state != TimerState.ALARMING:
            return
        self._stop_ringing()
        self._reset_to_idle()

    def silence(self) -> None:
        self._stop_ringing()

    def release(self) -> None:
        """Stops any alarm sound before the timer is discarded."""
        self._stop_ringing()

    def set_remaining_directly(self, seconds: Any, now: float | None = None) -> None:
        seconds = clamp_seconds(seconds)
        now = self._now(now)
        if self._state == TimerState.RUNNING:
            self._remaining_sec = max(config.MIN_ACTIVE_REMAINING, seconds)
            self._deadline = now + self._remaining_sec
        elif self._state == TimerState.PAUSED:
            self._remaining_sec = max(config.MIN_ACTIVE_REMAINING, seconds)
        elif self._state == TimerState.IDLE and seconds > 0:
            self.use_end_at_mode = False
            self.set_configured_duration(seconds)
            self.start(now)

    def tick(self, now: float | None = None) -> DisplayState:
        now = self._now(now)

        if self._ringing_until is not None and now >= self._ringing_until:
            self._stop_ringing()

        if self._state != TimerState.RUNNING or self._deadline is None:
            return self.display()

        if now < self._deadline:
            self._remaining_sec = self._deadline - now
            return self.display()

        self._remaining_sec = 0.0
        self._ring(now)
        if self.looping and self._initial_sec > 0:
            self._remaining_sec = self._initial_sec
            self._started_at = now
            self._deadline = now + self._initial_sec
            logger.info("Timer %s looped, next expiry in %.1fs", self.id, self._initial_sec)
        else:
            self._state = TimerState.ALARMING
            logger.info("Timer %s expired", self.id)
        return self.display()

    def display(self) -> DisplayState:
        scale = self.effective_scale
        return DisplayState(
            remaining_seconds=self._remaining_sec,
            state=self._state,
            scale=scale,
            sweep_angle=sweep_angle_from_remaining(self._remaining_sec, scale.seconds),
            urgency=self.urgency,
            color=self.effective_color,
            in_warning_zone=self.is_in_warning_zone,
            is_alarm_ringing=self.is_alarm_ringing,
            label=self.label,
        )

    # --- persistence ---

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "configured_duration": self._configured_sec,
            "initial_duration": self._initial_sec,
            "remaining": self._remaining_sec,
            "deadline": self._deadline,
            "started_at": self._started_at,
            "state": self._state.value,
            "looping": self.looping,
            "label": self.label,
            "sound_choice": self.sound_choice,
            "alarm_play_duration": self._alarm_play_sec,
            "manual_scale": self.manual_scale.value,
            "auto_scale_enabled": self.auto_scale_enabled,
            "manual_color": self._manual_color,
            "auto_color_enabled": self.auto_color_enabled,
            "flash_warning_enabled": self.flash_warning_enabled,
            "use_end_at_mode": self.use_end_at_mode,
            "end_at_hour": self.end_at_hour,
            "end_at_minute": self.end_at_minute,
            "end_at_is_pm": self.end_at_is_pm,
        }

    @classmethod
    def from_record(
        cls,
        record: Mapping[str, Any],
        now: float | None = None,
        clock: Clock = time.time,
        sound_player: SoundPlayer | None = None,
    ) -> CountdownTimer:
        """Rebuilds a timer from a stored record, resolving elapsed time against `now`."""
        timer_id = record.get("id")
        timer = cls(timer_id=str(timer_id) if timer_id else None, clock=clock, sound_player=sound_player)
        now = timer._now(now)

        timer._configured_sec = clamp_seconds(record.get("configured_duration"))
        timer._initial_sec = clamp_seconds(record.get("initial_duration"))
        timer.looping = _as_bool(record.get("looping"), False)
        timer.label = str(record.get("label") or "Timer")
        timer.sound_choice = normalize_sound(record.get("sound_choice", DEFAULT_SOUND))
        timer.alarm_play_duration = record.get("alarm_play_duration", config.DEFAULT_ALARM_SECONDS)
        timer.manual_scale = parse_scale(record.get("manual_scale"))
        timer.auto_scale_enabled = _as_bool(record.get("auto_scale_enabled"), True)
        timer.manual_color = record.get("manual_color")
        timer.auto_color_enabled = _as_bool(record.get("auto_color_enabled"), True)
        timer.flash_warning_enabled = _as_bool(record.get("flash_warning_enabled"), True)
        timer.use_end_at_mode = _as_bool(record.get("use_end_at_mode"), False)
        timer.end_at_hour = max(1, min(12, _as_int(record.get("end_at_hour"), 12)))
        timer.end_at_minute = max(0, min(59, _as_int(record.get("end_at_minute"), 0)))
        timer.end_at_is_pm = _as_bool(record.get("end_at_is_pm"), False)

        try:
            state = TimerState(record.get("state"))
        except ValueError:
            state = TimerState.IDLE
        deadline = _as_timestamp(record.get("deadline"))
        started_at = _as_timestamp(record.get("started_at"))

        if state == TimerState.RUNNING and deadline is not None and deadline > now:
            timer._state = TimerState.RUNNING
            timer._deadline = deadline
            timer._remaining_sec = deadline - now
            timer._started_at = started_at if started_at is not None else deadline - timer._initial_sec
        elif state == TimerState.PAUSED and clamp_seconds(record.get("remaining")) > 0:
            timer._state = TimerState.PAUSED
            timer._remaining_sec = clamp_seconds(record.get("remaining"))
            timer._started_at = started_at
        elif state == TimerState.ALARMING:
            timer._state = TimerState.ALARMING
            timer._deadline = deadline
            timer._started_at = started_at
        elif state == TimerState.RUNNING:
            logger.info("Timer %s expired while the app was closed", timer.id)
        return timer

    def to_markdown(self, now: float | None = None) -> str:
        now = self._now(now)
        lines = [f"## {self.label}", ""]
        if self._started_at is not None:
            lines.append(f"- **Started:** {datetime.fromtimestamp(self._started_at):%Y-%m-%d} {_clock_time(self._started_at)}")
        lines.append(f"- **Duration:** {format_duration(self._initial_sec)}")
        lines.append(f"- **Remaining:** {format_duration(self._remaining_sec)}")
        if self._deadline is not None:
            lines.append(f"- **Ends at:** {_clock_time(self._deadline)}")
        lines.append(f"- **Status:** {self._state.value.capitalize()}")
        lines.append(f"- **Alarm:** {self.sound_choice} for {self._alarm_play_sec}s")
        if self.looping:
            lines.append("- **Looping:** Yes")
        lines.append("")
        lines.append(f"*Exported {datetime.fromtimestamp(now):%Y-%m-%d} {_clock_time(now)}*")
        return "\n".join(lines) + "\n"

    # --- internals ---

    def _now(self, now: float | None) -> float:
        return self._clock() if now is None else now

    def _reset_to_idle(self) -> None:
        self._state = TimerState.IDLE
        self._remaining_sec = 0.0
        self._deadline = None
        self._started_at = None

    def _ring(self, now: float) -> None:
        self._stop_ringing()
        ring_for = float(self._alarm_play_sec)
        if self.sound_choice != NO_SOUND and self.sound_player is not None:
            try:
                self._stop_sound = self.sound_player.play(self.sound_choice, ring_for)
            except SoundUnavailableError:
                logger.warning("Alarm sound %r unavailable, falling back to beep", self.sound_choice)
                self._stop_sound = self.sound_player.beep()
                ring_for = config.BEEP_SECONDS
        self._ringing_until = now + ring_for

    def _stop_ringing(self) -> None:
        stop, self._stop_sound = self._stop_sound, None
        self._ringing_until = None
        if stop is not None:
            stop()


def _as_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    return default


def _as_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return default


def _as_timestamp(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        stamp = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return stamp if math.isfinite(stamp) else None
