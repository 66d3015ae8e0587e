from __future__ import annotations

import json
import logging
import sqlite3
import time
from typing import Any, Callable, Iterator, Mapping, Protocol

from PyQt6.QtCore import QObject, pyqtSignal

from pieclock import config
from pieclock.core.sound import SoundPlayer
from pieclock.core.timer import Clock, CountdownTimer, TimerState, clamp_seconds


logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1
RECENT_SETTING = "recent_durations"


class PersistenceStore(Protocol):
    def save(self, snapshot: bytes) -> None: ...

    def load(self) -> bytes | None: ...


class SettingsStore(Protocol):
    def get_setting(self, key: str, default: Any = None) -> Any: ...

    def set_setting(self, key: str, value: Any) -> None: ...


class TimerCollection(QObject):
    """Ordered set of independent timers; emits `changed` after every mutation and tick."""

    changed = pyqtSignal()

    def __init__(
        self,
        clock: Clock = time.time,
        sound_player: SoundPlayer | None = None,
        save_every_ticks: int = config.SAVE_EVERY_TICKS,
    ) -> None:
        super().__init__()
        self._clock = clock
        self._sound_player = sound_player
        self._save_every_ticks = max(1, save_every_ticks)
        self._timers: list[CountdownTimer] = []
        self._store: PersistenceStore | None = None
        self._settings: SettingsStore | None = None
        self._ticks_since_save = 0
        self.recent_durations: list[float] = []

    def __iter__(self) -> Iterator[CountdownTimer]:
        return iter(list(self._timers))

    def __len__(self) -> int:
        return len(self._timers)

    @property
    def timers(self) -> list[CountdownTimer]:
        return list(self._timers)

    @property
    def is_empty(self) -> bool:
        return not self._timers

    @property
    def ids(self) -> list[str]:
        return [timer.id for timer in self._timers]

    def get(self, timer_id: str) -> CountdownTimer | None:
        for timer in self._timers:
            if timer.id == timer_id:
                return timer
        return None

    # --- membership ---

    def add(self, timer_id: str | None = None) -> CountdownTimer:
        if timer_id is not None:
            existing = self.get(timer_id)
            if existing is not None:
                return existing
        timer = CountdownTimer(timer_id=timer_id, clock=self._clock, sound_player=self._sound_player)
        self._timers.append(timer)
        self._changed()
        return timer

    def remove(self, timer_id: str) -> bool:
        timer = self.get(timer_id)
        if timer is None:
            return False
        timer.release()
        self._timers.remove(timer)
        self._changed()
        return True

    def ensure_not_empty(self) -> None:
        if self.is_empty:
            self.add()

    def reorder(self, timer_id: str, to_index: int) -> None:
        timer = self.get(timer_id)
        if timer is None:
            return
        self._timers.remove(timer)
        to_index = max(0, min(len(self._timers), to_index))
        self._timers.insert(to_index, timer)
        self._changed()

    def quick_start(self, seconds: float, label: str | None = None, now: float | None = None) -> CountdownTimer | None:
        """Appends a timer and starts it immediately; nothing is added for a zero duration."""
        seconds = clamp_seconds(seconds)
        if seconds <= 0:
            return None
        timer = CountdownTimer(clock=self._clock, sound_player=self._sound_player)
        timer.set_configured_duration(seconds)
        if label:
            timer.label = label
        self._timers.append(timer)
        timer.start(now)
        self._remember(timer.initial_duration)
        self._changed()
        return timer

    # --- transitions ---

    def start(self, timer_id: str, now: float | None = None) -> None:
        timer = self.get(timer_id)
        if timer is None:
            return
        timer.start(now)
        if timer.state == TimerState.RUNNING:
            self._remember(timer.initial_duration)
        self._changed()

    def pause(self, timer_id: str, now: float | None = None) -> None:
        self._apply(timer_id, lambda timer: timer.pause(now))

    def resume(self, timer_id: str, now: float | None = None) -> None:
        self._apply(timer_id, lambda timer: timer.resume(now))

    def cancel(self, timer_id: str) -> None:
        self._apply(timer_id, lambda timer: timer.cancel())

    def dismiss(self, timer_id: str) -> None:
        self._apply(timer_id, lambda timer: timer.dismiss())

    def silence(self, timer_id: str) -> None:
        self._apply(timer_id, lambda timer: timer.silence())

    def set_remaining(self, timer_id: str, seconds: float, now: float | None = None) -> None:
        timer = self.get(timer_id)
        if timer is None:
            return
        was_idle = timer.state == TimerState.IDLE
        timer.set_remaining_directly(seconds, now)
        if was_idle and timer.state == TimerState.RUNNING:
            self._remember(timer.initial_duration)
        self._changed()

    def touch(self, timer_id: str | None = None, persist: bool = True) -> None:
        """Announces a configuration edit made directly on a timer.

        `persist=False` only repaints; used for edits that are saved once they settle.
        """
        if timer_id is not None and self.get(timer_id) is None:
            return
        if persist:
            self._changed()
        else:
            self.changed.emit()

    def tick_all(self, now: float | None = None) -> None:
        now = self._clock() if now is None else now
        transitioned = False
        for timer in self._timers:
            before = (timer.state, timer.deadline)
            timer.tick(now)
            if (timer.state, timer.deadline) != before:
                transitioned = True

        if any(timer.state == TimerState.RUNNING for timer in self._timers):
            self._ticks_since_save += 1
        self.changed.emit()
        if transitioned or self._ticks_since_save >= self._save_every_ticks:
            self.save()

    # --- persistence ---

    def to_snapshot(self) -> bytes:
        payload = {
            "version": SNAPSHOT_VERSION,
            "timers": [timer.to_record() for timer in self._timers],
        }
        return json.dumps(payload).encode("utf-8")

    def from_snapshot(self, data: bytes | None, now: float | None = None) -> None:
        """Replaces the timers with the snapshot contents; bad data leaves one default timer."""
        now = self._clock() if now is None else now
        for timer in self._timers:
            timer.release()
        self._timers = []

        for record in self._parse_records(data):
            timer = CountdownTimer.from_record(record, now=now, clock=self._clock, sound_player=self._sound_player)
            if self.get(timer.id) is not None:
                logger.warning("Dropping duplicate timer id %s", timer.id)
                continue
            self._timers.append(timer)

        if not self._timers:
            self._timers.append(CountdownTimer(clock=self._clock, sound_player=self._sound_player))
        self.changed.emit()

    def load(self, store: PersistenceStore, settings: SettingsStore | None = None, now: float | None = None) -> None:
        self._store = store
        self._settings = settings
        try:
            data = store.load()
        except (OSError, sqlite3.Error):
            logger.exception("Could not read the timer snapshot")
            data = None
        self.from_snapshot(data, now=now)
        if settings is not None:
            self.recent_durations = _parse_recent(settings.get_setting(RECENT_SETTING, []))
        logger.info("Loaded %d timer(s)", len(self._timers))

    def save(self) -> None:
        self._ticks_since_save = 0
        if self._store is None:
            return
        try:
            self._store.save(self.to_snapshot())
        except (OSError, sqlite3.Error):
            logger.exception("Could not save the timer snapshot")

    # --- internals ---

    def _apply(self, timer_id: str, action: Callable[[CountdownTimer], None]) -> None:
        timer = self.get(timer_id)
        if timer is None:
            return
        action(timer)
        self._changed()

    def _changed(self) -> None:
        self.changed.emit()
        self.save()

    def _remember(self, duration: float) -> None:
        if duration <= 0:
            return
        recents = [value for value in self.recent_durations if value != duration]
        recents.insert(0, duration)
        self.recent_durations = recents[: config.RECENT_LIMIT]
        if self._settings is None:
            return
        try:
            self._settings.set_setting(RECENT_SETTING, self.recent_durations)
        except (OSError, sqlite3.Error):
            logger.exception("Could not save recent durations")

    @staticmethod
    def _parse_records(data: bytes | None) -> list[Mapping[str, Any]]:
        if not data:
            return []
        try:
            payload = json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, ValueError, RecursionError):
            logger.warning("Ignoring malformed timer snapshot")
            return []

        if isinstance(payload, Mapping):
            payload = payload.get("timers")
        if not isinstance(payload, list):
            logger.warning("Ignoring timer snapshot without a timer list")
            return []

        records = []
        for item in payload:
            if isinstance(item, Mapping):
                records.append(item)
            else:
                logger.warning("Skipping malformed timer record %r", item)
        return records


def _parse_recent(value: Any) -> list[float]:
    if not isinstance(value, list):
        return []
    recents = [clamp_seconds(item) for item in value]
    return [item for item in recents if item > 0][: config.RECENT_LIMIT]
