from __future__ import annotations

"""Alarm sound catalogue and the player contract used by the timer engine."""

from typing import Callable, Protocol


NO_SOUND = "No Sound"
DEFAULT_SOUND = "Glass"
ALARM_SOUNDS = [
    NO_SOUND,
    "Glass",
    "Basso",
    "Blow",
    "Bottle",
    "Frog",
    "Funk",
    "Hero",
    "Morse",
    "Ping",
    "Pop",
    "Purr",
    "Sosumi",
    "Submarine",
    "Tink",
]


class SoundUnavailableError(LookupError):
    """Raised when a named alarm sound cannot be played."""


class SoundPlayer(Protocol):
    def play(self, name: str, seconds: float) -> Callable[[], None]:
        """Starts looping `name` for `seconds`; returns a function that stops it early."""

    def beep(self) -> Callable[[], None]:
        """Plays the generic alert sound."""


def normalize_sound(name: object) -> str:
    """Maps stored names such as `"Glass (Default)"` onto the catalogue."""
    text = str(name or "").replace(" (Default)", "").strip()
    return text if text in ALARM_SOUNDS else DEFAULT_SOUND
