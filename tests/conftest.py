from __future__ import annotations

from typing import Callable

import pytest

from pieclock.core.sound import SoundUnavailableError


class FakeClock:
    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class FakeSoundPlayer:
    def __init__(self, available: bool = True) -> None:
        self.available = available
        self.plays: list[tuple[str, float]] = []
        self.beeps = 0
        self.cancels = 0

    def play(self, name: str, seconds: float) -> Callable[[], None]:
        if not self.available:
            raise SoundUnavailableError(name)
        self.plays.append((name, seconds))
        return self._cancel

    def beep(self) -> Callable[[], None]:
        self.beeps += 1
        return self._cancel

    def _cancel(self) -> None:
        self.cancels += 1


class MemoryStore:
    def __init__(self, data: bytes | None = None) -> None:
        self.data = data
        self.saves = 0

    def save(self, snapshot: bytes) -> None:
        self.data = snapshot
        self.saves += 1

    def load(self) -> bytes | None:
        return self.data


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def player() -> FakeSoundPlayer:
    return FakeSoundPlayer()
