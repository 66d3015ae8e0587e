from __future__ import annotations

"""Qt-backed alarm sound player."""

import logging
from typing import Callable

from PyQt6.QtCore import QObject, QTimer, QUrl
from PyQt6.QtMultimedia import QSoundEffect
from PyQt6.QtWidgets import QApplication

from pieclock.core.assets import find_sound
from pieclock.core.sound import SoundUnavailableError


logger = logging.getLogger(__name__)


class QtSoundPlayer(QObject):
    """Plays bundled WAV files through `QSoundEffect`."""

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._active: set[QSoundEffect] = set()

    def play(self, name: str, seconds: float) -> Callable[[], None]:
        path = find_sound(name)
        if path is None:
            raise SoundUnavailableError(name)

        effect = QSoundEffect(self)
        effect.setSource(QUrl.fromLocalFile(str(path)))
        effect.setLoopCount(QSoundEffect.Loop.Infinite.value)
        effect.play()
        self._active.add(effect)
        logger.debug("Playing %s for %.1fs", name, seconds)

        def stop() -> None:
            if effect not in self._active:
                return
            self._active.discard(effect)
            effect.stop()
            effect.deleteLater()

        QTimer.singleShot(int(seconds * 1000), stop)
        return stop

    def beep(self) -> Callable[[], None]:
        QApplication.beep()
        return lambda: None

    def stop_all(self) -> None:
        for effect in list(self._active):
            effect.stop()
            effect.deleteLater()
        self._active.clear()
