from __future__ import annotations

"""Entry point of the Pie Clock application.

Sets up logging and the Qt application, opens the SQLite store, restores the
saved timers and shows the main window.
"""

import argparse
import logging
import sys

from PyQt6.QtWidgets import QApplication

from pieclock import config
from pieclock.core.collection import TimerCollection
from pieclock.core.timer import parse_duration
from pieclock.data.storage import Storage
from pieclock.ui.main_window import MainWindow
from pieclock.ui.sound_player import QtSoundPlayer
from pieclock.ui.styles import apply_theme


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="pieclock", description="Analog pie-clock countdown timers.")
    parser.add_argument("--start", metavar="DURATION", help="start a new timer, e.g. 90, 10m, 1h30m or 1:30:00")
    parser.add_argument("--label", help="label for the timer started with --start")
    parser.add_argument("--db", help="SQLite file (default: $%s or ./pieclock.db)" % config.DB_ENV_VAR)
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Builds the application's dependencies and runs the Qt event loop."""
    args = parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(
        level=config.log_level(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = QApplication(sys.argv[:1])
    apply_theme(app)

    storage = Storage(args.db or config.default_db_path())
    storage.init_db()

    player = QtSoundPlayer(app)
    collection = TimerCollection(sound_player=player)
    collection.load(storage, settings=storage)
    if args.start:
        seconds = parse_duration(args.start)
        if seconds <= 0:
            logging.getLogger(__name__).warning("Ignoring --start %r: not a positive duration", args.start)
        else:
            collection.quick_start(seconds, label=args.label)
    collection.ensure_not_empty()

    window = MainWindow(collection)
    window.show()
    code = app.exec()
    player.stop_all()
    return code


if __name__ == "__main__":
    raise SystemExit(main())
