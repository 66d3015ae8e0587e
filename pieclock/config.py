from __future__ import annotations

"""Application-wide constants and default paths."""

import logging
import os
from pathlib import Path

from pieclock.core.dial import SweepDirection


# --- Scheduling ---
TICK_INTERVAL_MS = 50
SAVE_EVERY_TICKS = 20  # once per second at the default tick interval

# --- Dial ---
SWEEP_DIRECTION = SweepDirection.COUNTERCLOCKWISE
WARNING_FRACTION = 0.05
MIN_ACTIVE_REMAINING = 1.0

# --- Alarm ---
DEFAULT_ALARM_SECONDS = 5
MIN_ALARM_SECONDS = 1
MAX_ALARM_SECONDS = 60
BEEP_SECONDS = 1.0

# --- Colors (RRGGBB) ---
DEFAULT_COLOR = "FF8000"
AUTO_COLOR_CALM = "FF8000"
AUTO_COLOR_URGENT = "D9142B"

# --- Presets ---
PRESET_MINUTES = [1, 5, 10, 15, 25, 30, 45, 60]
RECENT_LIMIT = 5

DB_ENV_VAR = "PIECLOCK_DB"
LOG_LEVEL_ENV_VAR = "PIECLOCK_LOG_LEVEL"


def default_db_path() -> Path:
    """Returns the SQLite path from the environment or `pieclock.db` in the cwd."""
    override = os.environ.get(DB_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.cwd() / "pieclock.db"


def log_level() -> str:
    """Returns the level name from `PIECLOCK_LOG_LEVEL`; unknown names give `WARNING`."""
    name = os.environ.get(LOG_LEVEL_ENV_VAR, "WARNING").strip().upper()
    if not isinstance(logging.getLevelName(name), int):
        return "WARNING"
    return name
