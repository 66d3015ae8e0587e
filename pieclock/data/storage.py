from __future__ import annotations

"""SQLite persistence for timer snapshots and user settings."""

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Iterator


logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1
SNAPSHOT_KEY = "timers"

_SCHEMA = (
    "CREATE TABLE IF NOT EXISTS meta (name TEXT PRIMARY KEY, value INTEGER NOT NULL)",
    """
    CREATE TABLE IF NOT EXISTS snapshots (
        name TEXT PRIMARY KEY,
        body BLOB NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    "CREATE TABLE IF NOT EXISTS settings (name TEXT PRIMARY KEY, body TEXT)",
)


class Storage:
    """Snapshot store used by `TimerCollection`, plus a small JSON settings table."""

    def __init__(self, db_path: str | Path, snapshot_key: str = SNAPSHOT_KEY) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.snapshot_key = snapshot_key

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=5)
        conn.row_factory = sqlite3.Row
        try:
            conn.execute("PRAGMA journal_mode = WAL;")
        except sqlite3.DatabaseError:
            logger.debug("WAL journal unavailable for %s", self.db_path)
        return conn

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        conn = self._connect()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @contextmanager
    def _reader(self) -> Iterator[sqlite3.Connection]:
        conn = self._connect()
        try:
            yield conn
        finally:
            conn.close()

    def init_db(self) -> None:
        """Creates the tables on first run; safe to call repeatedly."""
        with self._transaction() as conn:
            for statement in _SCHEMA:
                conn.execute(statement)
            conn.execute(
                "INSERT OR IGNORE INTO meta(name, value) VALUES ('schema_version', ?)",
                (SCHEMA_VERSION,),
            )

    def save(self, snapshot: bytes) -> None:
        stamp = datetime.now().isoformat(timespec="seconds")
        with self._transaction() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO snapshots(name, body, updated_at) VALUES (?, ?, ?)",
                (self.snapshot_key, sqlite3.Binary(snapshot), stamp),
            )
        logger.debug("Saved %d byte snapshot", len(snapshot))

    def load(self) -> bytes | None:
        with self._reader() as conn:
            found = conn.execute("SELECT body FROM snapshots WHERE name = ?", (self.snapshot_key,)).fetchone()
        if found is None:
            return None
        body = found["body"]
        return body.encode("utf-8") if isinstance(body, str) else bytes(body)

    def clear(self) -> None:
        with self._transaction() as conn:
            conn.execute("DELETE FROM snapshots WHERE name = ?", (self.snapshot_key,))

    def get_setting(self, key: str, default: Any = None) -> Any:
        with self._reader() as conn:
            found = conn.execute("SELECT body FROM settings WHERE name = ?", (key,)).fetchone()
        if found is None or found["body"] is None:
            return default
        try:
            return json.loads(found["body"])
        except json.JSONDecodeError:
            logger.warning("Setting %r is not valid JSON", key)
            return default

    def set_setting(self, key: str, value: Any) -> None:
        with self._transaction() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO settings(name, body) VALUES (?, ?)",
                (key, json.dumps(value)),
            )
