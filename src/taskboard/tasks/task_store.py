# src/taskboard/tasks/task_store.py

from __future__ import annotations

import contextlib
import json
import logging
import sqlite3
import time
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class SlotStore:
    """
    SQLite-backed named-slot store.

    Each slot holds one JSON document; the task list lives in a single slot
    and is rewritten wholesale on every save (no partial updates).

    The schema is migration-safe:
    - create table if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "taskboard.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        logger.info("SlotStore ready db=%s slots=%s", self._db_path, self.count_slots())

    @property
    def db_path(self) -> Path:
        return self._db_path

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(sqlite3.DatabaseError):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS slots (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL DEFAULT '[]',
                    updated_at REAL NOT NULL DEFAULT 0
                )
                """
            )

            cur.execute("PRAGMA table_info(slots)")
            cols = {row["name"] for row in cur.fetchall()}
            if "updated_at" not in cols:
                cur.execute("ALTER TABLE slots ADD COLUMN updated_at REAL NOT NULL DEFAULT 0")
                logger.info("SlotStore migration: added column updated_at")

            conn.commit()
        finally:
            conn.close()

    # ---- public API ----

    def count_slots(self) -> int:
        conn = self._get_conn()
        try:
            (n,) = conn.execute("SELECT COUNT(*) FROM slots").fetchone()
            return int(n)
        finally:
            conn.close()

    def load(self, key: str) -> list[Any]:
        """Return the stored list, or [] when the slot is absent, empty or not a list."""
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT value FROM slots WHERE key = ?", (key,)).fetchone()
        finally:
            conn.close()

        if row is None or not row["value"]:
            return []
        try:
            val = json.loads(row["value"])
        except ValueError:
            logger.error("Slot %r holds invalid JSON; treating as empty.", key)
            return []
        if not isinstance(val, list):
            logger.error("Slot %r holds %s, expected a list; treating as empty.", key, type(val).__name__)
            return []
        return val

    def save(self, key: str, records: list[Any]) -> None:
        payload = json.dumps(records, ensure_ascii=False)
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO slots(key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """,
                (key, payload, time.time()),
            )
            conn.commit()
        finally:
            conn.close()
        logger.debug("Slot %r saved (%d record(s))", key, len(records))

    def clear(self, key: str) -> None:
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM slots WHERE key = ?", (key,))
            conn.commit()
        finally:
            conn.close()
