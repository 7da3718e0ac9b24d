# notes/note_store.py

from __future__ import annotations

import contextlib
import json
import logging
import sqlite3
import time
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from .migration import normalize_notes
from .note_models import Note

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "course-notes"


class StoreWriteError(RuntimeError):
    """Persisting the note collection failed; in-memory changes were not saved."""


class NoteStore:
    """
    SQLite key-value store holding the whole note collection as one JSON value.

    Semantics:
    - load() returns [] when the key is missing or the value is not a JSON list,
    - records that needed migration are written back once, normalized,
    - save() replaces the entire collection (no partial updates).

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "notes.sqlite3", *, storage_key: str = DEFAULT_STORAGE_KEY) -> None:
        if not storage_key or not storage_key.strip():
            raise ValueError("storage_key is required")
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._key = storage_key.strip()
        self._ensure_schema()
        logger.info("NoteStore ready db=%s key=%s", self._db_path, self._key)

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at REAL NOT NULL DEFAULT 0
                )
                """
            )

            cur.execute("PRAGMA table_info(kv)")
            cols = {row["name"] for row in cur.fetchall()}
            if "updated_at" not in cols:
                cur.execute("ALTER TABLE kv ADD COLUMN updated_at REAL NOT NULL DEFAULT 0")
                logger.info("NoteStore migration: added column updated_at")

            conn.commit()
        finally:
            conn.close()

    def _read_raw(self) -> str | None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT value FROM kv WHERE key = ?", (self._key,))
            row = cur.fetchone()
            return None if row is None else str(row["value"])
        finally:
            conn.close()

    # ---- public API ----

    def load(self) -> list[Note]:
        # An unreadable database is not "empty": let it raise so no edit overwrites it.
        raw = self._read_raw()
        if raw is None:
            return []

        try:
            data: Any = json.loads(raw)
        except ValueError:
            logger.warning("Stored notes are not valid JSON key=%s; treating as empty.", self._key)
            return []

        notes = normalize_notes(data)
        if isinstance(data, list) and [n.to_dict() for n in notes] != data:
            try:
                self.save(notes)
            except StoreWriteError as e:
                logger.warning("Could not persist migrated notes key=%s: %s", self._key, e)
            else:
                logger.info("Migrated stored notes written back key=%s count=%d", self._key, len(notes))
        return notes

    def save(self, notes: Iterable[Note]) -> None:
        payload = json.dumps([n.to_dict() for n in notes], ensure_ascii=False)
        now = time.time()

        try:
            conn = self._get_conn()
            try:
                conn.execute(
                    """
                    INSERT INTO kv(key, value, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                    """,
                    (self._key, payload, now),
                )
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StoreWriteError(f"Failed to save notes to {self._db_path}: {e}") from e

        logger.debug("Notes saved key=%s bytes=%d", self._key, len(payload))
