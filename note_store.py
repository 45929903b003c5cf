"""
note_store.py
Durable single-slot storage for the current note.

The slot is one row of a small key/value table in a local SQLite file. Each save
overwrites the row inside one transaction, so readers never see a partial write.
The stored value is JSON: {"content": str, "drawing"?: str, "lastSaved": int}.
"""

import json
import logging
import sqlite3
import time
from dataclasses import dataclass
from typing import Callable, Optional

from errors import StorageUnavailable
from note_state import Note

logger = logging.getLogger(__name__)

LOCAL_STORAGE_KEY = "monopad_universal_data"


@dataclass(frozen=True)
class PersistedRecord:
    note: Note
    last_saved: int  # epoch millis

    def to_json(self) -> str:
        data = self.note.to_dict()
        data["lastSaved"] = self.last_saved
        return json.dumps(data, ensure_ascii=False)


def _epoch_millis() -> int:
    return int(time.time() * 1000)


def ensure_kv_table(db_path: str):
    """Create the key/value table if missing. Idempotent."""
    conn = sqlite3.connect(db_path)
    try:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS kv (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                modified_at TEXT NOT NULL DEFAULT (datetime('now'))
            )
            """
        )
        conn.commit()
    finally:
        conn.close()


def parse_record(raw) -> Optional[PersistedRecord]:
    """Parse a stored JSON value; None for anything that is not a note record."""
    if not isinstance(raw, str):
        return None
    try:
        data = json.loads(raw)
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    content = data.get("content", "")
    drawing = data.get("drawing")
    if not isinstance(content, str):
        return None
    if drawing is not None and not isinstance(drawing, str):
        return None
    last_saved = data.get("lastSaved", 0)
    if isinstance(last_saved, bool) or not isinstance(last_saved, (int, float)):
        last_saved = 0
    return PersistedRecord(Note(content=content, drawing=drawing or None), int(last_saved))


class NoteStore:
    """get/set for the note slot. No policy; the autosave scheduler decides when."""

    def __init__(self, db_path: str, key: str = LOCAL_STORAGE_KEY, clock: Callable[[], int] = _epoch_millis):
        self._db_path = db_path
        self._key = key
        self._clock = clock
        self._last_saved: Optional[int] = None

    @property
    def db_path(self) -> str:
        return self._db_path

    def _read_raw(self):
        conn = sqlite3.connect(self._db_path)
        try:
            cur = conn.cursor()
            cur.execute("SELECT value FROM kv WHERE key = ?", (self._key,))
            row = cur.fetchone()
            return row[0] if row else None
        finally:
            conn.close()

    def load_record(self) -> Optional[PersistedRecord]:
        """Return the stored record, or None if absent, unreadable or foreign."""
        try:
            ensure_kv_table(self._db_path)
            raw = self._read_raw()
        except sqlite3.Error:
            logger.warning("note store unreadable at %s", self._db_path, exc_info=True)
            return None
        record = parse_record(raw)
        if raw is not None and record is None:
            logger.warning("ignoring unparseable value in slot %r", self._key)
        if record is not None:
            self._last_saved = max(self._last_saved or 0, record.last_saved)
        return record

    def load(self) -> Optional[Note]:
        record = self.load_record()
        return record.note if record else None

    def last_saved(self) -> Optional[int]:
        return self._last_saved

    def _next_timestamp(self) -> int:
        now = int(self._clock())
        if self._last_saved is not None and now <= self._last_saved:
            now = self._last_saved + 1
        return now

    def save(self, note: Note) -> PersistedRecord:
        """Overwrite the slot with note and a fresh timestamp.

        Raises StorageUnavailable if the write fails; the previous value stays intact.
        """
        if self._last_saved is None:
            self.load_record()
        record = PersistedRecord(note, self._next_timestamp())
        try:
            ensure_kv_table(self._db_path)
            conn = sqlite3.connect(self._db_path)
            try:
                with conn:
                    conn.execute(
                        """
                        INSERT INTO kv (key, value, modified_at) VALUES (?, ?, datetime('now'))
                        ON CONFLICT(key) DO UPDATE SET value = excluded.value, modified_at = excluded.modified_at
                        """,
                        (self._key, record.to_json()),
                    )
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StorageUnavailable(f"Could not save note: {e}") from e
        self._last_saved = record.last_saved
        logger.debug("saved note (%d chars, drawing=%s)", len(note.content), note.drawing is not None)
        return record
