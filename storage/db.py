"""
SQLite storage. One file, one connection, no ORM.

Tables:
- kv_store: durable key/value pairs (channel cursors, delivered-thread markers)

Views over kv_store:
- CursorStore: feed id -> last delivered item id
- ItemCache: per-item "already delivered" flags
"""

import logging
import sqlite3
from pathlib import Path

from models import FeedCursor

log = logging.getLogger(__name__)

CURSOR_PREFIX = "TelegramLastMessageId-"
THREAD_PREFIX = "nga-threads-"


class Storage:
    def __init__(self, db_path: Path):
        db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(db_path))
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.row_factory = sqlite3.Row
        self._migrate()

    def _migrate(self):
        """Create tables if they don't exist. No migration framework needed."""
        self._conn.executescript("""
            CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT NOT NULL DEFAULT (datetime('now'))
            );
        """)
        self._conn.commit()

    def read(self, key: str) -> str | None:
        row = self._conn.execute(
            "SELECT value FROM kv_store WHERE key = ?", (key,)
        ).fetchone()
        return row[0] if row else None

    def write(self, key: str, value: str):
        self._conn.execute(
            """INSERT INTO kv_store (key, value, updated_at)
               VALUES (?, ?, datetime('now'))
               ON CONFLICT(key)
               DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at""",
            (key, value),
        )
        self._conn.commit()

    def keys_with_prefix(self, prefix: str) -> list[tuple[str, str]]:
        rows = self._conn.execute(
            "SELECT key, value FROM kv_store WHERE substr(key, 1, ?) = ? ORDER BY key",
            (len(prefix), prefix),
        ).fetchall()
        return [(r[0], r[1]) for r in rows]

    def close(self):
        self._conn.close()


class CursorStore:
    """Last delivered item id per cursor-tracked feed."""

    def __init__(self, storage: Storage):
        self._storage = storage

    def read(self, feed_id: str) -> int | None:
        raw = self._storage.read(CURSOR_PREFIX + feed_id)
        if raw is None:
            return None
        try:
            return int(raw)
        except ValueError:
            log.warning(f"Ignoring corrupt cursor for {feed_id}: {raw!r}")
            return None

    def write(self, feed_id: str, last_item_id: int) -> int:
        """Store a cursor. Never moves backwards; returns the stored value."""
        current = self.read(feed_id)
        if current is not None and current >= last_item_id:
            return current
        self._storage.write(CURSOR_PREFIX + feed_id, str(last_item_id))
        return last_item_id

    def all(self) -> list[FeedCursor]:
        cursors = []
        for key, value in self._storage.keys_with_prefix(CURSOR_PREFIX):
            try:
                cursors.append(FeedCursor(key[len(CURSOR_PREFIX):], int(value)))
            except ValueError:
                continue
        return cursors


class ItemCache:
    """Per-item delivered flags, keyed like `nga-threads-<id>`."""

    def __init__(self, storage: Storage, prefix: str = THREAD_PREFIX):
        self._storage = storage
        self._prefix = prefix

    def key(self, item_id: int) -> str:
        return f"{self._prefix}{item_id}"

    def contains(self, item_id: int) -> bool:
        """Lookup errors count as not delivered."""
        try:
            return self._storage.read(self.key(item_id)) is not None
        except sqlite3.Error as e:
            log.warning(f"Cache lookup failed for {self.key(item_id)}: {e}")
            return False

    def mark(self, item_id: int):
        key = self.key(item_id)
        self._storage.write(key, key)

    def count(self) -> int:
        return len(self._storage.keys_with_prefix(self._prefix))
