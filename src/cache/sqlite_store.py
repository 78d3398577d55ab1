# src/cache/sqlite_store.py — v2
"""SQLite-based cache store (CACHE_BACKEND=sqlite).

Uses stdlib sqlite3, no external dependency. Each write is a single
upsert statement, which SQLite commits atomically.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from auditbatch.cache.base_cache_store import BaseCacheStore
from auditbatch.core.errors import CacheIOError

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS cache_entries (
    key TEXT PRIMARY KEY,
    data BLOB NOT NULL,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
);
"""


class SqliteCacheStore(BaseCacheStore):
    """SQLite-backed cache store for larger key spaces."""

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = Path(db_path).expanduser()
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(self._db_path))
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.executescript(_SCHEMA)
        except (OSError, sqlite3.Error) as e:
            raise CacheIOError(f"Cannot open cache database {self._db_path}: {e}") from e

    async def read(self, key: str) -> bytes | None:
        """Read the record for key."""
        try:
            row = self._conn.execute(
                "SELECT data FROM cache_entries WHERE key = ?", (key,)
            ).fetchone()
        except sqlite3.Error as e:
            raise CacheIOError(f"Failed to read cache entry {key}: {e}") from e
        if row is None:
            return None
        data = row[0]
        return data if isinstance(data, bytes) else str(data).encode("utf-8")

    async def write(self, key: str, blob: bytes) -> None:
        """Store a record (upsert)."""
        try:
            self._conn.execute(
                """INSERT INTO cache_entries (key, data, updated_at)
                   VALUES (?, ?, CURRENT_TIMESTAMP)
                   ON CONFLICT(key) DO UPDATE SET
                       data = excluded.data,
                       updated_at = excluded.updated_at""",
                (key, blob),
            )
            self._conn.commit()
        except sqlite3.Error as e:
            raise CacheIOError(f"Failed to write cache entry {key}: {e}") from e

    async def delete(self, key: str) -> None:
        """Remove a record."""
        try:
            self._conn.execute("DELETE FROM cache_entries WHERE key = ?", (key,))
            self._conn.commit()
        except sqlite3.Error as e:
            raise CacheIOError(f"Failed to delete cache entry {key}: {e}") from e

    async def list_keys(self) -> list[str]:
        """List all keys."""
        try:
            rows = self._conn.execute(
                "SELECT key FROM cache_entries ORDER BY key"
            ).fetchall()
        except sqlite3.Error as e:
            raise CacheIOError(f"Failed to list cache entries: {e}") from e
        return [row[0] for row in rows]

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()
