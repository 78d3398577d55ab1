# src/cache/json_store.py — v2
"""JSON file-based cache store (default CACHE_BACKEND=json).

Stores one JSON file per key under CACHE_ROOT. Writes go to a temporary
file in the same directory and are moved into place with ``os.replace``,
so a crash mid-write leaves either the old record or none.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from auditbatch.cache.base_cache_store import BaseCacheStore
from auditbatch.core.errors import CacheIOError

logger = logging.getLogger(__name__)

_SUFFIX = ".json"


class JsonCacheStore(BaseCacheStore):
    """File-based cache store using JSON files."""

    def __init__(self, cache_root: Path | str) -> None:
        self._root = Path(cache_root).expanduser()

    @property
    def root(self) -> Path:
        return self._root

    async def read(self, key: str) -> bytes | None:
        """Read the record for key."""
        path = self._entry_path(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise CacheIOError(f"Failed to read cache entry {key}: {e}") from e

    async def write(self, key: str, blob: bytes) -> None:
        """Atomically replace the record for key."""
        path = self._entry_path(key)
        tmp_name: str | None = None
        try:
            self._root.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._root, prefix=f".{path.stem}.", suffix=".tmp"
            )
            with os.fdopen(fd, "wb") as f:
                f.write(blob)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as e:
            raise CacheIOError(f"Failed to write cache entry {key}: {e}") from e
        finally:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)

    async def delete(self, key: str) -> None:
        """Remove the record for key."""
        try:
            self._entry_path(key).unlink(missing_ok=True)
        except OSError as e:
            raise CacheIOError(f"Failed to delete cache entry {key}: {e}") from e

    async def list_keys(self) -> list[str]:
        """List all persisted keys (temporary files excluded)."""
        if not self._root.is_dir():
            return []
        try:
            return sorted(
                p.stem for p in self._root.glob(f"*{_SUFFIX}")
                if not p.name.startswith(".")
            )
        except OSError as e:
            raise CacheIOError(f"Failed to list cache root {self._root}: {e}") from e

    def _entry_path(self, key: str) -> Path:
        """Return file path for a cache key."""
        safe_key = key.replace("/", "_").replace("\\", "_")
        return self._root / f"{safe_key}{_SUFFIX}"
