# src/cache/base_cache_store.py — v2
"""Abstract cache backing store: a durable key -> blob mapping."""

from __future__ import annotations

from abc import ABC, abstractmethod


class BaseCacheStore(ABC):
    """Unified interface for cache storage backends.

    Implementations raise ``CacheIOError`` when the underlying storage is
    unavailable. A ``write`` is all-or-nothing per key.
    """

    @abstractmethod
    async def read(self, key: str) -> bytes | None:
        """Return the blob stored under key, or None if absent."""

    @abstractmethod
    async def write(self, key: str, blob: bytes) -> None:
        """Store blob under key, replacing any previous value."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove key. Missing keys are ignored."""

    @abstractmethod
    async def list_keys(self) -> list[str]:
        """List every key currently persisted."""

    def close(self) -> None:
        """Release backend resources."""
