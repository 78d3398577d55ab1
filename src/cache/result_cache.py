# src/cache/result_cache.py — v1
"""Result cache: job key -> recent successful result, with expiry.

Two layers kept consistent by always writing metadata and payload in one
record:

- an in-memory index (key -> created_at) for fast existence/expiry checks,
- a durable ``BaseCacheStore`` holding the serialized ``CacheEntry``.

Every storage failure degrades to a cache miss; nothing raised by the
backing store escapes this class.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable

from pydantic import ValidationError

from auditbatch.cache.base_cache_store import BaseCacheStore
from auditbatch.cache.models import CacheEntry
from auditbatch.core.errors import CacheIOError
from auditbatch.core.models import JobKey, JobOptions, JobSuccess

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ResultCache:
    """Expiring cache of job results backed by a durable store."""

    def __init__(
        self,
        store: BaseCacheStore,
        cache_duration: timedelta | float = 3600.0,
        clock: Clock | None = None,
    ) -> None:
        if not isinstance(cache_duration, timedelta):
            cache_duration = timedelta(seconds=cache_duration)
        if cache_duration <= timedelta(0):
            raise ValueError("cache_duration must be positive")
        self._store = store
        self._duration = cache_duration
        self._clock = clock or _utcnow
        self._index: dict[str, datetime] = {}
        self._loaded = False

    @property
    def duration(self) -> timedelta:
        return self._duration

    def __len__(self) -> int:
        return len(self._index)

    def key_for(self, target: str, options: JobOptions) -> JobKey:
        return JobKey.derive(target, options)

    async def load(self) -> int:
        """Populate the in-memory index from the backing store.

        Returns:
            Number of entries indexed.
        """
        self._loaded = True
        try:
            keys = await self._store.list_keys()
        except CacheIOError as e:
            logger.warning("Cache index load failed, starting empty: %s", e)
            return 0

        for key in keys:
            entry = await self._read_entry(key)
            if entry is not None:
                self._index[key] = entry.created_at
        logger.info("Loaded %d cache entries", len(self._index))
        return len(self._index)

    async def lookup(self, target: str, options: JobOptions) -> JobSuccess | None:
        """Return the cached result for (target, options) if fresh."""
        await self._ensure_loaded()
        key = self.key_for(target, options).digest

        created_at = self._index.get(key)
        if created_at is None:
            return None
        if self._is_expired(created_at):
            await self._evict(key)
            return None

        entry = await self._read_entry(key)
        if entry is None:
            self._index.pop(key, None)
            return None
        if entry.key != key or entry.target != target:
            logger.error(
                "Cache key collision for %s (stored target %r), discarding entry",
                key, entry.target,
            )
            await self._evict(key)
            return None
        if self._is_expired(entry.created_at):
            await self._evict(key)
            return None

        logger.info("Using cached result for %s", target)
        return entry.result.model_copy(update={"from_cache": True})

    async def store(self, target: str, options: JobOptions, result: JobSuccess) -> None:
        """Persist result for (target, options), overwriting any prior entry."""
        await self._ensure_loaded()
        key = self.key_for(target, options).digest
        entry = CacheEntry(
            key=key,
            target=target,
            created_at=self._clock(),
            result=result.model_copy(update={"from_cache": False}),
        )
        try:
            await self._store.write(key, entry.model_dump_json().encode("utf-8"))
        except CacheIOError as e:
            logger.warning("Failed to store cache entry for %s: %s", target, e)
            return
        self._index[key] = entry.created_at

    async def sweep(self) -> int:
        """Evict every expired or unreadable entry from the backing store.

        Returns:
            Number of entries evicted.
        """
        await self._ensure_loaded()
        try:
            keys = await self._store.list_keys()
        except CacheIOError as e:
            logger.warning("Cache sweep skipped: %s", e)
            return 0

        evicted = 0
        for key in keys:
            try:
                blob = await self._store.read(key)
            except CacheIOError as e:
                logger.warning("Cache read failed for %s during sweep: %s", key, e)
                continue
            if blob is None:
                continue
            entry = self._parse(key, blob)
            if entry is None or self._is_expired(entry.created_at):
                if await self._evict(key):
                    evicted += 1

        for key, created_at in list(self._index.items()):
            if self._is_expired(created_at):
                self._index.pop(key, None)

        if evicted:
            logger.info("Swept %d expired cache entries", evicted)
        return evicted

    async def _ensure_loaded(self) -> None:
        if not self._loaded:
            await self.load()

    def _is_expired(self, created_at: datetime) -> bool:
        return self._clock() - created_at >= self._duration

    async def _read_entry(self, key: str) -> CacheEntry | None:
        try:
            blob = await self._store.read(key)
        except CacheIOError as e:
            logger.warning("Cache read failed for %s: %s", key, e)
            return None
        if blob is None:
            return None
        return self._parse(key, blob)

    def _parse(self, key: str, blob: bytes) -> CacheEntry | None:
        try:
            return CacheEntry.model_validate_json(blob)
        except ValidationError as e:
            logger.warning("Discarding corrupt cache entry %s: %s", key, e)
            return None

    async def _evict(self, key: str) -> bool:
        self._index.pop(key, None)
        try:
            await self._store.delete(key)
        except CacheIOError as e:
            logger.warning("Failed to evict cache entry %s: %s", key, e)
            return False
        return True
