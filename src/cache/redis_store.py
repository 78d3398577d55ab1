# src/cache/redis_store.py — v2
"""Redis-based cache store (CACHE_BACKEND=redis).

Requires 'redis' package: pip install redis.
Suitable for sharing a cache between several batch runners.
"""

from __future__ import annotations

import logging

from auditbatch.cache.base_cache_store import BaseCacheStore
from auditbatch.core.errors import CacheIOError

logger = logging.getLogger(__name__)

_KEY_PREFIX = "auditbatch:cache:"
_INDEX_KEY = "auditbatch:cache:__index__"


class RedisCacheStore(BaseCacheStore):
    """Redis-backed cache store for distributed deployments."""

    def __init__(self, redis_url: str) -> None:
        try:
            import redis
        except ImportError as e:
            raise ImportError(
                "redis package required: pip install redis"
            ) from e

        self._redis_error = redis.RedisError
        self._client = redis.Redis.from_url(redis_url)

    async def read(self, key: str) -> bytes | None:
        """Read the record for key."""
        try:
            data = self._client.get(f"{_KEY_PREFIX}{key}")
        except self._redis_error as e:
            raise CacheIOError(f"Failed to read cache entry {key}: {e}") from e
        if data is None:
            return None
        return data if isinstance(data, bytes) else str(data).encode("utf-8")

    async def write(self, key: str, blob: bytes) -> None:
        """Store a record and register it in the key index."""
        try:
            pipe = self._client.pipeline(transaction=True)
            pipe.set(f"{_KEY_PREFIX}{key}", blob)
            pipe.sadd(_INDEX_KEY, key)
            pipe.execute()
        except self._redis_error as e:
            raise CacheIOError(f"Failed to write cache entry {key}: {e}") from e

    async def delete(self, key: str) -> None:
        """Remove a record and its index membership."""
        try:
            pipe = self._client.pipeline(transaction=True)
            pipe.delete(f"{_KEY_PREFIX}{key}")
            pipe.srem(_INDEX_KEY, key)
            pipe.execute()
        except self._redis_error as e:
            raise CacheIOError(f"Failed to delete cache entry {key}: {e}") from e

    async def list_keys(self) -> list[str]:
        """List all indexed keys."""
        try:
            members = self._client.smembers(_INDEX_KEY)
        except self._redis_error as e:
            raise CacheIOError(f"Failed to list cache index: {e}") from e
        return sorted(
            m.decode("utf-8") if isinstance(m, bytes) else str(m) for m in members
        )

    def close(self) -> None:
        """Close the client connection pool."""
        self._client.close()
