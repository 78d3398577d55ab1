# src/cache/cache_factory.py — v3
"""Factory for cache store instantiation."""

from __future__ import annotations

from auditbatch.cache.base_cache_store import BaseCacheStore
from auditbatch.config.settings import Settings
from auditbatch.core.errors import ConfigurationError


def create_cache_store(settings: Settings | None = None) -> BaseCacheStore:
    """Instantiate the configured cache backend.

    Args:
        settings: Application settings. Defaults to the JSON backend.

    Returns:
        Configured BaseCacheStore implementation.

    Raises:
        ConfigurationError: If the backend is unknown or misconfigured.
    """
    backend = "json" if settings is None else settings.cache_backend
    cache_root = "./cache" if settings is None else str(settings.cache_root)

    if backend == "json":
        from auditbatch.cache.json_store import JsonCacheStore
        return JsonCacheStore(cache_root=cache_root)

    if backend == "sqlite":
        from auditbatch.cache.sqlite_store import SqliteCacheStore
        return SqliteCacheStore(db_path=f"{cache_root}/auditbatch_cache.db")

    if backend == "redis":
        from auditbatch.cache.redis_store import RedisCacheStore
        if settings is None or not settings.cache_redis_url:
            raise ConfigurationError(
                "CACHE_REDIS_URL must be set when CACHE_BACKEND=redis"
            )
        return RedisCacheStore(redis_url=settings.cache_redis_url)

    raise ConfigurationError(f"Unsupported cache backend: {backend!r}")
