# tests/unit/cache/test_unit_redis_store.py — v2
"""Tests for cache/redis_store.py — mocked Redis client."""

from __future__ import annotations

import sys
from unittest.mock import MagicMock

import pytest

from auditbatch.core.errors import CacheIOError


class _FakeRedisError(Exception):
    pass


class _FakePipeline:
    def __init__(self, client: "_FakeRedis") -> None:
        self._client = client
        self._ops: list = []

    def set(self, key, value):
        self._ops.append(lambda: self._client.storage.__setitem__(key, value))

    def sadd(self, key, member):
        self._ops.append(lambda: self._client.index.add(member.encode()))

    def delete(self, key):
        self._ops.append(lambda: self._client.storage.pop(key, None))

    def srem(self, key, member):
        self._ops.append(lambda: self._client.index.discard(member.encode()))

    def execute(self):
        for op in self._ops:
            op()
        self._ops.clear()


class _FakeRedis:
    def __init__(self) -> None:
        self.storage: dict[str, bytes] = {}
        self.index: set[bytes] = set()
        self.closed = False

    def get(self, key):
        return self.storage.get(key)

    def smembers(self, key):
        return set(self.index)

    def pipeline(self, transaction=True):
        return _FakePipeline(self)

    def close(self):
        self.closed = True


@pytest.fixture
def fake_client():
    return _FakeRedis()


@pytest.fixture
def store(monkeypatch, fake_client):
    redis_module = MagicMock()
    redis_module.RedisError = _FakeRedisError
    redis_module.Redis.from_url.return_value = fake_client
    monkeypatch.setitem(sys.modules, "redis", redis_module)

    from auditbatch.cache.redis_store import RedisCacheStore

    return RedisCacheStore(redis_url="redis://localhost:6379/0")


class TestRedisCacheStore:
    def test_import_error_without_redis(self, monkeypatch):
        """Clear ImportError when redis is not available."""
        monkeypatch.setitem(sys.modules, "redis", None)
        from auditbatch.cache.redis_store import RedisCacheStore

        with pytest.raises(ImportError, match="redis"):
            RedisCacheStore(redis_url="redis://localhost")

    @pytest.mark.asyncio
    async def test_write_and_read(self, store, fake_client):
        await store.write("key1", b"payload")
        assert await store.read("key1") == b"payload"
        assert "auditbatch:cache:key1" in fake_client.storage

    @pytest.mark.asyncio
    async def test_read_missing(self, store):
        assert await store.read("missing") is None

    @pytest.mark.asyncio
    async def test_delete_removes_index_entry(self, store):
        await store.write("key1", b"payload")
        await store.delete("key1")
        assert await store.read("key1") is None
        assert await store.list_keys() == []

    @pytest.mark.asyncio
    async def test_list_keys_decoded_and_sorted(self, store):
        await store.write("b", b"1")
        await store.write("a", b"2")
        assert await store.list_keys() == ["a", "b"]

    @pytest.mark.asyncio
    async def test_redis_error_becomes_cache_io_error(self, store, fake_client):
        fake_client.get = MagicMock(side_effect=_FakeRedisError("connection refused"))
        with pytest.raises(CacheIOError):
            await store.read("key1")

    def test_close(self, store, fake_client):
        store.close()
        assert fake_client.closed
