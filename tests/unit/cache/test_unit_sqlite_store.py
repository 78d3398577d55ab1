# tests/unit/cache/test_unit_sqlite_store.py — v2
"""Tests for cache/sqlite_store.py — full functional tests (stdlib sqlite3)."""

from __future__ import annotations

import pytest

from auditbatch.cache.sqlite_store import SqliteCacheStore


@pytest.fixture
def store(tmp_path):
    db = SqliteCacheStore(db_path=tmp_path / "test_cache.db")
    yield db
    db.close()


class TestSqliteCacheStore:
    @pytest.mark.asyncio
    async def test_write_and_read(self, store):
        await store.write("key1", b"payload")
        assert await store.read("key1") == b"payload"

    @pytest.mark.asyncio
    async def test_read_missing(self, store):
        assert await store.read("nonexistent") is None

    @pytest.mark.asyncio
    async def test_upsert(self, store):
        await store.write("key1", b"first")
        await store.write("key1", b"second")
        assert await store.read("key1") == b"second"
        assert await store.list_keys() == ["key1"]

    @pytest.mark.asyncio
    async def test_delete(self, store):
        await store.write("key1", b"payload")
        await store.delete("key1")
        assert await store.read("key1") is None

    @pytest.mark.asyncio
    async def test_list_keys(self, store):
        await store.write("b", b"1")
        await store.write("a", b"2")
        assert await store.list_keys() == ["a", "b"]

    @pytest.mark.asyncio
    async def test_persists_across_instances(self, tmp_path):
        path = tmp_path / "persist.db"
        first = SqliteCacheStore(db_path=path)
        await first.write("k", b"v")
        first.close()
        second = SqliteCacheStore(db_path=path)
        try:
            assert await second.read("k") == b"v"
        finally:
            second.close()
