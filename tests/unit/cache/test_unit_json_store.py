# tests/unit/cache/test_unit_json_store.py — v1
"""Tests for cache/json_store.py — one file per key, atomic replace."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from auditbatch.cache.json_store import JsonCacheStore
from auditbatch.core.errors import CacheIOError


@pytest.fixture
def store(tmp_cache_dir):
    return JsonCacheStore(cache_root=tmp_cache_dir)


class TestJsonCacheStore:
    @pytest.mark.asyncio
    async def test_write_and_read(self, store):
        await store.write("abc", b'{"x": 1}')
        assert await store.read("abc") == b'{"x": 1}'

    @pytest.mark.asyncio
    async def test_read_missing(self, store):
        assert await store.read("nope") is None

    @pytest.mark.asyncio
    async def test_overwrite(self, store):
        await store.write("abc", b"old")
        await store.write("abc", b"new")
        assert await store.read("abc") == b"new"

    @pytest.mark.asyncio
    async def test_delete(self, store):
        await store.write("abc", b"data")
        await store.delete("abc")
        assert await store.read("abc") is None

    @pytest.mark.asyncio
    async def test_delete_missing_is_noop(self, store):
        await store.delete("missing")

    @pytest.mark.asyncio
    async def test_list_keys_sorted(self, store):
        for key in ("b", "a", "c"):
            await store.write(key, b"{}")
        assert await store.list_keys() == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_list_keys_ignores_temp_files(self, store, tmp_cache_dir):
        await store.write("a", b"{}")
        (tmp_cache_dir / ".a.123.tmp").write_bytes(b"partial")
        (tmp_cache_dir / ".hidden.json").write_bytes(b"{}")
        assert await store.list_keys() == ["a"]

    @pytest.mark.asyncio
    async def test_list_keys_missing_root(self, tmp_path):
        store = JsonCacheStore(cache_root=tmp_path / "absent")
        assert await store.list_keys() == []

    @pytest.mark.asyncio
    async def test_creates_root_on_write(self, tmp_path):
        store = JsonCacheStore(cache_root=tmp_path / "nested" / "cache")
        await store.write("k", b"{}")
        assert (tmp_path / "nested" / "cache" / "k.json").exists()

    @pytest.mark.asyncio
    async def test_key_with_separator_stays_in_root(self, store, tmp_cache_dir):
        await store.write("a/b", b"{}")
        assert (tmp_cache_dir / "a_b.json").exists()

    @pytest.mark.asyncio
    async def test_failed_replace_keeps_old_record(self, store, tmp_cache_dir):
        await store.write("k", b"old")
        with patch("auditbatch.cache.json_store.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(CacheIOError):
                await store.write("k", b"new")
        assert await store.read("k") == b"old"
        assert [p.name for p in tmp_cache_dir.iterdir()] == ["k.json"]
