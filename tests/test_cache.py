import asyncio
from unittest.mock import MagicMock, patch

import pytest

from nominatim_client.cache import CacheManager, MemoryStore


def test_memory_store_expires_entries():
    store = MemoryStore()
    with patch("nominatim_client.cache.time.monotonic", return_value=100.0):
        store.set("k", {"v": 1}, ttl=1000)
    with patch("nominatim_client.cache.time.monotonic", return_value=100.5):
        assert store.get("k") == {"v": 1}
        assert store.ttl_remaining("k") == 500
    with patch("nominatim_client.cache.time.monotonic", return_value=101.0):
        assert store.get("k") is None
    assert len(store) == 0


def test_memory_store_zero_ttl_never_expires():
    store = MemoryStore()
    store.set("k", "v", ttl=0)
    assert store.ttl_remaining("k") == -1
    assert store.get("k") == "v"


def test_memory_store_evicts_least_recently_used():
    store = MemoryStore(max_entries=2)
    store.set("a", 1)
    store.set("b", 2)
    store.get("a")
    store.set("c", 3)
    assert store.get("b") is None
    assert store.get("a") == 1
    assert store.get("c") == 3


def test_memory_store_clear_by_prefix():
    store = MemoryStore()
    store.set("nominatim:search:a", 1)
    store.set("other:search:a", 2)
    store.clear("nominatim:")
    assert store.get("nominatim:search:a") is None
    assert store.get("other:search:a") == 2


@pytest.mark.asyncio
async def test_manager_namespaces_keys_and_applies_default_ttl():
    store = MagicMock()
    store.get.return_value = None
    cache = CacheManager(store=store, ttl=86400000, namespace="nominatim")

    await cache.set("search:Paris", [1])
    await cache.set("search:Lyon", [2], ttl=5000)
    await cache.get("search:Paris")

    store.set.assert_any_call("nominatim:search:Paris", [1], 86400000)
    store.set.assert_any_call("nominatim:search:Lyon", [2], 5000)
    store.get.assert_called_once_with("nominatim:search:Paris")


@pytest.mark.asyncio
async def test_manager_without_namespace_uses_raw_keys():
    store = MemoryStore()
    cache = CacheManager(store=store, namespace="")
    await cache.set("search:x", "y")
    assert store.get("search:x") == "y"


@pytest.mark.asyncio
async def test_manager_non_blocking_write_completes_after_flush():
    store = MemoryStore()
    cache = CacheManager(store=store, non_blocking=True)

    await cache.set("reverse:1:2", {"a": 1})
    await cache.flush()

    assert await cache.get("reverse:1:2") == {"a": 1}


@pytest.mark.asyncio
async def test_manager_non_blocking_write_failure_is_logged(caplog):
    store = MagicMock()
    store.set.side_effect = ConnectionError("store down")
    cache = CacheManager(store=store, non_blocking=True)

    await cache.set("k", 1)
    await cache.flush()
    await asyncio.sleep(0)

    assert "Background cache write failed" in caplog.text


@pytest.mark.asyncio
async def test_manager_blocking_write_failure_propagates():
    store = MagicMock()
    store.set.side_effect = ConnectionError("store down")
    cache = CacheManager(store=store)

    with pytest.raises(ConnectionError):
        await cache.set("k", 1)


@pytest.mark.asyncio
async def test_needs_refresh_uses_threshold():
    store = MagicMock()
    cache = CacheManager(store=store, refresh_threshold=60000)

    store.ttl_remaining.return_value = None
    assert await cache.needs_refresh("k") is True
    store.ttl_remaining.return_value = 30000
    assert await cache.needs_refresh("k") is True
    store.ttl_remaining.return_value = 3600000
    assert await cache.needs_refresh("k") is False
    store.ttl_remaining.return_value = -1
    assert await cache.needs_refresh("k") is False


@pytest.mark.asyncio
async def test_delete_and_clear():
    cache = CacheManager(store=MemoryStore())
    await cache.set("a", 1)
    await cache.set("b", 2)
    await cache.delete("a")
    assert await cache.get("a") is None
    await cache.clear()
    assert await cache.get("b") is None
