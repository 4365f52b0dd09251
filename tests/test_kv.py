import json
from unittest.mock import MagicMock, patch

import pytest

from nominatim_client.cache import CacheManager
from nominatim_client.kv import RedisStore


@pytest.fixture
def client():
    return MagicMock()


def test_set_writes_json_with_millisecond_expiry(client):
    store = RedisStore(client=client)
    store.set("nominatim:search:Paris", [{"place_id": 1}], ttl=86400000)
    client.set.assert_called_once_with("nominatim:search:Paris", json.dumps([{"place_id": 1}]), px=86400000)


def test_set_without_ttl_has_no_expiry(client):
    RedisStore(client=client).set("k", {"a": 1}, ttl=None)
    client.set.assert_called_once_with("k", '{"a": 1}')


def test_get_decodes_json(client):
    client.get.return_value = '{"status": 0, "message": "OK"}'
    assert RedisStore(client=client).get("k") == {"status": 0, "message": "OK"}
    client.get.return_value = None
    assert RedisStore(client=client).get("k") is None


def test_ttl_remaining_maps_pttl(client):
    store = RedisStore(client=client)
    client.pttl.return_value = -2
    assert store.ttl_remaining("k") is None
    client.pttl.return_value = -1
    assert store.ttl_remaining("k") == -1
    client.pttl.return_value = 1500
    assert store.ttl_remaining("k") == 1500


def test_clear_only_deletes_prefixed_keys(client):
    client.scan_iter.return_value = iter(["nominatim:a", "nominatim:b"])
    RedisStore(client=client).clear("nominatim:")
    client.scan_iter.assert_called_once_with(match="nominatim:*")
    client.delete.assert_called_once_with("nominatim:a", "nominatim:b")


def test_clear_with_no_keys_skips_delete(client):
    client.scan_iter.return_value = iter([])
    RedisStore(client=client).clear("nominatim:")
    client.delete.assert_not_called()


def test_builds_client_from_url():
    with patch("nominatim_client.kv.redis.Redis.from_url") as from_url:
        RedisStore(url="redis://cache:6379/2")
    from_url.assert_called_once_with("redis://cache:6379/2", decode_responses=True)


@pytest.mark.asyncio
async def test_store_failure_propagates_through_manager(client):
    client.get.side_effect = ConnectionError("Error 111 connecting to localhost:6379")
    cache = CacheManager(store=RedisStore(client=client))
    with pytest.raises(ConnectionError):
        await cache.get("search:Paris")


def test_requires_url_or_client():
    with pytest.raises(ValueError):
        RedisStore()
