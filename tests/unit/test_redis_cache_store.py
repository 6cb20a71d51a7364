"""
Tests del RedisCacheStore con un cliente redis mockeado.
"""
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from fpl_sync.infrastructure.cache.redis_cache_store import RedisCacheStore
from fpl_sync.shared.exceptions.sync import CacheStoreError


def _client_with_pipeline():
    pipe = MagicMock()
    pipe.execute = AsyncMock(return_value=[1, 2, True])
    pipe.__aenter__ = AsyncMock(return_value=pipe)
    pipe.__aexit__ = AsyncMock(return_value=False)

    client = MagicMock()
    client.pipeline = MagicMock(return_value=pipe)
    client.hgetall = AsyncMock(return_value={})
    client.delete = AsyncMock(return_value=1)
    client.aclose = AsyncMock()
    return client, pipe


@pytest.mark.asyncio
async def test_set_all_replaces_hash_in_one_transaction():
    client, pipe = _client_with_pipeline()
    store = RedisCacheStore(client)

    await store.set_all("entry_info::2425", {"1": "{}", "__count__": "1"}, 60)

    client.pipeline.assert_called_once_with(transaction=True)
    pipe.delete.assert_called_once_with("entry_info::2425")
    pipe.hset.assert_called_once_with("entry_info::2425", mapping={"1": "{}", "__count__": "1"})
    pipe.expire.assert_called_once_with("entry_info::2425", 60)
    pipe.execute.assert_awaited_once()


@pytest.mark.asyncio
async def test_get_all_returns_none_for_missing_key():
    client, _ = _client_with_pipeline()
    store = RedisCacheStore(client)

    assert await store.get_all("missing") is None

    client.hgetall.return_value = {"__count__": "0"}
    assert await store.get_all("present") == {"__count__": "0"}


@pytest.mark.asyncio
async def test_redis_errors_are_wrapped():
    client, pipe = _client_with_pipeline()
    client.hgetall.side_effect = RedisConnectionError("down")
    client.delete.side_effect = RedisConnectionError("down")
    pipe.execute.side_effect = RedisConnectionError("down")
    store = RedisCacheStore(client)

    with pytest.raises(CacheStoreError) as exc_info:
        await store.get_all("k")
    assert exc_info.value.key == "k"

    with pytest.raises(CacheStoreError):
        await store.set_all("k", {"__count__": "0"}, 60)

    with pytest.raises(CacheStoreError):
        await store.delete("k")


@pytest.mark.asyncio
async def test_close_closes_client():
    client, _ = _client_with_pipeline()
    await RedisCacheStore(client).close()
    client.aclose.assert_awaited_once()


@pytest.mark.asyncio
async def test_ping_reports_reachability():
    client, _ = _client_with_pipeline()
    client.ping = AsyncMock(return_value=True)
    store = RedisCacheStore(client)

    assert await store.ping() is True

    client.ping.side_effect = RedisConnectionError("down")
    assert await store.ping() is False
