"""
Cache store sobre Redis (hashes con TTL).

set_all reemplaza el hash completo en una transaccion MULTI/EXEC:
DEL + HSET + EXPIRE, para que un lector nunca vea una mezcla del conjunto
anterior y el nuevo.
"""
from __future__ import annotations

from typing import Dict, Mapping, Optional

from loguru import logger
from redis.asyncio import Redis
from redis.exceptions import RedisError

from fpl_sync.shared.exceptions.sync import CacheStoreError


def create_redis_client(url: str, *, socket_timeout_seconds: float = 5.0) -> Redis:
    """Construye un cliente Redis asincrono configurado."""
    return Redis.from_url(
        url,
        socket_connect_timeout=socket_timeout_seconds,
        socket_timeout=socket_timeout_seconds,
        decode_responses=True,
        encoding="utf-8",
    )


class RedisCacheStore:
    """Implementacion de CacheStore sobre redis.asyncio."""

    def __init__(self, client: Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisCacheStore":
        return cls(create_redis_client(url))

    async def get_all(self, key: str) -> Optional[Dict[str, str]]:
        try:
            mapping = await self._client.hgetall(key)
        except RedisError as e:
            raise CacheStoreError(f"HGETALL fallo: {e}", key=key) from e
        return dict(mapping) if mapping else None

    async def set_all(self, key: str, mapping: Mapping[str, str], ttl_seconds: int) -> None:
        try:
            async with self._client.pipeline(transaction=True) as pipe:
                pipe.delete(key)
                if mapping:
                    pipe.hset(key, mapping=dict(mapping))
                    pipe.expire(key, ttl_seconds)
                await pipe.execute()
        except RedisError as e:
            raise CacheStoreError(f"Escritura del hash fallo: {e}", key=key) from e

    async def delete(self, key: str) -> None:
        try:
            await self._client.delete(key)
        except RedisError as e:
            raise CacheStoreError(f"DEL fallo: {e}", key=key) from e

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except RedisError as e:
            logger.warning(f"Redis no responde: {e}")
            return False

    async def close(self) -> None:
        await self._client.aclose()
