"""
cache/redis_cache.py - Redis-backed cache.

Uses redis.asyncio with socket timeouts so a hung store cannot stall a
request. Any Redis error is re-raised as CacheUnavailable; the gateway
treats that as a cache miss.
"""

from typing import Any, Awaitable

import redis.asyncio as redis
from redis.exceptions import RedisError

from cache.base import CacheLayer
from core.constants import DEFAULT_REDIS_SOCKET_TIMEOUT_SECONDS, DEFAULT_REDIS_URL
from core.exceptions import CacheUnavailable
from core.logging import get_logger

logger = get_logger(__name__)


class RedisCache(CacheLayer):
    """CacheLayer over a Redis server."""

    def __init__(
        self,
        url: str = DEFAULT_REDIS_URL,
        socket_timeout: float = DEFAULT_REDIS_SOCKET_TIMEOUT_SECONDS,
        client: Any = None,
    ):
        self.url = url
        self._client = client or redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )

    async def _call(self, operation: str, key: str | None, awaitable: Awaitable) -> Any:
        try:
            return await awaitable
        except RedisError as e:
            logger.error(
                f"Redis {operation} failed: {e}",
                extra={"context": {"operation": operation, "key": key}},
            )
            raise CacheUnavailable(
                f"Redis {operation} failed: {e}",
                details={"operation": operation, "key": key},
            ) from e

    async def get(self, key: str) -> str | None:
        return await self._call("get", key, self._client.get(key))

    async def set(self, key: str, value: str, ttl: int | None = None) -> bool:
        if ttl is not None and ttl <= 0:
            # Already expired: Redis rejects a non-positive EX
            await self._call("delete", key, self._client.delete(key))
            return True
        if ttl is not None:
            result = await self._call("set", key, self._client.set(key, value, ex=ttl))
        else:
            result = await self._call("set", key, self._client.set(key, value))
        return bool(result)

    async def delete(self, key: str) -> int:
        return int(await self._call("delete", key, self._client.delete(key)))

    async def exists(self, key: str) -> bool:
        return int(await self._call("exists", key, self._client.exists(key))) > 0

    async def incr(self, key: str, amount: int = 1) -> int:
        if amount == 1:
            return int(await self._call("incr", key, self._client.incr(key)))
        return int(await self._call("incrby", key, self._client.incrby(key, amount)))

    async def expire(self, key: str, ttl: int) -> bool:
        return bool(await self._call("expire", key, self._client.expire(key, ttl)))

    async def mget(self, keys: list[str]) -> list[str | None]:
        if not keys:
            return []
        return list(await self._call("mget", None, self._client.mget(keys)))

    async def getset(self, key: str, value: str) -> str | None:
        return await self._call("getset", key, self._client.getset(key, value))

    async def flush_all(self) -> bool:
        # Current database only
        await self._call("flushdb", None, self._client.flushdb())
        return True

    async def health_check(self) -> bool:
        try:
            return bool(await self._client.ping())
        except RedisError as e:
            logger.error(f"Redis health check failed: {e}")
            return False

    async def close(self) -> None:
        await self._client.aclose()
