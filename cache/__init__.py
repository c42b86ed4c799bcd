"""
cache/ - Cache-aside store for node responses.

Modules:
- base: CacheLayer contract
- memory: InMemoryCache and NullCache
- redis_cache: RedisCache
"""

from cache.base import CacheLayer
from cache.memory import CacheEntry, InMemoryCache, NullCache
from cache.redis_cache import RedisCache
from config.settings import CacheSettings
from core.constants import CacheBackend
from core.logging import get_logger

logger = get_logger(__name__)


def create_cache(settings: CacheSettings) -> CacheLayer:
    """Build the cache backend named in configuration."""
    if settings.backend == CacheBackend.REDIS:
        cache: CacheLayer = RedisCache(
            url=settings.redis_url,
            socket_timeout=settings.socket_timeout_seconds,
        )
    elif settings.backend == CacheBackend.NULL:
        cache = NullCache()
    else:
        cache = InMemoryCache()

    logger.info(
        f"Cache backend: {settings.backend.value}",
        extra={"context": {"backend": settings.backend.value}},
    )
    return cache


__all__ = [
    "CacheEntry",
    "CacheLayer",
    "InMemoryCache",
    "NullCache",
    "RedisCache",
    "create_cache",
]
