"""
cache/memory.py - In-process cache implementations.

InMemoryCache honours TTLs on read: an expired entry is dropped and
reported absent, never served stale. NullCache is the no-op stand-in for
running without any store.
"""

from dataclasses import dataclass
from typing import Callable

from cache.base import CacheLayer
from core.time import monotonic


@dataclass
class CacheEntry:
    """Stored value with optional absolute expiry (monotonic seconds)."""
    key: str
    value: str
    expires_at: float | None = None

    def is_expired(self, now: float) -> bool:
        return self.expires_at is not None and now >= self.expires_at


class InMemoryCache(CacheLayer):
    """Dict-backed cache for single-process deployments and tests."""

    def __init__(self, clock: Callable[[], float] = monotonic):
        self._clock = clock
        self._store: dict[str, CacheEntry] = {}

    def _live_entry(self, key: str) -> CacheEntry | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            del self._store[key]
            return None
        return entry

    def _expiry(self, ttl: int | None) -> float | None:
        if ttl is None:
            return None
        return self._clock() + ttl

    async def get(self, key: str) -> str | None:
        entry = self._live_entry(key)
        return entry.value if entry else None

    async def set(self, key: str, value: str, ttl: int | None = None) -> bool:
        self._store[key] = CacheEntry(key=key, value=value, expires_at=self._expiry(ttl))
        return True

    async def delete(self, key: str) -> int:
        if self._live_entry(key) is None:
            return 0
        del self._store[key]
        return 1

    async def exists(self, key: str) -> bool:
        return self._live_entry(key) is not None

    async def incr(self, key: str, amount: int = 1) -> int:
        entry = self._live_entry(key)
        if entry is None:
            new_value = amount
            expires_at = None
        else:
            try:
                new_value = int(entry.value) + amount
            except ValueError as e:
                raise ValueError(f"Value at {key} is not an integer") from e
            expires_at = entry.expires_at

        self._store[key] = CacheEntry(key=key, value=str(new_value), expires_at=expires_at)
        return new_value

    async def expire(self, key: str, ttl: int) -> bool:
        entry = self._live_entry(key)
        if entry is None:
            return False
        entry.expires_at = self._expiry(ttl)
        return True

    async def mget(self, keys: list[str]) -> list[str | None]:
        return [await self.get(key) for key in keys]

    async def getset(self, key: str, value: str) -> str | None:
        previous = await self.get(key)
        self._store[key] = CacheEntry(key=key, value=value)
        return previous

    async def flush_all(self) -> bool:
        self._store.clear()
        return True

    async def health_check(self) -> bool:
        return True

    def __len__(self) -> int:
        now = self._clock()
        return sum(1 for entry in self._store.values() if not entry.is_expired(now))


class NullCache(CacheLayer):
    """Cache that stores nothing: every read misses, every write is dropped."""

    async def get(self, key: str) -> str | None:
        return None

    async def set(self, key: str, value: str, ttl: int | None = None) -> bool:
        return True

    async def delete(self, key: str) -> int:
        return 0

    async def exists(self, key: str) -> bool:
        return False

    async def incr(self, key: str, amount: int = 1) -> int:
        return amount

    async def expire(self, key: str, ttl: int) -> bool:
        return False

    async def mget(self, keys: list[str]) -> list[str | None]:
        return [None for _ in keys]

    async def getset(self, key: str, value: str) -> str | None:
        return None

    async def flush_all(self) -> bool:
        return True

    async def health_check(self) -> bool:
        return True
