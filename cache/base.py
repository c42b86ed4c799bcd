"""
cache/base.py - Cache contract.

String-keyed store with optional TTL in seconds. Values are strings;
callers serialize (JSON) before set() and deserialize after get().
Implementations raise CacheUnavailable when the store cannot answer.
"""

from abc import ABC, abstractmethod


class CacheLayer(ABC):
    """Key-value store consulted cache-aside by the gateway."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Value for key, or None if absent or expired."""

    @abstractmethod
    async def set(self, key: str, value: str, ttl: int | None = None) -> bool:
        """Store value; ttl in seconds, None = no expiry."""

    @abstractmethod
    async def delete(self, key: str) -> int:
        """Number of keys removed (0 or 1)."""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        ...

    @abstractmethod
    async def incr(self, key: str, amount: int = 1) -> int:
        """Increment an integer counter, creating it at 0 first. Returns the new value."""

    @abstractmethod
    async def expire(self, key: str, ttl: int) -> bool:
        """Set a TTL on an existing key. False if the key does not exist."""

    @abstractmethod
    async def mget(self, keys: list[str]) -> list[str | None]:
        ...

    @abstractmethod
    async def getset(self, key: str, value: str) -> str | None:
        """Atomically replace a value, returning the previous one. Clears any TTL."""

    @abstractmethod
    async def flush_all(self) -> bool:
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        ...

    async def close(self) -> None:
        """Release connections. No-op by default."""
        return None
