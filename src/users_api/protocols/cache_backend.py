"""Cache backend protocol.

Defines the minimal set of key-value verbs the cache client needs from a
remote store. ``redis.asyncio.Redis`` satisfies it as-is; tests use an
in-memory implementation.
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class CacheBackend(Protocol):
    """Protocol for async key-value stores.

    Any type that implements these methods satisfies the protocol, no
    explicit inheritance needed.

    Example:
        ```python
        import redis.asyncio as redis

        backend: CacheBackend = redis.from_url("redis://localhost:6379")
        ```
    """

    async def set(self, name: str, value: bytes | str, ex: Any = None) -> Any:
        """Store a value, optionally expiring after ``ex`` (seconds or timedelta)."""
        ...

    async def get(self, name: str) -> bytes | str | None:
        """Return the stored value, or None when the key is absent."""
        ...

    async def delete(self, *names: str) -> int:
        """Remove keys, returning how many existed. Absent keys are ignored."""
        ...

    async def ping(self) -> Any:
        """Check that the store is reachable. Raises on failure."""
        ...
