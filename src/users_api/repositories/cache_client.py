"""JSON cache client over an async key-value backend.

Wraps a ``CacheBackend`` (Redis in production) and folds JSON
(de)serialization, expiration and existence signalling into three verbs:
``set_marshal``, ``get`` and ``delete``.
"""

from datetime import timedelta
from functools import lru_cache
from typing import Any, TypeVar

import structlog
from pydantic import PydanticSchemaGenerationError, TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError
from redis.exceptions import RedisError

from users_api.errors import CacheDecodeError, CacheEncodeError, CacheStoreError
from users_api.protocols import CacheBackend

T = TypeVar("T")

# Failures a backend round-trip can surface: Redis protocol/connection errors
# and raw socket errors from other backends.
BACKEND_ERRORS = (RedisError, OSError)


@lru_cache(maxsize=64)
def _adapter(type_: Any) -> TypeAdapter:
    return TypeAdapter(type_)


class CacheResult:
    """Handle for the outcome of a ``CacheClient.get`` call.

    The backend error (if any) is captured when the read is issued and
    raised by the accessors, so callers decide how to consume the result.
    """

    def __init__(self, key: str, value: bytes | str | None, error: Exception | None = None) -> None:
        self.key = key
        self._value = value
        self._error = error

    @property
    def found(self) -> bool:
        """True when the key held a non-empty value and the read succeeded."""
        return self._error is None and bool(self._value)

    def result(self) -> str | None:
        """Return the raw stored string.

        Returns:
            The stored value, or None on a cache miss

        Raises:
            CacheStoreError: If the backend read failed
            CacheDecodeError: If the stored bytes are not valid UTF-8
        """
        self._raise_for_error()
        if not self._value:
            return None
        if isinstance(self._value, bytes):
            try:
                return self._value.decode("utf-8")
            except UnicodeDecodeError as e:
                raise CacheDecodeError(
                    f"[in CacheResult.result] failed to decode key {self.key!r} from cache: {e}"
                ) from e
        return self._value

    def unmarshal(self, type_: type[T]) -> T | None:
        """Decode the stored JSON into ``type_``.

        Args:
            type_: Target type (dataclass, pydantic model, builtin container)

        Returns:
            The decoded value, or None on a cache miss

        Raises:
            CacheStoreError: If the backend read failed
            CacheDecodeError: If the stored value is not valid JSON for ``type_``
        """
        self._raise_for_error()
        if not self._value:
            return None

        try:
            return _adapter(type_).validate_json(self._value)
        except ValidationError as e:
            raise CacheDecodeError(
                f"[in CacheResult.unmarshal] failed to unmarshal key {self.key!r} from cache: {e}"
            ) from e

    def _raise_for_error(self) -> None:
        if self._error is not None:
            raise CacheStoreError(
                f"[in CacheResult] failed to get key {self.key!r} from cache: {self._error}"
            ) from self._error


class CacheClient:
    """JSON cache wrapper with a fixed expiration.

    Example:
        ```python
        import redis.asyncio as redis

        cache = CacheClient(redis.from_url("redis://localhost:6379"), expiration=300, logger=log)
        await cache.set_marshal("1", user)
        user = (await cache.get("1")).unmarshal(User)
        await cache.delete("1")
        ```
    """

    def __init__(
        self,
        backend: CacheBackend,
        expiration: int | timedelta,
        logger: structlog.stdlib.BoundLogger,
    ) -> None:
        """Initialize the cache client.

        Args:
            backend: Key-value store the entries are written to
            expiration: TTL applied to every write (seconds or timedelta).
                        Zero disables expiry.
            logger: Logger to report cache traffic on
        """
        self._backend = backend
        self._expiration = expiration
        self._logger = logger.bind(component="CacheClient")

    @property
    def expiration(self) -> int | timedelta:
        """Get the TTL applied to every write."""
        return self._expiration

    async def set_marshal(self, key: str, value: Any) -> None:
        """Serialize ``value`` to JSON and store it under ``key``.

        Raises:
            CacheEncodeError: If the value cannot be serialized
            CacheStoreError: If the backend write fails
        """
        try:
            data = _adapter(type(value)).dump_json(value)
        except (PydanticSerializationError, PydanticSchemaGenerationError) as e:
            raise CacheEncodeError(f"[in CacheClient.set_marshal] failed to marshal value: {e}") from e

        try:
            await self._backend.set(key, data, ex=self._expiration or None)
        except BACKEND_ERRORS as e:
            raise CacheStoreError(
                f"[in CacheClient.set_marshal] failed to set value in cache: {e}"
            ) from e

        self._logger.debug("Cache set", key=key)

    async def get(self, key: str) -> CacheResult:
        """Read ``key`` from the backend.

        Backend failures are not raised here; they surface from
        ``CacheResult.result`` / ``CacheResult.unmarshal``.
        """
        try:
            value = await self._backend.get(key)
        except BACKEND_ERRORS as e:
            self._logger.warning("Cache get failed", key=key, error=str(e))
            return CacheResult(key, None, error=e)

        self._logger.debug("Cache get", key=key, hit=bool(value))
        return CacheResult(key, value)

    async def delete(self, key: str) -> None:
        """Delete ``key``. Deleting an absent key is not an error.

        Raises:
            CacheStoreError: If the backend delete fails
        """
        try:
            await self._backend.delete(key)
        except BACKEND_ERRORS as e:
            raise CacheStoreError(f"[in CacheClient.delete] failed to delete key {key!r}: {e}") from e

        self._logger.debug("Cache delete", key=key)

    async def ping(self) -> None:
        """Check the backend is reachable.

        Raises:
            CacheStoreError: If the backend does not answer
        """
        try:
            await self._backend.ping()
        except BACKEND_ERRORS as e:
            raise CacheStoreError(f"[in CacheClient.ping] failed to ping cache: {e}") from e
