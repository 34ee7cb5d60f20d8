"""Exception hierarchy for the users service.

Repository failures are fatal to the enclosing service call. Cache failures
are split by sub-kind so callers can tell an encoding problem from a backend
outage. ``CacheSyncError`` marks the case where the repository operation is
already durable but the cache could not be brought in line with it.
"""

from typing import Any


class UsersAPIError(Exception):
    """Base class for every error raised by this package."""


class RepositoryError(UsersAPIError):
    """The relational repository failed (connectivity, constraint, timeout)."""


class CacheError(UsersAPIError):
    """A cache round-trip failed."""


class CacheEncodeError(CacheError):
    """A value could not be serialised for the cache."""


class CacheDecodeError(CacheError):
    """A cached value could not be decoded into the requested type."""


class CacheStoreError(CacheError):
    """The cache backend rejected or failed the operation."""


class CacheSyncError(CacheError):
    """The repository operation succeeded but the cache was not synchronised.

    Attributes:
        entity: The durable result of the repository operation, or None for
            operations that have no result (delete).
    """

    def __init__(self, message: str, entity: Any = None) -> None:
        super().__init__(message)
        self.entity = entity


class HealthCheckError(UsersAPIError):
    """One or more dependencies reported unhealthy.

    Attributes:
        statuses: The per-dependency results of the check.
    """

    def __init__(self, message: str, statuses: list) -> None:
        super().__init__(message)
        self.statuses = statuses
