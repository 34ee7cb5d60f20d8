"""User service for core business logic.

This service implements cache-aside CRUD for users by coordinating the
repository (source of truth) and the cache client (accelerator):

- reads check the cache first and fill it from the repository on a miss
- create and update write the resulting user through to the cache
- delete invalidates the cache entry
- list always goes to the repository

There is no transactional coupling between the two stores. A cache
failure after a durable repository write raises ``CacheSyncError`` with
the durable result attached; the repository write is never rolled back.
"""

import dataclasses
from datetime import timedelta

import structlog
from opentelemetry import trace

from users_api.config import settings
from users_api.entities import HealthStatus, User
from users_api.entities.health import HEALTHY, UNHEALTHY
from users_api.errors import (
    CacheDecodeError,
    CacheError,
    CacheSyncError,
    HealthCheckError,
    RepositoryError,
)
from users_api.logger import get_logger
from users_api.protocols import CacheBackend, UserRepository
from users_api.repositories import CacheClient
from users_api.telemetry import get_tracer


class UserService:
    """Cache-aside user store.

    This service depends on PROTOCOLS, not concrete implementations:
    - UserRepository: PostgreSQL, SQLite, in-memory fakes, ...
    - CacheBackend: Redis or anything with set/get/delete/ping

    The repository and cache backend are owned by the caller. The service
    builds and owns the CacheClient wrapping the backend.

    Example:
        ```python
        from users_api.services import UserService

        service = UserService.create(
            repository=SqlUserRepository.create(),
            cache_backend=get_redis_client(),
        )

        user = await service.create_user(User(id=0, name="Alice", email="alice@x.com", password="pw"))
        same = await service.read_user(user.id)  # served from cache
        ```
    """

    def __init__(
        self,
        repository: UserRepository,
        cache_backend: CacheBackend,
        expiration: int | timedelta,
        *,
        logger: structlog.stdlib.BoundLogger,
        tracer: trace.Tracer,
    ) -> None:
        """Initialize the user service.

        Args:
            repository: Source of truth for users (required).
            cache_backend: Key-value store used as the cache (required).
            expiration: TTL applied to every cache write. Zero disables expiry.
            logger: Logger bound per call with the operation name.
            tracer: Tracer used to open one span per operation.
        """
        self._repository = repository
        self._logger = logger
        self._tracer = tracer
        self._cache = CacheClient(cache_backend, expiration, logger)

    @classmethod
    def create(
        cls,
        repository: UserRepository,
        cache_backend: CacheBackend,
        expiration: int | timedelta | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
        tracer: trace.Tracer | None = None,
    ) -> "UserService":
        """Factory method to create UserService with sensible defaults.

        Args:
            repository: User repository (required).
            cache_backend: Cache backend (required).
            expiration: Cache TTL. If None, uses settings.
            logger: If None, uses the ``users_api.services`` logger.
            tracer: If None, uses a tracer from the installed provider.

        Returns:
            Configured UserService instance
        """
        return cls(
            repository=repository,
            cache_backend=cache_backend,
            expiration=settings.cache_expiration if expiration is None else expiration,
            logger=logger or get_logger("users_api.services"),
            tracer=tracer or get_tracer("users_api.services"),
        )

    def _log(self, func: str, trace_id: str | None) -> structlog.stdlib.BoundLogger:
        logger = self._logger.bind(func=func)
        if trace_id:
            logger = logger.bind(trace_id=trace_id)
        return logger

    async def create_user(self, user: User, *, trace_id: str | None = None) -> User:
        """Insert a user and write it through to the cache.

        Args:
            user: The user to create (its id is ignored)
            trace_id: Correlation id for the log records of this call

        Returns:
            The created user with its assigned id

        Raises:
            RepositoryError: If the insert failed (nothing is cached)
            CacheSyncError: If the user was inserted but not cached;
                ``entity`` holds the created user
        """
        logger = self._log("UserService.create_user", trace_id)
        logger.debug("Creating user", name=user.name)

        with self._tracer.start_as_current_span("UserService.create_user") as span:
            try:
                user_id = await self._repository.insert(user)
            except RepositoryError as e:
                raise RepositoryError(f"[in UserService.create_user] failed to create user: {e}") from e

            created = dataclasses.replace(user, id=user_id)
            span.set_attribute("user.id", user_id)

            logger.debug("Setting user in cache", id=user_id)
            try:
                await self._cache.set_marshal(created.cache_key, created)
            except CacheError as e:
                raise CacheSyncError(
                    f"[in UserService.create_user] failed to write user to cache: {e}",
                    entity=created,
                ) from e

            return created

    async def read_user(self, user_id: int, *, trace_id: str | None = None) -> User | None:
        """Read a user, serving from cache when possible.

        Args:
            user_id: Id of the user to read
            trace_id: Correlation id for the log records of this call

        Returns:
            The user, or None if it exists in neither the cache nor the repository

        Raises:
            CacheStoreError: If the cache lookup itself failed
            RepositoryError: If the repository read failed
            CacheSyncError: If the user was read from the repository but
                could not be cached; ``entity`` holds the user
        """
        logger = self._log("UserService.read_user", trace_id)
        logger.debug("Reading user", id=user_id)
        key = str(user_id)

        with self._tracer.start_as_current_span("UserService.read_user") as span:
            span.set_attribute("user.id", user_id)

            result = await self._cache.get(key)
            try:
                user = result.unmarshal(User)
            except CacheDecodeError as e:
                # The read-through fill below overwrites the bad entry.
                logger.warning("Discarding undecodable cache entry", id=user_id, error=str(e))
                user = None

            if user is not None:
                span.set_attribute("cache.hit", True)
                logger.debug("User served from cache", id=user_id)
                return user

            span.set_attribute("cache.hit", False)

            try:
                user = await self._repository.find_by_id(user_id)
            except RepositoryError as e:
                raise RepositoryError(f"[in UserService.read_user] failed to read user: {e}") from e

            if user is None:
                logger.debug("User not found", id=user_id)
                return None

            logger.debug("Setting user in cache", id=user_id)
            try:
                await self._cache.set_marshal(key, user)
            except CacheError as e:
                raise CacheSyncError(
                    f"[in UserService.read_user] failed to write user to cache: {e}",
                    entity=user,
                ) from e

            return user

    async def update_user(
        self, user_id: int, patch: User, *, trace_id: str | None = None
    ) -> User | None:
        """Overwrite a user's fields and refresh its cache entry.

        The UPDATE is unconditional (last writer wins). The cache entry is
        then dropped and the canonical state re-read through ``read_user``,
        whose read-through fill overwrites the cache. Concurrent updates of
        the same id may leave the cache holding either writer's result.

        Args:
            user_id: Id of the user to update
            patch: New values for every mutable field (its id is ignored)
            trace_id: Correlation id for the log records of this call

        Returns:
            ``patch`` with ``id`` set to ``user_id``, or None if no such user exists

        Raises:
            RepositoryError: If the UPDATE or the re-read failed
            CacheSyncError: If the cache could not be refreshed. The UPDATE
                is not rolled back; ``entity`` holds the updated view.
        """
        logger = self._log("UserService.update_user", trace_id)
        logger.debug("Updating user", id=user_id, name=patch.name)
        updated = dataclasses.replace(patch, id=user_id)

        with self._tracer.start_as_current_span("UserService.update_user") as span:
            span.set_attribute("user.id", user_id)

            try:
                await self._repository.update_by_id(user_id, patch)
            except RepositoryError as e:
                raise RepositoryError(f"[in UserService.update_user] failed to update user: {e}") from e

            # Drop the pre-update entry so the re-read below goes to the
            # repository and its read-through fill caches the new state.
            try:
                await self._cache.delete(str(user_id))
            except CacheError as e:
                raise CacheSyncError(
                    f"[in UserService.update_user] failed to invalidate cached user: {e}",
                    entity=updated,
                ) from e

            logger.debug("Re-reading updated user", id=user_id)
            try:
                user = await self.read_user(user_id, trace_id=trace_id)
            except CacheError as e:
                raise CacheSyncError(
                    f"[in UserService.update_user] failed to cache updated user: {e}",
                    entity=updated,
                ) from e
            except RepositoryError as e:
                raise RepositoryError(
                    f"[in UserService.update_user] failed to read updated user: {e}"
                ) from e

            if user is None:
                logger.debug("User not found", id=user_id)
                return None

            return updated

    async def delete_user(self, user_id: int, *, trace_id: str | None = None) -> None:
        """Delete a user and invalidate its cache entry.

        Deleting a user that does not exist is not an error.

        Raises:
            RepositoryError: If the DELETE failed (cache left untouched)
            CacheSyncError: If the row was deleted but the cache entry was not
        """
        logger = self._log("UserService.delete_user", trace_id)
        logger.debug("Deleting user", id=user_id)

        with self._tracer.start_as_current_span("UserService.delete_user") as span:
            span.set_attribute("user.id", user_id)

            try:
                await self._repository.delete_by_id(user_id)
            except RepositoryError as e:
                raise RepositoryError(f"[in UserService.delete_user] failed to delete user: {e}") from e

            logger.debug("Removing user from cache", id=user_id)
            try:
                await self._cache.delete(str(user_id))
            except CacheError as e:
                raise CacheSyncError(
                    f"[in UserService.delete_user] failed to remove user from cache: {e}"
                ) from e

    async def list_users(self, name: str | None = None, *, trace_id: str | None = None) -> list[User]:
        """List users straight from the repository.

        The cache is keyed per user and cannot answer set queries, so it is
        not consulted.

        Args:
            name: Exact name to filter on. None lists every user.
            trace_id: Correlation id for the log records of this call
        """
        logger = self._log("UserService.list_users", trace_id)
        logger.debug("Listing users", name=name)

        with self._tracer.start_as_current_span("UserService.list_users"):
            try:
                return await self._repository.find_all(name)
            except RepositoryError as e:
                raise RepositoryError(f"[in UserService.list_users] failed to read users: {e}") from e

    async def deep_health_check(self) -> list[HealthStatus]:
        """Ping the repository and the cache.

        Returns:
            One HealthStatus per dependency, database first

        Raises:
            HealthCheckError: If any dependency is unhealthy. The error
                message names the first failure (database before cache).
        """
        logger = self._log("UserService.deep_health_check", None)
        errors: list[str] = []

        with self._tracer.start_as_current_span("UserService.deep_health_check"):
            try:
                await self._repository.ping()
                db_status = HealthStatus(name="db", status=HEALTHY)
            except RepositoryError as e:
                logger.error("Database ping failed", error=str(e))
                db_status = HealthStatus(name="db", status=UNHEALTHY)
                errors.append(f"failed to ping database: {e}")

            try:
                await self._cache.ping()
                cache_status = HealthStatus(name="cache", status=HEALTHY)
            except CacheError as e:
                logger.error("Cache ping failed", error=str(e))
                cache_status = HealthStatus(name="cache", status=UNHEALTHY)
                errors.append(f"failed to ping cache: {e}")

            statuses = [db_status, cache_status]
            if errors:
                raise HealthCheckError(
                    f"[in UserService.deep_health_check] {errors[0]}", statuses=statuses
                )

            return statuses

    @property
    def repository(self) -> UserRepository:
        """Get the underlying repository (for testing)."""
        return self._repository

    @property
    def cache(self) -> CacheClient:
        """Get the cache client owned by this service."""
        return self._cache
