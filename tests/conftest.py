"""Shared fixtures and in-memory fakes for the users service tests."""

import dataclasses
from collections import Counter

import pytest
import structlog
from opentelemetry import trace
from redis.exceptions import ConnectionError as RedisConnectionError

from users_api.entities import User
from users_api.errors import RepositoryError
from users_api.services import UserService

EXPIRATION = 300


class FakeCacheBackend:
    """Dict-backed stand-in for ``redis.asyncio.Redis``.

    Records the TTL passed with every write. Operations listed in
    ``fail_on`` raise a Redis connection error.
    """

    def __init__(self) -> None:
        self.data: dict[str, bytes] = {}
        self.expirations: dict[str, object] = {}
        self.fail_on: set[str] = set()
        self.calls: Counter = Counter()

    def _record(self, op: str) -> None:
        self.calls[op] += 1
        if op in self.fail_on:
            raise RedisConnectionError(f"{op} failed: connection refused")

    async def set(self, name, value, ex=None):
        self._record("set")
        self.data[name] = value if isinstance(value, bytes) else str(value).encode()
        self.expirations[name] = ex
        return True

    async def get(self, name):
        self._record("get")
        return self.data.get(name)

    async def delete(self, *names):
        self._record("delete")
        removed = 0
        for name in names:
            if self.data.pop(name, None) is not None:
                removed += 1
            self.expirations.pop(name, None)
        return removed

    async def ping(self):
        self._record("ping")
        return True


class InMemoryUserRepository:
    """UserRepository fake that assigns ids from 1 and counts calls."""

    def __init__(self) -> None:
        self.users: dict[int, User] = {}
        self.next_id = 1
        self.calls: Counter = Counter()
        self.fail_on: set[str] = set()

    def _record(self, op: str) -> None:
        self.calls[op] += 1
        if op in self.fail_on:
            raise RepositoryError(f"{op} failed: database unavailable")

    async def insert(self, user: User) -> int:
        self._record("insert")
        user_id = self.next_id
        self.next_id += 1
        self.users[user_id] = dataclasses.replace(user, id=user_id)
        return user_id

    async def find_by_id(self, user_id: int) -> User | None:
        self._record("find_by_id")
        return self.users.get(user_id)

    async def update_by_id(self, user_id: int, user: User) -> None:
        self._record("update_by_id")
        if user_id in self.users:
            self.users[user_id] = dataclasses.replace(user, id=user_id)

    async def delete_by_id(self, user_id: int) -> None:
        self._record("delete_by_id")
        self.users.pop(user_id, None)

    async def find_all(self, name: str | None = None) -> list[User]:
        self._record("find_all")
        return [
            user
            for _, user in sorted(self.users.items())
            if name is None or user.name == name
        ]

    async def ping(self) -> None:
        self._record("ping")


@pytest.fixture
def logger():
    return structlog.get_logger("tests")


@pytest.fixture
def tracer():
    return trace.NoOpTracer()


@pytest.fixture
def cache_backend():
    return FakeCacheBackend()


@pytest.fixture
def repository():
    return InMemoryUserRepository()


@pytest.fixture
def service(repository, cache_backend, logger, tracer):
    return UserService(
        repository=repository,
        cache_backend=cache_backend,
        expiration=EXPIRATION,
        logger=logger,
        tracer=tracer,
    )


@pytest.fixture
def alice():
    return User(id=0, name="Alice", email="alice@x.com", password="pw")
