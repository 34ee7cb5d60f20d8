"""
Tests for the cache-aside user service.
"""

import asyncio
import json

import pytest

from users_api.entities import User
from users_api.errors import CacheStoreError, CacheSyncError, HealthCheckError, RepositoryError


def cached(cache_backend, key):
    return json.loads(cache_backend.data[key])


@pytest.mark.asyncio
async def test_read_through_fills_cache(service, repository, cache_backend):
    repository.users[3] = User(id=3, name="Carol", email="carol@x.com", password="pw")

    user = await service.read_user(3)

    assert user == User(id=3, name="Carol", email="carol@x.com", password="pw")
    assert repository.calls["find_by_id"] == 1
    assert cached(cache_backend, "3") == {
        "id": 3,
        "name": "Carol",
        "email": "carol@x.com",
        "password": "pw",
    }
    assert cache_backend.expirations["3"] == 300


@pytest.mark.asyncio
async def test_cache_hit_bypasses_repository(service, repository, cache_backend):
    cache_backend.data["5"] = b'{"id":5,"name":"Eve","email":"eve@x.com","password":"pw"}'

    user = await service.read_user(5)

    assert user == User(id=5, name="Eve", email="eve@x.com", password="pw")
    assert repository.calls["find_by_id"] == 0


@pytest.mark.asyncio
async def test_create_writes_through(service, repository, alice):
    created = await service.create_user(alice)

    assert created.id == 1
    again = await service.read_user(created.id)

    assert again == created
    assert repository.calls["find_by_id"] == 0


@pytest.mark.asyncio
async def test_delete_invalidates_cache(service, repository, cache_backend, alice):
    created = await service.create_user(alice)

    await service.delete_user(created.id)

    assert "1" not in cache_backend.data
    assert await service.read_user(created.id) is None
    assert repository.calls["find_by_id"] == 1


@pytest.mark.asyncio
async def test_update_overwrites_cache(service, repository, cache_backend, alice):
    created = await service.create_user(alice)
    patch = User(id=0, name="Alice2", email="alice2@x.com", password="pw2")

    updated = await service.update_user(created.id, patch)

    assert updated == User(id=1, name="Alice2", email="alice2@x.com", password="pw2")
    assert repository.users[1] == updated
    assert cached(cache_backend, "1") == {
        "id": 1,
        "name": "Alice2",
        "email": "alice2@x.com",
        "password": "pw2",
    }


@pytest.mark.asyncio
async def test_update_absent_user_returns_none(service, cache_backend):
    patch = User(id=0, name="Nobody", email="nobody@x.com", password="pw")

    assert await service.update_user(42, patch) is None
    assert "42" not in cache_backend.data


@pytest.mark.asyncio
async def test_read_absent_user_is_not_an_error(service, repository, cache_backend):
    assert await service.read_user(99) is None
    assert repository.calls["find_by_id"] == 1
    assert "99" not in cache_backend.data


@pytest.mark.asyncio
async def test_delete_absent_user_is_not_an_error(service, repository):
    await service.delete_user(99)

    assert repository.calls["delete_by_id"] == 1


@pytest.mark.asyncio
async def test_alice_end_to_end(service, repository, cache_backend, alice):
    created = await service.create_user(alice)
    assert created.id == 1
    assert cache_backend.data["1"] == b'{"id":1,"name":"Alice","email":"alice@x.com","password":"pw"}'

    # Cleared by hand: the next read goes to the repository and refills.
    cache_backend.data.clear()
    user = await service.read_user(1)
    assert user == created
    assert repository.calls["find_by_id"] == 1
    assert cache_backend.data["1"] == b'{"id":1,"name":"Alice","email":"alice@x.com","password":"pw"}'

    await service.update_user(1, User(id=0, name="Alice2", email="alice@x.com", password="pw"))
    reads_after_update = repository.calls["find_by_id"]
    user = await service.read_user(1)
    assert user.name == "Alice2"
    assert repository.calls["find_by_id"] == reads_after_update

    await service.delete_user(1)
    assert "1" not in cache_backend.data
    reads_before = repository.calls["find_by_id"]
    assert await service.read_user(1) is None
    assert repository.calls["find_by_id"] == reads_before + 1


@pytest.mark.asyncio
async def test_undecodable_cache_entry_is_replaced(service, repository, cache_backend):
    repository.users[2] = User(id=2, name="Bob", email="bob@x.com", password="pw")
    cache_backend.data["2"] = b"{garbage"

    user = await service.read_user(2)

    assert user.name == "Bob"
    assert repository.calls["find_by_id"] == 1
    assert cached(cache_backend, "2")["name"] == "Bob"


@pytest.mark.asyncio
async def test_cache_lookup_failure_propagates(service, repository, cache_backend):
    repository.users[1] = User(id=1, name="Alice", email="alice@x.com", password="pw")
    cache_backend.fail_on.add("get")

    with pytest.raises(CacheStoreError):
        await service.read_user(1)

    assert repository.calls["find_by_id"] == 0


@pytest.mark.asyncio
async def test_create_repository_failure_skips_cache(service, repository, cache_backend, alice):
    repository.fail_on.add("insert")

    with pytest.raises(RepositoryError):
        await service.create_user(alice)

    assert cache_backend.calls["set"] == 0


@pytest.mark.asyncio
async def test_create_cache_failure_returns_entity_with_error(service, repository, cache_backend, alice):
    cache_backend.fail_on.add("set")

    with pytest.raises(CacheSyncError) as exc_info:
        await service.create_user(alice)

    assert exc_info.value.entity == User(id=1, name="Alice", email="alice@x.com", password="pw")
    assert 1 in repository.users


@pytest.mark.asyncio
async def test_read_fill_failure_returns_entity_with_error(service, repository, cache_backend):
    repository.users[4] = User(id=4, name="Dan", email="dan@x.com", password="pw")
    cache_backend.fail_on.add("set")

    with pytest.raises(CacheSyncError) as exc_info:
        await service.read_user(4)

    assert exc_info.value.entity == repository.users[4]


@pytest.mark.asyncio
async def test_read_repository_failure_propagates(service, repository):
    repository.fail_on.add("find_by_id")

    with pytest.raises(RepositoryError):
        await service.read_user(1)


@pytest.mark.asyncio
async def test_update_repository_failure_leaves_cache(service, repository, cache_backend, alice):
    await service.create_user(alice)
    repository.fail_on.add("update_by_id")

    with pytest.raises(RepositoryError):
        await service.update_user(1, User(id=0, name="Alice2", email="alice@x.com", password="pw"))

    assert cached(cache_backend, "1")["name"] == "Alice"


@pytest.mark.asyncio
async def test_update_cache_failure_keeps_repository_write(service, repository, cache_backend, alice):
    await service.create_user(alice)
    cache_backend.fail_on.add("delete")

    with pytest.raises(CacheSyncError) as exc_info:
        await service.update_user(1, User(id=0, name="Alice2", email="alice@x.com", password="pw"))

    assert exc_info.value.entity.name == "Alice2"
    assert repository.users[1].name == "Alice2"


@pytest.mark.asyncio
async def test_update_refill_failure_raises_sync_error(service, repository, cache_backend, alice):
    await service.create_user(alice)
    cache_backend.fail_on.add("set")

    with pytest.raises(CacheSyncError) as exc_info:
        await service.update_user(1, User(id=0, name="Alice2", email="alice@x.com", password="pw"))

    assert exc_info.value.entity == User(id=1, name="Alice2", email="alice@x.com", password="pw")


@pytest.mark.asyncio
async def test_delete_repository_failure_leaves_cache(service, repository, cache_backend, alice):
    await service.create_user(alice)
    repository.fail_on.add("delete_by_id")

    with pytest.raises(RepositoryError):
        await service.delete_user(1)

    assert "1" in cache_backend.data


@pytest.mark.asyncio
async def test_delete_cache_failure_raises_sync_error(service, repository, cache_backend, alice):
    await service.create_user(alice)
    cache_backend.fail_on.add("delete")

    with pytest.raises(CacheSyncError) as exc_info:
        await service.delete_user(1)

    assert exc_info.value.entity is None
    assert 1 not in repository.users


@pytest.mark.asyncio
async def test_list_users_goes_to_repository(service, repository, cache_backend):
    for name in ("Alice", "Bob", "Alice"):
        await service.create_user(User(id=0, name=name, email=f"{name}@x.com", password="pw"))
    gets_before = cache_backend.calls["get"]

    everyone = await service.list_users()
    alices = await service.list_users("Alice")

    assert [u.id for u in everyone] == [1, 2, 3]
    assert [u.id for u in alices] == [1, 3]
    assert await service.list_users("Zed") == []
    assert cache_backend.calls["get"] == gets_before


@pytest.mark.asyncio
async def test_deep_health_check_healthy(service):
    statuses = await service.deep_health_check()

    assert [(s.name, s.status) for s in statuses] == [("db", "healthy"), ("cache", "healthy")]
    assert all(s.is_healthy for s in statuses)


@pytest.mark.asyncio
async def test_deep_health_check_reports_database_first(service, repository, cache_backend):
    repository.fail_on.add("ping")
    cache_backend.fail_on.add("ping")

    with pytest.raises(HealthCheckError) as exc_info:
        await service.deep_health_check()

    assert "failed to ping database" in str(exc_info.value)
    assert [(s.name, s.status) for s in exc_info.value.statuses] == [
        ("db", "unhealthy"),
        ("cache", "unhealthy"),
    ]


@pytest.mark.asyncio
async def test_deep_health_check_cache_down(service, cache_backend):
    cache_backend.fail_on.add("ping")

    with pytest.raises(HealthCheckError) as exc_info:
        await service.deep_health_check()

    assert "failed to ping cache" in str(exc_info.value)
    assert [s.status for s in exc_info.value.statuses] == ["healthy", "unhealthy"]


def test_create_uses_configured_expiration(repository, cache_backend):
    from users_api.config import settings
    from users_api.services import UserService

    service = UserService.create(repository=repository, cache_backend=cache_backend)

    assert service.cache.expiration == settings.cache_expiration
    assert service.repository is repository


@pytest.mark.asyncio
async def test_cancellation_propagates_without_rollback(service, repository, cache_backend, alice, monkeypatch):
    async def cancelled_set(name, value, ex=None):
        raise asyncio.CancelledError()

    monkeypatch.setattr(cache_backend, "set", cancelled_set)

    with pytest.raises(asyncio.CancelledError):
        await service.create_user(alice)

    assert repository.users[1] == User(id=1, name="Alice", email="alice@x.com", password="pw")
