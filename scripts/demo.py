#!/usr/bin/env python3
"""
Demo script for the users service.

Walks one user through create, read, update and delete against the
database and Redis configured in the environment, showing what the cache
holds after each step.
"""

import asyncio
import time

from users_api import User, UserService, get_engine, get_redis_client, settings
from users_api.logger import configure_logging
from users_api.repositories import SqlUserRepository


def print_section(title: str) -> None:
    """Print a section header."""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70)


async def show_cache(service: UserService, user_id: int) -> None:
    value = (await service.cache.get(str(user_id))).result()
    if value is None:
        print(f"  cache[{user_id}]: <absent>")
    else:
        print(f"  cache[{user_id}]: {value}")


async def timed_read(service: UserService, user_id: int) -> User | None:
    start = time.perf_counter()
    user = await service.read_user(user_id)
    print(f"  read_user({user_id}) -> {user} ({(time.perf_counter() - start) * 1000:.2f}ms)")
    return user


async def demo() -> None:
    configure_logging(settings)

    engine = get_engine()
    redis_client = get_redis_client()
    repository = SqlUserRepository(engine)
    await repository.create_schema()
    service = UserService.create(repository=repository, cache_backend=redis_client)

    try:
        print_section("Create (write-through)")
        user = await service.create_user(
            User(id=0, name="Alice", email=f"alice-{int(time.time())}@x.com", password="password1")
        )
        print(f"  ✓ Created: {user}")
        await show_cache(service, user.id)

        print_section("Read (cache hit, then read-through after eviction)")
        await timed_read(service, user.id)
        await service.cache.delete(str(user.id))
        print("  ✗ Evicted cache entry by hand")
        await timed_read(service, user.id)
        await show_cache(service, user.id)

        print_section("Update (cache refreshed)")
        await service.update_user(user.id, User(id=0, name="Alice2", email=user.email, password="password2"))
        await timed_read(service, user.id)
        await show_cache(service, user.id)

        print_section("Delete (cache invalidated)")
        await service.delete_user(user.id)
        await show_cache(service, user.id)
        await timed_read(service, user.id)

        print_section("Health")
        for status in await service.deep_health_check():
            print(f"  {status.name}: {status.status}")
    finally:
        await redis_client.aclose()
        await engine.dispose()


def main() -> None:
    """Run the demo."""
    print("\n" + "=" * 70)
    print("  Users API - cache-aside demo")
    print(f"  Database: {settings.database_url}")
    print(f"  Redis:    {settings.redis_url} (ttl {settings.cache_expiration}s)")
    print("=" * 70)

    asyncio.run(demo())

    print("\n✓ Demo complete\n")


if __name__ == "__main__":
    main()
