"""Protocol interfaces for swappable implementations.

This package contains protocol definitions using structural typing.
Protocols enable:
- Easy swapping of implementations (Postgres -> SQLite, Redis -> in-memory, etc.)
- Unit testing with fake implementations
- Clear separation of concerns

Usage:
    ```python
    from users_api.protocols import CacheBackend, UserRepository

    repo: UserRepository = SqlUserRepository(engine)
    backend: CacheBackend = redis.from_url("redis://localhost:6379")
    ```
"""

from .cache_backend import CacheBackend
from .user_repository import UserRepository

__all__ = [
    "CacheBackend",
    "UserRepository",
]
