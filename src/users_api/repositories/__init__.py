"""Repository layer for data access.

This layer abstracts external dependencies (SQL database, Redis)
behind protocol-based interfaces. This enables:
- Easy swapping of implementations (Postgres -> SQLite, Redis -> in-memory)
- Unit testing with fake implementations
- Clear separation of concerns

The repositories are protocol-based (structural typing), not inheritance-based.
Any class implementing the required methods will satisfy the protocol.
"""

from users_api.protocols import CacheBackend, UserRepository

from .cache_client import CacheClient, CacheResult
from .sql_user_repository import SqlUserRepository, users_table

__all__ = [
    "CacheBackend",
    "UserRepository",
    "CacheClient",
    "CacheResult",
    "SqlUserRepository",
    "users_table",
]
