"""Users API - cache-aside users CRUD over SQL and Redis.

This package provides a layered architecture for a users service whose
reads go through a Redis cache before the database:

Layers:
    - protocols: Interface contracts (CacheBackend, UserRepository)
    - repositories: Data access implementations (CacheClient, SqlUserRepository)
    - services: Business logic (UserService)
    - handlers: HTTP endpoint handlers
    - dto: Data transfer objects (API contracts)
    - entities: Domain models (internal)

Usage:
    ```python
    from users_api.services import UserService

    users = UserService.create(repository=repo, cache_backend=redis_client)
    user = await users.read_user(1)
    ```

For HTTP API:
    ```python
    from users_api.api.app import app
    ```
"""

from users_api.config import get_engine, get_redis_client, settings
from users_api.dto import UserRequest, UserResponse
from users_api.entities import HealthStatus, User
from users_api.errors import (
    CacheDecodeError,
    CacheEncodeError,
    CacheError,
    CacheStoreError,
    CacheSyncError,
    HealthCheckError,
    RepositoryError,
    UsersAPIError,
)
from users_api.handlers import UserHandler
from users_api.protocols import CacheBackend, UserRepository
from users_api.repositories import CacheClient, CacheResult, SqlUserRepository
from users_api.services import UserService

__all__ = [
    # Configuration
    "settings",
    "get_engine",
    "get_redis_client",
    # Protocols (interfaces)
    "CacheBackend",
    "UserRepository",
    # Services (business logic)
    "UserService",
    # Handlers (HTTP)
    "UserHandler",
    # Repositories (data access)
    "CacheClient",
    "CacheResult",
    "SqlUserRepository",
    # Entities (domain models)
    "HealthStatus",
    "User",
    # DTOs (API contracts)
    "UserRequest",
    "UserResponse",
    # Errors
    "UsersAPIError",
    "RepositoryError",
    "CacheError",
    "CacheEncodeError",
    "CacheDecodeError",
    "CacheStoreError",
    "CacheSyncError",
    "HealthCheckError",
]
