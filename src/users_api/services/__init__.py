"""Service layer for business logic.

This layer contains the core business logic and orchestration.
Services depend on protocols (interfaces), not concrete implementations,
making them testable and flexible.

Architecture:
    Handler -> Service -> Repository / Cache
    (HTTP)  -> (Business) -> (Data Access)

Usage:
    ```python
    from users_api.services import UserService

    # Using factory method (recommended)
    service = UserService.create(repository=repo, cache_backend=redis_client)

    # Or manual creation
    service = UserService(repo, redis_client, 300, logger=logger, tracer=tracer)
    ```
"""

from .user_service import UserService

__all__ = [
    "UserService",
]
