"""HTTP handlers for user operations.

Handlers convert between DTOs (API contracts) and service calls.
They handle HTTP concerns like path parsing, status codes and error mapping.
"""

import structlog

from users_api.dto import HealthCheckResponse, HealthDetail, ListUsersResponse, UserRequest, UserResponse
from users_api.entities.health import HEALTHY, UNHEALTHY
from users_api.errors import HealthCheckError, UsersAPIError
from users_api.handlers.problems import internal_server_error, invalid_id, not_found
from users_api.services import UserService

# Ids are signed 64-bit integers in the database.
MAX_USER_ID = 2**63 - 1


def parse_user_id(raw: str) -> int:
    """Parse a path id, rejecting anything but a non-negative 64-bit integer."""
    if not (raw.isascii() and raw.isdigit()) or len(raw) > len(str(MAX_USER_ID)):
        raise invalid_id()
    user_id = int(raw)
    if user_id > MAX_USER_ID:
        raise invalid_id()
    return user_id


class UserHandler:
    """HTTP handlers for user operations.

    This handler delegates business logic to UserService
    and handles HTTP-specific concerns like:
    - Converting entities to DTOs
    - Mapping "not found" to 404
    - Mapping repository and cache failures to 500

    Example:
        ```python
        handler = UserHandler(user_service=service, logger=get_logger("users_api.handlers"))

        @app.get("/api/user/{user_id}", response_model=UserResponse)
        async def read_user(user_id: str, request: Request):
            return await handler.read_user(user_id, trace_id=request.state.trace_id)
        ```
    """

    def __init__(self, user_service: UserService, logger: structlog.stdlib.BoundLogger) -> None:
        """Initialize the user handler.

        Args:
            user_service: The user service for business logic (required).
            logger: Logger for request-level failures.
        """
        self._users = user_service
        self._logger = logger

    async def create_user(self, request: UserRequest, trace_id: str | None = None) -> UserResponse:
        """Handle POST /api/user requests."""
        try:
            user = await self._users.create_user(request.to_entity(), trace_id=trace_id)
        except UsersAPIError as e:
            self._logger.error("failed to create user", error=str(e))
            raise internal_server_error() from e

        return UserResponse.from_entity(user)

    async def read_user(self, raw_id: str, trace_id: str | None = None) -> UserResponse:
        """Handle GET /api/user/{id} requests."""
        user_id = parse_user_id(raw_id)

        try:
            user = await self._users.read_user(user_id, trace_id=trace_id)
        except UsersAPIError as e:
            self._logger.error("failed to read user", id=user_id, error=str(e))
            raise internal_server_error() from e

        if user is None:
            raise not_found(f"User {user_id} does not exist.")

        return UserResponse.from_entity(user)

    async def list_users(self, name: str | None = None, trace_id: str | None = None) -> ListUsersResponse:
        """Handle GET /api/user requests."""
        try:
            users = await self._users.list_users(name, trace_id=trace_id)
        except UsersAPIError as e:
            self._logger.error("failed to list users", error=str(e))
            raise internal_server_error() from e

        return ListUsersResponse(users=[UserResponse.from_entity(user) for user in users])

    async def update_user(
        self, raw_id: str, request: UserRequest, trace_id: str | None = None
    ) -> UserResponse:
        """Handle PUT /api/user/{id} requests."""
        user_id = parse_user_id(raw_id)

        try:
            user = await self._users.update_user(user_id, request.to_entity(user_id), trace_id=trace_id)
        except UsersAPIError as e:
            self._logger.error("failed to update user", id=user_id, error=str(e))
            raise internal_server_error() from e

        if user is None:
            raise not_found(f"User {user_id} does not exist.")

        return UserResponse.from_entity(user)

    async def delete_user(self, raw_id: str, trace_id: str | None = None) -> None:
        """Handle DELETE /api/user/{id} requests."""
        user_id = parse_user_id(raw_id)

        try:
            await self._users.delete_user(user_id, trace_id=trace_id)
        except UsersAPIError as e:
            self._logger.error("failed to delete user", id=user_id, error=str(e))
            raise internal_server_error() from e

    async def health_check(self) -> HealthCheckResponse:
        """Handle GET /api/health requests.

        Returns:
            HealthCheckResponse; ``status`` is 'unhealthy' if any dependency is
        """
        try:
            checks = await self._users.deep_health_check()
            status = HEALTHY
        except HealthCheckError as e:
            self._logger.error("health check failed", error=str(e))
            checks = e.statuses
            status = UNHEALTHY

        return HealthCheckResponse(
            status=status,
            details=[HealthDetail(name=check.name, status=check.status) for check in checks],
        )
