"""Data Transfer Objects for API contracts.

These Pydantic models define the external API contract.
They are used for request/response validation and serialization.

Internal domain logic should use entities from the entities package.
"""

from .requests import UserRequest
from .responses import (
    HealthCheckResponse,
    HealthDetail,
    InvalidParam,
    ListUsersResponse,
    ProblemDetail,
    ProblemDetailValidation,
    UserResponse,
)

__all__ = [
    "UserRequest",
    "UserResponse",
    "ListUsersResponse",
    "HealthDetail",
    "HealthCheckResponse",
    "ProblemDetail",
    "InvalidParam",
    "ProblemDetailValidation",
]
