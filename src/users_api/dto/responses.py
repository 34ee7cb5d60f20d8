"""Response DTOs for API endpoints."""

from pydantic import BaseModel, ConfigDict, Field

from users_api.entities import User


class UserResponse(BaseModel):
    """Response DTO for a single user. The password is never returned."""

    id: int = Field(..., description="User identifier")
    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Email address")

    @classmethod
    def from_entity(cls, user: User) -> "UserResponse":
        return cls(id=user.id, name=user.name, email=user.email)


class ListUsersResponse(BaseModel):
    """Response DTO for listing users."""

    users: list[UserResponse] = Field(default_factory=list, description="Matching users")


class HealthDetail(BaseModel):
    """Health of a single dependency."""

    name: str = Field(..., description="Dependency name ('db' or 'cache')")
    status: str = Field(..., description="'healthy' or 'unhealthy'")


class HealthCheckResponse(BaseModel):
    """Response DTO for the deep health check."""

    status: str = Field(..., description="Health status: 'healthy' or 'unhealthy'")
    details: list[HealthDetail] = Field(default_factory=list, description="Per-dependency status")


class ProblemDetail(BaseModel):
    """Error body as per RFC 7807."""

    model_config = ConfigDict(populate_by_name=True)

    title: str
    status: int
    detail: str
    trace_id: str | None = Field(None, alias="traceId")


class InvalidParam(BaseModel):
    """A single validation failure."""

    field: str
    code: str
    message: str


class ProblemDetailValidation(ProblemDetail):
    """Problem detail carrying the list of invalid request parameters."""

    invalid_params: list[InvalidParam] = Field(default_factory=list, alias="invalidParams")
