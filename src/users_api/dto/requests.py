"""Request DTOs for API endpoints."""

from pydantic import BaseModel, EmailStr, Field

from users_api.entities import User


class UserRequest(BaseModel):
    """Request DTO for creating or updating a user.

    The handler will convert this to a User entity for the service layer.
    """

    name: str = Field(..., description="Display name", min_length=2, max_length=50)
    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., description="Password", min_length=8, max_length=30)

    def to_entity(self, user_id: int = 0) -> User:
        """Convert to a User entity (id 0 means not yet persisted)."""
        return User(id=user_id, name=self.name, email=str(self.email), password=self.password)
