"""User repository protocol.

Defines the interface for the source of truth for users. Implementations
can be backed by any SQL (or other) store; the service only relies on
these semantics:

- a missing row is ``None``, never an exception
- every other failure is raised as ``RepositoryError``
"""

from typing import Protocol, runtime_checkable

from users_api.entities import User


@runtime_checkable
class UserRepository(Protocol):
    """Protocol for user persistence backends."""

    async def insert(self, user: User) -> int:
        """Insert a user and return the identifier assigned to it.

        Args:
            user: The user to insert (its ``id`` is ignored)

        Returns:
            The new user's id
        """
        ...

    async def find_by_id(self, user_id: int) -> User | None:
        """Fetch a user by id.

        Returns:
            The user, or None if no row exists
        """
        ...

    async def update_by_id(self, user_id: int, user: User) -> None:
        """Overwrite every mutable field of the user with the given id.

        Updating an id that does not exist is not an error.
        """
        ...

    async def delete_by_id(self, user_id: int) -> None:
        """Delete the user with the given id. Absent ids are ignored."""
        ...

    async def find_all(self, name: str | None = None) -> list[User]:
        """List users, optionally restricted to an exact name match."""
        ...

    async def ping(self) -> None:
        """Check connectivity. Raises RepositoryError on failure."""
        ...
