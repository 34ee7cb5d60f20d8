"""User domain entity."""

from dataclasses import dataclass


@dataclass(frozen=True)
class User:
    """Domain entity for a user record.

    The repository assigns ``id`` on insert; a user that has not been
    persisted yet carries ``id=0``. The JSON form of this entity (field
    order included) is what the cache stores under ``str(id)``.

    Attributes:
        id: Repository-assigned identifier, immutable once assigned
        name: Display name
        email: Email address
        password: Secret, stored as given
    """

    id: int
    name: str
    email: str
    password: str

    @property
    def cache_key(self) -> str:
        """Key under which this user is cached."""
        return str(self.id)
