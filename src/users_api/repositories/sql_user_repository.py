"""SQL implementation of UserRepository.

Uses SQLAlchemy Core over an async engine, so the same code runs against
PostgreSQL (``postgresql+asyncpg``) in production and SQLite
(``sqlite+aiosqlite``) in tests.
"""

from sqlalchemy import BigInteger, Column, Integer, MetaData, String, Table, delete, insert, select, text, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from users_api.config import get_engine
from users_api.entities import User
from users_api.errors import RepositoryError

# Driver-level failures (refused connections, values the driver cannot bind)
# are not wrapped by SQLAlchemy.
DB_ERRORS = (SQLAlchemyError, OSError, OverflowError)

metadata = MetaData()

users_table = Table(
    "users",
    metadata,
    Column("id", BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True),
    Column("name", String(50), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("password", String(255), nullable=False),
)


def _to_user(row) -> User:
    return User(id=row.id, name=row.name, email=row.email, password=row.password)


class SqlUserRepository:
    """SQLAlchemy implementation of the UserRepository protocol.

    This class satisfies the UserRepository protocol through structural
    typing - no explicit inheritance needed.

    Every SQLAlchemy failure is re-raised as ``RepositoryError``; a missing
    row is reported as ``None``.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        """Initialize the repository.

        Args:
            engine: Async engine owned by the process (not closed here)
        """
        self._engine = engine

    @classmethod
    def create(cls, engine: AsyncEngine | None = None) -> "SqlUserRepository":
        """Factory method to create SqlUserRepository with defaults.

        Args:
            engine: Async engine. If None, one is built from settings.

        Returns:
            Configured SqlUserRepository
        """
        return cls(engine=engine or get_engine())

    async def create_schema(self) -> None:
        """Create the users table if it does not exist."""
        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(metadata.create_all)
        except DB_ERRORS as e:
            raise RepositoryError(f"[in SqlUserRepository.create_schema] failed to create schema: {e}") from e

    async def insert(self, user: User) -> int:
        stmt = (
            insert(users_table)
            .values(name=user.name, email=user.email, password=user.password)
            .returning(users_table.c.id)
        )
        try:
            async with self._engine.begin() as conn:
                result = await conn.execute(stmt)
                return result.scalar_one()
        except DB_ERRORS as e:
            raise RepositoryError(f"[in SqlUserRepository.insert] failed to create user: {e}") from e

    async def find_by_id(self, user_id: int) -> User | None:
        stmt = select(users_table).where(users_table.c.id == user_id)
        try:
            async with self._engine.connect() as conn:
                result = await conn.execute(stmt)
                row = result.one_or_none()
        except DB_ERRORS as e:
            raise RepositoryError(f"[in SqlUserRepository.find_by_id] failed to read user: {e}") from e

        return _to_user(row) if row is not None else None

    async def update_by_id(self, user_id: int, user: User) -> None:
        stmt = (
            update(users_table)
            .where(users_table.c.id == user_id)
            .values(name=user.name, email=user.email, password=user.password)
        )
        try:
            async with self._engine.begin() as conn:
                await conn.execute(stmt)
        except DB_ERRORS as e:
            raise RepositoryError(f"[in SqlUserRepository.update_by_id] failed to update user: {e}") from e

    async def delete_by_id(self, user_id: int) -> None:
        stmt = delete(users_table).where(users_table.c.id == user_id)
        try:
            async with self._engine.begin() as conn:
                await conn.execute(stmt)
        except DB_ERRORS as e:
            raise RepositoryError(f"[in SqlUserRepository.delete_by_id] failed to delete user: {e}") from e

    async def find_all(self, name: str | None = None) -> list[User]:
        stmt = select(users_table).order_by(users_table.c.id)
        if name is not None:
            stmt = stmt.where(users_table.c.name == name)
        try:
            async with self._engine.connect() as conn:
                result = await conn.execute(stmt)
                rows = result.all()
        except DB_ERRORS as e:
            raise RepositoryError(f"[in SqlUserRepository.find_all] failed to read users: {e}") from e

        return [_to_user(row) for row in rows]

    async def ping(self) -> None:
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except DB_ERRORS as e:
            raise RepositoryError(f"[in SqlUserRepository.ping] failed to ping database: {e}") from e

    @property
    def engine(self) -> AsyncEngine:
        """Get the underlying engine."""
        return self._engine
