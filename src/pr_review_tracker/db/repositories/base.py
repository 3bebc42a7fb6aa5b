"""Base repository pattern implementation for async SQLAlchemy.

Provides common session handling, read helpers and the insert-or-fetch
primitive shared by all repositories.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from pr_review_tracker.db.models import Base

# Generic type variable for model classes
ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """Base repository with common async session handling.

    All repositories should inherit from this class to get
    consistent session management and common query patterns.

    Usage:
        class OwnerRepository(BaseRepository[Owner]):
            def __init__(self, session: AsyncSession) -> None:
                super().__init__(session, Owner)

            async def get_by_login(self, login: str) -> Owner | None:
                return await self._get_by_field("login", login)
    """

    def __init__(self, session: AsyncSession, model_class: type[ModelT]) -> None:
        """Initialize the repository with a session.

        Args:
            session: Async SQLAlchemy session (caller manages lifecycle)
            model_class: The SQLAlchemy model class this repository manages
        """
        self._session = session
        self._model_class = model_class

    @property
    def session(self) -> AsyncSession:
        """Access the underlying session."""
        return self._session

    # -------------------------------------------------------------------------
    # Common Read Operations
    # -------------------------------------------------------------------------

    async def get_by_id(self, id: int) -> ModelT | None:
        """Get an entity by its primary key ID.

        Args:
            id: Primary key ID

        Returns:
            Entity or None if not found
        """
        return await self._session.get(self._model_class, id)

    async def _get_by_field(self, field_name: str, value: object) -> ModelT | None:
        """Get an entity by a specific field value.

        Args:
            field_name: Name of the model field
            value: Value to match

        Returns:
            First matching entity or None
        """
        stmt = select(self._model_class).where(
            getattr(self._model_class, field_name) == value
        )
        result = await self._session.execute(stmt)
        return result.scalars().first()

    async def get_all(self, limit: int | None = None) -> list[ModelT]:
        """Get all entities, optionally limited.

        Args:
            limit: Maximum number of entities to return

        Returns:
            List of entities
        """
        stmt = select(self._model_class).order_by(self._model_class.id)  # type: ignore[attr-defined]
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def count(self) -> int:
        """Count total entities of this type."""
        stmt = select(func.count()).select_from(self._model_class)
        result = await self._session.execute(stmt)
        return result.scalar() or 0

    # -------------------------------------------------------------------------
    # Common Write Operations
    # -------------------------------------------------------------------------

    def add(self, entity: ModelT) -> ModelT:
        """Add an entity to the session (does not flush)."""
        self._session.add(entity)
        return entity

    async def flush(self) -> None:
        """Flush pending changes to the database without committing."""
        await self._session.flush()

    async def _insert_ignoring_conflicts(self, values: dict[str, Any]) -> bool:
        """Insert a row unless it collides with any unique constraint.

        On SQLite and PostgreSQL this is a single ``INSERT ... ON CONFLICT
        DO NOTHING`` round trip, so concurrent writers cannot race between
        the existence check and the insert. Other dialects fall back to an
        insert inside a savepoint, treating an integrity error as "already
        present".

        Callers re-query by their natural key afterwards to obtain the row.

        Args:
            values: Column values for the new row

        Returns:
            True if a row was inserted, False if an existing row won
        """
        dialect = self._session.bind.dialect.name if self._session.bind is not None else ""

        if dialect in ("sqlite", "postgresql"):
            insert = sqlite.insert if dialect == "sqlite" else postgresql.insert
            stmt = insert(self._model_class).values(**values).on_conflict_do_nothing()
            result = await self._session.execute(stmt)
            return bool(result.rowcount)

        try:
            async with self._session.begin_nested():
                self._session.add(self._model_class(**values))
        except IntegrityError:
            return False
        return True
