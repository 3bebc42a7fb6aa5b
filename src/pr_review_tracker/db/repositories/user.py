"""Repository for tracked User reads."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pr_review_tracker.db.models import User

from .base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for tracked contributors.

    Users are created by the onboarding process; sync only reads them.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, User)

    async def get_by_login(self, login: str) -> User | None:
        """Get a tracked user by login (case-insensitive)."""
        stmt = select(User).where(User.login.ilike(login))
        result = await self._session.execute(stmt)
        return result.scalars().first()

    async def get_roster(self) -> list[User]:
        """Get every tracked user in a stable order."""
        stmt = select(User).order_by(User.id)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())
