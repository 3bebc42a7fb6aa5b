"""Repository for Owner model operations."""

from sqlalchemy.ext.asyncio import AsyncSession

from pr_review_tracker.db.models import Owner
from pr_review_tracker.schemas.github_api import GitHubAccount

from .base import BaseRepository

GITHUB_WEB_URL = "https://github.com"


class OwnerRepository(BaseRepository[Owner]):
    """Repository for repository-owning GitHub accounts.

    Owners are created on first reference and afterwards only
    backfilled; they are never deleted here.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Owner)

    async def get_by_login(self, login: str) -> Owner | None:
        """Get an owner by login name."""
        return await self._get_by_field("login", login)

    async def get_by_github_id(self, github_id: int) -> Owner | None:
        """Get an owner by its GitHub account ID."""
        return await self._get_by_field("github_id", github_id)

    async def get_or_create(self, profile: GitHubAccount) -> tuple[Owner, bool]:
        """Resolve the owner for ``profile``, inserting it when absent.

        The insert ignores unique conflicts so a concurrent writer that
        created the same owner first simply wins; the row is then
        re-read by login. If the GitHub ID already belongs to a row under
        another login (the account was renamed), that row is updated.

        Args:
            profile: Owner details fetched from GitHub

        Returns:
            Tuple of (owner, created)
        """
        created = await self._insert_ignoring_conflicts(
            {
                "github_id": profile.id,
                "login": profile.login,
                "name": profile.name,
                "type": profile.type,
                "link": profile.html_url or f"{GITHUB_WEB_URL}/{profile.login}",
            }
        )

        owner = await self.get_by_login(profile.login)
        if owner is None:
            owner = await self.get_by_github_id(profile.id)
            if owner is None:
                raise LookupError(f"Owner {profile.login} vanished after insert")
            owner.login = profile.login
            owner.link = f"{GITHUB_WEB_URL}/{profile.login}"

        self.backfill(owner)
        await self.flush()
        return owner, created

    def backfill(self, owner: Owner) -> None:
        """Fill in a derived profile link when it is missing."""
        if not owner.link:
            owner.link = f"{GITHUB_WEB_URL}/{owner.login}"
