"""Repository for GitHub Repository model operations."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pr_review_tracker.db.models import Owner, Repository
from pr_review_tracker.logging import get_logger
from pr_review_tracker.schemas.github_api import GitHubRepositoryProfile

from .base import BaseRepository
from .owner import GITHUB_WEB_URL

logger = get_logger(__name__)


class RepositoryRepository(BaseRepository[Repository]):
    """Repository for GitHub Repository entities.

    Identity is (name, owner). The ``is_flagged`` exclusion flag is set by
    operators and never written here.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Repository)

    # -------------------------------------------------------------------------
    # Query Methods
    # -------------------------------------------------------------------------

    async def get_by_name_and_owner(self, name: str, owner_id: int) -> Repository | None:
        """Get a repository by its natural key.

        Args:
            name: Repository name (e.g., "hello-world")
            owner_id: Owner row ID

        Returns:
            Repository or None if not found
        """
        stmt = select(Repository).where(
            Repository.name == name,
            Repository.owner_id == owner_id,
        )
        result = await self._session.execute(stmt)
        return result.scalars().first()

    async def get_by_github_id(self, github_id: int) -> Repository | None:
        """Get a repository by its GitHub repository ID."""
        return await self._get_by_field("github_id", github_id)

    # -------------------------------------------------------------------------
    # Create/Update Methods
    # -------------------------------------------------------------------------

    async def get_or_create(
        self,
        owner: Owner,
        profile: GitHubRepositoryProfile,
    ) -> tuple[Repository, bool]:
        """Get existing repository or create a new one.

        Uses a conflict-ignoring insert followed by a re-read, so a racing
        writer never causes an error. When the GitHub ID is already held by
        a row under a different (name, owner), e.g. after a rename or
        transfer, that row is updated to the new name, owner and link.

        Args:
            owner: Resolved owner row
            profile: Repository details fetched from GitHub

        Returns:
            Tuple of (repository, created) where created is True if new
        """
        link = profile.html_url or f"{GITHUB_WEB_URL}/{owner.login}/{profile.name}"
        created = await self._insert_ignoring_conflicts(
            {
                "github_id": profile.id,
                "name": profile.name,
                "owner_id": owner.id,
                "link": link,
            }
        )

        repo = await self.get_by_name_and_owner(profile.name, owner.id)
        if repo is None:
            repo = await self.get_by_github_id(profile.id)
            if repo is None:
                raise LookupError(f"Repository {owner.login}/{profile.name} vanished after insert")
            logger.info(
                "Repository {} moved to {}/{}", repo.github_id, owner.login, profile.name
            )
            repo.name = profile.name
            repo.owner_id = owner.id
            repo.owner = owner
            repo.link = link

        if not repo.link:
            repo.link = link
        await self.flush()
        return repo, created

    async def set_flagged(self, repository_id: int, flagged: bool) -> Repository | None:
        """Set or clear the exclusion flag on a repository.

        Args:
            repository_id: Repository ID
            flagged: New flag value

        Returns:
            Updated repository or None if not found
        """
        repo = await self.get_by_id(repository_id)
        if repo is None:
            return None

        repo.is_flagged = flagged
        await self.flush()
        return repo
