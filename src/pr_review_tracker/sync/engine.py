"""User sync service - Search → Resolve → Classify → Store pipeline.

Reconciles every PR a tracked user authored within the tracking window
into the local store: owners and repositories are resolved (and created
on first reference), review data is classified, and PRs are inserted or
diff-updated by GitHub ID. Running it twice with no upstream changes
leaves the store untouched.
"""

from collections.abc import Awaitable, Callable

from pydantic import ValidationError
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from pr_review_tracker.config import SyncConfig, get_settings
from pr_review_tracker.db.engine import SessionScope
from pr_review_tracker.db.models import Owner, Repository, User
from pr_review_tracker.db.repositories import (
    OwnerRepository,
    PullRequestRepository,
    RepositoryRepository,
    UserRepository,
)
from pr_review_tracker.db.repositories.owner import GITHUB_WEB_URL
from pr_review_tracker.github.client import GitHubClient
from pr_review_tracker.logging import bind_pr, bind_user, get_logger
from pr_review_tracker.review.resolver import ReviewState, resolve_review_state
from pr_review_tracker.schemas.github_api import SearchPullRequest

from .exceptions import MissingReferenceError, UserNotFoundError
from .results import PRSyncResult, UserSyncResult

logger = get_logger(__name__)

# The store itself is unreachable: never isolate these per PR or per user
FATAL_DB_ERRORS: tuple[type[Exception], ...] = (OperationalError, InterfaceError)


class UserSyncService:
    """Service for syncing one tracked user's PRs from GitHub to the database.

    Usage:
        async with GitHubClient() as client:
            async with get_session() as session:
                service = UserSyncService(client, session)
                result = await service.sync_user_by_login("octocat")
                print(result.processed)
    """

    def __init__(
        self,
        client: GitHubClient,
        session: AsyncSession,
        *,
        config: SyncConfig | None = None,
    ) -> None:
        """Initialize the sync service.

        Args:
            client: GitHub API client
            session: Async session (caller commits)
            config: Tracking window (settings if None)
        """
        self._client = client
        self._session = session
        self._config = config or get_settings().sync
        self._users = UserRepository(session)
        self._owners = OwnerRepository(session)
        self._repositories = RepositoryRepository(session)
        self._pull_requests = PullRequestRepository(session)

    async def sync_user_by_login(self, login: str) -> UserSyncResult:
        """Sync a tracked user identified by login.

        Raises:
            UserNotFoundError: If the login is not a tracked user
        """
        user = await self._users.get_by_login(login)
        if user is None:
            raise UserNotFoundError(f"{login} is not a tracked user")
        return await self.sync_user(user)

    async def sync_user(self, user: User) -> UserSyncResult:
        """Sync every PR ``user`` authored within the tracking window.

        Each PR is written inside its own savepoint, so a failure on one
        PR is recorded and the rest of the user's PRs still sync. Only a
        lost database connection propagates.

        Args:
            user: Tracked user

        Returns:
            UserSyncResult with per-action counts
        """
        # Read once; savepoint rollbacks expire ORM attributes
        login, user_id = user.login, user.id
        user_logger = bind_user(login)
        result = UserSyncResult(login=login)

        user_logger.info("Syncing PRs since {}", self._config.tracking_since)
        async for summary in self._client.iter_user_pull_requests(
            login, self._config.since, self._config.until
        ):
            result.record(await self._sync_one(user_id, summary))

        user_logger.info(
            "Synced {} PRs: {} created, {} updated, {} unchanged, {} skipped, {} failed",
            result.processed,
            result.created,
            result.updated,
            result.unchanged,
            result.skipped,
            result.failed,
        )
        return result

    async def _sync_one(self, user_id: int, summary: SearchPullRequest) -> PRSyncResult:
        snapshot_link = summary.html_url
        try:
            async with self._session.begin_nested():
                return await self._sync_pull_request(user_id, summary)
        except FATAL_DB_ERRORS:
            raise
        except MissingReferenceError as e:
            bind_pr(summary.repo_owner, summary.repo_name, summary.number).warning(
                "Skipping PR: {}", e
            )
            return PRSyncResult.from_skipped(snapshot_link, "missing reference")
        except ValidationError as e:
            bind_pr(summary.repo_owner, summary.repo_name, summary.number).warning(
                "Skipping malformed PR: {}", e
            )
            return PRSyncResult.from_skipped(snapshot_link, "malformed")
        except Exception as e:
            bind_pr(summary.repo_owner, summary.repo_name, summary.number).error(
                "Failed to sync PR: {}", e
            )
            return PRSyncResult.from_error(snapshot_link, e)

    async def _sync_pull_request(self, user_id: int, summary: SearchPullRequest) -> PRSyncResult:
        owner = await self._resolve_owner(summary.repo_owner)
        repository = await self._resolve_repository(owner, summary.repo_name)

        merged = summary.merged_at is not None
        if not merged and not summary.is_open:
            merged = await self._client.get_merge_status(summary.merge_status_url)

        snapshot = summary.to_snapshot(merged=merged)
        pr_logger = bind_pr(owner.login, repository.name, snapshot.number)

        if snapshot.number is None:
            pr_logger.info("No PR number in link {}, review data skipped", snapshot.link)
            review = ReviewState.default()
        else:
            reviews, comments, requested = await self._client.get_review_data(
                summary.repo_owner, summary.repo_name, snapshot.number
            )
            review = resolve_review_state(
                merged=snapshot.is_merged,
                merged_at=summary.merged_at,
                reviews=reviews,
                comments=comments,
                requested_reviewers=requested,
            )

        pr, created, changed = await self._pull_requests.apply_sync(
            snapshot,
            author_id=user_id,
            repository_id=repository.id,
            review=review,
        )

        if created:
            pr_logger.info("Created PR ({})", review.status.value)
        elif changed:
            pr_logger.debug("Updated PR fields: {}", ", ".join(changed))

        return PRSyncResult(link=snapshot.link, pr=pr, created=created, changed_fields=changed)

    async def _resolve_owner(self, login: str) -> Owner:
        owner = await self._owners.get_by_login(login)
        if owner is not None:
            self._owners.backfill(owner)
            return owner

        profile = await self._client.get_owner(login)
        if profile is None:
            raise MissingReferenceError(f"owner {login} details unavailable")
        owner, created = await self._owners.get_or_create(profile)
        if created:
            logger.info("Created owner {}", owner.login)
        return owner

    async def _resolve_repository(self, owner: Owner, name: str) -> Repository:
        repository = await self._repositories.get_by_name_and_owner(name, owner.id)
        if repository is not None:
            if not repository.link:
                repository.link = f"{GITHUB_WEB_URL}/{owner.login}/{name}"
            return repository

        profile = await self._client.get_repository(owner.login, name)
        if profile is None:
            raise MissingReferenceError(f"repository {owner.login}/{name} details unavailable")
        repository, created = await self._repositories.get_or_create(owner, profile)
        if created:
            logger.info("Created repository {}/{}", owner.login, repository.name)
        return repository


# -----------------------------------------------------------------------------
# Session-scoped entry points (used by the refresh coordinator and webhooks)
# -----------------------------------------------------------------------------

UserSyncer = Callable[[str], Awaitable[UserSyncResult]]
RosterLoader = Callable[[], Awaitable[list[str]]]


def make_user_syncer(client: GitHubClient, scope: SessionScope) -> UserSyncer:
    """Build a callable that syncs one login in its own transaction."""

    async def sync(login: str) -> UserSyncResult:
        async with scope() as session:
            return await UserSyncService(client, session).sync_user_by_login(login)

    return sync


def make_roster_loader(scope: SessionScope) -> RosterLoader:
    """Build a callable that loads the tracked logins."""

    async def load() -> list[str]:
        async with scope() as session:
            return [user.login for user in await UserRepository(session).get_roster()]

    return load
