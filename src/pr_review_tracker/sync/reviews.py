"""Re-resolve review data for PRs already in the store."""

from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from pr_review_tracker.db.models import PullRequest
from pr_review_tracker.db.repositories import PullRequestRepository
from pr_review_tracker.github.client import GitHubClient
from pr_review_tracker.logging import bind_pr, get_logger
from pr_review_tracker.review.resolver import ReviewState, resolve_review_state

from .engine import FATAL_DB_ERRORS
from .exceptions import SyncError

logger = get_logger(__name__)


@dataclass
class ReviewRefreshSummary:
    """Totals for a refresh_all() pass."""

    refreshed: int = 0
    skipped: int = 0
    failed: int = 0
    errors: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "refreshed": self.refreshed,
            "skipped": self.skipped,
            "failed": self.failed,
            "errors": list(self.errors),
        }


class ReviewRefreshService:
    """Overwrite stored review fields with freshly fetched review data.

    Unlike a user sync, this replaces every review field, including
    review_started_at.
    """

    def __init__(self, client: GitHubClient, session: AsyncSession) -> None:
        self._client = client
        self._session = session
        self._pull_requests = PullRequestRepository(session)

    async def refresh_pull_request(self, pr_id: int) -> ReviewState:
        """Refresh review data for one stored PR.

        Args:
            pr_id: PR row ID

        Returns:
            The newly stored review state

        Raises:
            SyncError: PR not found, or it has no PR number to query
        """
        pr = await self._pull_requests.get_with_relations(pr_id)
        if pr is None:
            raise SyncError(f"Pull request {pr_id} not found")
        return await self._refresh(pr)

    async def refresh_all(self) -> ReviewRefreshSummary:
        """Refresh review data for every stored PR, isolating failures."""
        summary = ReviewRefreshSummary()

        for pr in await self._pull_requests.get_all_with_relations():
            pr_id = pr.id
            try:
                async with self._session.begin_nested():
                    await self._refresh(pr)
                summary.refreshed += 1
            except FATAL_DB_ERRORS:
                raise
            except SyncError as e:
                summary.skipped += 1
                logger.info("Skipping review refresh of PR {}: {}", pr_id, e)
            except Exception as e:
                summary.failed += 1
                summary.errors.append({"pr_id": pr_id, "error": str(e)})
                logger.error("Review refresh of PR {} failed: {}", pr_id, e)

        logger.info(
            "Review refresh: {} refreshed, {} skipped, {} failed",
            summary.refreshed,
            summary.skipped,
            summary.failed,
        )
        return summary

    async def _refresh(self, pr: PullRequest) -> ReviewState:
        if pr.number is None:
            raise SyncError(f"Pull request {pr.id} has no PR number")

        owner = pr.repository.owner.login
        repo = pr.repository.name
        reviews, comments, requested = await self._client.get_review_data(owner, repo, pr.number)
        review = resolve_review_state(
            merged=pr.is_merged,
            reviews=reviews,
            comments=comments,
            requested_reviewers=requested,
        )
        await self._pull_requests.overwrite_review_state(pr, review)
        bind_pr(owner, repo, pr.number).info("Review status now {}", review.status.value)
        return review
