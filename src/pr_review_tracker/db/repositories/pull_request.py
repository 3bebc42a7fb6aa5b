"""Repository for PullRequest model operations."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from pr_review_tracker.db.models import (
    UNRESOLVED_REVIEW_STATUSES,
    PullRequest,
    Repository,
)
from pr_review_tracker.utils import ensure_utc, to_naive_utc

from .base import BaseRepository

if TYPE_CHECKING:
    from pr_review_tracker.review.resolver import ReviewState
    from pr_review_tracker.schemas.pr import PRSnapshot

# Core fields overwritten whenever upstream differs
_SYNCED_FIELDS = ("title", "body", "is_open", "is_merged", "last_update_date")

# Fields only filled in when the stored value is empty
_BACKFILL_FIELDS = ("link", "number")


def _same(stored: Any, incoming: Any) -> bool:
    if isinstance(stored, datetime) or isinstance(incoming, datetime):
        return ensure_utc(stored) == ensure_utc(incoming)
    return bool(stored == incoming)


class PullRequestRepository(BaseRepository[PullRequest]):
    """Repository for PullRequest entities.

    Exactly one row exists per GitHub ID. Sync writes are diff-based: only
    fields whose value changed are assigned, and operator-owned data (the
    repository exclusion flag) is never touched.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, PullRequest)

    # -------------------------------------------------------------------------
    # Query Methods
    # -------------------------------------------------------------------------

    async def get_by_github_id(self, github_id: int) -> PullRequest | None:
        """Get a PR by its GitHub ID."""
        return await self._get_by_field("github_id", github_id)

    async def get_with_relations(self, pr_id: int) -> PullRequest | None:
        """Get a PR with its author and repository (and owner) loaded.

        Args:
            pr_id: PR row ID

        Returns:
            PullRequest or None if not found
        """
        stmt = (
            select(PullRequest)
            .options(joinedload(PullRequest.author), joinedload(PullRequest.repository))
            .where(PullRequest.id == pr_id)
        )
        result = await self._session.execute(stmt)
        return result.scalars().first()

    async def get_all_with_relations(self) -> list[PullRequest]:
        """Get every stored PR with author and repository loaded."""
        stmt = (
            select(PullRequest)
            .options(joinedload(PullRequest.author), joinedload(PullRequest.repository))
            .order_by(PullRequest.id)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().unique().all())

    async def get_for_metrics(self) -> list[PullRequest]:
        """Get all PRs that count towards aggregate metrics.

        PRs in flagged repositories are excluded.
        """
        stmt = (
            select(PullRequest)
            .join(Repository, PullRequest.repository_id == Repository.id)
            .options(joinedload(PullRequest.repository))
            .where(Repository.is_flagged.is_(False))
            .order_by(PullRequest.id)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().unique().all())

    async def get_stuck(self, cutoff: datetime) -> list[PullRequest]:
        """Get open PRs waiting on review since before ``cutoff``.

        Args:
            cutoff: PRs whose review started at or before this are stuck

        Returns:
            Matching PRs (outside flagged repositories), oldest review first
        """
        stmt = (
            select(PullRequest)
            .join(Repository, PullRequest.repository_id == Repository.id)
            .options(joinedload(PullRequest.author), joinedload(PullRequest.repository))
            .where(
                PullRequest.is_open.is_(True),
                PullRequest.review_status.in_(UNRESOLVED_REVIEW_STATUSES),
                PullRequest.review_started_at.is_not(None),
                PullRequest.review_started_at <= to_naive_utc(cutoff),
                Repository.is_flagged.is_(False),
            )
            .order_by(PullRequest.review_started_at.asc())
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().unique().all())

    # -------------------------------------------------------------------------
    # Write Methods
    # -------------------------------------------------------------------------

    async def apply_sync(
        self,
        snapshot: PRSnapshot,
        *,
        author_id: int,
        repository_id: int,
        review: ReviewState,
    ) -> tuple[PullRequest, bool, list[str]]:
        """Insert or diff-update a PR from one upstream observation.

        New PRs are inserted with every field. For an existing PR:

        - core fields (title, body, open/merged flags, last update) are
          updated when they differ
        - link and number are only backfilled when missing
        - review status, reviewers and comment count are updated when they
          differ
        - review_started_at is only set when currently empty

        Args:
            snapshot: Core PR fields from GitHub
            author_id: Tracked user row ID
            repository_id: Repository row ID
            review: Resolved review state

        Returns:
            Tuple of (pr, created, changed field names)
        """
        created = await self._insert_ignoring_conflicts(
            {
                "github_id": snapshot.github_id,
                "author_id": author_id,
                "repository_id": repository_id,
                "title": snapshot.title,
                "body": snapshot.body,
                "link": snapshot.link,
                "number": snapshot.number,
                "is_open": snapshot.is_open,
                "is_merged": snapshot.is_merged,
                "opened_at": to_naive_utc(snapshot.opened_at),
                "last_update_date": to_naive_utc(snapshot.last_update_date),
                "review_status": review.status,
                "review_started_at": to_naive_utc(review.review_started_at),
                "reviewers": list(review.reviewers),
                "review_comments_count": review.review_comments_count,
            }
        )

        pr = await self.get_by_github_id(snapshot.github_id)
        if pr is None:
            raise LookupError(f"Pull request {snapshot.github_id} vanished after insert")
        if created:
            return pr, True, []

        changed: list[str] = []

        def assign(name: str, value: Any) -> None:
            if not _same(getattr(pr, name), value):
                setattr(pr, name, value)
                changed.append(name)

        for name in _SYNCED_FIELDS:
            value = getattr(snapshot, name)
            assign(name, to_naive_utc(value) if isinstance(value, datetime) else value)

        for name in _BACKFILL_FIELDS:
            value = getattr(snapshot, name)
            if getattr(pr, name) is None and value is not None:
                assign(name, value)

        assign("review_status", review.status)
        assign("reviewers", list(review.reviewers))
        assign("review_comments_count", review.review_comments_count)

        if pr.review_started_at is None and review.review_started_at is not None:
            assign("review_started_at", to_naive_utc(review.review_started_at))

        if changed:
            await self.flush()
        return pr, False, changed

    async def overwrite_review_state(self, pr: PullRequest, review: ReviewState) -> None:
        """Replace all review fields of ``pr`` with a freshly resolved state.

        Unlike apply_sync this also moves review_started_at, which is what
        an explicit review refresh asks for.
        """
        pr.review_status = review.status
        pr.review_started_at = to_naive_utc(review.review_started_at)
        pr.reviewers = list(review.reviewers)
        pr.review_comments_count = review.review_comments_count
        await self.flush()
