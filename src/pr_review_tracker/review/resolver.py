"""Derive a pull request's review state from its GitHub review data.

Everything here is pure: the same reviews, comments and merge flag always
produce the same ReviewState, with no clock reads and no I/O.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from pr_review_tracker.schemas.enums import ReviewStatus
from pr_review_tracker.schemas.github_api import (
    GitHubRequestedReviewers,
    GitHubReview,
    GitHubReviewComment,
)
from pr_review_tracker.utils import ensure_utc

# GitHub review states that decide the status (compared upper-cased)
CHANGES_REQUESTED_STATE = "CHANGES_REQUESTED"
APPROVED_STATE = "APPROVED"


@dataclass(frozen=True)
class ReviewState:
    """Derived review fields written onto a PullRequest."""

    status: ReviewStatus = ReviewStatus.PENDING
    review_started_at: datetime | None = None
    reviewers: tuple[str, ...] = field(default_factory=tuple)
    review_comments_count: int = 0

    @classmethod
    def default(cls) -> "ReviewState":
        """State used when review data is unavailable."""
        return cls()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "review_status": self.status.value,
            "review_started_at": (
                self.review_started_at.isoformat() if self.review_started_at else None
            ),
            "reviewers": list(self.reviewers),
            "review_comments_count": self.review_comments_count,
        }


def _classify(
    merged: bool,
    merged_at: datetime | None,
    reviews: Sequence[GitHubReview],
    comments: Sequence[GitHubReviewComment],
) -> ReviewStatus:
    if merged or merged_at is not None:
        return ReviewStatus.MERGED

    states = {review.state.upper() for review in reviews}
    if CHANGES_REQUESTED_STATE in states:
        return ReviewStatus.CHANGES_REQUESTED
    if APPROVED_STATE in states:
        return ReviewStatus.APPROVED
    if reviews or comments:
        return ReviewStatus.IN_REVIEW
    return ReviewStatus.PENDING


def _earliest(timestamps: Iterable[datetime | None]) -> datetime | None:
    present = [ensure_utc(ts) for ts in timestamps if ts is not None]
    return min(present) if present else None  # type: ignore[type-var]


def _unique_logins(logins: Iterable[str]) -> tuple[str, ...]:
    # dict preserves first-seen order
    return tuple(dict.fromkeys(logins))


def resolve_review_state(
    *,
    merged: bool,
    merged_at: datetime | None = None,
    reviews: Sequence[GitHubReview] = (),
    comments: Sequence[GitHubReviewComment] = (),
    requested_reviewers: GitHubRequestedReviewers | None = None,
) -> ReviewState:
    """Classify a pull request and derive its review tracking fields.

    Status precedence, highest first: merged, changes_requested, approved,
    in_review (any review or review comment), pending.

    Args:
        merged: Confirmed merge flag
        merged_at: Merge timestamp, if known (non-null also means merged)
        reviews: Submitted reviews
        comments: Inline review comments
        requested_reviewers: Currently requested reviewers

    Returns:
        ReviewState with status, earliest review activity, the de-duplicated
        reviewer logins (review authors first, then requested users) and the
        review comment count
    """
    requested = requested_reviewers.users if requested_reviewers is not None else []

    return ReviewState(
        status=_classify(merged, merged_at, reviews, comments),
        review_started_at=_earliest(
            [review.submitted_at for review in reviews]
            + [comment.created_at for comment in comments]
        ),
        reviewers=_unique_logins(
            [review.user.login for review in reviews if review.user is not None]
            + [user.login for user in requested]
        ),
        review_comments_count=len(comments),
    )
