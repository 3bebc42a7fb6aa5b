"""Report objects for bottleneck and efficiency metrics."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from pr_review_tracker.schemas.enums import ReviewStatus
from pr_review_tracker.schemas.pr import PRRead

from .calculator import PRReviewMetrics


@dataclass(frozen=True)
class StuckPullRequest:
    """An open PR waiting on review for longer than the threshold."""

    id: int
    github_id: int
    title: str
    link: str | None
    number: int | None
    author: str
    repository: str
    review_status: ReviewStatus
    review_started_at: datetime
    reviewers: tuple[str, ...]
    review_comments_count: int
    hours_in_review: int
    days_in_review: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "github_id": self.github_id,
            "title": self.title,
            "link": self.link,
            "number": self.number,
            "author": self.author,
            "repository": self.repository,
            "review_status": self.review_status.value,
            "review_started_at": self.review_started_at.isoformat(),
            "reviewers": list(self.reviewers),
            "review_comments_count": self.review_comments_count,
            "hours_in_review": self.hours_in_review,
            "days_in_review": self.days_in_review,
        }


@dataclass
class BottleneckReport:
    """Stuck PRs, oldest review first, plus the same grouped by repository."""

    stuck_prs: list[StuckPullRequest] = field(default_factory=list)
    by_repository: dict[str, list[StuckPullRequest]] = field(default_factory=dict)

    @property
    def total_stuck_prs(self) -> int:
        """Number of stuck PRs."""
        return len(self.stuck_prs)

    def add(self, pr: StuckPullRequest) -> None:
        """Append a stuck PR (caller supplies them oldest first)."""
        self.stuck_prs.append(pr)
        self.by_repository.setdefault(pr.repository, []).append(pr)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "total_stuck_prs": self.total_stuck_prs,
            "stuck_prs": [pr.to_dict() for pr in self.stuck_prs],
            "by_repository": {
                name: [pr.to_dict() for pr in prs] for name, prs in self.by_repository.items()
            },
        }


@dataclass(frozen=True)
class EfficiencyReport:
    """Fleet-wide review efficiency. Rates are percentages; all rounded to 2 places."""

    total_prs: int
    prs_with_reviews: int
    review_rate: float
    status_counts: dict[str, int]
    approval_rate: float
    avg_time_to_first_review_hours: float
    avg_time_to_first_review_days: float
    avg_total_review_time_hours: float
    avg_total_review_time_days: float
    total_stuck_prs: int
    repositories_with_stuck_prs: int

    @property
    def approved_prs(self) -> int:
        return self.status_counts.get(ReviewStatus.APPROVED.value, 0)

    @property
    def changes_requested_prs(self) -> int:
        return self.status_counts.get(ReviewStatus.CHANGES_REQUESTED.value, 0)

    @property
    def merged_prs(self) -> int:
        return self.status_counts.get(ReviewStatus.MERGED.value, 0)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "total_prs": self.total_prs,
            "prs_with_reviews": self.prs_with_reviews,
            "review_rate": self.review_rate,
            "approved_prs": self.approved_prs,
            "changes_requested_prs": self.changes_requested_prs,
            "merged_prs": self.merged_prs,
            "status_counts": dict(self.status_counts),
            "approval_rate": self.approval_rate,
            "avg_time_to_first_review_hours": self.avg_time_to_first_review_hours,
            "avg_time_to_first_review_days": self.avg_time_to_first_review_days,
            "avg_total_review_time_hours": self.avg_total_review_time_hours,
            "avg_total_review_time_days": self.avg_total_review_time_days,
            "bottlenecks": {
                "total_stuck_prs": self.total_stuck_prs,
                "repositories_with_stuck_prs": self.repositories_with_stuck_prs,
            },
        }


@dataclass(frozen=True)
class PullRequestReviewReport:
    """Stored review state and timings for one PR."""

    pr: PRRead
    repository: str
    author: str
    metrics: PRReviewMetrics

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            **self.pr.model_dump(mode="json"),
            "repository": self.repository,
            "author": self.author,
            **self.metrics.to_dict(),
        }
