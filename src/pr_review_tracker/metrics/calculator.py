"""Per-PR review timing metrics.

Pure functions of a stored PR and an explicit ``now``.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from pr_review_tracker.db.models import PullRequest, ReviewStatus
from pr_review_tracker.utils import hours_between

DEFAULT_STUCK_THRESHOLD = timedelta(hours=168)


@dataclass(frozen=True)
class PRReviewMetrics:
    """Review timings for one PR, in hours."""

    time_to_first_review: float | None = None
    total_review_time: float | None = None
    is_stuck: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "time_to_first_review_hours": self.time_to_first_review,
            "total_review_time_hours": self.total_review_time,
            "is_stuck": self.is_stuck,
        }


def calculate_review_metrics(
    pr: PullRequest,
    now: datetime,
    stuck_threshold: timedelta = DEFAULT_STUCK_THRESHOLD,
) -> PRReviewMetrics:
    """Compute review timings for ``pr`` as of ``now``.

    - time_to_first_review: opened -> review_started_at
    - total_review_time: for an open in_review PR, review start -> now
      (stuck once above the threshold); for a merged or closed PR,
      review start -> last upstream update (or now if unknown); otherwise
      None
    """
    if pr.review_started_at is None:
        return PRReviewMetrics()

    started = pr.review_started_at
    time_to_first_review = hours_between(pr.opened_at, started)

    if pr.is_open and pr.review_status == ReviewStatus.IN_REVIEW:
        total = hours_between(started, now)
        threshold_hours = stuck_threshold.total_seconds() / 3600
        return PRReviewMetrics(time_to_first_review, total, total > threshold_hours)

    if pr.is_merged or not pr.is_open:
        end = pr.last_update_date or now
        return PRReviewMetrics(time_to_first_review, hours_between(started, end))

    return PRReviewMetrics(time_to_first_review)
