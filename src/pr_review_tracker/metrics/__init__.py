"""Review-health metrics: per-PR timings, bottlenecks and efficiency."""

from .calculator import PRReviewMetrics, calculate_review_metrics
from .reports import (
    BottleneckReport,
    EfficiencyReport,
    PullRequestReviewReport,
    StuckPullRequest,
)
from .service import ReviewMetricsService

__all__ = [
    "BottleneckReport",
    "EfficiencyReport",
    "PRReviewMetrics",
    "PullRequestReviewReport",
    "ReviewMetricsService",
    "StuckPullRequest",
    "calculate_review_metrics",
]
