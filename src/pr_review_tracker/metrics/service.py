"""Review metrics service - read-only aggregation over stored PRs."""

import math
from datetime import UTC, datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from pr_review_tracker.config import get_settings
from pr_review_tracker.db.models import PullRequest, ReviewStatus
from pr_review_tracker.db.repositories import PullRequestRepository
from pr_review_tracker.schemas.pr import PRRead
from pr_review_tracker.utils import ensure_utc, hours_between, round2

from .calculator import calculate_review_metrics
from .reports import (
    BottleneckReport,
    EfficiencyReport,
    PullRequestReviewReport,
    StuckPullRequest,
)


def _average(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _percent(part: int, whole: int) -> float:
    return round2(part / whole * 100) if whole else 0.0


class ReviewMetricsService:
    """Bottleneck and efficiency metrics.

    PRs in flagged repositories are left out of every aggregate.

    Usage:
        async with get_session() as session:
            report = await ReviewMetricsService(session).get_bottlenecks()
            print(report.total_stuck_prs)
    """

    def __init__(
        self,
        session: AsyncSession,
        *,
        stuck_threshold: timedelta | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            session: Async session (read-only use)
            stuck_threshold: Review age after which a PR is stuck (settings if None)
        """
        self._pull_requests = PullRequestRepository(session)
        self._stuck_threshold = stuck_threshold or get_settings().metrics.stuck_threshold

    async def get_bottlenecks(self, now: datetime | None = None) -> BottleneckReport:
        """Find open PRs unresolved in review for longer than the threshold.

        Args:
            now: Reference time (current UTC time if None)

        Returns:
            BottleneckReport, oldest review start first, grouped by owner/repo
        """
        now = ensure_utc(now) or datetime.now(UTC)
        report = BottleneckReport()

        for pr in await self._pull_requests.get_stuck(now - self._stuck_threshold):
            started_at = ensure_utc(pr.review_started_at)
            assert started_at is not None
            hours = hours_between(started_at, now)
            report.add(
                StuckPullRequest(
                    id=pr.id,
                    github_id=pr.github_id,
                    title=pr.title,
                    link=pr.link,
                    number=pr.number,
                    author=pr.author.login,
                    repository=pr.repository.full_name,
                    review_status=pr.review_status,
                    review_started_at=started_at,
                    reviewers=tuple(pr.reviewers or ()),
                    review_comments_count=pr.review_comments_count,
                    hours_in_review=math.floor(hours),
                    days_in_review=math.floor(hours / 24),
                )
            )

        return report

    async def get_efficiency_metrics(self, now: datetime | None = None) -> EfficiencyReport:
        """Aggregate review efficiency across all (unflagged) PRs.

        Args:
            now: Reference time (current UTC time if None)

        Returns:
            EfficiencyReport with rates as percentages, rounded to 2 places
        """
        now = ensure_utc(now) or datetime.now(UTC)
        prs = await self._pull_requests.get_for_metrics()

        status_counts = {status.value: 0 for status in ReviewStatus}
        first_review_hours: list[float] = []
        total_review_hours: list[float] = []

        for pr in prs:
            status_counts[pr.review_status.value] += 1
            metrics = calculate_review_metrics(pr, now, self._stuck_threshold)
            if metrics.time_to_first_review is not None:
                first_review_hours.append(metrics.time_to_first_review)
            if metrics.total_review_time is not None and not pr.is_open:
                total_review_hours.append(metrics.total_review_time)

        with_reviews = len(first_review_hours)
        bottlenecks = await self.get_bottlenecks(now)
        avg_first = _average(first_review_hours)
        avg_total = _average(total_review_hours)

        return EfficiencyReport(
            total_prs=len(prs),
            prs_with_reviews=with_reviews,
            review_rate=_percent(with_reviews, len(prs)),
            status_counts=status_counts,
            approval_rate=_percent(status_counts[ReviewStatus.APPROVED.value], with_reviews),
            avg_time_to_first_review_hours=round2(avg_first),
            avg_time_to_first_review_days=round2(avg_first / 24),
            avg_total_review_time_hours=round2(avg_total),
            avg_total_review_time_days=round2(avg_total / 24),
            total_stuck_prs=bottlenecks.total_stuck_prs,
            repositories_with_stuck_prs=len(bottlenecks.by_repository),
        )

    async def get_pull_request_metrics(
        self,
        pr_id: int,
        now: datetime | None = None,
    ) -> PullRequestReviewReport | None:
        """Get the stored review state and timings of one PR.

        Returns:
            Report, or None if no PR has that ID
        """
        pr: PullRequest | None = await self._pull_requests.get_with_relations(pr_id)
        if pr is None:
            return None

        now = ensure_utc(now) or datetime.now(UTC)
        return PullRequestReviewReport(
            pr=PRRead.from_orm(pr),
            repository=pr.repository.full_name,
            author=pr.author.login,
            metrics=calculate_review_metrics(pr, now, self._stuck_threshold),
        )
