"""Tests for PullRequestRepository."""

from datetime import timedelta

import pytest

from pr_review_tracker.db.models import ReviewStatus
from pr_review_tracker.db.repositories import PullRequestRepository
from pr_review_tracker.review import ReviewState
from pr_review_tracker.schemas.pr import PRSnapshot
from pr_review_tracker.utils import ensure_utc
from tests.conftest import JAN_10, JAN_10_LATE, JAN_11, JAN_12, JAN_20
from tests.factories import make_owner, make_pull_request, make_repository, make_user


def snapshot(**overrides) -> PRSnapshot:
    data = {
        "github_id": 5001,
        "title": "Add retry support",
        "body": "Retries transient failures.",
        "link": "https://github.com/octo-org/hello-world/pull/42",
        "is_open": True,
        "is_merged": False,
        "opened_at": JAN_10,
        "last_update_date": JAN_11,
    }
    data.update(overrides)
    return PRSnapshot(**data)


IN_REVIEW = ReviewState(
    status=ReviewStatus.IN_REVIEW,
    review_started_at=JAN_10_LATE,
    reviewers=("reviewer1",),
    review_comments_count=1,
)


@pytest.fixture
async def seeded(db_session):
    """A tracked user and a repository to attach PRs to."""
    owner = make_owner(db_session)
    repo = make_repository(db_session, owner)
    user = make_user(db_session)
    await db_session.flush()
    return user, repo


async def apply(db_session, seeded, snap=None, review=IN_REVIEW):
    user, repo = seeded
    return await PullRequestRepository(db_session).apply_sync(
        snap or snapshot(), author_id=user.id, repository_id=repo.id, review=review
    )


class TestApplySync:
    """Insert-or-diff-update tests."""

    async def test_inserts_new_pr(self, db_session, seeded):
        pr, created, changed = await apply(db_session, seeded)

        assert created is True
        assert changed == []
        assert pr.github_id == 5001
        assert pr.number == 42
        assert pr.review_status == ReviewStatus.IN_REVIEW
        assert pr.reviewers == ["reviewer1"]
        assert ensure_utc(pr.review_started_at) == JAN_10_LATE

    async def test_identical_observation_changes_nothing(self, db_session, seeded):
        first, _, _ = await apply(db_session, seeded)
        second, created, changed = await apply(db_session, seeded)

        assert created is False
        assert changed == []
        assert second.id == first.id
        assert await PullRequestRepository(db_session).count() == 1

    async def test_changed_fields_reported(self, db_session, seeded):
        await apply(db_session, seeded)
        pr, created, changed = await apply(
            db_session,
            seeded,
            snapshot(title="Add retry support (v2)", is_open=False, last_update_date=JAN_12),
        )

        assert created is False
        assert set(changed) == {"title", "is_open", "last_update_date"}
        assert pr.title == "Add retry support (v2)"
        assert pr.is_open is False

    async def test_status_may_move_backwards(self, db_session, seeded):
        """Review status is recomputed, not ratcheted."""
        approved = ReviewState(status=ReviewStatus.APPROVED, review_started_at=JAN_10_LATE)
        await apply(db_session, seeded, review=approved)

        pr, _, changed = await apply(db_session, seeded, review=IN_REVIEW)

        assert pr.review_status == ReviewStatus.IN_REVIEW
        assert "review_status" in changed

    async def test_review_started_at_only_set_once(self, db_session, seeded):
        await apply(db_session, seeded, review=ReviewState.default())

        pr, _, changed = await apply(db_session, seeded, review=IN_REVIEW)
        assert "review_started_at" in changed
        assert ensure_utc(pr.review_started_at) == JAN_10_LATE

        later = ReviewState(status=ReviewStatus.IN_REVIEW, review_started_at=JAN_20)
        pr, _, changed = await apply(db_session, seeded, review=later)
        assert "review_started_at" not in changed
        assert ensure_utc(pr.review_started_at) == JAN_10_LATE

    async def test_review_started_at_kept_when_review_data_missing(self, db_session, seeded):
        await apply(db_session, seeded)
        pr, _, _ = await apply(db_session, seeded, review=ReviewState.default())

        assert pr.review_status == ReviewStatus.PENDING
        assert ensure_utc(pr.review_started_at) == JAN_10_LATE

    async def test_link_and_number_backfilled_only(self, db_session, seeded):
        await apply(db_session, seeded, snapshot(link=None, number=None))

        pr, _, changed = await apply(db_session, seeded)
        assert pr.link == "https://github.com/octo-org/hello-world/pull/42"
        assert pr.number == 42
        assert {"link", "number"} <= set(changed)

        pr, _, changed = await apply(
            db_session, seeded, snapshot(link="https://github.com/octo-org/hello-world/pull/99")
        )
        assert pr.number == 42
        assert changed == []

    async def test_flagged_repository_untouched(self, db_session, seeded):
        _, repo = seeded
        repo.is_flagged = True
        await db_session.flush()

        await apply(db_session, seeded)
        await apply(db_session, seeded, snapshot(title="Renamed"))

        assert repo.is_flagged is True


class TestOverwriteReviewState:
    """Explicit review refresh replaces every review field."""

    async def test_moves_review_started_at(self, db_session, seeded):
        pr, _, _ = await apply(db_session, seeded)
        refreshed = ReviewState(
            status=ReviewStatus.APPROVED,
            review_started_at=JAN_12,
            reviewers=("alice",),
            review_comments_count=4,
        )

        await PullRequestRepository(db_session).overwrite_review_state(pr, refreshed)

        assert pr.review_status == ReviewStatus.APPROVED
        assert ensure_utc(pr.review_started_at) == JAN_12
        assert pr.reviewers == ["alice"]
        assert pr.review_comments_count == 4


class TestStuckQuery:
    """Tests for get_stuck."""

    async def test_filters_and_orders(self, db_session):
        owner = make_owner(db_session)
        repo = make_repository(db_session, owner)
        flagged = make_repository(db_session, owner, name="noisy", github_id=2002, is_flagged=True)
        user = make_user(db_session)

        older = make_pull_request(
            db_session, user, repo, github_id=1, number=1,
            review_status=ReviewStatus.CHANGES_REQUESTED, review_started_at=JAN_10,
        )
        newer = make_pull_request(
            db_session, user, repo, github_id=2, number=2,
            review_status=ReviewStatus.IN_REVIEW, review_started_at=JAN_11,
        )
        # Too recent
        make_pull_request(
            db_session, user, repo, github_id=3, number=3,
            review_status=ReviewStatus.IN_REVIEW, review_started_at=JAN_20,
        )
        # Resolved
        make_pull_request(
            db_session, user, repo, github_id=4, number=4,
            review_status=ReviewStatus.APPROVED, review_started_at=JAN_10,
        )
        # Closed
        make_pull_request(
            db_session, user, repo, github_id=5, number=5, is_open=False,
            review_status=ReviewStatus.IN_REVIEW, review_started_at=JAN_10,
        )
        # Flagged repository
        make_pull_request(
            db_session, user, flagged, github_id=6, number=6,
            review_status=ReviewStatus.IN_REVIEW, review_started_at=JAN_10,
        )
        await db_session.flush()

        result = await PullRequestRepository(db_session).get_stuck(JAN_12)

        assert [pr.id for pr in result] == [older.id, newer.id]

    async def test_cutoff_is_inclusive(self, db_session):
        owner = make_owner(db_session)
        repo = make_repository(db_session, owner)
        user = make_user(db_session)
        pr = make_pull_request(
            db_session, user, repo,
            review_status=ReviewStatus.IN_REVIEW, review_started_at=JAN_10,
        )
        await db_session.flush()

        repository = PullRequestRepository(db_session)

        assert [p.id for p in await repository.get_stuck(JAN_10)] == [pr.id]
        assert await repository.get_stuck(JAN_10 - timedelta(seconds=1)) == []


class TestMetricsQuery:
    """Tests for get_for_metrics."""

    async def test_excludes_flagged_repositories(self, db_session):
        owner = make_owner(db_session)
        repo = make_repository(db_session, owner)
        flagged = make_repository(db_session, owner, name="noisy", github_id=2002, is_flagged=True)
        user = make_user(db_session)
        kept = make_pull_request(db_session, user, repo, github_id=1)
        make_pull_request(db_session, user, flagged, github_id=2)
        await db_session.flush()

        result = await PullRequestRepository(db_session).get_for_metrics()

        assert [pr.id for pr in result] == [kept.id]

    async def test_get_with_relations(self, db_session):
        owner = make_owner(db_session)
        repo = make_repository(db_session, owner)
        user = make_user(db_session)
        pr = make_pull_request(db_session, user, repo)
        await db_session.flush()

        result = await PullRequestRepository(db_session).get_with_relations(pr.id)

        assert result is not None
        assert result.author.login == "octocat"
        assert result.repository.full_name == "octo-org/hello-world"
