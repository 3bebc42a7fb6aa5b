"""Tests for review state classification."""

from pr_review_tracker.review import ReviewState, resolve_review_state
from pr_review_tracker.schemas.enums import ReviewStatus
from pr_review_tracker.schemas.github_api import (
    GitHubAccount,
    GitHubRequestedReviewers,
    GitHubReview,
    GitHubReviewComment,
)

from tests.conftest import JAN_10_LATE, JAN_11, JAN_11_ISO, JAN_12, JAN_12_ISO
from tests.factories import make_review, make_review_comment


def review(login="reviewer1", state="COMMENTED", submitted_at=JAN_12_ISO, id=9001):
    return GitHubReview.model_validate(make_review(login, state, submitted_at, id))


def comment(login="reviewer1", created_at=JAN_11_ISO, id=7001):
    return GitHubReviewComment.model_validate(make_review_comment(login, created_at, id))


class TestStatusPrecedence:
    """Status is decided by the highest-precedence signal present."""

    def test_no_activity_is_pending(self):
        assert resolve_review_state(merged=False).status == ReviewStatus.PENDING

    def test_comment_only_is_in_review(self):
        state = resolve_review_state(merged=False, comments=[comment()])
        assert state.status == ReviewStatus.IN_REVIEW

    def test_commented_review_is_in_review(self):
        state = resolve_review_state(merged=False, reviews=[review()])
        assert state.status == ReviewStatus.IN_REVIEW

    def test_approval(self):
        state = resolve_review_state(merged=False, reviews=[review(state="APPROVED")])
        assert state.status == ReviewStatus.APPROVED

    def test_changes_requested_beats_approval(self):
        state = resolve_review_state(
            merged=False,
            reviews=[
                review("alice", "APPROVED", id=1),
                review("bob", "CHANGES_REQUESTED", id=2),
            ],
        )
        assert state.status == ReviewStatus.CHANGES_REQUESTED

    def test_merged_beats_everything(self):
        state = resolve_review_state(
            merged=True,
            reviews=[review(state="CHANGES_REQUESTED")],
        )
        assert state.status == ReviewStatus.MERGED

    def test_merged_at_alone_means_merged(self):
        state = resolve_review_state(merged=False, merged_at=JAN_12)
        assert state.status == ReviewStatus.MERGED

    def test_review_state_case_insensitive(self):
        state = resolve_review_state(merged=False, reviews=[review(state="approved")])
        assert state.status == ReviewStatus.APPROVED


class TestReviewStartedAt:
    """review_started_at is the earliest review or comment timestamp."""

    def test_earliest_across_reviews_and_comments(self):
        state = resolve_review_state(
            merged=False,
            reviews=[review(submitted_at=JAN_12_ISO)],
            comments=[comment(created_at=JAN_11_ISO)],
        )
        assert state.review_started_at == JAN_11

    def test_missing_timestamps_ignored(self):
        state = resolve_review_state(
            merged=False,
            reviews=[review(submitted_at=None), review(submitted_at="2024-01-10T11:00:00Z", id=2)],
        )
        assert state.review_started_at == JAN_10_LATE

    def test_none_without_activity(self):
        assert resolve_review_state(merged=False).review_started_at is None


class TestReviewers:
    """Reviewer logins are de-duplicated, review authors first."""

    def test_dedup_preserves_order(self):
        requested = GitHubRequestedReviewers(
            users=[GitHubAccount(login="carol", id=3), GitHubAccount(login="alice", id=1)]
        )
        state = resolve_review_state(
            merged=False,
            reviews=[review("alice", id=1), review("bob", id=2), review("alice", id=3)],
            requested_reviewers=requested,
        )
        assert state.reviewers == ("alice", "bob", "carol")

    def test_ghost_reviews_skipped(self):
        ghost = GitHubReview(id=1, user=None, state="COMMENTED", submitted_at=JAN_12)
        state = resolve_review_state(merged=False, reviews=[ghost])

        assert state.reviewers == ()
        assert state.status == ReviewStatus.IN_REVIEW

    def test_comment_count(self):
        state = resolve_review_state(
            merged=False,
            comments=[comment(id=1), comment(id=2), comment("bob", id=3)],
        )
        assert state.review_comments_count == 3
        # Comment authors are not reviewers unless they reviewed or were requested
        assert state.reviewers == ()


class TestDefaultState:
    """Tests for the fallback state."""

    def test_default(self):
        state = ReviewState.default()

        assert state.status == ReviewStatus.PENDING
        assert state.review_started_at is None
        assert state.reviewers == ()
        assert state.review_comments_count == 0

    def test_to_dict(self):
        data = resolve_review_state(merged=False, reviews=[review()]).to_dict()

        assert data["review_status"] == "in_review"
        assert data["review_started_at"] == JAN_12.isoformat()
        assert data["reviewers"] == ["reviewer1"]
