"""Tests for UserSyncService (search -> resolve -> classify -> store)."""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy import select

from pr_review_tracker.config import SyncConfig
from pr_review_tracker.db.models import Owner, PullRequest, Repository, ReviewStatus
from pr_review_tracker.sync import UserNotFoundError, UserSyncService
from pr_review_tracker.utils import ensure_utc
from tests.conftest import JAN_10_LATE, JAN_11, JAN_12_ISO
from tests.factories import (
    make_mock_client,
    make_review,
    make_review_comment,
    make_search_item,
    make_user,
)


@pytest.fixture
async def user(db_session):
    tracked = make_user(db_session, login="octocat")
    await db_session.flush()
    return tracked


async def stored_prs(db_session) -> list[PullRequest]:
    result = await db_session.execute(select(PullRequest).order_by(PullRequest.github_id))
    return list(result.scalars().all())


def service(client, db_session) -> UserSyncService:
    return UserSyncService(client, db_session, config=SyncConfig())


class TestSyncUser:
    """End-to-end reconciliation of one user's PRs."""

    async def test_creates_owner_repository_and_pr(self, db_session, user):
        client = make_mock_client(
            [make_search_item()],
            reviews=[make_review("reviewer1", "COMMENTED")],
            comments=[make_review_comment("reviewer2")],
        )

        result = await service(client, db_session).sync_user(user)

        assert result.processed == 1
        assert result.created == 1
        prs = await stored_prs(db_session)
        assert len(prs) == 1
        pr = prs[0]
        assert pr.author_id == user.id
        assert pr.number == 42
        assert pr.review_status == ReviewStatus.IN_REVIEW
        assert pr.reviewers == ["reviewer1"]
        assert pr.review_comments_count == 1
        assert ensure_utc(pr.review_started_at) == JAN_10_LATE

        owner = (await db_session.execute(select(Owner))).scalars().one()
        assert owner.login == "octo-org"
        repo = (await db_session.execute(select(Repository))).scalars().one()
        assert repo.full_name == "octo-org/hello-world"
        assert repo.is_flagged is False

    async def test_search_uses_tracking_window(self, db_session, user):
        client = make_mock_client([])
        config = SyncConfig()

        await UserSyncService(client, db_session, config=config).sync_user(user)

        client.iter_user_pull_requests.assert_called_once_with("octocat", config.since, None)

    async def test_second_run_is_a_no_op(self, db_session, user):
        client = make_mock_client([make_search_item(), make_search_item(id=5002, number=43)])

        await service(client, db_session).sync_user(user)
        result = await service(client, db_session).sync_user(user)

        assert result.processed == 2
        assert result.created == 0
        assert result.updated == 0
        assert result.unchanged == 2
        assert len(await stored_prs(db_session)) == 2
        # Owner and repository were resolved from the store the second time
        assert client.get_owner.await_count == 1
        assert client.get_repository.await_count == 1

    async def test_upstream_change_updates_fields(self, db_session, user):
        await service(make_mock_client([make_search_item()]), db_session).sync_user(user)

        client = make_mock_client(
            [make_search_item(title="Add retry support (v2)")],
            reviews=[make_review("reviewer1", "APPROVED")],
        )
        result = await service(client, db_session).sync_user(user)

        assert result.updated == 1
        pr = (await stored_prs(db_session))[0]
        assert pr.title == "Add retry support (v2)"
        assert pr.review_status == ReviewStatus.APPROVED

    async def test_repository_flag_survives_sync(self, db_session, user):
        client = make_mock_client([make_search_item()])
        await service(client, db_session).sync_user(user)
        repo = (await db_session.execute(select(Repository))).scalars().one()
        repo.is_flagged = True
        await db_session.flush()

        await service(make_mock_client([make_search_item(title="New")]), db_session).sync_user(
            user
        )

        assert repo.is_flagged is True

    async def test_sync_user_by_login(self, db_session, user):
        client = make_mock_client([make_search_item()])

        result = await service(client, db_session).sync_user_by_login("OctoCat")

        assert result.login == "octocat"
        assert result.created == 1

    async def test_unknown_login_raises(self, db_session, user):
        with pytest.raises(UserNotFoundError):
            await service(make_mock_client([]), db_session).sync_user_by_login("stranger")


class TestMergeDetection:
    """Merge status is only confirmed for closed PRs without merged_at."""

    async def test_open_pr_skips_merge_check(self, db_session, user):
        client = make_mock_client([make_search_item(state="open")])

        await service(client, db_session).sync_user(user)

        client.get_merge_status.assert_not_awaited()

    async def test_closed_pr_confirmed_merged(self, db_session, user):
        client = make_mock_client([make_search_item(state="closed")], merged=True)

        await service(client, db_session).sync_user(user)

        client.get_merge_status.assert_awaited_once_with(
            "https://api.github.com/repos/octo-org/hello-world/pulls/42"
        )
        pr = (await stored_prs(db_session))[0]
        assert pr.is_merged is True
        assert pr.is_open is False
        assert pr.review_status == ReviewStatus.MERGED

    async def test_closed_unmerged_pr(self, db_session, user):
        client = make_mock_client([make_search_item(state="closed")], merged=False)

        await service(client, db_session).sync_user(user)

        pr = (await stored_prs(db_session))[0]
        assert pr.is_merged is False
        assert pr.is_open is False
        assert pr.review_status == ReviewStatus.PENDING

    async def test_inline_merged_at_trusted(self, db_session, user):
        client = make_mock_client([make_search_item(state="closed", merged_at=JAN_12_ISO)])

        await service(client, db_session).sync_user(user)

        client.get_merge_status.assert_not_awaited()
        assert (await stored_prs(db_session))[0].review_status == ReviewStatus.MERGED


class TestDegradedInputs:
    """Missing data is skipped or defaulted, never fabricated."""

    async def test_missing_owner_skips_pr(self, db_session, user):
        client = make_mock_client([make_search_item()])
        client.get_owner.return_value = None

        result = await service(client, db_session).sync_user(user)

        assert result.skipped == 1
        assert result.problems[0].skipped_reason == "missing reference"
        assert await stored_prs(db_session) == []
        assert (await db_session.execute(select(Owner))).scalars().all() == []

    async def test_missing_repository_skips_pr(self, db_session, user):
        client = make_mock_client([make_search_item()])
        client.get_repository.return_value = None

        result = await service(client, db_session).sync_user(user)

        assert result.skipped == 1
        assert await stored_prs(db_session) == []

    async def test_pr_without_number_gets_default_review_state(self, db_session, user):
        client = make_mock_client(
            [make_search_item(number=None, link="https://github.com/octo-org/hello-world")],
            reviews=[make_review(state="APPROVED")],
        )

        result = await service(client, db_session).sync_user(user)

        assert result.created == 1
        client.get_review_data.assert_not_awaited()
        pr = (await stored_prs(db_session))[0]
        assert pr.number is None
        assert pr.review_status == ReviewStatus.PENDING
        assert pr.reviewers == []

    async def test_unavailable_review_data_defaults_to_pending(self, db_session, user):
        # The client degrades failed review fetches to empty collections
        client = make_mock_client([make_search_item()])

        await service(client, db_session).sync_user(user)

        pr = (await stored_prs(db_session))[0]
        assert pr.review_status == ReviewStatus.PENDING
        assert pr.review_started_at is None

    async def test_failure_on_one_pr_does_not_stop_the_rest(self, db_session, user):
        client = make_mock_client(
            [make_search_item(id=5001, number=42), make_search_item(id=5002, number=43)]
        )
        default_data = client.get_review_data.return_value
        client.get_review_data = AsyncMock(side_effect=[RuntimeError("boom"), default_data])

        result = await service(client, db_session).sync_user(user)

        assert result.failed == 1
        assert result.created == 1
        assert result.problems[0].action == "error"
        assert [pr.github_id for pr in await stored_prs(db_session)] == [5002]

    async def test_last_update_date_tracks_upstream(self, db_session, user):
        await service(make_mock_client([make_search_item()]), db_session).sync_user(user)

        pr = (await stored_prs(db_session))[0]
        assert ensure_utc(pr.last_update_date) == JAN_11
