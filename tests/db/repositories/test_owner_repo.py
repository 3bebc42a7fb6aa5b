"""Tests for OwnerRepository."""

from pr_review_tracker.db.repositories import OwnerRepository
from pr_review_tracker.schemas.github_api import GitHubAccount
from tests.factories import make_account, make_owner


def profile(login: str = "octo-org", id: int = 1001) -> GitHubAccount:
    return GitHubAccount.model_validate(make_account(login, id))


class TestOwnerRepositoryQuery:
    """Query method tests for OwnerRepository."""

    async def test_get_by_login(self, db_session):
        owner = make_owner(db_session, login="octo-org")
        await db_session.flush()

        result = await OwnerRepository(db_session).get_by_login("octo-org")

        assert result is not None
        assert result.id == owner.id

    async def test_get_by_login_not_found(self, db_session):
        assert await OwnerRepository(db_session).get_by_login("nobody") is None


class TestOwnerRepositoryGetOrCreate:
    """Insert-or-fetch tests."""

    async def test_creates_new_owner(self, db_session):
        owner, created = await OwnerRepository(db_session).get_or_create(profile())

        assert created is True
        assert owner.id is not None
        assert owner.github_id == 1001
        assert owner.type == "Organization"
        assert owner.link == "https://github.com/octo-org"

    async def test_second_call_returns_existing(self, db_session):
        repository = OwnerRepository(db_session)
        first, _ = await repository.get_or_create(profile())
        second, created = await repository.get_or_create(profile())

        assert created is False
        assert second.id == first.id
        assert await repository.count() == 1

    async def test_renamed_account_updates_existing_row(self, db_session):
        """A known GitHub ID under a new login renames the stored owner."""
        existing = make_owner(db_session, login="old-name", github_id=1001)
        await db_session.flush()

        repository = OwnerRepository(db_session)
        owner, created = await repository.get_or_create(profile("new-name", 1001))

        assert created is False
        assert owner.id == existing.id
        assert owner.login == "new-name"
        assert owner.link == "https://github.com/new-name"
        assert await repository.count() == 1

    async def test_backfills_missing_link(self, db_session):
        existing = make_owner(db_session, login="octo-org", link="")
        await db_session.flush()

        owner, created = await OwnerRepository(db_session).get_or_create(profile())

        assert created is False
        assert owner.id == existing.id
        assert owner.link == "https://github.com/octo-org"
