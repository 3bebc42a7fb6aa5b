"""Tests for database engine and session management."""

import pytest
from sqlalchemy import func, select, text

from pr_review_tracker.db.engine import create_tables, dispose_engine, get_session
from pr_review_tracker.db.models import Owner
from tests.factories import make_owner


class TestDatabaseEngine:
    """Tests for schema creation."""

    async def test_create_tables(self, test_engine):
        async with test_engine.connect() as conn:
            result = await conn.execute(text("SELECT name FROM sqlite_master WHERE type='table'"))
            tables = {row[0] for row in result.fetchall()}

        assert {"owners", "repositories", "users", "pull_requests"} <= tables

    async def test_review_index_exists(self, test_engine):
        async with test_engine.connect() as conn:
            result = await conn.execute(text("SELECT name FROM sqlite_master WHERE type='index'"))
            indexes = {row[0] for row in result.fetchall()}

        assert "ix_pull_requests_review" in indexes


class TestSessionScope:
    """Tests for the transactional session scope."""

    async def test_commits_on_success(self, scope):
        async with scope() as session:
            make_owner(session, login="committed")

        async with scope() as session:
            owner = (
                await session.execute(select(Owner).where(Owner.login == "committed"))
            ).scalar_one_or_none()
            assert owner is not None

    async def test_rolls_back_on_error(self, scope):
        with pytest.raises(ValueError):
            async with scope() as session:
                make_owner(session, login="discarded")
                await session.flush()
                raise ValueError("Simulated error")

        async with scope() as session:
            count = (await session.execute(select(func.count()).select_from(Owner))).scalar()
            assert count == 0

    async def test_released_savepoint_rolls_back_with_session(self, scope):
        with pytest.raises(ValueError):
            async with scope() as session:
                async with session.begin_nested():
                    make_owner(session, login="nested")
                raise ValueError("Simulated error")

        async with scope() as session:
            count = (await session.execute(select(func.count()).select_from(Owner))).scalar()
            assert count == 0


class TestFileBackedSession:
    """get_session() against the configured SQLite file."""

    @pytest.fixture
    async def file_database(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'tracker.db'}")
        await dispose_engine()
        await create_tables()
        yield
        await dispose_engine()

    async def test_released_savepoint_rolls_back_with_session(self, file_database):
        with pytest.raises(ValueError):
            async with get_session() as session:
                async with session.begin_nested():
                    make_owner(session, login="nested")
                raise ValueError("Simulated error")

        async with get_session() as session:
            count = (await session.execute(select(func.count()).select_from(Owner))).scalar()
            assert count == 0

    async def test_commits_on_success(self, file_database):
        async with get_session() as session:
            async with session.begin_nested():
                make_owner(session, login="kept")

        async with get_session() as session:
            owner = (
                await session.execute(select(Owner).where(Owner.login == "kept"))
            ).scalar_one_or_none()
            assert owner is not None
