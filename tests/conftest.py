"""Pytest configuration and shared fixtures.

Usage Guide:
- For ORM model tests: import factories from tests.factories
- For GitHub payload parsing: use the dict factories (make_search_item, etc.)
- For services that open their own transactions: use the ``scope`` fixture
"""

from datetime import UTC, datetime

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from pr_review_tracker.config import get_settings
from pr_review_tracker.db.engine import enable_sqlite_savepoints, session_scope
from pr_review_tracker.db.models import Base

# -----------------------------------------------------------------------------
# Test Timeline Constants
#
# A fixed "test epoch" so timings in assertions are exact.
# -----------------------------------------------------------------------------

# Base dates (datetime objects for Pydantic/ORM)
JAN_10 = datetime(2024, 1, 10, 9, 0, 0, tzinfo=UTC)  # PR opened
JAN_10_LATE = datetime(2024, 1, 10, 11, 0, 0, tzinfo=UTC)  # First review (+2h)
JAN_11 = datetime(2024, 1, 11, 15, 0, 0, tzinfo=UTC)  # Review comment
JAN_12 = datetime(2024, 1, 12, 16, 0, 0, tzinfo=UTC)  # Second review / merge
JAN_20 = datetime(2024, 1, 20, 16, 0, 0, tzinfo=UTC)  # Later activity

# ISO 8601 strings (for GitHub API payloads)
JAN_10_ISO = "2024-01-10T09:00:00Z"
JAN_10_LATE_ISO = "2024-01-10T11:00:00Z"
JAN_11_ISO = "2024-01-11T15:00:00Z"
JAN_12_ISO = "2024-01-12T16:00:00Z"
JAN_20_ISO = "2024-01-20T16:00:00Z"


# -----------------------------------------------------------------------------
# Settings
# -----------------------------------------------------------------------------
@pytest.fixture(autouse=True)
def _clear_settings_cache():
    """Drop cached Settings so environment tweaks in a test take effect."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# -----------------------------------------------------------------------------
# Database Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
async def test_engine():
    """Create an in-memory SQLite engine for tests.

    Each test gets a fresh database with all tables created. StaticPool
    keeps a single connection so every session sees the same database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )
    enable_sqlite_savepoints(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    """Session factory bound to the test engine."""
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
async def db_session(session_factory):
    """Create an async session with auto-rollback.

    Changes are rolled back after each test to ensure isolation.
    """
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def scope(session_factory):
    """Transactional session scope (commit on success) over the test engine."""
    return session_scope(session_factory)
