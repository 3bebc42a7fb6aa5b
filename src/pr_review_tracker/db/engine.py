"""Async SQLAlchemy engine and session management."""

from collections.abc import AsyncGenerator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Any

from sqlalchemy import event, pool
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from pr_review_tracker.config import get_settings
from pr_review_tracker.db.models import Base

# Callable returning a transactional session scope (see get_session)
SessionScope = Callable[[], AbstractAsyncContextManager[AsyncSession]]

# Module-level engine instance (initialized lazily)
_engine: AsyncEngine | None = None
_async_session_factory: async_sessionmaker[AsyncSession] | None = None


def enable_sqlite_savepoints(engine: AsyncEngine) -> None:
    """Make SQLite transactions explicit so SAVEPOINTs nest inside them.

    The sqlite3 driver only opens a transaction on DML, so a SAVEPOINT
    issued first becomes the outermost transaction and its RELEASE commits.
    Disabling the driver's handling and emitting BEGIN ourselves keeps
    per-PR savepoints inside the session transaction.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN")


def get_engine() -> AsyncEngine:
    """Get or create the async SQLAlchemy engine."""
    global _engine
    if _engine is None:
        settings = get_settings()
        options: dict[str, object] = {"echo": False, "future": True}
        if settings.database_url.startswith("sqlite"):
            # File-backed SQLite: avoid "database is locked" across sessions
            options["poolclass"] = pool.NullPool
        else:
            options["pool_pre_ping"] = True
        _engine = create_async_engine(settings.database_url, **options)
        if settings.database_url.startswith("sqlite"):
            enable_sqlite_savepoints(_engine)
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get or create the async session factory."""
    global _async_session_factory
    if _async_session_factory is None:
        _async_session_factory = async_sessionmaker(
            bind=get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _async_session_factory


def session_scope(
    factory: async_sessionmaker[AsyncSession],
) -> SessionScope:
    """Build a transactional session scope over an explicit session factory.

    The returned callable behaves like get_session() but uses ``factory``,
    which lets callers (and tests) point long-running services at a
    specific engine.

    Args:
        factory: Session factory to open sessions from

    Returns:
        Zero-argument callable returning an async context manager
    """

    @asynccontextmanager
    async def _scope() -> AsyncGenerator[AsyncSession, None]:
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    return _scope


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Get an async database session with automatic commit/rollback.

    Usage:
        async with get_session() as session:
            user = await UserRepository(session).get_by_login("octocat")
    """
    async with session_scope(get_session_factory())() as session:
        yield session


async def create_tables() -> None:
    """Create all database tables.

    Use this for testing or initial setup. In production, use Alembic migrations.
    """
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_tables() -> None:
    """Drop all database tables.

    WARNING: This will delete all data. Use only for testing.
    """
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def dispose_engine() -> None:
    """Dispose the engine and close all connections.

    Call this when shutting down the application.
    """
    global _engine, _async_session_factory
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _async_session_factory = None
