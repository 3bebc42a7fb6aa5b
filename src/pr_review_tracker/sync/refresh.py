"""Full-roster refresh coordination.

RefreshCoordinator runs at most one roster refresh at a time, enforces a
cooldown between completed runs and walks the roster sequentially with a
courtesy delay between users. A failing user is counted and logged; the
loop moves on. Only a lost database connection (or a roster that cannot
be loaded) aborts a run.

Job state lives in a private RefreshJob that only the coordinator's own
task mutates. Pollers get immutable RefreshStatus snapshots.
"""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

from pr_review_tracker.config import RefreshConfig, get_settings
from pr_review_tracker.db.engine import SessionScope
from pr_review_tracker.github.client import GitHubClient
from pr_review_tracker.logging import get_logger

from .engine import (
    FATAL_DB_ERRORS,
    RosterLoader,
    UserSyncer,
    make_roster_loader,
    make_user_syncer,
)
from .exceptions import RefreshAbortedError, RefreshRejectedError

logger = get_logger(__name__)

Clock = Callable[[], datetime]
Sleep = Callable[[float], Awaitable[None]]

REJECTED_RUNNING = "already_running"
REJECTED_COOLDOWN = "cooldown"


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class RefreshOutcome:
    """Outcome of syncing one user during a refresh."""

    login: str
    success: bool
    finished_at: datetime
    pull_requests_processed: int = 0
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "login": self.login,
            "success": self.success,
            "finished_at": self.finished_at.isoformat(),
            "pull_requests_processed": self.pull_requests_processed,
            "error": self.error,
        }


@dataclass(frozen=True)
class RefreshStatus:
    """Point-in-time copy of the refresh job for progress pollers."""

    running: bool
    total: int
    processed: int
    success_count: int
    error_count: int
    current_user: str | None
    started_at: datetime | None
    last_completed_at: datetime | None
    last_error: str | None
    recent: tuple[RefreshOutcome, ...]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "running": self.running,
            "total": self.total,
            "processed": self.processed,
            "success_count": self.success_count,
            "error_count": self.error_count,
            "current_user": self.current_user,
            "started_at": _iso(self.started_at),
            "last_completed_at": _iso(self.last_completed_at),
            "last_error": self.last_error,
            "recent": [outcome.to_dict() for outcome in self.recent],
        }


@dataclass(frozen=True)
class RefreshStartResult:
    """Answer to a refresh trigger."""

    accepted: bool
    reason: str | None = None
    cooldown_remaining: timedelta | None = None
    status: RefreshStatus | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {"accepted": self.accepted}
        if self.reason is not None:
            result["reason"] = self.reason
        if self.cooldown_remaining is not None:
            result["cooldown_remaining_seconds"] = round(self.cooldown_remaining.total_seconds())
        if self.status is not None:
            result["status"] = self.status.to_dict()
        return result


@dataclass
class RefreshJob:
    """Mutable job record, owned by exactly one RefreshCoordinator."""

    recent_log_size: int
    running: bool = False
    total: int = 0
    processed: int = 0
    success_count: int = 0
    error_count: int = 0
    current_user: str | None = None
    started_at: datetime | None = None
    last_completed_at: datetime | None = None
    last_error: str | None = None
    recent: deque[RefreshOutcome] = field(init=False, default_factory=deque)

    def __post_init__(self) -> None:
        self.recent = deque(maxlen=self.recent_log_size)

    def reset(self, started_at: datetime) -> None:
        """Clear progress for a new run (completion time is kept)."""
        self.running = True
        self.total = 0
        self.processed = 0
        self.success_count = 0
        self.error_count = 0
        self.current_user = None
        self.started_at = started_at
        self.last_error = None
        self.recent.clear()

    def snapshot(self) -> RefreshStatus:
        """Copy the current state."""
        return RefreshStatus(
            running=self.running,
            total=self.total,
            processed=self.processed,
            success_count=self.success_count,
            error_count=self.error_count,
            current_user=self.current_user,
            started_at=self.started_at,
            last_completed_at=self.last_completed_at,
            last_error=self.last_error,
            recent=tuple(self.recent),
        )


class RefreshCoordinator:
    """Runs full-roster refreshes one at a time, with a cooldown.

    Usage:
        coordinator = RefreshCoordinator.create(client, get_session)
        result = coordinator.start()       # non-blocking
        status = coordinator.status()      # poll progress

    Or to run in the foreground (CLI):
        status = await coordinator.run()
    """

    def __init__(
        self,
        sync_user: UserSyncer,
        load_roster: RosterLoader,
        *,
        config: RefreshConfig | None = None,
        clock: Clock = _utcnow,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        """Initialize the coordinator.

        Args:
            sync_user: Syncs one login (in its own transaction)
            load_roster: Returns the tracked logins
            config: Cooldown, delay and log size (settings if None)
            clock: Returns the current UTC time
            sleep: Awaitable used for the between-user delay
        """
        self._sync_user = sync_user
        self._load_roster = load_roster
        self._config = config or get_settings().refresh
        self._clock = clock
        self._sleep = sleep
        self._job = RefreshJob(recent_log_size=self._config.recent_log_size)
        self._task: asyncio.Task[None] | None = None

    @classmethod
    def create(
        cls,
        client: GitHubClient,
        scope: SessionScope,
        **kwargs: Any,
    ) -> RefreshCoordinator:
        """Build a coordinator that syncs users with UserSyncService."""
        return cls(make_user_syncer(client, scope), make_roster_loader(scope), **kwargs)

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def status(self) -> RefreshStatus:
        """Get a snapshot of the current (or last) run."""
        return self._job.snapshot()

    def start(self) -> RefreshStartResult:
        """Trigger a refresh in the background if allowed.

        Never blocks: the run is scheduled as an asyncio task on the
        running loop, and progress is read via status().

        Returns:
            RefreshStartResult; rejected results carry the reason and,
            for a cooldown, the remaining wait
        """
        # Raises before the job is touched when called outside a loop
        loop = asyncio.get_running_loop()
        decision = self._admit()
        if decision.accepted:
            self._task = loop.create_task(self._run_in_background())
        return decision

    async def run(self) -> RefreshStatus:
        """Run a refresh to completion in the foreground.

        Returns:
            Final status snapshot

        Raises:
            RefreshRejectedError: Already running or cooling down
            RefreshAbortedError: A fatal error stopped the run
        """
        decision = self._admit()
        if not decision.accepted:
            assert decision.reason is not None
            raise RefreshRejectedError(decision.reason, decision.to_dict())
        await self._execute()
        return self.status()

    async def wait(self) -> None:
        """Wait for a background run started by start(), if any."""
        if self._task is not None:
            await self._task

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _cooldown_remaining(self) -> timedelta | None:
        last = self._job.last_completed_at
        if last is None:
            return None
        remaining = last + self._config.cooldown - self._clock()
        return remaining if remaining > timedelta(0) else None

    def _admit(self) -> RefreshStartResult:
        """Check the gates and, if open, mark the job running."""
        if self._job.running:
            return RefreshStartResult(False, REJECTED_RUNNING, status=self.status())

        remaining = self._cooldown_remaining()
        if remaining is not None:
            return RefreshStartResult(False, REJECTED_COOLDOWN, remaining, self.status())

        self._job.reset(self._clock())
        return RefreshStartResult(True, status=self.status())

    async def _run_in_background(self) -> None:
        try:
            await self._execute()
        except RefreshAbortedError as e:
            logger.error("Background refresh aborted: {}", e)

    async def _execute(self) -> None:
        job = self._job
        try:
            await self._sync_roster()
        finally:
            job.running = False
            job.current_user = None

        job.last_completed_at = self._clock()
        logger.info(
            "Refresh complete: {} succeeded, {} failed", job.success_count, job.error_count
        )

    async def _sync_roster(self) -> None:
        job = self._job

        try:
            roster = await self._load_roster()
        except Exception as e:
            self._abort(e)
            raise RefreshAbortedError(f"Could not load roster: {e}") from e

        job.total = len(roster)
        logger.info("Refreshing {} users", job.total)

        for index, login in enumerate(roster):
            if index > 0 and self._config.user_delay_seconds > 0:
                await self._sleep(self._config.user_delay_seconds)

            job.current_user = login
            try:
                result = await self._sync_user(login)
            except FATAL_DB_ERRORS as e:
                self._abort(e)
                raise RefreshAbortedError(f"Database unavailable while syncing {login}: {e}") from e
            except Exception as e:
                logger.error("Refresh of {} failed: {}", login, e)
                job.error_count += 1
                job.recent.append(
                    RefreshOutcome(login, success=False, finished_at=self._clock(), error=str(e))
                )
            else:
                job.success_count += 1
                job.recent.append(
                    RefreshOutcome(
                        login,
                        success=True,
                        finished_at=self._clock(),
                        pull_requests_processed=result.processed,
                    )
                )
            job.processed += 1

    def _abort(self, error: Exception) -> None:
        logger.error("Refresh aborted: {}", error)
        self._job.last_error = str(error)
