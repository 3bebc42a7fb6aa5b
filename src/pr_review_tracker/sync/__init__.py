"""Sync module: per-user reconciliation, review refresh and roster refresh."""

from .engine import UserSyncService, make_roster_loader, make_user_syncer
from .exceptions import (
    MissingReferenceError,
    RefreshAbortedError,
    RefreshRejectedError,
    SyncError,
    UserNotFoundError,
)
from .refresh import (
    RefreshCoordinator,
    RefreshOutcome,
    RefreshStartResult,
    RefreshStatus,
)
from .results import PRSyncResult, UserSyncResult
from .reviews import ReviewRefreshService, ReviewRefreshSummary
from .webhook import WebhookRevalidator

__all__ = [
    # Services
    "ReviewRefreshService",
    "UserSyncService",
    "WebhookRevalidator",
    "make_roster_loader",
    "make_user_syncer",
    # Refresh
    "RefreshCoordinator",
    "RefreshOutcome",
    "RefreshStartResult",
    "RefreshStatus",
    # Results
    "PRSyncResult",
    "ReviewRefreshSummary",
    "UserSyncResult",
    # Exceptions
    "MissingReferenceError",
    "RefreshAbortedError",
    "RefreshRejectedError",
    "SyncError",
    "UserNotFoundError",
]
