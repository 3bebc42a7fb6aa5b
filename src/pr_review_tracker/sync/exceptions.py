"""Sync and refresh exceptions."""

from typing import Any


class SyncError(Exception):
    """Base exception for sync failures."""

    pass


class MissingReferenceError(SyncError):
    """Raised when owner or repository details cannot be obtained.

    The affected PR is skipped; nothing is fabricated in its place.
    """

    pass


class UserNotFoundError(SyncError):
    """Raised when a login is not on the tracked roster."""

    pass


class RefreshAbortedError(SyncError):
    """Raised when a refresh run stops on a fatal (persistence) failure."""

    pass


class RefreshRejectedError(SyncError):
    """Raised by RefreshCoordinator.run() when a run may not start."""

    def __init__(self, reason: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(f"Refresh rejected: {reason}")
        self.reason = reason
        self.details = details or {}
