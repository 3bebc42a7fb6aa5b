"""Result objects for sync operations.

Structured results provide consistent interfaces for monitoring,
error handling, and CLI output.
"""

from dataclasses import dataclass, field

from pr_review_tracker.db.models import PullRequest


@dataclass
class PRSyncResult:
    """Result of syncing a single PR.

    Captures what happened to one search result: created, updated,
    left unchanged, skipped or failed.
    """

    link: str | None
    """Upstream PR link (identifies the PR even when nothing was stored)."""

    pr: PullRequest | None = None
    """The stored PR (None if skipped or failed before writing)."""

    created: bool = False
    """True if a new PR was created."""

    changed_fields: list[str] = field(default_factory=list)
    """Names of fields rewritten on an existing PR."""

    skipped_reason: str | None = None
    """Why the PR was skipped, if it was."""

    error: Exception | None = None
    """Exception if the PR could not be synced."""

    @property
    def success(self) -> bool:
        """Check if the PR was synced without error."""
        return self.error is None and self.skipped_reason is None

    @property
    def updated(self) -> bool:
        """True if an existing PR had fields rewritten."""
        return not self.created and bool(self.changed_fields)

    @property
    def action(self) -> str:
        """Human-readable description of the action taken."""
        if self.error is not None:
            return "error"
        if self.skipped_reason is not None:
            return f"skipped ({self.skipped_reason})"
        if self.created:
            return "created"
        if self.changed_fields:
            return "updated"
        return "unchanged"

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, object] = {
            "link": self.link,
            "action": self.action,
            "created": self.created,
            "changed_fields": list(self.changed_fields),
        }

        if self.pr is not None:
            result["pr_id"] = self.pr.id
            result["review_status"] = self.pr.review_status.value

        if self.error is not None:
            result["error"] = str(self.error)
            result["error_type"] = type(self.error).__name__

        return result

    @classmethod
    def from_skipped(cls, link: str | None, reason: str) -> "PRSyncResult":
        """Create a result for a PR that was deliberately not stored."""
        return cls(link=link, skipped_reason=reason)

    @classmethod
    def from_error(cls, link: str | None, error: Exception) -> "PRSyncResult":
        """Create a result representing a failed PR."""
        return cls(link=link, error=error)


@dataclass
class UserSyncResult:
    """Aggregate result of syncing every candidate PR of one user."""

    login: str
    processed: int = 0
    created: int = 0
    updated: int = 0
    unchanged: int = 0
    skipped: int = 0
    failed: int = 0
    problems: list[PRSyncResult] = field(default_factory=list)
    """Skipped and failed PRs, in the order encountered."""

    def record(self, result: PRSyncResult) -> None:
        """Fold one PR result into the totals."""
        self.processed += 1
        if result.error is not None:
            self.failed += 1
            self.problems.append(result)
        elif result.skipped_reason is not None:
            self.skipped += 1
            self.problems.append(result)
        elif result.created:
            self.created += 1
        elif result.changed_fields:
            self.updated += 1
        else:
            self.unchanged += 1

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for JSON serialization."""
        return {
            "login": self.login,
            "pull_requests_processed": self.processed,
            "created": self.created,
            "updated": self.updated,
            "unchanged": self.unchanged,
            "skipped": self.skipped,
            "failed": self.failed,
            "problems": [
                {"link": p.link, "action": p.action, "error": str(p.error) if p.error else None}
                for p in self.problems
            ],
        }
