"""Database module for PR Review Tracker."""

from pr_review_tracker.db.engine import (
    SessionScope,
    create_tables,
    dispose_engine,
    drop_tables,
    get_engine,
    get_session,
    get_session_factory,
    session_scope,
)
from pr_review_tracker.db.models import (
    Base,
    Owner,
    PullRequest,
    Repository,
    ReviewStatus,
    User,
)
from pr_review_tracker.db.repositories import (
    BaseRepository,
    OwnerRepository,
    PullRequestRepository,
    RepositoryRepository,
    UserRepository,
)

__all__ = [
    # Models
    "Base",
    "Owner",
    "PullRequest",
    "Repository",
    "ReviewStatus",
    "User",
    # Engine
    "SessionScope",
    "create_tables",
    "dispose_engine",
    "drop_tables",
    "get_engine",
    "get_session",
    "get_session_factory",
    "session_scope",
    # Repositories
    "BaseRepository",
    "OwnerRepository",
    "PullRequestRepository",
    "RepositoryRepository",
    "UserRepository",
]
