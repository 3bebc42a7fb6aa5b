"""SQLAlchemy ORM models for PR Review Tracker."""

from datetime import UTC, datetime

from sqlalchemy import (
    BigInteger,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    mapped_column,
    relationship,
)
from sqlalchemy.types import JSON

from pr_review_tracker.schemas.enums import UNRESOLVED_REVIEW_STATUSES, ReviewStatus

__all__ = [
    "UNRESOLVED_REVIEW_STATUSES",
    "Base",
    "Owner",
    "PullRequest",
    "Repository",
    "ReviewStatus",
    "User",
]


def _utcnow() -> datetime:
    # Naive UTC: columns are timezone-less
    return datetime.now(UTC).replace(tzinfo=None)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


# ------------------------------------------------------------------------------
# Owner model
# ------------------------------------------------------------------------------
class Owner(Base):
    """GitHub account (user or organization) that owns repositories."""

    __tablename__ = "owners"

    id: Mapped[int] = mapped_column(primary_key=True)
    github_id: Mapped[int | None] = mapped_column(BigInteger, unique=True, nullable=True)
    login: Mapped[str] = mapped_column(String(100), unique=True)  # e.g., "octocat"
    name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    type: Mapped[str | None] = mapped_column(String(50), nullable=True)  # "User" / "Organization"
    link: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)

    # Relationships
    repositories: Mapped[list["Repository"]] = relationship(back_populates="owner")

    def __repr__(self) -> str:
        return f"<Owner(id={self.id}, login='{self.login}')>"


# ------------------------------------------------------------------------------
# Repository model
# ------------------------------------------------------------------------------
class Repository(Base):
    """GitHub repository that received at least one tracked PR."""

    __tablename__ = "repositories"

    id: Mapped[int] = mapped_column(primary_key=True)
    github_id: Mapped[int | None] = mapped_column(BigInteger, unique=True, nullable=True)
    name: Mapped[str] = mapped_column(String(100))  # e.g., "hello-world"
    owner_id: Mapped[int] = mapped_column(ForeignKey("owners.id"))
    link: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Set manually; suppresses the repository from aggregation without deleting data
    is_flagged: Mapped[bool] = mapped_column(default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)

    # Relationships (Repository references its owner but does not own its lifecycle)
    owner: Mapped["Owner"] = relationship(back_populates="repositories", lazy="joined")
    pull_requests: Mapped[list["PullRequest"]] = relationship(back_populates="repository")

    # Unique constraint: one repository name per owner
    __table_args__ = (UniqueConstraint("name", "owner_id", name="uq_repo_name_owner"),)

    def __repr__(self) -> str:
        return f"<Repository(id={self.id}, name='{self.name}', owner_id={self.owner_id})>"

    @property
    def full_name(self) -> str:
        """Repository path in owner/name format."""
        return f"{self.owner.login}/{self.name}"


# ------------------------------------------------------------------------------
# User model
# ------------------------------------------------------------------------------
class User(Base):
    """Tracked contributor.

    Created by the onboarding/import process; only read by the sync core.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    github_id: Mapped[int | None] = mapped_column(BigInteger, unique=True, nullable=True)
    login: Mapped[str] = mapped_column(String(100), unique=True)
    name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    affiliation: Mapped[str | None] = mapped_column(String(200), nullable=True)  # college / org
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)

    # Relationships
    pull_requests: Mapped[list["PullRequest"]] = relationship(back_populates="author")

    def __repr__(self) -> str:
        return f"<User(id={self.id}, login='{self.login}')>"


# ------------------------------------------------------------------------------
# PullRequest model
# ------------------------------------------------------------------------------
class PullRequest(Base):
    """Tracked pull request with its derived review state."""

    __tablename__ = "pull_requests"

    # Primary key
    id: Mapped[int] = mapped_column(primary_key=True)

    # Reconciliation key: exactly one row per GitHub id
    github_id: Mapped[int] = mapped_column(BigInteger, unique=True)

    # Foreign keys
    author_id: Mapped[int] = mapped_column(ForeignKey("users.id"))
    repository_id: Mapped[int] = mapped_column(ForeignKey("repositories.id"))

    # --------------------------------------------------------------------------
    # Core fields
    # --------------------------------------------------------------------------
    title: Mapped[str] = mapped_column(String(500))
    body: Mapped[str | None] = mapped_column(Text, nullable=True)
    link: Mapped[str | None] = mapped_column(String(500), nullable=True)
    number: Mapped[int | None] = mapped_column(nullable=True)  # parsed from link
    is_open: Mapped[bool] = mapped_column(default=True)
    is_merged: Mapped[bool] = mapped_column(default=False)
    opened_at: Mapped[datetime] = mapped_column(DateTime)
    last_update_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    # --------------------------------------------------------------------------
    # Review tracking fields
    # --------------------------------------------------------------------------
    review_status: Mapped[ReviewStatus] = mapped_column(default=ReviewStatus.PENDING)
    review_started_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    reviewers: Mapped[list[str]] = mapped_column(JSON, default=list)
    review_comments_count: Mapped[int] = mapped_column(default=0)

    # --------------------------------------------------------------------------
    # Metadata
    # --------------------------------------------------------------------------
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, onupdate=_utcnow)

    # --------------------------------------------------------------------------
    # Relationships
    # --------------------------------------------------------------------------
    author: Mapped["User"] = relationship(back_populates="pull_requests")
    repository: Mapped["Repository"] = relationship(back_populates="pull_requests")

    __table_args__ = (
        Index("ix_pull_requests_review", "is_open", "review_status", "review_started_at"),
        Index("ix_pull_requests_author_id", "author_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<PullRequest(id={self.id}, github_id={self.github_id}, "
            f"status={self.review_status.value})>"
        )
