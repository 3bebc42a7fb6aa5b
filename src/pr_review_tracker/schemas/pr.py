"""Pydantic schemas for PullRequest model."""

from datetime import datetime

from pydantic import Field, model_validator

from pr_review_tracker.utils import parse_pr_number

from .base import SchemaBase
from .enums import ReviewStatus


class PRSnapshot(SchemaBase):
    """Core PR fields as observed upstream during one sync."""

    github_id: int = Field(description="GitHub PR ID (reconciliation key)")
    title: str = Field(max_length=500, description="PR title")
    body: str | None = Field(default=None, description="PR body/description")
    link: str | None = Field(default=None, max_length=500, description="GitHub PR URL")
    number: int | None = Field(default=None, gt=0, description="PR number (repository-scoped)")
    is_open: bool = Field(default=True, description="PR is open")
    is_merged: bool = Field(default=False, description="PR was merged")
    opened_at: datetime = Field(description="When the PR was opened (UTC)")
    last_update_date: datetime | None = Field(
        default=None, description="Last update timestamp from GitHub (UTC)"
    )

    @model_validator(mode="after")
    def _number_from_link(self) -> "PRSnapshot":
        """Extract the PR number from the link when not supplied directly."""
        if self.number is None:
            self.number = parse_pr_number(self.link)
        return self


class PRRead(SchemaBase):
    """Schema for reading stored PR data."""

    id: int
    github_id: int
    author_id: int
    repository_id: int

    title: str
    body: str | None
    link: str | None
    number: int | None
    is_open: bool
    is_merged: bool
    opened_at: datetime
    last_update_date: datetime | None

    review_status: ReviewStatus
    review_started_at: datetime | None
    reviewers: list[str]
    review_comments_count: int

    created_at: datetime
    updated_at: datetime
