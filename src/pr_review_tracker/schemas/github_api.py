"""Pydantic schemas for parsing GitHub API responses.

These schemas map to the GitHub REST API response structure. Unknown
fields are ignored so the upstream schema may evolve freely.
See: https://docs.github.com/en/rest/search/search#search-issues-and-pull-requests
"""

from datetime import datetime

from pydantic import BaseModel, Field

from .pr import PRSnapshot


class GitHubAccount(BaseModel):
    """GitHub user or organization object from API responses."""

    login: str = Field(description="GitHub username")
    id: int = Field(description="GitHub account ID")
    type: str = Field(default="User", description="Account type (User, Organization, Bot)")
    name: str | None = Field(default=None, description="Display name (profile endpoints only)")
    html_url: str | None = Field(default=None, description="Profile URL")
    avatar_url: str | None = Field(default=None, description="Avatar URL")


class GitHubRepositoryProfile(BaseModel):
    """GitHub repository object from the repository endpoint."""

    id: int = Field(description="Repository ID")
    name: str = Field(description="Repository name")
    full_name: str | None = Field(default=None, description="owner/name path")
    html_url: str | None = Field(default=None, description="Repository URL")
    owner: GitHubAccount | None = Field(default=None, description="Owning account")


class GitHubReview(BaseModel):
    """GitHub review object from the reviews endpoint."""

    id: int = Field(description="Review ID")
    user: GitHubAccount | None = Field(default=None, description="Reviewer (None for ghosts)")
    state: str = Field(description="Review state (APPROVED, CHANGES_REQUESTED, COMMENTED, etc.)")
    submitted_at: datetime | None = Field(default=None, description="When review was submitted")


class GitHubReviewComment(BaseModel):
    """GitHub inline review comment from the review comments endpoint."""

    id: int = Field(description="Comment ID")
    user: GitHubAccount | None = Field(default=None, description="Comment author")
    created_at: datetime | None = Field(default=None, description="When comment was created")


class GitHubTeam(BaseModel):
    """GitHub team reference (requested team reviewers)."""

    id: int = Field(description="Team ID")
    slug: str = Field(description="Team slug")


class GitHubRequestedReviewers(BaseModel):
    """Requested reviewers object from the requested_reviewers endpoint."""

    users: list[GitHubAccount] = Field(default_factory=list, description="Requested users")
    teams: list[GitHubTeam] = Field(default_factory=list, description="Requested teams")


class GitHubPullRequestRef(BaseModel):
    """The ``pull_request`` sub-object attached to PR search results."""

    url: str | None = Field(default=None, description="API URL of the pull request resource")
    html_url: str | None = Field(default=None, description="Web URL of the pull request")
    merged_at: datetime | None = Field(default=None, description="When the PR was merged")


class SearchPullRequest(BaseModel):
    """Pull request summary from the issue search endpoint.

    Maps to: GET /search/issues?q=type:pr+author:{login}
    """

    id: int = Field(description="GitHub issue/PR ID (reconciliation key)")
    number: int | None = Field(default=None, description="PR number")
    title: str = Field(description="PR title")
    body: str | None = Field(default=None, description="PR description")
    state: str = Field(description="PR state (open, closed)")
    html_url: str | None = Field(default=None, description="GitHub PR URL")
    repository_url: str = Field(description="API URL of the target repository")
    created_at: datetime = Field(description="When PR was created")
    updated_at: datetime | None = Field(default=None, description="Last update timestamp")
    closed_at: datetime | None = Field(default=None, description="When PR was closed")
    pull_request: GitHubPullRequestRef | None = Field(
        default=None, description="Pull request sub-resource links"
    )

    @property
    def repo_owner(self) -> str:
        """Repository owner parsed from repository_url."""
        return self.repository_url.rstrip("/").split("/")[-2]

    @property
    def repo_name(self) -> str:
        """Repository name parsed from repository_url."""
        return self.repository_url.rstrip("/").split("/")[-1]

    @property
    def is_open(self) -> bool:
        """Whether the PR is still open."""
        return self.state == "open"

    @property
    def merge_status_url(self) -> str | None:
        """API URL to confirm merge status, if present."""
        return self.pull_request.url if self.pull_request else None

    @property
    def merged_at(self) -> datetime | None:
        """Merge timestamp reported inline by search (may be absent)."""
        return self.pull_request.merged_at if self.pull_request else None

    def to_snapshot(self, *, merged: bool) -> PRSnapshot:
        """
        Factory method to convert to the PRSnapshot schema.

        Args:
            merged: Confirmed merge status (from the PR resource endpoint)

        Returns:
            PRSnapshot with the PR's core fields
        """
        link = self.html_url or (self.pull_request.html_url if self.pull_request else None)
        return PRSnapshot(
            github_id=self.id,
            title=self.title,
            body=self.body,
            link=link,
            number=self.number,
            is_open=self.is_open,
            is_merged=merged or self.merged_at is not None,
            opened_at=self.created_at,
            last_update_date=self.updated_at,
        )
