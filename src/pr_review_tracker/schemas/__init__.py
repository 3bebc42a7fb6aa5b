"""Pydantic schemas for PR Review Tracker.

GitHub API payload models (unknown fields ignored) and internal snapshots.
"""

from .base import SchemaBase
from .github_api import (
    GitHubAccount,
    GitHubPullRequestRef,
    GitHubRepositoryProfile,
    GitHubRequestedReviewers,
    GitHubReview,
    GitHubReviewComment,
    GitHubTeam,
    SearchPullRequest,
)
from .pr import PRRead, PRSnapshot

__all__ = [
    # GitHub API
    "GitHubAccount",
    "GitHubPullRequestRef",
    "GitHubRepositoryProfile",
    "GitHubRequestedReviewers",
    "GitHubReview",
    "GitHubReviewComment",
    "GitHubTeam",
    "SearchPullRequest",
    # PR
    "PRRead",
    "PRSnapshot",
    # Base
    "SchemaBase",
]
