"""GitHub API client module.

This module provides:
- GitHubClient: Async GitHub API client with retry/backoff and safe defaults
- Exception hierarchy for GitHub failures
"""

from .client import GitHubClient, ReviewData
from .exceptions import (
    GitHubAuthenticationError,
    GitHubClientError,
    GitHubNotFoundError,
    GitHubRateLimitError,
    GitHubRetryableError,
)

__all__ = [
    # Client
    "GitHubClient",
    "ReviewData",
    # Exceptions
    "GitHubAuthenticationError",
    "GitHubClientError",
    "GitHubNotFoundError",
    "GitHubRateLimitError",
    "GitHubRetryableError",
]
