"""Async GitHub API client wrapper using githubkit.

This module provides a typed async interface to the GitHub REST API for
author PR search, profile lookups and per-PR review data. It owns the
retry policy: rate limit and transient failures are retried with
exponential backoff, and once retries are exhausted each call degrades to
a safe default (empty list, False, None) instead of raising.
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import AsyncIterator, Awaitable, Callable
from datetime import UTC, datetime
from typing import Any, TypeVar

from githubkit import GitHub
from githubkit.exception import RequestError, RequestFailed, RequestTimeout
from pydantic import ValidationError

from pr_review_tracker.config import GitHubConfig, get_settings
from pr_review_tracker.logging import get_logger
from pr_review_tracker.schemas.github_api import (
    GitHubAccount,
    GitHubRepositoryProfile,
    GitHubRequestedReviewers,
    GitHubReview,
    GitHubReviewComment,
    SearchPullRequest,
)

from .exceptions import (
    GitHubAuthenticationError,
    GitHubClientError,
    GitHubNotFoundError,
    GitHubRateLimitError,
    GitHubRetryableError,
)

logger = get_logger(__name__)

T = TypeVar("T")

# https://api.github.com/repos/{owner}/{repo}/pulls/{number}
PULL_API_URL_PATTERN = re.compile(r"/repos/([^/]+)/([^/]+)/pulls/(\d+)")

ReviewData = tuple[list[GitHubReview], list[GitHubReviewComment], GitHubRequestedReviewers]


class GitHubClient:
    """Async GitHub API client for tracked-user PR data.

    Usage:
        async with GitHubClient() as client:
            async for pr in client.iter_user_pull_requests("octocat", since):
                print(pr.title)
    """

    def __init__(
        self,
        token: str | None = None,
        *,
        config: GitHubConfig | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the GitHub client.

        Args:
            token: GitHub PAT. If not provided, uses GITHUB_TOKEN from settings.
            config: Pagination/retry configuration (settings if None)
            sleep: Awaitable used for backoff waits (injectable for tests)

        Raises:
            GitHubAuthenticationError: If no token is available.
        """
        settings = get_settings()
        self._token = token or settings.github_token
        if not self._token:
            raise GitHubAuthenticationError(
                "GitHub token required. Set GITHUB_TOKEN environment variable."
            )
        self._config = config or settings.github
        self._sleep = sleep
        self._client: GitHub[Any] | None = None

    @property
    def _github(self) -> GitHub[Any]:
        """Get or create the githubkit client instance.

        githubkit's own retrying is disabled; _request_with_retry owns it.
        """
        if self._client is None:
            self._client = GitHub(self._token, auto_retry=False)
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            self._client = None

    async def __aenter__(self) -> GitHubClient:
        """Async context manager entry."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Async context manager exit."""
        await self.close()

    # -------------------------------------------------------------------------
    # Search
    # -------------------------------------------------------------------------
    @staticmethod
    def build_search_query(login: str, since: datetime, until: datetime | None = None) -> str:
        """Build the issue-search query for PRs authored by ``login``."""
        start = since.strftime("%Y-%m-%d")
        if until is None:
            created = f">={start}"
        else:
            created = f"{start}..{until.strftime('%Y-%m-%d')}"
        return f"author:{login} is:pr created:{created}"

    async def iter_user_pull_requests(
        self,
        login: str,
        since: datetime,
        until: datetime | None = None,
    ) -> AsyncIterator[SearchPullRequest]:
        """Iterate over PRs authored by ``login`` created within the window.

        Pages are fetched lazily until a short page or the page ceiling.
        Each call starts again from page one. A page that still fails after
        retries ends the sequence; it is logged, not raised.

        Args:
            login: GitHub username of the author
            since: Window start (inclusive, date precision)
            until: Optional window end (inclusive, date precision)

        Yields:
            SearchPullRequest summaries
        """
        query = self.build_search_query(login, since, until)
        per_page = self._config.per_page

        for page in range(1, self._config.max_pages + 1):
            try:
                resp = await self._request_with_retry(
                    lambda page=page: self._github.rest.search.async_issues_and_pull_requests(
                        q=query,
                        per_page=per_page,
                        page=page,
                    ),
                    f"search {query!r} page {page}",
                )
            except GitHubClientError as e:
                logger.error("PR search for {} failed on page {}: {}", login, page, e)
                return

            items = list(resp.parsed_data.items)
            for item in items:
                try:
                    yield SearchPullRequest.model_validate(item.model_dump())
                except ValidationError as e:
                    logger.warning("Skipping malformed search result for {}: {}", login, e)

            if len(items) < per_page:
                return

        logger.warning("PR search for {} hit the {}-page ceiling", login, self._config.max_pages)

    # -------------------------------------------------------------------------
    # Pull Request Resource
    # -------------------------------------------------------------------------
    async def get_merge_status(self, url: str | None) -> bool:
        """Confirm whether the PR behind an API URL was merged.

        Returns False for a missing/unparseable URL or on any error:
        absence of confirmation is not proof of merge.
        """
        match = PULL_API_URL_PATTERN.search(url or "")
        if match is None:
            return False
        owner, repo, number = match.group(1), match.group(2), int(match.group(3))

        try:
            resp = await self._request_with_retry(
                lambda: self._github.rest.pulls.async_get(
                    owner=owner,
                    repo=repo,
                    pull_number=number,
                ),
                f"merge status {owner}/{repo}#{number}",
            )
        except GitHubClientError as e:
            logger.warning("Merge status for {}/{}#{} unavailable: {}", owner, repo, number, e)
            return False
        return bool(resp.parsed_data.merged)

    # -------------------------------------------------------------------------
    # Profiles
    # -------------------------------------------------------------------------
    async def get_owner(self, login: str) -> GitHubAccount | None:
        """Get owner (user or organization) details, or None on failure."""
        return await self._get_account(login, "owner")

    async def get_user(self, login: str) -> GitHubAccount | None:
        """Get user profile details, or None on failure."""
        return await self._get_account(login, "user")

    async def _get_account(self, login: str, kind: str) -> GitHubAccount | None:
        try:
            resp = await self._request_with_retry(
                lambda: self._github.rest.users.async_get_by_username(username=login),
                f"{kind} {login}",
            )
            return GitHubAccount.model_validate(resp.parsed_data.model_dump())
        except (GitHubClientError, ValidationError) as e:
            logger.warning("Could not fetch {} details for {}: {}", kind, login, e)
            return None

    async def get_repository(self, owner: str, name: str) -> GitHubRepositoryProfile | None:
        """Get repository details, or None on failure."""
        try:
            resp = await self._request_with_retry(
                lambda: self._github.rest.repos.async_get(owner=owner, repo=name),
                f"repository {owner}/{name}",
            )
            return GitHubRepositoryProfile.model_validate(resp.parsed_data.model_dump())
        except (GitHubClientError, ValidationError) as e:
            logger.warning("Could not fetch repository {}/{}: {}", owner, name, e)
            return None

    # -------------------------------------------------------------------------
    # Review Data
    # -------------------------------------------------------------------------
    async def list_reviews(self, owner: str, repo: str, number: int) -> list[GitHubReview]:
        """Get submitted reviews for a PR (empty on failure)."""
        return await self._list_paginated(
            self._github.rest.pulls.async_list_reviews,
            GitHubReview,
            owner,
            repo,
            number,
            "reviews",
        )

    async def list_review_comments(
        self, owner: str, repo: str, number: int
    ) -> list[GitHubReviewComment]:
        """Get inline review comments for a PR (empty on failure)."""
        return await self._list_paginated(
            self._github.rest.pulls.async_list_review_comments,
            GitHubReviewComment,
            owner,
            repo,
            number,
            "review comments",
        )

    async def list_requested_reviewers(
        self, owner: str, repo: str, number: int
    ) -> GitHubRequestedReviewers:
        """Get currently requested reviewers for a PR (empty on failure)."""
        try:
            resp = await self._request_with_retry(
                lambda: self._github.rest.pulls.async_list_requested_reviewers(
                    owner=owner,
                    repo=repo,
                    pull_number=number,
                ),
                f"requested reviewers {owner}/{repo}#{number}",
            )
            return GitHubRequestedReviewers.model_validate(resp.parsed_data.model_dump())
        except (GitHubClientError, ValidationError) as e:
            logger.warning(
                "Requested reviewers for {}/{}#{} unavailable: {}", owner, repo, number, e
            )
            return GitHubRequestedReviewers()

    async def get_review_data(self, owner: str, repo: str, number: int) -> ReviewData:
        """Fetch reviews, review comments and requested reviewers concurrently.

        Returns:
            Tuple of (reviews, comments, requested_reviewers); each part
            degrades to empty independently
        """
        reviews, comments, requested = await asyncio.gather(
            self.list_reviews(owner, repo, number),
            self.list_review_comments(owner, repo, number),
            self.list_requested_reviewers(owner, repo, number),
        )
        return reviews, comments, requested

    async def _list_paginated(
        self,
        method: Callable[..., Any],
        schema: type[T],
        owner: str,
        repo: str,
        number: int,
        what: str,
    ) -> list[T]:
        async def collect() -> list[T]:
            items: list[T] = []
            data: Any
            async for data in self._github.paginate(
                method,
                owner=owner,
                repo=repo,
                pull_number=number,
                per_page=self._config.per_page,
            ):
                try:
                    items.append(schema.model_validate(data.model_dump()))  # type: ignore[attr-defined]
                except ValidationError:
                    continue
            return items

        try:
            return await self._request_with_retry(collect, f"{what} {owner}/{repo}#{number}")
        except GitHubClientError as e:
            logger.warning("{} for {}/{}#{} unavailable: {}", what.capitalize(), owner, repo, number, e)
            return []

    # -------------------------------------------------------------------------
    # Retry / Error Handling
    # -------------------------------------------------------------------------
    async def _request_with_retry(self, call: Callable[[], Awaitable[T]], description: str) -> T:
        """Run ``call``, retrying rate limit and transient failures.

        Args:
            call: Zero-argument coroutine factory performing one attempt
            description: Human-readable request name for logs

        Returns:
            The call's result

        Raises:
            GitHubClientError: Non-retryable failure, or retries exhausted
        """
        attempt = 0
        while True:
            try:
                return await call()
            except RequestFailed as e:
                error = self._handle_error(e)
                cause: Exception = e
            except (RequestError, RequestTimeout) as e:
                error = GitHubRetryableError(f"Network error: {e}")
                cause = e

            if not isinstance(error, GitHubRetryableError) or attempt >= self._config.max_retries:
                raise error from cause

            delay = self._backoff_delay(attempt, error)
            attempt += 1
            logger.warning(
                "{} failed ({}); retry {}/{} in {:.1f}s",
                description,
                error,
                attempt,
                self._config.max_retries,
                delay,
            )
            await self._sleep(delay)

    def _backoff_delay(self, attempt: int, error: GitHubRetryableError) -> float:
        """Delay before the next attempt, honouring server hints."""
        delay = self._config.backoff_base_seconds * (2**attempt)
        if error.retry_after is not None:
            delay = error.retry_after
        elif isinstance(error, GitHubRateLimitError) and error.reset_at is not None:
            delay = max((error.reset_at - datetime.now(UTC)).total_seconds(), delay)
        return min(delay, self._config.max_backoff_seconds)

    def _handle_error(self, error: RequestFailed) -> GitHubClientError:
        """Convert githubkit exceptions to our custom exceptions."""
        status = error.response.status_code
        headers = error.response.headers
        retry_after = _parse_retry_after(headers.get("retry-after"))

        if status == 401:
            return GitHubAuthenticationError("Invalid GitHub token")
        elif status in (403, 429):
            # Primary limit: quota exhausted; secondary limit: retry-after
            remaining = headers.get("x-ratelimit-remaining")
            if status == 429 or retry_after is not None or remaining == "0":
                reset_ts = int(headers.get("x-ratelimit-reset", "0") or 0)
                reset_at = datetime.fromtimestamp(reset_ts, tz=UTC) if reset_ts else None
                return GitHubRateLimitError(
                    "GitHub rate limit exceeded",
                    reset_at=reset_at,
                    retry_after=retry_after,
                )
            return GitHubClientError(f"Access forbidden: {error}")
        elif status == 404:
            return GitHubNotFoundError(str(error))
        elif status >= 500:
            return GitHubRetryableError(f"GitHub server error ({status})", retry_after)
        else:
            return GitHubClientError(f"GitHub API error ({status}): {error}")


def _parse_retry_after(value: str | None) -> float | None:
    if not value:
        return None
    try:
        return max(float(value), 0.0)
    except ValueError:
        return None
