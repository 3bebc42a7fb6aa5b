"""Revalidate a tracked user when GitHub reports PR activity.

Only the effect of a delivery is handled here; verifying the webhook
signature is the receiving endpoint's job.
"""

from collections.abc import Mapping
from typing import Any

from pr_review_tracker.db.engine import SessionScope
from pr_review_tracker.db.repositories import UserRepository
from pr_review_tracker.github.client import GitHubClient
from pr_review_tracker.logging import get_logger

from .engine import UserSyncService
from .results import UserSyncResult

logger = get_logger(__name__)

PULL_REQUEST_EVENT = "pull_request"


def pull_request_author(payload: Mapping[str, Any]) -> str | None:
    """Extract the PR author's login from a pull_request event payload."""
    pull_request = payload.get("pull_request")
    if not isinstance(pull_request, Mapping):
        return None
    user = pull_request.get("user")
    if not isinstance(user, Mapping):
        return None
    login = user.get("login")
    return login if isinstance(login, str) and login else None


class WebhookRevalidator:
    """Re-sync the author of a pull_request event if they are tracked."""

    def __init__(self, client: GitHubClient, scope: SessionScope) -> None:
        """Initialize the revalidator.

        Args:
            client: GitHub API client
            scope: Transactional session scope for the sync
        """
        self._client = client
        self._scope = scope

    async def handle_pull_request_event(
        self,
        event: str,
        payload: Mapping[str, Any],
    ) -> UserSyncResult | None:
        """Handle one webhook delivery.

        Args:
            event: Value of the X-GitHub-Event header
            payload: Decoded JSON body

        Returns:
            The sync result, or None when the delivery was ignored
        """
        if event != PULL_REQUEST_EVENT:
            logger.debug("Ignoring {} event", event)
            return None

        login = pull_request_author(payload)
        if login is None:
            logger.warning("pull_request event without an author login")
            return None

        async with self._scope() as session:
            user = await UserRepository(session).get_by_login(login)
            if user is None:
                logger.debug("Ignoring PR by untracked user {}", login)
                return None

            logger.info(
                "Revalidating {} after pull_request {}", login, payload.get("action", "event")
            )
            return await UserSyncService(self._client, session).sync_user(user)
