"""Enums shared by the ORM models and schemas."""

from enum import Enum


class ReviewStatus(str, Enum):
    """Review progress classification of a pull request.

    Recomputed from scratch on every sync, so it may move in any direction.
    """

    PENDING = "pending"
    IN_REVIEW = "in_review"
    APPROVED = "approved"
    CHANGES_REQUESTED = "changes_requested"
    MERGED = "merged"


# Statuses that count as "waiting on review" for bottleneck detection
UNRESOLVED_REVIEW_STATUSES = (ReviewStatus.IN_REVIEW, ReviewStatus.CHANGES_REQUESTED)
