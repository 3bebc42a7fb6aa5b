"""Review state classification."""

from .resolver import ReviewState, resolve_review_state

__all__ = ["ReviewState", "resolve_review_state"]
