"""PR Review Tracker - pull request review-health tracking for a roster of contributors."""

__version__ = "0.1.0"
