"""Small shared helpers."""

import re
from datetime import UTC, datetime

PR_NUMBER_PATTERN = re.compile(r"/pull/(\d+)")


def ensure_utc(value: datetime | None) -> datetime | None:
    """Return ``value`` as a timezone-aware UTC datetime.

    SQLite hands back naive datetimes; everything stored is UTC, so a
    naive value is interpreted as UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def to_naive_utc(value: datetime | None) -> datetime | None:
    """Convert to a naive UTC datetime for storage in timezone-less columns."""
    utc = ensure_utc(value)
    return utc.replace(tzinfo=None) if utc is not None else None


def hours_between(start: datetime, end: datetime) -> float:
    """Elapsed hours from ``start`` to ``end`` (negative if end is earlier)."""
    start_utc = ensure_utc(start)
    end_utc = ensure_utc(end)
    assert start_utc is not None and end_utc is not None
    return (end_utc - start_utc).total_seconds() / 3600


def parse_pr_number(link: str | None) -> int | None:
    """Extract the repository-scoped PR number from a PR link.

    Args:
        link: PR URL such as https://github.com/octo/repo/pull/42

    Returns:
        The PR number, or None if the link is empty or has no /pull/N segment
    """
    if not link:
        return None
    match = PR_NUMBER_PATTERN.search(link)
    if match is None:
        return None
    return int(match.group(1))


def round2(value: float) -> float:
    """Round to two decimal places for stable report output."""
    return round(value, 2)
