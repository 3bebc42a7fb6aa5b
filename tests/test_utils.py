"""Tests for shared helpers."""

from datetime import UTC, datetime, timedelta, timezone

from pr_review_tracker.utils import ensure_utc, hours_between, parse_pr_number, to_naive_utc

from tests.conftest import JAN_10, JAN_10_LATE


class TestParsePrNumber:
    """Tests for extracting a PR number from its link."""

    def test_standard_link(self):
        assert parse_pr_number("https://github.com/octo-org/hello-world/pull/42") == 42

    def test_link_with_suffix(self):
        assert parse_pr_number("https://github.com/octo-org/hello-world/pull/7/files") == 7

    def test_missing_link(self):
        assert parse_pr_number(None) is None
        assert parse_pr_number("") is None

    def test_link_without_pull_segment(self):
        assert parse_pr_number("https://github.com/octo-org/hello-world/issues/42") is None


class TestTimestamps:
    """Tests for UTC normalization."""

    def test_naive_is_treated_as_utc(self):
        assert ensure_utc(datetime(2024, 1, 10, 9, 0)) == JAN_10

    def test_offset_is_converted(self):
        plus_two = timezone(timedelta(hours=2))
        assert ensure_utc(datetime(2024, 1, 10, 11, 0, tzinfo=plus_two)) == JAN_10

    def test_none_passes_through(self):
        assert ensure_utc(None) is None
        assert to_naive_utc(None) is None

    def test_to_naive_utc_drops_tzinfo(self):
        value = to_naive_utc(JAN_10)
        assert value is not None
        assert value.tzinfo is None
        assert value.replace(tzinfo=UTC) == JAN_10

    def test_hours_between_mixed_awareness(self):
        naive_start = JAN_10.replace(tzinfo=None)
        assert hours_between(naive_start, JAN_10_LATE) == 2.0

    def test_hours_between_negative(self):
        assert hours_between(JAN_10_LATE, JAN_10) == -2.0
