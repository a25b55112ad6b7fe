"""Tests for signaldesk.time_utils – centralised timestamp handling."""

from datetime import date, datetime, time, timezone

import pytest

from signaldesk.time_utils import (
    bucket_start,
    epoch_seconds_to_utc,
    parse_timestamp,
    session_date,
    session_start,
)


# ---------------------------------------------------------------------------
# parse_timestamp
# ---------------------------------------------------------------------------

class TestParseTimestamp:

    def test_iso_string_with_z(self):
        dt = parse_timestamp("2025-01-15T12:30:00Z")
        assert dt == datetime(2025, 1, 15, 12, 30, tzinfo=timezone.utc)

    def test_iso_string_with_offset(self):
        dt = parse_timestamp("2025-01-15T18:00:00+05:30")
        assert dt == datetime(2025, 1, 15, 12, 30, tzinfo=timezone.utc)

    def test_iso_string_space_separator(self):
        dt = parse_timestamp("2025-01-15 12:30:00+00:00")
        assert dt == datetime(2025, 1, 15, 12, 30, tzinfo=timezone.utc)

    def test_epoch_seconds(self):
        dt = parse_timestamp(1736899200)
        assert dt == datetime(2025, 1, 15, tzinfo=timezone.utc)

    def test_numeric_string(self):
        dt = parse_timestamp("1736899200")
        assert dt == datetime(2025, 1, 15, tzinfo=timezone.utc)

    def test_naive_datetime_assumed_utc(self):
        dt = parse_timestamp(datetime(2025, 1, 15, 12, 30))
        assert dt.tzinfo == timezone.utc

    def test_empty_string_raises(self):
        with pytest.raises(ValueError):
            parse_timestamp("")

    def test_epoch_seconds_to_utc_truncates_fraction(self):
        assert epoch_seconds_to_utc(1736899200.9) == datetime(2025, 1, 15, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Buckets and sessions
# ---------------------------------------------------------------------------

class TestBuckets:

    def test_bucket_start_truncates(self):
        ts = datetime(2025, 1, 15, 9, 17, 42, tzinfo=timezone.utc)
        assert bucket_start(ts, 60) == datetime(2025, 1, 15, 9, 17, tzinfo=timezone.utc)
        assert bucket_start(ts, 300) == datetime(2025, 1, 15, 9, 15, tzinfo=timezone.utc)
        assert bucket_start(ts, 900) == datetime(2025, 1, 15, 9, 15, tzinfo=timezone.utc)

    def test_bucket_start_on_boundary_is_identity(self):
        ts = datetime(2025, 1, 15, 9, 15, tzinfo=timezone.utc)
        assert bucket_start(ts, 300) == ts


class TestSessions:

    def test_session_start_is_utc(self):
        start = session_start(date(2026, 1, 5), time(9, 15), "Asia/Kolkata")
        assert start == datetime(2026, 1, 5, 3, 45, tzinfo=timezone.utc)

    def test_session_date_uses_exchange_timezone(self):
        # 20:00 UTC is already the next day in India
        ts = datetime(2026, 1, 5, 20, 0, tzinfo=timezone.utc)
        assert session_date(ts, "Asia/Kolkata") == date(2026, 1, 6)
        assert session_date(ts, "UTC") == date(2026, 1, 5)
