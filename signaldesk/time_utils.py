"""Centralised timestamp handling.

All timestamp parsing and conversion goes through this module.
Internal representation: UTC-aware ``datetime``.
Epoch seconds are used only at the historical-data boundary.
"""

from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo


# ---------------------------------------------------------------------------
# Core conversions
# ---------------------------------------------------------------------------


def parse_timestamp(ts: str | int | float | datetime) -> datetime:
    """Parse any timestamp representation to a UTC-aware datetime.

    Accepted inputs:
      * ``datetime`` (naive values are assumed to be UTC)
      * ISO 8601 string (``T`` or space separator, with or without ``Z``)
      * Integer or float seconds since epoch
      * String containing a numeric value (e.g. ``"1640995200"``)
    """
    if isinstance(ts, datetime):
        return ts if ts.tzinfo is not None else ts.replace(tzinfo=timezone.utc)

    if isinstance(ts, (int, float)):
        return datetime.fromtimestamp(ts, tz=timezone.utc)

    s = (ts or "").strip()
    if not s:
        raise ValueError("Empty timestamp")

    if s.replace(".", "", 1).lstrip("-").isdigit():
        return datetime.fromtimestamp(float(s), tz=timezone.utc)

    s = s.replace("Z", "+00:00")
    s = s.replace(" ", "T", 1)

    dt = datetime.fromisoformat(s)
    return dt if dt.tzinfo is not None else dt.replace(tzinfo=timezone.utc)


def epoch_seconds_to_utc(seconds: float) -> datetime:
    """Convert epoch seconds (historical API format) to a UTC datetime."""
    return datetime.fromtimestamp(int(seconds), tz=timezone.utc)


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Bucketing and sessions
# ---------------------------------------------------------------------------


def bucket_start(ts: datetime, width_seconds: int) -> datetime:
    """Truncate *ts* down to a multiple of *width_seconds* since the epoch."""
    epoch = int(parse_timestamp(ts).timestamp())
    return datetime.fromtimestamp(epoch - (epoch % width_seconds), tz=timezone.utc)


def session_date(ts: datetime, tz: str) -> date:
    """Trading date of *ts* in the exchange timezone."""
    return parse_timestamp(ts).astimezone(ZoneInfo(tz)).date()


def session_start(day: date, start: time, tz: str) -> datetime:
    """UTC instant at which the session for *day* opens."""
    local = datetime.combine(day, start, tzinfo=ZoneInfo(tz))
    return local.astimezone(timezone.utc)
