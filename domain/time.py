"""
Domain time utilities (pure).

Timestamp parsing and day-boundary helpers shared by the lead model and the
period calculations. No function here reads the clock.
"""

from __future__ import annotations

from datetime import datetime, time, timedelta, timezone, tzinfo
from typing import Any


def require_aware_timestamp(name: str, value: datetime) -> None:
    """
    Timestamps handled by the domain must be timezone-aware so that hour
    bucketing and range comparisons are unambiguous.
    """

    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"{name} must be timezone-aware")


def parse_timestamp(value: Any) -> datetime:
    """
    Parse a Supabase timestamp into a timezone-aware UTC datetime.

    Supabase commonly returns ISO-8601 strings, sometimes with a trailing 'Z'.
    Naive values are interpreted as UTC.

    Raises:
        TypeError: for unsupported value types
        ValueError: for unparsable strings
    """

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        text = value.strip().replace("Z", "+00:00")
        dt = datetime.fromisoformat(text)
    else:
        raise TypeError(f"Unsupported timestamp type: {type(value)!r}")

    if dt.tzinfo is None or dt.utcoffset() is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def start_of_day(value: datetime, tz: tzinfo) -> datetime:
    local = value.astimezone(tz)
    return datetime.combine(local.date(), time.min, tzinfo=tz)


def end_of_day(value: datetime, tz: tzinfo) -> datetime:
    local = value.astimezone(tz)
    return datetime.combine(local.date(), time.max, tzinfo=tz)


def to_iso_utc(dt: datetime) -> str:
    """ISO-8601 string in UTC, as sent in Supabase range filters."""

    require_aware_timestamp("timestamp", dt)
    return dt.astimezone(timezone.utc).isoformat()


def milliseconds_between(start: datetime, end: datetime) -> float:
    return (end - start) / timedelta(milliseconds=1)
