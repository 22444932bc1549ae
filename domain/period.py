"""
Domain: reporting periods and date ranges.

Contract excerpts implemented here:
- Ranges cover whole local days: start at 00:00:00, end at 23:59:59.999999.
- Preset periods end today and start 0, 7, 15 or 30 days before today.
  "all" starts on 2000-01-01.
- The previous range ends just before the current range starts and has the
  same length, snapped to day boundaries.
- Period length in days = ceil(range length / 24 hours), never below 1.

All functions take `now` explicitly; no implicit clock is used.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo
from enum import Enum
from typing import Optional

from .time import end_of_day, require_aware_timestamp, start_of_day

ALL_TIME_START_YEAR = 2000


class Period(str, Enum):
    TODAY = "today"
    LAST_7_DAYS = "7days"
    LAST_15_DAYS = "15days"
    LAST_30_DAYS = "30days"
    ALL = "all"
    CUSTOM = "custom"

    @property
    def lookback_days(self) -> Optional[int]:
        return _LOOKBACK_DAYS.get(self)

    @property
    def supports_comparison(self) -> bool:
        """Change badges are only meaningful for rolling preset periods."""
        return self not in (Period.ALL, Period.CUSTOM)


_LOOKBACK_DAYS = {
    Period.TODAY: 0,
    Period.LAST_7_DAYS: 7,
    Period.LAST_15_DAYS: 15,
    Period.LAST_30_DAYS: 30,
}

_LABELS = {
    Period.TODAY: "Today",
    Period.LAST_7_DAYS: "Last 7 days",
    Period.LAST_15_DAYS: "Last 15 days",
    Period.LAST_30_DAYS: "Last 30 days",
    Period.ALL: "All time",
    Period.CUSTOM: "Custom period",
}

_SLUGS = {
    Period.TODAY: "today",
    Period.LAST_7_DAYS: "7-days",
    Period.LAST_15_DAYS: "15-days",
    Period.LAST_30_DAYS: "30-days",
    Period.ALL: "full-history",
    Period.CUSTOM: "custom",
}


@dataclass(frozen=True, slots=True)
class DateRange:
    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        require_aware_timestamp("start", self.start)
        require_aware_timestamp("end", self.end)
        if self.end < self.start:
            raise ValueError("end must be >= start")

    @property
    def length(self) -> timedelta:
        return self.end - self.start


def _custom_range(custom: DateRange, tz: tzinfo) -> DateRange:
    return DateRange(start=start_of_day(custom.start, tz), end=end_of_day(custom.end, tz))


def get_date_range(
    period: Period,
    now: datetime,
    tz: tzinfo,
    custom: Optional[DateRange] = None,
) -> DateRange:
    """
    Resolve the current range for a period, in the given timezone.

    Raises:
        ValueError: for Period.CUSTOM without a custom range
    """

    require_aware_timestamp("now", now)

    if period is Period.CUSTOM:
        if custom is None:
            raise ValueError("custom period requires a date range")
        return _custom_range(custom, tz)

    end = end_of_day(now, tz)
    start = start_of_day(now, tz)

    if period is Period.ALL:
        start = start.replace(year=ALL_TIME_START_YEAR, month=1, day=1)
    else:
        start = start_of_day(start - timedelta(days=period.lookback_days), tz)

    return DateRange(start=start, end=end)


def get_previous_date_range(
    period: Period,
    now: datetime,
    tz: tzinfo,
    custom: Optional[DateRange] = None,
) -> Optional[DateRange]:
    """
    The comparison range immediately preceding the current one.

    Returns None for a custom period without a range.
    """

    if period is Period.CUSTOM and custom is None:
        return None

    current = get_date_range(period, now, tz, custom)
    end = end_of_day(current.start - timedelta(microseconds=1), tz)
    start = start_of_day(end - current.length, tz)
    return DateRange(start=start, end=end)


def period_length_days(date_range: DateRange) -> int:
    days = math.ceil(date_range.length / timedelta(days=1))
    return max(1, days)


def default_custom_range(now: datetime, tz: tzinfo) -> DateRange:
    """Last seven days ending today, used before the user picks dates."""

    end = end_of_day(now, tz)
    start = start_of_day(end - timedelta(days=7), tz)
    return DateRange(start=start, end=end)


def period_label(period: Period, custom: Optional[DateRange] = None) -> str:
    if period is Period.CUSTOM and custom is not None:
        return f"{custom.start:%d/%m/%Y} to {custom.end:%d/%m/%Y}"
    return _LABELS[period]


def period_slug(period: Period, custom: Optional[DateRange] = None) -> str:
    """File-name friendly period label."""

    if period is Period.CUSTOM and custom is not None:
        return f"custom-{custom.start:%Y-%m-%d}-to-{custom.end:%Y-%m-%d}"
    return _SLUGS[period]


__all__ = [
    "DateRange",
    "Period",
    "default_custom_range",
    "get_date_range",
    "get_previous_date_range",
    "period_label",
    "period_length_days",
    "period_slug",
]
