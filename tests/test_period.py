"""
Tests for `domain/period.py`.

Covers contract rules:
- Preset periods end at the end of today and start N days before the start of today.
- "all" starts on 2000-01-01.
- Custom periods expand to whole days; a custom period without a range is rejected.
- The previous range ends right before the current one and has the same length.
- period_length_days is at least 1.
"""

from __future__ import annotations

from datetime import datetime, time, timedelta, timezone

import pytest

from domain.period import (
    DateRange,
    Period,
    default_custom_range,
    get_date_range,
    get_previous_date_range,
    period_label,
    period_length_days,
    period_slug,
)


def test_today_covers_the_local_day(fixed_now, sao_paulo) -> None:
    date_range = get_date_range(Period.TODAY, fixed_now, sao_paulo)

    assert date_range.start == datetime(2025, 3, 15, 0, 0, tzinfo=sao_paulo)
    assert date_range.end == datetime.combine(datetime(2025, 3, 15).date(), time.max, tzinfo=sao_paulo)
    assert period_length_days(date_range) == 1


def test_seven_days_starts_seven_days_before_today(fixed_now, sao_paulo) -> None:
    date_range = get_date_range(Period.LAST_7_DAYS, fixed_now, sao_paulo)

    assert date_range.start == datetime(2025, 3, 8, 0, 0, tzinfo=sao_paulo)
    assert date_range.end.date() == datetime(2025, 3, 15).date()
    assert period_length_days(date_range) == 8


def test_day_boundaries_follow_timezone(sao_paulo) -> None:
    # 01:00 UTC on the 16th is still the 15th in São Paulo
    now = datetime(2025, 3, 16, 1, 0, tzinfo=timezone.utc)

    date_range = get_date_range(Period.TODAY, now, sao_paulo)

    assert date_range.start == datetime(2025, 3, 15, 0, 0, tzinfo=sao_paulo)


def test_all_starts_in_2000(fixed_now, sao_paulo) -> None:
    date_range = get_date_range(Period.ALL, fixed_now, sao_paulo)

    assert date_range.start == datetime(2000, 1, 1, 0, 0, tzinfo=sao_paulo)
    assert Period.ALL.supports_comparison is False
    assert Period.LAST_30_DAYS.supports_comparison is True


def test_custom_range_expands_to_whole_days(fixed_now, sao_paulo) -> None:
    custom = DateRange(
        start=datetime(2025, 2, 1, 15, 30, tzinfo=sao_paulo),
        end=datetime(2025, 2, 10, 8, 0, tzinfo=sao_paulo),
    )

    date_range = get_date_range(Period.CUSTOM, fixed_now, sao_paulo, custom)

    assert date_range.start == datetime(2025, 2, 1, 0, 0, tzinfo=sao_paulo)
    assert date_range.end.time() == time.max
    assert date_range.end.date() == datetime(2025, 2, 10).date()


def test_custom_without_range_is_rejected(fixed_now, sao_paulo) -> None:
    with pytest.raises(ValueError):
        get_date_range(Period.CUSTOM, fixed_now, sao_paulo)
    assert get_previous_date_range(Period.CUSTOM, fixed_now, sao_paulo) is None


def test_previous_range_precedes_current(fixed_now, sao_paulo) -> None:
    current = get_date_range(Period.LAST_7_DAYS, fixed_now, sao_paulo)
    previous = get_previous_date_range(Period.LAST_7_DAYS, fixed_now, sao_paulo)

    assert previous is not None
    assert previous.end < current.start
    assert current.start - previous.end == timedelta(microseconds=1)
    assert previous.start == datetime(2025, 2, 28, 0, 0, tzinfo=sao_paulo)
    assert period_length_days(previous) == period_length_days(current)


def test_previous_range_of_today_is_yesterday(fixed_now, sao_paulo) -> None:
    previous = get_previous_date_range(Period.TODAY, fixed_now, sao_paulo)

    assert previous is not None
    assert previous.start == datetime(2025, 3, 14, 0, 0, tzinfo=sao_paulo)
    assert previous.end.date() == datetime(2025, 3, 14).date()


def test_date_range_rejects_inverted_bounds(sao_paulo) -> None:
    with pytest.raises(ValueError):
        DateRange(
            start=datetime(2025, 1, 2, tzinfo=sao_paulo),
            end=datetime(2025, 1, 1, tzinfo=sao_paulo),
        )


def test_default_custom_range_is_last_week(fixed_now, sao_paulo) -> None:
    custom = default_custom_range(fixed_now, sao_paulo)

    assert custom.start == datetime(2025, 3, 8, 0, 0, tzinfo=sao_paulo)
    assert custom.end.date() == datetime(2025, 3, 15).date()


def test_labels_and_slugs(sao_paulo) -> None:
    custom = DateRange(
        start=datetime(2025, 1, 5, tzinfo=sao_paulo),
        end=datetime(2025, 1, 20, tzinfo=sao_paulo),
    )

    assert period_label(Period.LAST_15_DAYS) == "Last 15 days"
    assert period_label(Period.CUSTOM, custom) == "05/01/2025 to 20/01/2025"
    assert period_slug(Period.ALL) == "full-history"
    assert period_slug(Period.CUSTOM, custom) == "custom-2025-01-05-to-2025-01-20"
