"""
Metrics aggregation (pure).

Turns the current and previous lead record sets into a MetricsReport.

Rules:
- Every record counts once; identifiers are not deduplicated.
- A record is "not converted" unless its converted flag is True.
- Average conversion time only uses converted records whose conversion
  timestamp is strictly after creation.
- Peak hour buckets creation times by local hour (0-23) in `tz`; hours are
  scanned in ascending order and only a strictly greater count replaces the
  current peak, so ties resolve to the earliest hour.
- Both periods are divided by the same period length for daily volume.

No clock is read and nothing is mutated; identical inputs give identical
reports.
"""

from __future__ import annotations

from collections import Counter
from datetime import timezone, tzinfo
from typing import Iterable, List, Optional, Sequence, Tuple

from domain.lead import LeadRecord
from domain.metrics import BaseMetrics, MetricsReport


def percent_change(current: float, previous: float) -> float:
    """
    Period-over-period change in percent.

    A previous value of zero yields 100 when the current value is positive,
    otherwise 0.
    """

    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return (current - previous) / previous * 100


def _rate(part: int, total: int) -> float:
    return part / total * 100 if total > 0 else 0.0


def peak_hour(records: Iterable[LeadRecord], tz: tzinfo = timezone.utc) -> Tuple[Optional[int], int]:
    """Return (hour, volume) of the busiest creation hour, or (None, 0)."""

    counts = Counter(record.created_at.astimezone(tz).hour for record in records)

    best_hour: Optional[int] = None
    best_volume = 0
    for hour in range(24):
        if counts[hour] > best_volume:
            best_hour = hour
            best_volume = counts[hour]
    return best_hour, best_volume


def compute_base_metrics(records: Sequence[LeadRecord], tz: tzinfo = timezone.utc) -> BaseMetrics:
    """Reduce one row set in a single pass."""

    conversations = len(records)
    conversions = 0
    qualified = 0
    disqualified = 0
    lost_leads = 0
    conversion_times: List[float] = []

    for record in records:
        if record.converted:
            conversions += 1
        else:
            lost_leads += 1
        if record.qualified:
            qualified += 1
        if record.disqualified:
            disqualified += 1

        elapsed = record.conversion_time
        if elapsed is not None:
            conversion_times.append(elapsed)

    avg_conversion_time_ms = (
        sum(conversion_times) / len(conversion_times) if conversion_times else None
    )
    hour, volume = peak_hour(records, tz)

    return BaseMetrics(
        conversations=conversations,
        conversions=conversions,
        qualified=qualified,
        disqualified=disqualified,
        lost_leads=lost_leads,
        conversion_rate=_rate(conversions, conversations),
        qualification_rate=_rate(qualified, conversations),
        avg_conversion_time_ms=avg_conversion_time_ms,
        peak_hour=hour,
        peak_hour_volume=volume,
    )


def aggregate(
    current_rows: Sequence[LeadRecord],
    previous_rows: Sequence[LeadRecord],
    period_days: int,
    tz: tzinfo = timezone.utc,
) -> MetricsReport:
    """
    Build the full report for a period and its comparison period.

    Args:
        current_rows: records created in the selected period
        previous_rows: records created in the preceding period of equal length
        period_days: length of the selected period in days (>= 1)
        tz: timezone used for peak-hour bucketing

    Raises:
        ValueError: if period_days < 1
    """

    if period_days < 1:
        raise ValueError("period_days must be >= 1")

    current = compute_base_metrics(current_rows, tz)
    previous = compute_base_metrics(previous_rows, tz)

    return MetricsReport(
        current=current,
        previous=previous,
        avg_daily_volume=current.conversations / period_days,
        previous_avg_daily_volume=previous.conversations / period_days,
        conversations_change=percent_change(current.conversations, previous.conversations),
        conversions_change=percent_change(current.conversions, previous.conversions),
        qualified_change=percent_change(current.qualified, previous.qualified),
        rows=tuple(current_rows),
    )


__all__ = ["aggregate", "compute_base_metrics", "peak_hour", "percent_change"]
