"""
Natural-language summaries of a MetricsReport.

- Executive summary: a few sentences describing the selected period.
- Comparative summary: one line per metric comparing the current period with
  the previous one, flagging changes that go the wrong way.

Formatting helpers are shared with the spreadsheet export.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from domain.metrics import MetricsReport
from domain.period import DateRange, Period

MISSING = "n/a"

_EXECUTIVE_PERIOD_TEXT = {
    Period.TODAY: "Today",
    Period.LAST_7_DAYS: "Over the last 7 days",
    Period.LAST_15_DAYS: "Over the last 15 days",
    Period.LAST_30_DAYS: "Over the last 30 days",
    Period.ALL: "Over the whole history",
    Period.CUSTOM: "In the custom period",
}


class Trend(str, Enum):
    HIGHER_IS_BETTER = "higher"
    LOWER_IS_BETTER = "lower"


@dataclass(frozen=True, slots=True)
class ComparisonItem:
    label: str
    current: str
    previous: str
    change: str
    trend: Trend
    is_bad: bool


def format_number(value: float, decimals: int = 0) -> str:
    return f"{value:,.{decimals}f}"


def format_hour(hour: int) -> str:
    return f"{hour:02d}h"


def format_hour_range(hour: int) -> str:
    """Two-hour activity window starting at `hour`, e.g. "09h and 11h"."""
    return f"{format_hour(hour)} and {format_hour((hour + 2) % 24)}"


def format_duration(ms: float) -> str:
    """Compact duration: "2d 3h", "4h 15min", "12min" or "40s"."""

    seconds = int(ms // 1000)
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24

    if days > 0:
        return f"{days}d {hours % 24}h"
    if hours > 0:
        return f"{hours}h {minutes % 60}min"
    if minutes > 0:
        return f"{minutes}min"
    return f"{seconds}s"


def _sign(value: float) -> str:
    if value > 0:
        return "+"
    if value < 0:
        return "-"
    return ""


def format_change(current: float, previous: float, decimals: int = 0, unit: str = "") -> str:
    """Absolute and relative variation, e.g. "Var: +12 (+20.0%)"."""

    delta = current - previous
    if previous == 0:
        percent = 100.0 if current > 0 else 0.0
    else:
        percent = (current - previous) / previous * 100

    delta_text = f"{_sign(delta)}{format_number(abs(delta), decimals)}{unit}"
    percent_text = f"{_sign(percent)}{format_number(abs(percent), 1)}%"
    return f"Var: {delta_text} ({percent_text})"


def is_bad_change(current: float, previous: float, trend: Trend) -> bool:
    if current == previous:
        return False
    if trend is Trend.HIGHER_IS_BETTER:
        return current < previous
    return current > previous


def lost_leads_share(report: MetricsReport) -> Optional[float]:
    """Lost leads as a percentage of conversations, None without conversations."""

    if report.conversations == 0:
        return None
    return report.lost_leads / report.conversations * 100


def _change_clause(change: float, label: str) -> str:
    if change == 0:
        return ""
    direction = "an increase" if change > 0 else "a decrease"
    return f", representing {direction} of {abs(change):.0f}% in {label}"


def executive_period_text(period: Period, custom: Optional[DateRange] = None) -> str:
    if period is Period.CUSTOM and custom is not None:
        return f"From {custom.start:%d/%m/%Y} to {custom.end:%d/%m/%Y}"
    return _EXECUTIVE_PERIOD_TEXT[period]


def build_executive_summary(
    report: MetricsReport,
    period: Period,
    custom: Optional[DateRange] = None,
) -> List[str]:
    """
    Sentences summarising the selected period. Empty when there were no
    conversations.
    """

    if report.conversations == 0:
        return []

    sentences = [
        f"{executive_period_text(period, custom)}, {format_number(report.conversations)} conversations "
        f"were started{_change_clause(report.conversations_change, 'conversations')}.",
        f"{report.qualification_rate:.0f}% of leads were qualified and {report.conversion_rate:.0f}% "
        f"resulted in a conversion{_change_clause(report.conversions_change, 'conversions')}.",
    ]

    share = lost_leads_share(report)
    if report.lost_leads > 0 and share is not None:
        sentences.append(
            f"{format_number(report.lost_leads)} leads ({share:.0f}%) were not converted."
        )

    if report.avg_daily_volume > 0 and period is not Period.TODAY:
        peak_text = ""
        if report.peak_hour is not None:
            peak_text = f" Activity peaks between {format_hour_range(report.peak_hour)}."
        sentences.append(f"Average of {report.avg_daily_volume:.1f} conversations per day.{peak_text}")

    return sentences


def _count_item(label: str, current: int, previous: int, trend: Trend) -> ComparisonItem:
    return ComparisonItem(
        label=label,
        current=format_number(current),
        previous=format_number(previous),
        change=format_change(current, previous),
        trend=trend,
        is_bad=is_bad_change(current, previous, trend),
    )


def _rate_item(label: str, current: float, previous: float) -> ComparisonItem:
    trend = Trend.HIGHER_IS_BETTER
    return ComparisonItem(
        label=label,
        current=f"{format_number(current, 1)}%",
        previous=f"{format_number(previous, 1)}%",
        change=format_change(current, previous, 1, " p.p."),
        trend=trend,
        is_bad=is_bad_change(current, previous, trend),
    )


def _duration_item(current: Optional[float], previous: Optional[float]) -> ComparisonItem:
    has_current = current is not None and current > 0
    has_previous = previous is not None and previous > 0
    trend = Trend.LOWER_IS_BETTER
    return ComparisonItem(
        label="Average time to conversion",
        current=format_duration(current) if has_current else MISSING,
        previous=format_duration(previous) if has_previous else MISSING,
        change=format_change(current, previous) if has_current and has_previous else f"Var: {MISSING}",
        trend=trend,
        is_bad=is_bad_change(current or 0, previous or 0, trend),
    )


def _peak_label(hour: Optional[int], volume: int) -> str:
    if hour is None:
        return MISSING
    return f"{format_hour_range(hour)} ({format_number(volume)} leads)"


def build_comparative_summary(report: MetricsReport) -> List[ComparisonItem]:
    current, previous = report.current, report.previous
    higher, lower = Trend.HIGHER_IS_BETTER, Trend.LOWER_IS_BETTER

    both_peaks = current.peak_hour is not None and previous.peak_hour is not None

    return [
        _count_item("New conversations", current.conversations, previous.conversations, higher),
        _count_item("Conversions", current.conversions, previous.conversions, higher),
        _count_item("Qualified leads", current.qualified, previous.qualified, higher),
        _count_item("Disqualified leads", current.disqualified, previous.disqualified, lower),
        _count_item("Lost leads", current.lost_leads, previous.lost_leads, lower),
        _rate_item("Conversion rate", current.conversion_rate, previous.conversion_rate),
        _rate_item("Qualification rate", current.qualification_rate, previous.qualification_rate),
        _duration_item(current.avg_conversion_time_ms, previous.avg_conversion_time_ms),
        ComparisonItem(
            label="Daily average of conversations",
            current=format_number(report.avg_daily_volume, 1),
            previous=format_number(report.previous_avg_daily_volume, 1),
            change=format_change(report.avg_daily_volume, report.previous_avg_daily_volume, 1),
            trend=higher,
            is_bad=is_bad_change(report.avg_daily_volume, report.previous_avg_daily_volume, higher),
        ),
        ComparisonItem(
            label="Peak volume",
            current=_peak_label(current.peak_hour, current.peak_hour_volume),
            previous=_peak_label(previous.peak_hour, previous.peak_hour_volume),
            change=(
                format_change(current.peak_hour_volume, previous.peak_hour_volume)
                if both_peaks
                else f"Var: {MISSING}"
            ),
            trend=higher,
            is_bad=is_bad_change(current.peak_hour_volume, previous.peak_hour_volume, higher),
        ),
    ]


__all__ = [
    "ComparisonItem",
    "Trend",
    "build_comparative_summary",
    "build_executive_summary",
    "format_change",
    "format_duration",
    "format_hour_range",
    "format_number",
    "lost_leads_share",
]
