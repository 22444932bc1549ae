"""
Domain: metrics value objects.

BaseMetrics is the reduction of one row set. MetricsReport combines the
current and previous reductions with the derived comparison fields. Both are
rebuilt on every aggregation and never mutated.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

from .lead import LeadRecord


@dataclass(frozen=True, slots=True)
class BaseMetrics:
    conversations: int = 0
    conversions: int = 0
    qualified: int = 0
    disqualified: int = 0
    lost_leads: int = 0
    conversion_rate: float = 0.0
    qualification_rate: float = 0.0
    avg_conversion_time_ms: Optional[float] = None
    peak_hour: Optional[int] = None  # 0-23, None when the row set is empty
    peak_hour_volume: int = 0


@dataclass(frozen=True, slots=True)
class MetricsReport:
    """
    Flat report consumed by cards, funnel, summaries and export.

    `rows` holds the current-period records for downstream rendering.
    """

    current: BaseMetrics
    previous: BaseMetrics
    avg_daily_volume: float
    previous_avg_daily_volume: float
    conversations_change: float
    conversions_change: float
    qualified_change: float
    rows: Tuple[LeadRecord, ...] = field(default_factory=tuple)

    # Current-period shortcuts

    @property
    def conversations(self) -> int:
        return self.current.conversations

    @property
    def conversions(self) -> int:
        return self.current.conversions

    @property
    def qualified(self) -> int:
        return self.current.qualified

    @property
    def disqualified(self) -> int:
        return self.current.disqualified

    @property
    def lost_leads(self) -> int:
        return self.current.lost_leads

    @property
    def conversion_rate(self) -> float:
        return self.current.conversion_rate

    @property
    def qualification_rate(self) -> float:
        return self.current.qualification_rate

    @property
    def avg_conversion_time_ms(self) -> Optional[float]:
        return self.current.avg_conversion_time_ms

    @property
    def peak_hour(self) -> Optional[int]:
        return self.current.peak_hour

    @property
    def peak_hour_volume(self) -> int:
        return self.current.peak_hour_volume


EMPTY_REPORT = MetricsReport(
    current=BaseMetrics(),
    previous=BaseMetrics(),
    avg_daily_volume=0.0,
    previous_avg_daily_volume=0.0,
    conversations_change=0.0,
    conversions_change=0.0,
    qualified_change=0.0,
)


__all__ = ["BaseMetrics", "EMPTY_REPORT", "MetricsReport"]
