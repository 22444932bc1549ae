"""
Funnel steps for the dashboard.

Steps follow the sales funnel order (conversations, qualified, conversions)
and only include metrics the user chose to display.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from domain.metrics import MetricsReport
from domain.preferences import DisplayPreferences


@dataclass(frozen=True, slots=True)
class FunnelStep:
    key: str
    label: str
    value: int
    percentage: float  # relative to the largest step


def build_funnel(report: MetricsReport, preferences: DisplayPreferences) -> List[FunnelStep]:
    candidates = [
        (preferences.show_conversas, "conversations", "New conversations", report.conversations),
        (preferences.show_qualificados, "qualified", "Qualified leads", report.qualified),
        (preferences.show_conversoes, "conversions", "Conversions", report.conversions),
    ]
    visible = [(key, label, value) for shown, key, label, value in candidates if shown]
    if not visible:
        return []

    widest = max(max(value for _, _, value in visible), 1)
    return [
        FunnelStep(
            key=key,
            label=label,
            value=value,
            percentage=value / widest * 100,
        )
        for key, label, value in visible
    ]


__all__ = ["FunnelStep", "build_funnel"]
