"""
Metrics API Endpoints.

Endpoints for the dashboard cards, funnel and summaries, manual refresh and
live (realtime) updates.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from supabase import Client  # type: ignore[import-not-found]

from api.dependencies import (
    get_current_user,
    get_dashboard_session,
    get_period_selection,
    get_primary_client,
)
from api.models import (
    ComparisonItemModel,
    DateRangeModel,
    FunnelStepModel,
    MetricsResponse,
    PeriodMetrics,
    RealtimeResponse,
)
from domain.errors import DashboardError
from domain.metrics import BaseMetrics
from domain.period import DateRange, period_label
from domain.preferences import DisplayPreferences
from repositories.auth_repository import AuthenticatedUser
from repositories.preferences_repository import get_preferences
from services.dashboard_service import DashboardSession, DashboardSnapshot, PeriodSelection
from services.funnel_service import build_funnel
from services.summary_service import build_comparative_summary, build_executive_summary

router = APIRouter()


def _period_metrics(metrics: BaseMetrics) -> PeriodMetrics:
    return PeriodMetrics(
        conversations=metrics.conversations,
        conversions=metrics.conversions,
        qualified=metrics.qualified,
        disqualified=metrics.disqualified,
        lost_leads=metrics.lost_leads,
        conversion_rate=metrics.conversion_rate,
        qualification_rate=metrics.qualification_rate,
        avg_conversion_time_ms=metrics.avg_conversion_time_ms,
        peak_hour=metrics.peak_hour,
        peak_hour_volume=metrics.peak_hour_volume,
    )


def _range(date_range: Optional[DateRange]) -> Optional[DateRangeModel]:
    if date_range is None:
        return None
    return DateRangeModel(start=date_range.start, end=date_range.end)


def build_metrics_response(
    snapshot: DashboardSnapshot,
    preferences: DisplayPreferences,
    realtime: bool = False,
) -> MetricsResponse:
    report = snapshot.report
    selection = snapshot.selection

    return MetricsResponse(
        period=selection.period.value,
        period_label=period_label(selection.period, selection.custom),
        show_change=selection.period.supports_comparison,
        date_range=_range(snapshot.date_range),
        previous_range=_range(snapshot.previous_range),
        period_days=snapshot.period_days,
        current=_period_metrics(report.current),
        previous=_period_metrics(report.previous),
        avg_daily_volume=report.avg_daily_volume,
        previous_avg_daily_volume=report.previous_avg_daily_volume,
        conversations_change=report.conversations_change,
        conversions_change=report.conversions_change,
        qualified_change=report.qualified_change,
        funnel=[
            FunnelStepModel(key=step.key, label=step.label, value=step.value, percentage=step.percentage)
            for step in build_funnel(report, preferences)
        ],
        executive_summary=build_executive_summary(report, selection.period, selection.custom),
        comparison=[
            ComparisonItemModel(
                label=item.label,
                current=item.current,
                previous=item.previous,
                change=item.change,
                trend=item.trend.value,
                is_bad=item.is_bad,
            )
            for item in build_comparative_summary(report)
        ],
        skipped_rows=snapshot.skipped_rows,
        refreshed_at=snapshot.refreshed_at,
        realtime=realtime,
    )


@router.get(
    "/metrics",
    response_model=MetricsResponse,
    summary="Get Dashboard Metrics",
    description="Metrics, funnel and summaries for the selected period."
)
def get_metrics(
    selection: PeriodSelection = Depends(get_period_selection),
    session: DashboardSession = Depends(get_dashboard_session),
    user: AuthenticatedUser = Depends(get_current_user),
    primary: Client = Depends(get_primary_client),
):
    """
    Return the dashboard for a period.

    The last computed snapshot is reused while it covers the same period and
    the same dates; otherwise a refresh runs first, e.g. on the first load of
    a new day.

    **Example usage:**
    - Last 7 days: `GET /api/v1/metrics`
    - Today: `GET /api/v1/metrics?period=today`
    - Custom: `GET /api/v1/metrics?period=custom&start=2025-01-01&end=2025-01-31`
    """
    try:
        snapshot = session.snapshot
        if not session.is_current(selection):
            snapshot = session.refresh(selection)

        preferences = get_preferences(primary, user.user_id)
        return build_metrics_response(snapshot, preferences, session.realtime_active)

    except (HTTPException, DashboardError):
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to load metrics: {str(e)}"
        )


@router.post(
    "/metrics/refresh",
    response_model=MetricsResponse,
    summary="Refresh Dashboard Metrics",
    description="Re-read the lead table and recompute the dashboard."
)
def refresh_metrics(
    selection: PeriodSelection = Depends(get_period_selection),
    session: DashboardSession = Depends(get_dashboard_session),
    user: AuthenticatedUser = Depends(get_current_user),
    primary: Client = Depends(get_primary_client),
):
    """
    Force a refresh cycle.

    When several refreshes overlap, only the most recently started one is
    applied; earlier ones return the snapshot that is displayed.
    """
    try:
        snapshot = session.refresh(selection)
        preferences = get_preferences(primary, user.user_id)
        return build_metrics_response(snapshot, preferences, session.realtime_active)

    except (HTTPException, DashboardError):
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to refresh metrics: {str(e)}"
        )


@router.post(
    "/metrics/live",
    response_model=RealtimeResponse,
    summary="Start Live Updates",
    description="Subscribe to changes on the lead table; each change triggers a refresh."
)
async def start_live_updates(session: DashboardSession = Depends(get_dashboard_session)):
    """
    Subscribe to realtime changes.

    `active` is false when the project does not allow realtime on the table;
    the dashboard still works through manual refreshes.
    """
    active = await session.start_realtime()
    return RealtimeResponse(active=active, table=session.table)


@router.delete(
    "/metrics/live",
    response_model=RealtimeResponse,
    summary="Stop Live Updates"
)
async def stop_live_updates(session: DashboardSession = Depends(get_dashboard_session)):
    await session.stop_realtime()
    return RealtimeResponse(active=False, table=session.table)
