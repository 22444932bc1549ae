"""
Reports API Endpoints.

Spreadsheet download of the selected period.
"""

from fastapi import APIRouter, Depends, HTTPException, Response
from supabase import Client  # type: ignore[import-not-found]

from api.dependencies import (
    get_clock,
    get_current_user,
    get_dashboard_session,
    get_period_selection,
    get_primary_client,
)
from domain.errors import DashboardError
from repositories.auth_repository import AuthenticatedUser
from repositories.preferences_repository import get_preferences
from services.dashboard_service import Clock, DashboardSession, PeriodSelection
from services.report_export_service import export_report

router = APIRouter()


@router.get(
    "/reports/export",
    summary="Download Metrics Report",
    description="Download an .xlsx report with a summary sheet and the lead rows of the period.",
    response_class=Response
)
def download_report(
    selection: PeriodSelection = Depends(get_period_selection),
    session: DashboardSession = Depends(get_dashboard_session),
    user: AuthenticatedUser = Depends(get_current_user),
    primary: Client = Depends(get_primary_client),
    clock: Clock = Depends(get_clock),
):
    """
    Export the period as a spreadsheet.

    **Contents:**
    - Summary sheet: period, generation time and the metrics enabled in the
      user's display preferences (lost leads are always included)
    - Data sheet: one row per lead, omitted when the period is empty

    **Security:**
    - Text cells are stripped of leading formula characters

    **Example usage:**
    ```
    GET /api/v1/reports/export?period=30days
    ```

    **Response:**
    File download named `lead-metrics-report-{period}.xlsx`
    """
    try:
        preferences = get_preferences(primary, user.user_id)
        exported = export_report(session, preferences, selection, clock())

        return Response(
            content=exported.content,
            media_type=exported.media_type,
            headers={
                "Content-Disposition": f"attachment; filename={exported.filename}"
            }
        )

    except (HTTPException, DashboardError):
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to generate report: {str(e)}"
        )
