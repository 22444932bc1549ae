"""
Account API Endpoints.

Access state of the signed-in user and logout.
"""

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_current_user, get_session_registry, get_user_control
from api.models import UserControlResponse
from domain.errors import DashboardError
from domain.user_control import UserControl
from repositories.auth_repository import AuthenticatedUser
from services.dashboard_service import SessionRegistry

router = APIRouter()


def user_control_response(control: UserControl) -> UserControlResponse:
    return UserControlResponse(
        user_id=control.user_id,
        email=control.email,
        role=control.role.value,
        approved=control.approved,
        status=control.status.value,
        approved_by=control.approved_by,
        created_at=control.created_at,
    )


@router.get(
    "/me",
    response_model=UserControlResponse,
    summary="Get Access State",
    description="Access record of the caller. The first call after sign-up creates a pending record."
)
def read_me(control: UserControl = Depends(get_user_control)):
    """
    Clients route on `status`: "Approved" opens the dashboard, anything else
    shows the pending-approval page.
    """
    try:
        return user_control_response(control)

    except (HTTPException, DashboardError):
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to load account: {str(e)}"
        )


@router.post("/logout", status_code=204, summary="Close Dashboard Session")
async def logout(
    user: AuthenticatedUser = Depends(get_current_user),
    registry: SessionRegistry = Depends(get_session_registry),
):
    """Drop the caller's dashboard session and its realtime channel."""
    await registry.discard(user.user_id)
