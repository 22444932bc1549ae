"""
Admin API Endpoints.

User approval for administrators.
"""

from fastapi import APIRouter, Depends, HTTPException
from supabase import Client  # type: ignore[import-not-found]

from api.dependencies import get_primary_client, require_admin
from api.models import UserControlResponse, UserListResponse
from api.routers.account import user_control_response
from domain.errors import DashboardError
from domain.user_control import UserControl
from repositories.user_control_repository import list_user_controls, set_approval

router = APIRouter()


@router.get(
    "/admin/users",
    response_model=UserListResponse,
    summary="List Users",
    description="All access records, newest first."
)
def list_users(
    admin: UserControl = Depends(require_admin),
    primary: Client = Depends(get_primary_client),
):
    try:
        users = [user_control_response(control) for control in list_user_controls(primary)]
        return UserListResponse(users=users, total_count=len(users))

    except (HTTPException, DashboardError):
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to list users: {str(e)}"
        )


def _set_access(primary: Client, admin: UserControl, user_id: str, approved: bool) -> UserControlResponse:
    if user_id == admin.user_id:
        raise HTTPException(
            status_code=400,
            detail="Administrators cannot change their own access"
        )

    set_approval(primary, user_id, approved, admin.email or admin.user_id)
    for control in list_user_controls(primary):
        if control.user_id == user_id:
            return user_control_response(control)

    raise HTTPException(status_code=404, detail=f"User not found: {user_id}")


@router.post(
    "/admin/users/{user_id}/approve",
    response_model=UserControlResponse,
    summary="Approve User"
)
def approve_user(
    user_id: str,
    admin: UserControl = Depends(require_admin),
    primary: Client = Depends(get_primary_client),
):
    try:
        return _set_access(primary, admin, user_id, approved=True)

    except (HTTPException, DashboardError):
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to approve user: {str(e)}"
        )


@router.post(
    "/admin/users/{user_id}/block",
    response_model=UserControlResponse,
    summary="Block User"
)
def block_user(
    user_id: str,
    admin: UserControl = Depends(require_admin),
    primary: Client = Depends(get_primary_client),
):
    try:
        return _set_access(primary, admin, user_id, approved=False)

    except (HTTPException, DashboardError):
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to block user: {str(e)}"
        )
