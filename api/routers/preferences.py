"""
Preferences API Endpoints.

Display toggles for the metric cards, funnel steps and export lines.
"""

from fastapi import APIRouter, Depends, HTTPException
from supabase import Client  # type: ignore[import-not-found]

from api.dependencies import get_current_user, get_primary_client, require_approved
from api.models import PreferencesModel, PreferencesUpdate
from domain.errors import DashboardError
from domain.preferences import DisplayPreferences
from domain.user_control import UserControl
from repositories.auth_repository import AuthenticatedUser
from repositories.preferences_repository import get_preferences, save_preferences

router = APIRouter()


def _preferences_model(preferences: DisplayPreferences) -> PreferencesModel:
    return PreferencesModel(**preferences.to_row())


@router.get("/preferences", response_model=PreferencesModel, summary="Get Display Preferences")
def read_preferences(
    user: AuthenticatedUser = Depends(get_current_user),
    control: UserControl = Depends(require_approved),
    primary: Client = Depends(get_primary_client),
):
    """Users without stored preferences see every metric."""
    try:
        return _preferences_model(get_preferences(primary, user.user_id))

    except (HTTPException, DashboardError):
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to load preferences: {str(e)}"
        )


@router.put("/preferences", response_model=PreferencesModel, summary="Update Display Preferences")
def update_preferences(
    request: PreferencesUpdate,
    user: AuthenticatedUser = Depends(get_current_user),
    control: UserControl = Depends(require_approved),
    primary: Client = Depends(get_primary_client),
):
    try:
        current = get_preferences(primary, user.user_id)
        updated = current.merged(request.model_dump(exclude_none=True))
        return _preferences_model(save_preferences(primary, user.user_id, updated))

    except (HTTPException, DashboardError):
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to save preferences: {str(e)}"
        )
