"""
Integration API Endpoints.

Setup flow for connecting the dashboard to the user's Supabase project.
Saving or removing the integration closes the user's dashboard session so the
next request opens one with the new settings.
"""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.concurrency import run_in_threadpool
from supabase import Client  # type: ignore[import-not-found]

from api.dependencies import (
    get_current_user,
    get_primary_client,
    get_session_registry,
    require_approved,
)
from api.models import (
    ConnectionRequest,
    ConnectionTestResponse,
    IntegrationRequest,
    IntegrationResponse,
    TableListResponse,
)
from domain.errors import DashboardError
from domain.integration import Integration
from domain.user_control import UserControl
from repositories.auth_repository import AuthenticatedUser
from repositories.integration_repository import delete_integration, get_integration
from services.dashboard_service import SessionRegistry
from services.setup_service import check_connection, complete_setup, list_tables

router = APIRouter()


def _integration_response(integration: Integration | None) -> IntegrationResponse:
    if integration is None:
        return IntegrationResponse(configured=False)
    return IntegrationResponse(
        configured=integration.is_configured,
        project_url=integration.project_url or None,
        selected_table=integration.selected_table,
        updated_at=integration.updated_at,
    )


@router.get(
    "/integration",
    response_model=IntegrationResponse,
    summary="Get Integration",
    description="Connection settings of the caller. The key is never returned."
)
def read_integration(
    user: AuthenticatedUser = Depends(get_current_user),
    control: UserControl = Depends(require_approved),
    primary: Client = Depends(get_primary_client),
):
    try:
        return _integration_response(get_integration(primary, user.user_id))

    except (HTTPException, DashboardError):
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to load integration: {str(e)}"
        )


@router.post(
    "/integration/test",
    response_model=ConnectionTestResponse,
    summary="Test Connection",
    description="Step 1: check the project URL and public key."
)
def test_integration_connection(
    request: ConnectionRequest,
    control: UserControl = Depends(require_approved),
):
    try:
        result = check_connection(request.project_url, request.anon_key)
        return ConnectionTestResponse(success=result.success, error=result.error)

    except (HTTPException, DashboardError):
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to test connection: {str(e)}"
        )


@router.post(
    "/integration/tables",
    response_model=TableListResponse,
    summary="List Tables",
    description="Step 2: list tables through the project's get_tables RPC, when it exists."
)
def list_integration_tables(
    request: ConnectionRequest,
    control: UserControl = Depends(require_approved),
):
    try:
        listing = list_tables(request.project_url, request.anon_key)
        return TableListResponse(tables=listing.tables, error=listing.error)

    except (HTTPException, DashboardError):
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to list tables: {str(e)}"
        )


@router.put(
    "/integration",
    response_model=IntegrationResponse,
    summary="Save Integration",
    description="Step 3: validate and store the connection settings."
)
async def save_user_integration(
    request: IntegrationRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    control: UserControl = Depends(require_approved),
    primary: Client = Depends(get_primary_client),
    registry: SessionRegistry = Depends(get_session_registry),
):
    """
    **Example request:**
    ```json
    {
      "project_url": "https://abcdefgh.supabase.co",
      "anon_key": "eyJhbGciOi...",
      "selected_table": "leads"
    }
    ```
    """
    try:
        integration = await run_in_threadpool(
            complete_setup,
            primary,
            user.user_id,
            request.project_url,
            request.anon_key,
            request.selected_table,
        )
        await registry.discard(user.user_id)
        return _integration_response(integration)

    except (HTTPException, DashboardError):
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to save integration: {str(e)}"
        )


@router.delete(
    "/integration",
    response_model=IntegrationResponse,
    summary="Remove Integration"
)
async def remove_integration(
    user: AuthenticatedUser = Depends(get_current_user),
    control: UserControl = Depends(require_approved),
    primary: Client = Depends(get_primary_client),
    registry: SessionRegistry = Depends(get_session_registry),
):
    try:
        await run_in_threadpool(delete_integration, primary, user.user_id)
        await registry.discard(user.user_id)
        return IntegrationResponse(configured=False)

    except (HTTPException, DashboardError):
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to remove integration: {str(e)}"
        )
