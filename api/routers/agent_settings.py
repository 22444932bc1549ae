"""
Agent Settings API Endpoints.

Read and replace the AI agent prompt stored in the user's project.
"""

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_dashboard_session
from api.models import AgentSettingsModel
from domain.errors import DashboardError
from services.agent_settings_service import get_agent_settings, save_agent_prompt
from services.dashboard_service import DashboardSession

router = APIRouter()


@router.get("/agent-settings", response_model=AgentSettingsModel, summary="Get Agent Prompt")
def read_agent_settings(session: DashboardSession = Depends(get_dashboard_session)):
    try:
        settings = get_agent_settings(session.client)
        if settings is None:
            raise HTTPException(
                status_code=404,
                detail="No agent_settings row found in your project"
            )
        return AgentSettingsModel(prompt=settings.prompt)

    except (HTTPException, DashboardError):
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to load agent settings: {str(e)}"
        )


@router.put("/agent-settings", response_model=AgentSettingsModel, summary="Update Agent Prompt")
def update_agent_settings(
    request: AgentSettingsModel,
    session: DashboardSession = Depends(get_dashboard_session),
):
    try:
        settings = save_agent_prompt(session.client, request.prompt)
        return AgentSettingsModel(prompt=settings.prompt)

    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (HTTPException, DashboardError):
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to save agent settings: {str(e)}"
        )
