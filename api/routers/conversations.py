"""
Conversations API Endpoints.

Chat history per lead and switching the AI agent off for a lead.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from api.dependencies import get_clock, get_dashboard_session, get_period_selection, get_settings
from api.models import (
    ChatMessageModel,
    DisableAgentResponse,
    MessageListResponse,
    SessionListResponse,
)
from config import Settings
from domain.errors import DashboardError
from services.conversation_service import disable_agent_for_lead, get_messages, list_sessions
from services.dashboard_service import Clock, DashboardSession, PeriodSelection

router = APIRouter()


@router.get(
    "/conversations/sessions",
    response_model=SessionListResponse,
    summary="List Conversation Sessions",
    description="Session ids with chat activity in the period, most recent first."
)
def get_sessions(
    search: Optional[str] = Query(None, description="Filter sessions whose id contains this text"),
    selection: PeriodSelection = Depends(get_period_selection),
    session: DashboardSession = Depends(get_dashboard_session),
    settings: Settings = Depends(get_settings),
    clock: Clock = Depends(get_clock),
):
    try:
        sessions = list_sessions(
            session.client,
            settings.chat_history_table,
            selection.period,
            clock(),
            settings.timezone,
            custom=selection.custom,
            limit=settings.chat_session_limit,
            search=search,
        )
        return SessionListResponse(sessions=sessions, total_count=len(sessions))

    except (HTTPException, DashboardError):
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to list conversations: {str(e)}"
        )


@router.get(
    "/conversations/{session_id}/messages",
    response_model=MessageListResponse,
    summary="Get Conversation Messages"
)
def get_session_messages(
    session_id: str,
    selection: PeriodSelection = Depends(get_period_selection),
    session: DashboardSession = Depends(get_dashboard_session),
    settings: Settings = Depends(get_settings),
    clock: Clock = Depends(get_clock),
):
    """Messages of one session in chronological order, limited to the period."""
    try:
        messages = get_messages(
            session.client,
            settings.chat_history_table,
            session_id,
            selection.period,
            clock(),
            settings.timezone,
            custom=selection.custom,
        )
        return MessageListResponse(
            session_id=session_id,
            messages=[
                ChatMessageModel(
                    id=str(message.message_id) if message.message_id is not None else None,
                    session_id=message.session_id,
                    type=message.type,
                    content=message.content,
                    created_at=message.created_at,
                )
                for message in messages
            ],
        )

    except (HTTPException, DashboardError):
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to load messages: {str(e)}"
        )


@router.post(
    "/conversations/{session_id}/disable-agent",
    response_model=DisableAgentResponse,
    summary="Disable Agent For Lead",
    description="Switch the AI agent off for the lead behind a conversation."
)
def disable_agent(
    session_id: str,
    session: DashboardSession = Depends(get_dashboard_session),
):
    try:
        lead_id = disable_agent_for_lead(session.client, session_id)
        return DisableAgentResponse(lead_id=lead_id, agent_on=False)

    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (HTTPException, DashboardError):
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to disable agent: {str(e)}"
        )
