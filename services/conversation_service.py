"""
Conversation history viewer and per-lead agent control.

Chat rows are written by the automation that talks to leads; each row holds
one message and the `session_id` of the lead it belongs to. The `message`
column is JSON whose `content` is usually a string but may be any JSON value.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Any, List, Optional

from supabase import Client  # type: ignore[import-not-found]

from domain.errors import ValidationError
from domain.period import DateRange, Period, get_date_range
from domain.time import parse_timestamp
from repositories.chat_repository import disable_agent, list_message_rows, list_session_rows

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ChatMessage:
    message_id: Any
    session_id: str
    type: str
    content: str
    created_at: Optional[datetime] = None


def message_content(message: Any) -> str:
    """Readable text for a stored message payload."""

    if isinstance(message, str):
        return message
    if isinstance(message, dict) and isinstance(message.get("content"), str):
        return message["content"]
    return json.dumps(message, ensure_ascii=False, default=str)


def message_type(message: Any) -> str:
    if isinstance(message, dict):
        return str(message.get("type") or "unknown")
    return "unknown"


def _history_range(period: Period, now: datetime, tz: tzinfo, custom: Optional[DateRange]) -> Optional[DateRange]:
    if period is Period.ALL:
        return None
    return get_date_range(period, now, tz, custom)


def list_sessions(
    client: Client,
    table: str,
    period: Period,
    now: datetime,
    tz: tzinfo,
    custom: Optional[DateRange] = None,
    limit: int = 2000,
    search: Optional[str] = None,
) -> List[str]:
    """
    Distinct session ids, most recently active first.

    `limit` caps the number of message rows scanned, not the number of
    sessions returned.
    """

    rows = list_session_rows(client, table, _history_range(period, now, tz, custom), limit)

    sessions: List[str] = []
    seen: set = set()
    for row in rows:
        session_id = row.get("session_id")
        if not session_id or session_id in seen:
            continue
        seen.add(session_id)
        sessions.append(str(session_id))

    if search:
        needle = search.strip().lower()
        sessions = [session_id for session_id in sessions if needle in session_id.lower()]

    return sessions


def _parse_created_at(value: Any) -> Optional[datetime]:
    if not value:
        return None
    try:
        return parse_timestamp(value)
    except (TypeError, ValueError):
        return None


def get_messages(
    client: Client,
    table: str,
    session_id: str,
    period: Period,
    now: datetime,
    tz: tzinfo,
    custom: Optional[DateRange] = None,
) -> List[ChatMessage]:
    """Messages of one session in chronological order."""

    if not session_id:
        raise ValidationError("Session id is required")

    rows = list_message_rows(client, table, session_id, _history_range(period, now, tz, custom))
    return [
        ChatMessage(
            message_id=row.get("id"),
            session_id=str(row.get("session_id") or session_id),
            type=message_type(row.get("message")),
            content=message_content(row.get("message")),
            created_at=_parse_created_at(row.get("created_at")),
        )
        for row in rows
    ]


def disable_agent_for_lead(client: Client, lead_id: str) -> str:
    """
    Switch the AI agent off for one lead.

    Raises:
        ValidationError: if lead_id is empty
        LookupError: if no lead matches
    """

    lead_id = (lead_id or "").strip()
    if not lead_id:
        raise ValidationError("Lead id is required")

    matched = disable_agent(client, lead_id)
    if not matched:
        raise LookupError(f"No lead found with id {lead_id}")

    logger.info("Agent disabled for lead", extra={"lead_id": lead_id})
    return lead_id


__all__ = [
    "ChatMessage",
    "disable_agent_for_lead",
    "get_messages",
    "list_sessions",
    "message_content",
    "message_type",
]
