"""
Chat history and agent control repository (external project).

- Chat messages live in a history table with one row per message, grouped by
  `session_id` (one session per lead).
- `leads_metricas.agent_on` switches the AI agent on or off per lead.
- `agent_settings` holds the agent prompt (single row).
"""

from __future__ import annotations

from typing import Any, List, Optional

from supabase import Client  # type: ignore[import-not-found]

from domain.period import DateRange
from domain.time import to_iso_utc
from repositories.client import execute, rows_of

_AGENT_CONTROL_TABLE: str = "leads_metricas"
_AGENT_SETTINGS_TABLE: str = "agent_settings"


def _within(query: Any, date_range: Optional[DateRange]) -> Any:
    if date_range is None:
        return query
    return query.gte("created_at", to_iso_utc(date_range.start)).lte("created_at", to_iso_utc(date_range.end))


def list_session_rows(
    client: Client,
    table: str,
    date_range: Optional[DateRange],
    limit: int,
) -> List[dict[str, Any]]:
    """Most recent message rows (session_id, id, created_at), newest first."""

    query = client.table(table).select("session_id, id, created_at")
    query = _within(query, date_range).order("created_at", desc=True).limit(limit)
    return rows_of(execute(query, "list chat sessions"))


def list_message_rows(
    client: Client,
    table: str,
    session_id: str,
    date_range: Optional[DateRange],
) -> List[dict[str, Any]]:
    """Messages of one session, oldest first."""

    query = client.table(table).select("id, session_id, message, created_at").eq("session_id", session_id)
    query = _within(query, date_range).order("created_at", desc=False)
    return rows_of(execute(query, "load chat messages"))


def disable_agent(client: Client, lead_id: str) -> List[dict[str, Any]]:
    """Switch the agent off for a lead. Returns the rows that matched."""

    query = (
        client.table(_AGENT_CONTROL_TABLE)
        .update({"agent_on": False})
        .eq("cliente_id", lead_id)
    )
    return rows_of(execute(query, "disable the agent"))


def get_agent_settings_row(client: Client) -> Optional[dict[str, Any]]:
    rows = rows_of(
        execute(
            client.table(_AGENT_SETTINGS_TABLE).select("id, agent_prompt").limit(1),
            "load agent settings",
        )
    )
    return rows[0] if rows else None


def update_agent_prompt(client: Client, settings_id: Any, prompt: str) -> None:
    execute(
        client.table(_AGENT_SETTINGS_TABLE).update({"agent_prompt": prompt}).eq("id", settings_id),
        "save agent settings",
    )


__all__ = [
    "disable_agent",
    "get_agent_settings_row",
    "list_message_rows",
    "list_session_rows",
    "update_agent_prompt",
]
