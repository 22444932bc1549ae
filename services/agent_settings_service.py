"""
Agent prompt editor.

The prompt lives in the single `agent_settings` row of the user's external
project. The row is created by the automation, never by this service.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from supabase import Client  # type: ignore[import-not-found]

from repositories.chat_repository import get_agent_settings_row, update_agent_prompt


@dataclass(frozen=True, slots=True)
class AgentSettings:
    settings_id: Any
    prompt: str


def get_agent_settings(client: Client) -> Optional[AgentSettings]:
    row = get_agent_settings_row(client)
    if row is None:
        return None
    return AgentSettings(settings_id=row.get("id"), prompt=row.get("agent_prompt") or "")


def save_agent_prompt(client: Client, prompt: str) -> AgentSettings:
    """
    Replace the agent prompt.

    Raises:
        LookupError: if the project has no agent_settings row
    """

    current = get_agent_settings(client)
    if current is None:
        raise LookupError("No agent_settings row found to update")

    update_agent_prompt(client, current.settings_id, prompt)
    return AgentSettings(settings_id=current.settings_id, prompt=prompt)


__all__ = ["AgentSettings", "get_agent_settings", "save_agent_prompt"]
