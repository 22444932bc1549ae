"""
Display preferences repository (primary project).
"""

from __future__ import annotations

from supabase import Client  # type: ignore[import-not-found]

from domain.preferences import DEFAULT_PREFERENCES, DisplayPreferences
from repositories.client import execute, rows_of

_PREFERENCES_TABLE: str = "user_preferences"


def get_preferences(client: Client, user_id: str) -> DisplayPreferences:
    """Stored preferences, or the defaults (everything visible) if none exist."""

    rows = rows_of(
        execute(
            client.table(_PREFERENCES_TABLE).select("*").eq("user_id", user_id).limit(1),
            "load preferences",
        )
    )
    if not rows:
        return DisplayPreferences(
            user_id=user_id,
            **DEFAULT_PREFERENCES.to_row(),
        )
    return DisplayPreferences.from_row(rows[0])


def save_preferences(client: Client, user_id: str, preferences: DisplayPreferences) -> DisplayPreferences:
    """Update the user's row if present, insert it otherwise."""

    existing = rows_of(
        execute(
            client.table(_PREFERENCES_TABLE).select("id").eq("user_id", user_id).limit(1),
            "load preferences",
        )
    )

    values = preferences.to_row()
    if existing:
        query = client.table(_PREFERENCES_TABLE).update(values).eq("user_id", user_id)
    else:
        query = client.table(_PREFERENCES_TABLE).insert({"user_id": user_id, **values})
    execute(query, "save preferences")

    return DisplayPreferences(user_id=user_id, **values)


__all__ = ["get_preferences", "save_preferences"]
