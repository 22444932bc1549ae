"""
Integration repository (primary project).

Persistence for the per-user connection settings in `user_integrations`.
Validation of the values belongs to `domain.integration`.
"""

from __future__ import annotations

from typing import Optional

from supabase import Client  # type: ignore[import-not-found]

from domain.integration import Integration
from repositories.client import execute, rows_of

_INTEGRATIONS_TABLE: str = "user_integrations"


def get_integration(client: Client, user_id: str) -> Optional[Integration]:
    """
    Fetch the integration of a user.

    Returns:
    - Integration if found
    - None if the user never completed setup
    """

    response = execute(
        client.table(_INTEGRATIONS_TABLE).select("*").eq("user_id", user_id).limit(1),
        "load integration",
    )
    rows = rows_of(response)
    if not rows:
        return None
    return Integration.from_row(rows[0])


def save_integration(
    client: Client,
    user_id: str,
    project_url: str,
    anon_key: str,
    selected_table: Optional[str] = None,
) -> Integration:
    """
    Create or replace the integration of a user.

    An existing row is updated in place; otherwise a new row is inserted.
    """

    payload = {
        "user_id": user_id,
        "project_url": project_url,
        "anon_key": anon_key,
        "selected_table": selected_table or None,
    }

    existing = rows_of(
        execute(
            client.table(_INTEGRATIONS_TABLE).select("id").eq("user_id", user_id).limit(1),
            "load integration",
        )
    )

    if existing:
        query = client.table(_INTEGRATIONS_TABLE).update(payload).eq("user_id", user_id)
    else:
        query = client.table(_INTEGRATIONS_TABLE).insert(payload)

    rows = rows_of(execute(query, "save integration"))
    if rows:
        return Integration.from_row(rows[0])
    return Integration.from_row(payload)


def delete_integration(client: Client, user_id: str) -> None:
    execute(
        client.table(_INTEGRATIONS_TABLE).delete().eq("user_id", user_id),
        "remove integration",
    )


__all__ = ["delete_integration", "get_integration", "save_integration"]
