"""
Access control repository (primary project).

Provides functions to fetch, create and approve `user_control` records.
"""

from __future__ import annotations

from typing import List

from supabase import Client  # type: ignore[import-not-found]

from domain.user_control import Role, UserControl
from repositories.client import execute, rows_of

_USER_CONTROL_TABLE: str = "user_control"


def ensure_user_control(client: Client, user_id: str, email: str = "") -> UserControl:
    """
    Fetch the user's access record, creating a pending one on first login.

    Example:
        control = ensure_user_control(primary, user.user_id, user.email)
        if not control.can_access_app:
            # route to the pending-approval page
    """

    rows = rows_of(
        execute(
            client.table(_USER_CONTROL_TABLE).select("*").eq("user_id", user_id).limit(1),
            "load access record",
        )
    )
    if rows:
        return UserControl.from_row(rows[0])

    payload = {
        "user_id": user_id,
        "email": email,
        "role": Role.USER.value,
        "approved": False,
    }
    inserted = rows_of(execute(client.table(_USER_CONTROL_TABLE).insert(payload), "create access record"))
    return UserControl.from_row(inserted[0] if inserted else payload)


def list_user_controls(client: Client) -> List[UserControl]:
    """All access records, newest first."""

    response = execute(
        client.table(_USER_CONTROL_TABLE).select("*").order("created_at", desc=True),
        "list users",
    )
    return [UserControl.from_row(row) for row in rows_of(response)]


def set_approval(client: Client, user_id: str, approved: bool, approved_by: str) -> None:
    """Approve or block a user, recording who made the change."""

    execute(
        client.table(_USER_CONTROL_TABLE)
        .update({"approved": approved, "approved_by": approved_by})
        .eq("user_id", user_id),
        "approve user" if approved else "block user",
    )


__all__ = ["ensure_user_control", "list_user_controls", "set_approval"]
