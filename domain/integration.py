"""
Domain: external project integration.

A user connects the dashboard to their own Supabase project by supplying the
project URL, its public (anon) key and the lead table to read. The setup flow
validates each field before moving to the next step.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional

from .errors import ValidationError
from .time import parse_timestamp

ALLOWED_HOST_MARKERS = ("supabase.co", "supabase.in")


def validate_project_url(project_url: Optional[str]) -> str:
    """Step 1: the project URL is required and must point at Supabase."""

    url = (project_url or "").strip()
    if not url:
        raise ValidationError("Project URL is required")
    if not any(marker in url for marker in ALLOWED_HOST_MARKERS):
        raise ValidationError("Project URL looks invalid: it must contain supabase.co")
    return url


def validate_anon_key(anon_key: Optional[str]) -> str:
    """Step 2: the public key is required."""

    key = (anon_key or "").strip()
    if not key:
        raise ValidationError("Public (anon) key is required")
    return key


def validate_table_name(table_name: Optional[str]) -> str:
    """Step 3: the lead table name is required."""

    table = (table_name or "").strip()
    if not table:
        raise ValidationError("Table name is required")
    return table


@dataclass(frozen=True, slots=True)
class Integration:
    """
    Stored connection settings for one user.

    selected_table may be None while setup is incomplete.
    """

    user_id: str
    project_url: str
    anon_key: str
    selected_table: Optional[str] = None
    integration_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.project_url and self.anon_key and self.selected_table)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Integration":
        return cls(
            integration_id=str(row["id"]) if row.get("id") is not None else None,
            user_id=str(row["user_id"]),
            project_url=str(row.get("project_url") or ""),
            anon_key=str(row.get("anon_key") or ""),
            selected_table=row.get("selected_table") or None,
            created_at=parse_timestamp(row["created_at"]) if row.get("created_at") else None,
            updated_at=parse_timestamp(row["updated_at"]) if row.get("updated_at") else None,
        )


__all__ = [
    "Integration",
    "validate_anon_key",
    "validate_project_url",
    "validate_table_name",
]
