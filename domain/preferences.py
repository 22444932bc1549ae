"""
Domain: per-user display preferences.

Four toggles decide which metric cards, funnel steps and export lines are
shown. Users without a stored row see everything.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional

PREFERENCE_FIELDS = (
    "show_conversas",
    "show_conversoes",
    "show_qualificados",
    "show_desqualificados",
)


@dataclass(frozen=True, slots=True)
class DisplayPreferences:
    show_conversas: bool = True  # conversations
    show_conversoes: bool = True  # conversions
    show_qualificados: bool = True  # qualified leads
    show_desqualificados: bool = True  # disqualified leads
    user_id: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "DisplayPreferences":
        return cls(
            user_id=row.get("user_id"),
            **{name: row.get(name) is not False for name in PREFERENCE_FIELDS},
        )

    def to_row(self) -> dict[str, bool]:
        return {name: getattr(self, name) for name in PREFERENCE_FIELDS}

    def merged(self, updates: Mapping[str, Optional[bool]]) -> "DisplayPreferences":
        """Apply a partial update; unknown keys and None values are ignored."""

        changes = {
            name: bool(value)
            for name, value in updates.items()
            if name in PREFERENCE_FIELDS and value is not None
        }
        return replace(self, **changes)


DEFAULT_PREFERENCES = DisplayPreferences()

__all__ = ["DEFAULT_PREFERENCES", "DisplayPreferences", "PREFERENCE_FIELDS"]
