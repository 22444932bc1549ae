"""
Domain: access control record.

New users get a record with role "user" and approved=false; an admin approves
or blocks them. Admins always have access.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Optional

from .time import parse_timestamp


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"


class AccessStatus(str, Enum):
    APPROVED = "Approved"
    PENDING = "Pending"
    BLOCKED = "Blocked"


@dataclass(frozen=True, slots=True)
class UserControl:
    user_id: str
    email: str = ""
    role: Role = Role.USER
    approved: bool = False
    approved_by: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    @property
    def can_access_app(self) -> bool:
        return self.is_admin or self.approved

    @property
    def status(self) -> AccessStatus:
        if self.approved:
            return AccessStatus.APPROVED
        # An approver on an unapproved record means someone revoked access.
        return AccessStatus.BLOCKED if self.approved_by else AccessStatus.PENDING

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "UserControl":
        try:
            role = Role(str(row.get("role") or Role.USER.value))
        except ValueError:
            role = Role.USER
        return cls(
            user_id=str(row["user_id"]),
            email=str(row.get("email") or ""),
            role=role,
            approved=row.get("approved") is True,
            approved_by=row.get("approved_by") or None,
            created_at=parse_timestamp(row["created_at"]) if row.get("created_at") else None,
        )


__all__ = ["AccessStatus", "Role", "UserControl"]
