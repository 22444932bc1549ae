"""
Domain: error taxonomy.

Every failure the dashboard reports to the user is one of these. Each carries
a human-readable message; the HTTP layer maps the class to a status code and
a follow-up action for the client.
"""

from __future__ import annotations


class DashboardError(Exception):
    """Base class for user-facing dashboard failures."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConnectivityError(DashboardError):
    """A Supabase project is unreachable or rejected the query."""


class ConfigurationError(DashboardError):
    """Integration or server configuration is missing or malformed."""


class AuthenticationError(DashboardError):
    """No valid session for the request."""


class AuthorizationError(DashboardError):
    """The user is authenticated but not allowed to do this."""


class ValidationError(DashboardError):
    """Setup input failed validation."""


class MalformedRowError(ValueError):
    """A lead row cannot be turned into a LeadRecord."""


__all__ = [
    "AuthenticationError",
    "AuthorizationError",
    "ConfigurationError",
    "ConnectivityError",
    "DashboardError",
    "MalformedRowError",
    "ValidationError",
]
