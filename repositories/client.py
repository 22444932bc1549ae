"""
Supabase client construction and query execution.

Two kinds of projects are involved:
- the primary (owner) project holding integrations, preferences and access
  control, configured through SUPABASE_URL / SUPABASE_KEY;
- each user's external project, configured through their integration record.

No client is kept at module level. Callers create clients explicitly and pass
them to the repository functions that need them.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from postgrest.exceptions import APIError

# The dependency is `supabase` (supabase-py): `pip install supabase`.
from supabase import Client, create_client  # type: ignore[import-not-found]

from config import Settings
from domain.errors import ConfigurationError, ConnectivityError, ValidationError
from domain.integration import Integration, validate_anon_key, validate_project_url

logger = logging.getLogger(__name__)


def create_supabase_client(project_url: str, api_key: str) -> Client:
    """
    Create a Supabase client.

    Raises:
        ConfigurationError: if the URL or key is rejected by the client library
    """

    try:
        return create_client(project_url, api_key)
    except Exception as e:
        raise ConfigurationError(f"Invalid Supabase credentials: {e}") from e


def create_primary_client(settings: Settings) -> Client:
    """Client for the owner project."""
    return create_supabase_client(settings.supabase_url, settings.supabase_key)


def create_external_client(integration: Integration) -> Client:
    """
    Client for the user's own project.

    Raises:
        ConfigurationError: if the integration is missing its URL or key
    """

    try:
        url = validate_project_url(integration.project_url)
        key = validate_anon_key(integration.anon_key)
    except ValidationError as e:
        raise ConfigurationError(e.message) from e
    return create_supabase_client(url, key)


def execute(query: Any, action: str) -> Any:
    """
    Execute a postgrest query builder and return the response.

    Raises:
        ConnectivityError: if the project is unreachable or rejects the query
    """

    try:
        response = query.execute()
    except APIError as e:
        message = getattr(e, "message", None) or str(e)
        logger.warning("Supabase query rejected", extra={"action": action, "error": message})
        raise ConnectivityError(f"Failed to {action}: {message}") from e
    except httpx.HTTPError as e:
        logger.warning("Supabase unreachable", extra={"action": action, "error": str(e)})
        raise ConnectivityError(f"Failed to {action}: {e}") from e

    error = getattr(response, "error", None)
    if error:
        raise ConnectivityError(f"Failed to {action}: {error}")
    return response


def rows_of(response: Any) -> list[dict[str, Any]]:
    return list(getattr(response, "data", None) or [])


__all__ = [
    "create_external_client",
    "create_primary_client",
    "create_supabase_client",
    "execute",
    "rows_of",
]
