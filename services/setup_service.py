"""
Integration setup flow.

Three steps, each validated before the next:
1. project URL and public key, checked with a throwaway query
2. lead table, picked from `get_tables` when the project exposes that RPC or
   typed in manually
3. save to `user_integrations` in the primary project

Contract excerpts:
- A missing `_test_connection_` table or a permission error still proves the
  project is reachable and the key is accepted, so both count as success.
- Listing tables never fails the flow; without the RPC the user gets an
  empty list and a hint to type the name.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

from supabase import Client  # type: ignore[import-not-found]

from domain.errors import ConfigurationError, ConnectivityError
from domain.integration import (
    Integration,
    validate_anon_key,
    validate_project_url,
    validate_table_name,
)
from repositories.client import create_supabase_client, execute
from repositories.integration_repository import save_integration

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str, str], Client]

PROBE_TABLE = "_test_connection_"
LIST_TABLES_RPC = "get_tables"
LIST_TABLES_HINT = (
    "To list tables automatically, create a 'get_tables' RPC function in your "
    "Supabase project, or type the table name manually."
)

_REACHABLE_ERROR_MARKERS = (
    "does not exist",
    "permission denied",
    "Could not find the table",
)


@dataclass(frozen=True, slots=True)
class ConnectionTestResult:
    success: bool
    error: Optional[str] = None


@dataclass(frozen=True, slots=True)
class TableListing:
    tables: List[str] = field(default_factory=list)
    error: Optional[str] = None


def _is_reachable_error(message: str) -> bool:
    return any(marker in message for marker in _REACHABLE_ERROR_MARKERS)


def check_connection(
    project_url: str,
    anon_key: str,
    client_factory: ClientFactory = create_supabase_client,
) -> ConnectionTestResult:
    """
    Check that the project answers with the given key.

    Raises:
        ValidationError: if the URL or key fails field validation
    """

    url = validate_project_url(project_url)
    key = validate_anon_key(anon_key)

    try:
        client = client_factory(url, key)
        execute(client.table(PROBE_TABLE).select("*").limit(1), "test connection")
    except ConfigurationError as e:
        return ConnectionTestResult(success=False, error=e.message)
    except ConnectivityError as e:
        if not _is_reachable_error(e.message):
            logger.info("Connection test failed", extra={"project_url": url, "error": e.message})
            return ConnectionTestResult(success=False, error=e.message)

    return ConnectionTestResult(success=True)


def _table_names(data: Any) -> List[str]:
    if data is None:
        return []
    if isinstance(data, (str, dict)):
        data = [data]

    names: List[str] = []
    for item in data:
        if isinstance(item, dict):
            name = item.get("table_name") or item.get("name")
        else:
            name = item
        if name:
            names.append(str(name))
    return names


def list_tables(
    project_url: str,
    anon_key: str,
    client_factory: ClientFactory = create_supabase_client,
) -> TableListing:
    url = validate_project_url(project_url)
    key = validate_anon_key(anon_key)

    try:
        client = client_factory(url, key)
        response = execute(client.rpc(LIST_TABLES_RPC, {}), "list tables")
    except (ConfigurationError, ConnectivityError) as e:
        logger.info("Table listing unavailable", extra={"project_url": url, "error": e.message})
        return TableListing(tables=[], error=LIST_TABLES_HINT)

    return TableListing(tables=_table_names(getattr(response, "data", None)))


def complete_setup(
    primary: Client,
    user_id: str,
    project_url: str,
    anon_key: str,
    selected_table: str,
) -> Integration:
    """
    Validate all three fields and store the integration.

    Raises:
        ValidationError: if any field is invalid
        ConnectivityError: if the primary project cannot be written
    """

    integration = save_integration(
        primary,
        user_id,
        validate_project_url(project_url),
        validate_anon_key(anon_key),
        validate_table_name(selected_table),
    )
    logger.info("Integration saved", extra={"user_id": user_id, "table": integration.selected_table})
    return integration


__all__ = [
    "ConnectionTestResult",
    "LIST_TABLES_HINT",
    "TableListing",
    "check_connection",
    "complete_setup",
    "list_tables",
]
