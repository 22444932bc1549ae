"""
Lead repository (external project, read-only).

Reads raw rows from the lead table the user picked during setup. No metric
rules belong here; rows are returned as the project sent them and normalised
by `domain.lead.normalize_lead_rows`.
"""

from __future__ import annotations

from typing import Any, List, Optional

from supabase import Client  # type: ignore[import-not-found]

from domain.lead import CREATED_AT_COLUMN, ID_COLUMN
from domain.period import DateRange
from domain.time import to_iso_utc
from repositories.client import execute, rows_of

# PostgREST caps responses (1000 rows by default), so larger periods are read
# page by page.
PAGE_SIZE: int = 1000


def fetch_lead_rows(
    client: Client,
    table: str,
    date_range: Optional[DateRange] = None,
    newest_first: bool = False,
) -> List[dict[str, Any]]:
    """
    Fetch every row of `table` created within `date_range` (inclusive).

    Args:
    - client: external project client
    - table: lead table name
    - date_range: creation-time filter; None reads the whole table
    - newest_first: order by created_at descending instead of ascending

    Raises:
    - ConnectivityError if the project rejects the query
    """

    rows: List[dict[str, Any]] = []
    offset = 0
    while True:
        query = client.table(table).select("*")
        if date_range is not None:
            query = (
                query
                .gte(CREATED_AT_COLUMN, to_iso_utc(date_range.start))
                .lte(CREATED_AT_COLUMN, to_iso_utc(date_range.end))
            )
        # created_at is not unique; id keeps the order stable across pages.
        query = (
            query
            .order(CREATED_AT_COLUMN, desc=newest_first)
            .order(ID_COLUMN, desc=newest_first)
            .range(offset, offset + PAGE_SIZE - 1)
        )

        page = rows_of(execute(query, f"read leads from '{table}'"))
        rows.extend(page)
        if len(page) < PAGE_SIZE:
            return rows
        offset += PAGE_SIZE


__all__ = ["PAGE_SIZE", "fetch_lead_rows"]
