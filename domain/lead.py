"""
Domain: LeadRecord entity.

A LeadRecord is one row of the user's lead table in their external Supabase
project: one conversation/lead. Records are read-only here; the dashboard never
writes them back.

Contract excerpts implemented here:
- created_at is required and timezone-aware.
- Boolean flags arrive as true, false, null or absent. Only a literal `true`
  counts; everything else collapses to False once, at ingestion.
- converted_at is optional; an unparsable value is treated as absent.
- Rows without a usable created_at are skipped by normalize_lead_rows and
  counted, never silently propagated into the metrics.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from .errors import MalformedRowError
from .time import milliseconds_between, parse_timestamp, require_aware_timestamp

logger = logging.getLogger(__name__)

# Column names in the external lead table.
ID_COLUMN = "id"
CLIENT_ID_COLUMN = "cliente_id"
CLIENT_NAME_COLUMN = "cliente_nome"
CREATED_AT_COLUMN = "created_at"
QUALIFIED_COLUMN = "qualified"
DISQUALIFIED_COLUMN = "disqualified"
CONVERTED_COLUMN = "converted"
CONVERTED_AT_COLUMN = "data_conversao"


def as_flag(value: Any) -> bool:
    """Collapse a nullable/absent boolean column to a strict bool."""
    return value is True


def _optional_text(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


@dataclass(frozen=True, slots=True)
class LeadRecord:
    """
    Pure domain entity for one lead row.
    """

    lead_id: str
    created_at: datetime
    qualified: bool = False
    disqualified: bool = False
    converted: bool = False
    converted_at: Optional[datetime] = None
    client_id: Optional[str] = None
    client_name: Optional[str] = None

    def __post_init__(self) -> None:
        require_aware_timestamp("created_at", self.created_at)
        if self.converted_at is not None:
            require_aware_timestamp("converted_at", self.converted_at)

    @property
    def conversion_time(self) -> Optional[float]:
        """
        Milliseconds from creation to conversion, or None when this record
        does not qualify for the average conversion time.
        """

        if not self.converted or self.converted_at is None:
            return None
        if self.converted_at <= self.created_at:
            return None
        return milliseconds_between(self.created_at, self.converted_at)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "LeadRecord":
        """
        Convert a Supabase row into a LeadRecord.

        Raises:
            MalformedRowError: if created_at is missing or unparsable
        """

        raw_created = row.get(CREATED_AT_COLUMN)
        if raw_created is None or raw_created == "":
            raise MalformedRowError("created_at is missing")
        try:
            created_at = parse_timestamp(raw_created)
        except (TypeError, ValueError) as e:
            raise MalformedRowError(f"created_at is not a valid timestamp: {raw_created!r}") from e

        converted_at: Optional[datetime] = None
        raw_converted_at = row.get(CONVERTED_AT_COLUMN)
        if raw_converted_at:
            try:
                converted_at = parse_timestamp(raw_converted_at)
            except (TypeError, ValueError):
                converted_at = None

        return cls(
            lead_id=str(row.get(ID_COLUMN, "")),
            created_at=created_at,
            qualified=as_flag(row.get(QUALIFIED_COLUMN)),
            disqualified=as_flag(row.get(DISQUALIFIED_COLUMN)),
            converted=as_flag(row.get(CONVERTED_COLUMN)),
            converted_at=converted_at,
            client_id=_optional_text(row.get(CLIENT_ID_COLUMN)),
            client_name=_optional_text(row.get(CLIENT_NAME_COLUMN)),
        )


@dataclass(frozen=True, slots=True)
class NormalizedRows:
    """Parsed records in input order plus the number of rows that were skipped."""

    records: Tuple[LeadRecord, ...]
    skipped: int = 0


def normalize_lead_rows(rows: Iterable[Mapping[str, Any]]) -> NormalizedRows:
    """
    Parse raw rows, preserving input order. Malformed rows are skipped and
    counted.
    """

    records: List[LeadRecord] = []
    skipped = 0
    for row in rows:
        try:
            records.append(LeadRecord.from_row(row))
        except MalformedRowError as e:
            skipped += 1
            logger.warning(
                "Skipping malformed lead row",
                extra={"lead_id": row.get(ID_COLUMN), "reason": str(e)},
            )
    return NormalizedRows(records=tuple(records), skipped=skipped)


__all__ = [
    "LeadRecord",
    "NormalizedRows",
    "as_flag",
    "normalize_lead_rows",
]
