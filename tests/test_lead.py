"""
Tests for `domain/lead.py`.

Covers contract rules:
- created_at is required and must be timezone-aware.
- Only a literal boolean true counts for qualified/disqualified/converted.
- An unparsable conversion date is treated as absent.
- Rows without a usable created_at are skipped and counted, preserving order of the rest.
- LeadRecord is immutable.
"""

from __future__ import annotations

import logging
from dataclasses import FrozenInstanceError
from datetime import datetime, timedelta, timezone

import pytest

from domain.errors import MalformedRowError
from domain.lead import LeadRecord, as_flag, normalize_lead_rows
from tests.fakes import lead_row


def test_created_at_must_be_timezone_aware() -> None:
    with pytest.raises(ValueError):
        LeadRecord(lead_id="1", created_at=datetime(2025, 1, 1, 12, 0, 0))


@pytest.mark.parametrize(
    "value, expected",
    [
        (True, True),
        (False, False),
        (None, False),
        ("true", False),
        (1, False),
        ("", False),
    ],
)
def test_as_flag_only_accepts_literal_true(value, expected) -> None:
    assert as_flag(value) is expected


def test_from_row_parses_timestamps_and_flags() -> None:
    row = lead_row(
        "abc",
        "2025-01-01T12:00:00Z",
        qualified=True,
        disqualified=None,
        converted=True,
        data_conversao="2025-01-01T13:30:00+00:00",
        cliente_id="5511999999999",
        cliente_nome="Maria",
    )

    record = LeadRecord.from_row(row)

    assert record.lead_id == "abc"
    assert record.created_at == datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
    assert record.qualified is True
    assert record.disqualified is False
    assert record.converted is True
    assert record.converted_at == datetime(2025, 1, 1, 13, 30, 0, tzinfo=timezone.utc)
    assert record.client_id == "5511999999999"
    assert record.client_name == "Maria"
    assert record.conversion_time == pytest.approx(90 * 60 * 1000)


def test_from_row_treats_naive_timestamp_as_utc() -> None:
    record = LeadRecord.from_row(lead_row("1", "2025-01-01T08:00:00"))

    assert record.created_at.utcoffset() == timedelta(0)
    assert record.created_at.hour == 8


def test_from_row_ignores_unparsable_conversion_date() -> None:
    record = LeadRecord.from_row(lead_row("1", "2025-01-01T08:00:00Z", converted=True, data_conversao="soon"))

    assert record.converted is True
    assert record.converted_at is None
    assert record.conversion_time is None


@pytest.mark.parametrize("created_at", [None, "", "not a date"])
def test_from_row_rejects_missing_or_invalid_created_at(created_at) -> None:
    with pytest.raises(MalformedRowError):
        LeadRecord.from_row(lead_row("1", created_at))


def test_conversion_time_requires_conversion_after_creation() -> None:
    created = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    unconverted = LeadRecord("1", created, converted=False, converted_at=created + timedelta(hours=1))
    same_instant = LeadRecord("2", created, converted=True, converted_at=created)
    before = LeadRecord("3", created, converted=True, converted_at=created - timedelta(seconds=1))

    assert unconverted.conversion_time is None
    assert same_instant.conversion_time is None
    assert before.conversion_time is None


def test_normalize_skips_and_counts_malformed_rows(caplog) -> None:
    rows = [
        lead_row("1", "2025-01-01T10:00:00Z"),
        lead_row("2", None),
        lead_row("3", "yesterday"),
        lead_row("4", "2025-01-02T10:00:00Z"),
    ]

    with caplog.at_level(logging.WARNING, logger="domain.lead"):
        normalized = normalize_lead_rows(rows)

    assert [record.lead_id for record in normalized.records] == ["1", "4"]
    assert normalized.skipped == 2
    assert len([r for r in caplog.records if r.levelno == logging.WARNING]) == 2


def test_lead_record_is_immutable() -> None:
    record = LeadRecord("1", datetime(2025, 1, 1, tzinfo=timezone.utc))

    with pytest.raises(FrozenInstanceError):
        record.converted = True  # type: ignore[misc]
