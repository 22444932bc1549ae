"""
Tests for `services/report_export_service.py`.

Covers:
- Formula characters are stripped from text cells (with a warning logged).
- Summary sheet honours display preferences; lost leads are always listed.
- Data sheet exists only when there are rows, with Yes/No flags and fixed widths.
- export_report reads a fresh, newest-first row set and names the file after the period.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from io import BytesIO

import pytest
from openpyxl import load_workbook

from domain.integration import Integration
from domain.lead import LeadRecord
from domain.period import Period
from domain.preferences import DisplayPreferences
from services.dashboard_service import DashboardSession, PeriodSelection
from services.report_export_service import (
    DATA_COLUMN_WIDTHS,
    DATA_HEADERS,
    build_report_workbook,
    export_report,
    report_filename,
    sanitize_cell,
)
from tests.fakes import lead_row

GENERATED_AT = datetime(2025, 3, 15, 18, 0, 0, tzinfo=timezone.utc)


def _records() -> list[LeadRecord]:
    created = datetime(2025, 3, 14, 13, 0, 0, tzinfo=timezone.utc)
    return [
        LeadRecord(
            "lead-1",
            created,
            qualified=True,
            converted=True,
            converted_at=created + timedelta(hours=1),
            client_id="5511",
            client_name="=cmd|' /C calc'!A0",
        ),
        LeadRecord("lead-2", created, disqualified=True, client_name="Ana"),
    ]


def _summary_values(workbook) -> dict:
    sheet = workbook["Summary"]
    return {row[0]: row[1] for row in sheet.iter_rows(values_only=True) if row and row[0]}


def test_sanitize_cell_strips_formula_prefixes(caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="services.report_export_service"):
        assert sanitize_cell("=1+1", "client_name") == "1+1"
        assert sanitize_cell("@SUM(1+1)", "client_name") == "SUM(1+1)"
        assert sanitize_cell("+-=x", "client_name") == "x"

    assert len(caplog.records) == 3
    assert sanitize_cell("Maria Silva") == "Maria Silva"
    assert sanitize_cell(None) == ""


def test_summary_sheet_lists_enabled_metrics(sao_paulo) -> None:
    workbook = build_report_workbook(
        _records(), DisplayPreferences(), Period.LAST_7_DAYS, GENERATED_AT, sao_paulo
    )

    values = _summary_values(workbook)

    assert values["Period"] == "Last 7 days"
    assert values["Generated at"] == "15/03/2025 15:00"
    assert values["Total conversations"] == 2
    assert values["Conversions"] == 1
    assert values["Conversion rate"] == "50.0%"
    assert values["Qualified leads"] == 1
    assert values["Disqualified leads"] == 1
    assert values["Lost leads"] == 1


def test_summary_sheet_hides_disabled_metrics(sao_paulo) -> None:
    preferences = DisplayPreferences(show_conversoes=False, show_desqualificados=False)

    values = _summary_values(
        build_report_workbook(_records(), preferences, Period.TODAY, GENERATED_AT, sao_paulo)
    )

    assert "Conversions" not in values
    assert "Conversion rate" not in values
    assert "Disqualified leads" not in values
    assert values["Lost leads"] == 1


def test_data_sheet_rows_and_widths(sao_paulo) -> None:
    workbook = build_report_workbook(
        _records(), DisplayPreferences(), Period.LAST_7_DAYS, GENERATED_AT, sao_paulo
    )

    sheet = workbook["Data"]
    rows = list(sheet.iter_rows(values_only=True))

    assert rows[0] == DATA_HEADERS
    assert rows[1] == (
        "lead-1",
        "5511",
        "cmd|' /C calc'!A0",
        "14/03/2025 10:00",
        "Yes",
        "No",
        "Yes",
        "14/03/2025 11:00",
    )
    assert rows[2][4:7] == ("No", "Yes", "No")
    assert rows[2][7] in ("", None)
    assert [sheet.column_dimensions[letter].width for letter in "ABCDEFGH"] == list(DATA_COLUMN_WIDTHS)


def test_data_sheet_omitted_without_rows(sao_paulo) -> None:
    workbook = build_report_workbook([], DisplayPreferences(), Period.ALL, GENERATED_AT, sao_paulo)

    assert workbook.sheetnames == ["Summary"]
    assert _summary_values(workbook)["Lost leads"] == 0


def test_export_report_reads_fresh_rows_newest_first(fake_db, sao_paulo, fixed_now) -> None:
    fake_db.tables["leads"] = [
        lead_row("old", "2025-03-14T10:00:00Z", converted=True),
        lead_row("new", "2025-03-15T10:00:00Z"),
        lead_row("outside", "2024-01-01T10:00:00Z"),
    ]
    integration = Integration("user-1", "https://x.supabase.co", "key", "leads")
    session = DashboardSession("user-1", integration, fake_db, sao_paulo, clock=lambda: fixed_now)

    exported = export_report(session, DisplayPreferences(), PeriodSelection(Period.LAST_7_DAYS), fixed_now)

    assert exported.filename == "lead-metrics-report-7-days.xlsx"
    assert exported.row_count == 2
    assert exported.skipped_rows == 0
    assert fake_db.queries("leads")[0].orderings == [("created_at", True), ("id", True)]

    workbook = load_workbook(BytesIO(exported.content))
    ids = [row[0] for row in workbook["Data"].iter_rows(min_row=2, values_only=True)]
    assert ids == ["new", "old"]


@pytest.mark.parametrize(
    "period, expected",
    [
        (Period.TODAY, "lead-metrics-report-today.xlsx"),
        (Period.ALL, "lead-metrics-report-full-history.xlsx"),
    ],
)
def test_report_filename(period, expected) -> None:
    assert report_filename(period) == expected
