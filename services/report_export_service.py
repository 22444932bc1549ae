"""
Spreadsheet export of the lead metrics report.

Produces an .xlsx workbook with:
- "Summary": title, period, generation time and the metric lines the user
  has enabled in their display preferences (lost leads are always listed)
- "Data": one row per lead, only when the period has rows

The export reads a fresh row set instead of reusing the dashboard snapshot,
so its counts are derived here and can differ from the cards if data changed
in between.

Security:
- Formula injection prevention: text cells are stripped of leading
  formula characters before they reach the workbook
- Stripped characters are logged for monitoring
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, tzinfo
from io import BytesIO
from typing import List, Optional, Sequence

from openpyxl import Workbook  # type: ignore[import-not-found]
from openpyxl.utils import get_column_letter  # type: ignore[import-not-found]

from domain.lead import LeadRecord, normalize_lead_rows
from domain.period import DateRange, Period, get_date_range, period_label, period_slug
from domain.preferences import DisplayPreferences
from repositories.lead_repository import fetch_lead_rows
from services.dashboard_service import DashboardSession, PeriodSelection
from services.metrics_aggregator import compute_base_metrics

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

SUMMARY_SHEET = "Summary"
DATA_SHEET = "Data"

DATA_HEADERS = (
    "ID",
    "Client ID",
    "Client Name",
    "Created At",
    "Qualified",
    "Disqualified",
    "Converted",
    "Converted At",
)
DATA_COLUMN_WIDTHS = (40, 15, 25, 18, 12, 14, 12, 18)

_FORMULA_PREFIXES = {"=", "+", "-", "@", "\t", "\r"}
_DATETIME_FORMAT = "%d/%m/%Y %H:%M"


def sanitize_cell(value: Optional[str], field_name: str = "unknown") -> str:
    """
    Strip leading characters that spreadsheet apps treat as formulas.

    Stripped characters: =, +, -, @, tab, carriage return.

    Example:
        sanitize_cell("=HYPERLINK(...)", "client_name")
        # Returns "HYPERLINK(...)" and logs a warning

        sanitize_cell("Maria Silva", "client_name")
        # Returns "Maria Silva" unchanged
    """
    if value is None or value == "":
        return ""

    text = str(value).strip()
    original_text = text

    stripped_chars = []
    while text and text[0] in _FORMULA_PREFIXES:
        stripped_chars.append(text[0])
        text = text[1:]

    if stripped_chars:
        logger.warning(
            f"Formula character(s) stripped from export field '{field_name}'",
            extra={
                "field_name": field_name,
                "stripped_characters": "".join(stripped_chars),
                "original_value": original_text[:100],
                "sanitized_value": text[:100],
            },
        )

    return text


def _yes_no(flag: bool) -> str:
    return "Yes" if flag else "No"


def _format_datetime(value: Optional[datetime], tz: tzinfo) -> str:
    if value is None:
        return ""
    return value.astimezone(tz).strftime(_DATETIME_FORMAT)


def summary_lines(records: Sequence[LeadRecord], preferences: DisplayPreferences) -> List[tuple]:
    """(label, value) metric lines for the Summary sheet."""

    metrics = compute_base_metrics(records)
    lines: List[tuple] = []

    if preferences.show_conversas:
        lines.append(("Total conversations", metrics.conversations))
    if preferences.show_conversoes:
        lines.append(("Conversions", metrics.conversions))
        lines.append(("Conversion rate", f"{metrics.conversion_rate:.1f}%"))
    if preferences.show_qualificados:
        lines.append(("Qualified leads", metrics.qualified))
        lines.append(("Qualification rate", f"{metrics.qualification_rate:.1f}%"))
    if preferences.show_desqualificados:
        lines.append(("Disqualified leads", metrics.disqualified))
    lines.append(("Lost leads", metrics.lost_leads))

    return lines


def data_row(record: LeadRecord, tz: tzinfo) -> List[str]:
    return [
        sanitize_cell(record.lead_id, "id"),
        sanitize_cell(record.client_id, "client_id"),
        sanitize_cell(record.client_name, "client_name"),
        _format_datetime(record.created_at, tz),
        _yes_no(record.qualified),
        _yes_no(record.disqualified),
        _yes_no(record.converted),
        _format_datetime(record.converted_at, tz),
    ]


def build_report_workbook(
    records: Sequence[LeadRecord],
    preferences: DisplayPreferences,
    period: Period,
    generated_at: datetime,
    tz: tzinfo,
    custom: Optional[DateRange] = None,
) -> Workbook:
    workbook = Workbook()

    summary = workbook.active
    summary.title = SUMMARY_SHEET
    summary.append(["Lead Metrics Report"])
    summary.append([])
    summary.append(["Period", period_label(period, custom)])
    summary.append(["Generated at", _format_datetime(generated_at, tz)])
    summary.append([])
    summary.append(["METRICS SUMMARY"])
    summary.append([])
    for label, value in summary_lines(records, preferences):
        summary.append([label, value])

    if records:
        summary.append([])
        summary.append(["See the Data sheet for the detailed rows."])

        data = workbook.create_sheet(DATA_SHEET)
        data.append(list(DATA_HEADERS))
        for record in records:
            data.append(data_row(record, tz))
        for index, width in enumerate(DATA_COLUMN_WIDTHS, start=1):
            data.column_dimensions[get_column_letter(index)].width = width

    summary.column_dimensions["A"].width = 25
    summary.column_dimensions["B"].width = 25

    return workbook


def report_filename(period: Period, custom: Optional[DateRange] = None) -> str:
    return f"lead-metrics-report-{period_slug(period, custom)}.xlsx"


@dataclass(frozen=True, slots=True)
class ExportedReport:
    filename: str
    content: bytes
    row_count: int
    skipped_rows: int = 0

    @property
    def media_type(self) -> str:
        return XLSX_MEDIA_TYPE


def export_report(
    session: DashboardSession,
    preferences: DisplayPreferences,
    selection: PeriodSelection,
    now: datetime,
) -> ExportedReport:
    """
    Export the selected period as an .xlsx file.

    Raises:
        ConnectivityError: if the lead table cannot be read
        ValueError: if a custom period has no range
    """

    date_range = get_date_range(selection.period, now, session.tz, selection.custom)
    rows = fetch_lead_rows(session.client, session.table, date_range, newest_first=True)
    normalized = normalize_lead_rows(rows)

    workbook = build_report_workbook(
        normalized.records,
        preferences,
        selection.period,
        now,
        session.tz,
        selection.custom,
    )
    buffer = BytesIO()
    workbook.save(buffer)

    exported = ExportedReport(
        filename=report_filename(selection.period, selection.custom),
        content=buffer.getvalue(),
        row_count=len(normalized.records),
        skipped_rows=normalized.skipped,
    )
    logger.info(
        "Report exported",
        extra={
            "user_id": session.user_id,
            "period": selection.period.value,
            "row_count": exported.row_count,
            "skipped_rows": exported.skipped_rows,
        },
    )
    return exported


__all__ = [
    "DATA_COLUMN_WIDTHS",
    "DATA_HEADERS",
    "ExportedReport",
    "XLSX_MEDIA_TYPE",
    "build_report_workbook",
    "export_report",
    "report_filename",
    "sanitize_cell",
    "summary_lines",
]
