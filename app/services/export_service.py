"""
Export service layer.

Turns the stored dataset into downloadable files: the raw JSON document,
and the financial report rendered through ``ExcelExporter`` and
``PdfExporter``.  Both report formats share ``_report_tables`` so the
column definitions live in a single place.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

from app.exporters.excel_exporter import ExcelExporter
from app.exporters.pdf_exporter import PdfExporter
from app.schemas.dataset import Dataset
from app.schemas.reports import FinancialReport
from app.services.report_service import generate_financial_report
from app.utils.constants import EXCHANGE_RATE

logger = logging.getLogger(__name__)

REPORT_TITLE = "Financial Report"

_GAP_HEADERS = [
    "Program",
    "Students",
    "Income (EUR)",
    "Costs (EUR)",
    "Deficit (EUR)",
    "Income (UGX)",
    "Costs (UGX)",
    "Deficit (UGX)",
]
_SPONSOR_HEADERS = ["Program", "Sponsors", "Active", "Monthly funding (EUR)"]


def make_filename(stem: str, extension: str) -> str:
    """Timestamped download name, e.g. ``sponsorship_data_20250101_120000.json``."""
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    return f"{stem}_{stamp}.{extension}"


# ---------------------------------------------------------------------------
# Table helpers
# ---------------------------------------------------------------------------


def _kpis(report: FinancialReport) -> dict[str, Any]:
    summary = report.summary
    return {
        "Students": summary.total_students,
        "Income (EUR)": summary.total_income_eur,
        "Costs (EUR)": summary.total_costs_eur,
        "Deficit (EUR)": summary.total_deficit_eur,
        "Deficit (UGX)": summary.total_deficit_ugx,
    }


def _report_tables(
    report: FinancialReport,
) -> tuple[list[list[Any]], list[Any], list[list[Any]], list[Any]]:
    """Return (gap_rows, gap_totals, sponsor_rows, sponsor_totals)."""
    gap_rows: list[list[Any]] = []
    for code, gap in report.funding_gap.programs.items():
        gap_rows.append([
            code,
            gap.student_count,
            round(gap.income_eur, 2),
            round(gap.costs_eur, 2),
            round(gap.deficit_eur, 2),
            round(gap.income_ugx, 2),
            round(gap.costs_ugx, 2),
            round(gap.deficit_ugx, 2),
        ])
    summary = report.summary
    gap_totals: list[Any] = [
        "Total",
        summary.total_students,
        round(summary.total_income_eur, 2),
        round(summary.total_costs_eur, 2),
        round(report.funding_gap.total_deficit_eur, 2),
        round(summary.total_income_ugx, 2),
        round(summary.total_costs_ugx, 2),
        round(report.funding_gap.total_deficit_ugx, 2),
    ]

    stats = report.sponsor_statistics
    sponsor_rows: list[list[Any]] = [
        [code, item.total_sponsors, item.active_sponsors, round(item.monthly_funding, 2)]
        for code, item in stats.program_stats.items()
    ]
    sponsor_totals: list[Any] = [
        "Total",
        stats.total_sponsors,
        stats.active_sponsors,
        round(stats.total_monthly_funding, 2),
    ]
    return gap_rows, gap_totals, sponsor_rows, sponsor_totals


def _subtitle(report: FinancialReport) -> str:
    return f"Generated {report.generated_at} | 1 EUR = {report.exchange_rate:,.0f} UGX"


# ---------------------------------------------------------------------------
# Public export functions
# ---------------------------------------------------------------------------


def export_json(dataset: Dataset) -> bytes:
    """Serialize the full dataset document as indented UTF-8 JSON."""
    content = json.dumps(dataset.to_document(), indent=2, ensure_ascii=False).encode("utf-8")
    logger.info("export_json: bytes=%d", len(content))
    return content


def export_excel(dataset: Dataset, rate: float = EXCHANGE_RATE) -> bytes:
    """Render the financial report as a styled ``.xlsx`` workbook."""
    report = generate_financial_report(dataset, rate)
    gap_rows, gap_totals, sponsor_rows, sponsor_totals = _report_tables(report)

    exporter = ExcelExporter(
        title=f"{dataset.system_settings.organization.name} - {REPORT_TITLE}",
        subtitle=_subtitle(report),
    )
    exporter.add_header()
    exporter.add_kpi_row(_kpis(report))
    exporter.add_section_title("Funding gap by program")
    exporter.add_data_table(_GAP_HEADERS, gap_rows, totals=gap_totals)
    exporter.add_section_title("Sponsors by program")
    exporter.add_data_table(_SPONSOR_HEADERS, sponsor_rows, totals=sponsor_totals)
    file_bytes = exporter.finalize()

    logger.info("export_excel: programs=%d bytes=%d", len(gap_rows), len(file_bytes))
    return file_bytes


def export_pdf(dataset: Dataset, rate: float = EXCHANGE_RATE) -> bytes:
    """Render the financial report as an A4 landscape PDF."""
    report = generate_financial_report(dataset, rate)
    gap_rows, gap_totals, sponsor_rows, sponsor_totals = _report_tables(report)
    organization = dataset.system_settings.organization.name

    exporter = PdfExporter(
        title=REPORT_TITLE,
        subtitle=_subtitle(report),
        organization=organization,
    )
    exporter.add_header()
    exporter.add_kpi_section(_kpis(report))
    exporter.add_table(_GAP_HEADERS, gap_rows, section_title="Funding gap by program", totals=gap_totals)
    exporter.add_table(_SPONSOR_HEADERS, sponsor_rows, section_title="Sponsors by program", totals=sponsor_totals)
    file_bytes = exporter.build()

    logger.info("export_pdf: programs=%d bytes=%d", len(gap_rows), len(file_bytes))
    return file_bytes
