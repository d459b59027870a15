"""
Template service — Excel import templates for students, sponsors and expenses.

Generates downloadable ``.xlsx`` workbooks with ``openpyxl`` whose layout is
exactly what ``app.parsers`` reads back:

* **Data sheets** — styled column headers in row 1 followed by sample rows.
  Students get one sheet per program code, sponsors one ``<CODE>_Sponsors``
  sheet per program, expenses a single ``Expenses`` sheet.
* **Instructions sheet** — plain-text filling instructions, always last so
  that it never shadows a data sheet.

Public API
----------
- ``TEMPLATE_CATALOG`` — template kind -> sheet builders.
- ``generate_template(kind)`` — returns the workbook as bytes.
- ``generate_all_templates(templates_dir)`` — writes every kind to a directory.
"""

from __future__ import annotations

import io
import logging
from collections.abc import Callable
from datetime import date
from pathlib import Path
from typing import Any

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from app.utils.constants import PROGRAM_CODES

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Design tokens (kept in sync with excel_exporter.py)
# ---------------------------------------------------------------------------

_HEX_PRIMARY = "2563EB"        # header background
_HEX_WHITE = "FFFFFF"
_HEX_LABEL_BG = "EFF6FF"       # instructions title background
_HEX_LABEL_TEXT = "1E3A5F"
_HEX_SAMPLE_TEXT = "6B7280"    # grey italics for sample rows
_HEX_BORDER = "CBD5E1"

# ---------------------------------------------------------------------------
# Column layouts (headers must match the parsers' aliases)
# ---------------------------------------------------------------------------

STUDENT_COLUMNS: list[str] = [
    "Full Name",
    "Sponsorship Package",
    "Termly Fees (UGX)",
    "Direct Spending (UGX)",
    "Food (UGX)",
    "Medical (UGX)",
    "Transport (UGX)",
    "Admin (UGX)",
    "Cash Received (EUR)",
    "Notes",
]

SPONSOR_COLUMNS: list[str] = [
    "Sponsor Name",
    "Sponsored Student",
    "Amount (EUR)",
    "Status",
    "Category",
    "Start Date",
    "Notes",
]

EXPENSE_COLUMNS: list[str] = ["Date", "Student", "Category", "Description", "Amount (UGX)"]

_STUDENT_SAMPLES: list[list[Any]] = [
    ["Example Student 1", "Day", 208000, 0, 100000, 20000, 20000, 13500, 70, "Sample student record"],
    ["Example Student 2", "Boarding", 557000, 0, 0, 0, 0, 0, 70, "Another sample record"],
]


def _sponsor_samples() -> list[list[Any]]:
    today = date.today().isoformat()
    return [
        ["Example Sponsor 1", "Example Student 1", 70, "active", "Individual", today, "Sample sponsor record"],
        ["Example Sponsor 2", "Example Student 2", 100, "active", "Organization", today, "Another sample record"],
    ]


def _expense_samples() -> list[list[Any]]:
    today = date.today().isoformat()
    return [
        [today, "Example Student 1", "school", "School fees payment", 50000],
        [today, "Example Student 2", "medical", "Medical checkup", 25000],
        [today, "", "transport", "Transport for school trip", 15000],
    ]


# ---------------------------------------------------------------------------
# openpyxl style helpers
# ---------------------------------------------------------------------------

def _make_thin_border() -> Border:
    thin_side = Side(style="thin", color=_HEX_BORDER)
    return Border(left=thin_side, right=thin_side, top=thin_side, bottom=thin_side)


def _apply_col_header_style(cell: Any) -> None:
    """Bold white text on the primary blue, thin border, centred and wrapped."""
    cell.font = Font(bold=True, color=_HEX_WHITE, size=10, name="Calibri")
    cell.fill = PatternFill(fill_type="solid", fgColor=_HEX_PRIMARY)
    cell.border = _make_thin_border()
    cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)


def _apply_sample_style(cell: Any) -> None:
    cell.font = Font(italic=True, color=_HEX_SAMPLE_TEXT, size=10, name="Calibri")
    cell.border = _make_thin_border()


# ---------------------------------------------------------------------------
# Sheet writers
# ---------------------------------------------------------------------------

def _write_data_sheet(wb: Workbook, title: str, columns: list[str], samples: list[list[Any]]) -> None:
    """Add a sheet with styled headers in row 1 and sample rows below."""
    ws = wb.create_sheet(title=title)
    ws.row_dimensions[1].height = 22
    ws.freeze_panes = "A2"

    for col_idx, col_name in enumerate(columns, start=1):
        _apply_col_header_style(ws.cell(row=1, column=col_idx, value=col_name))
        # Column width from header length (min 10, max 30)
        ws.column_dimensions[get_column_letter(col_idx)].width = max(10, min(30, len(col_name) + 4))

    for row_idx, sample in enumerate(samples, start=2):
        for col_idx, value in enumerate(sample, start=1):
            _apply_sample_style(ws.cell(row=row_idx, column=col_idx, value=value))


def _write_students(wb: Workbook) -> None:
    for code in PROGRAM_CODES:
        _write_data_sheet(wb, code, STUDENT_COLUMNS, _STUDENT_SAMPLES)


def _write_sponsors(wb: Workbook) -> None:
    for code in PROGRAM_CODES:
        _write_data_sheet(wb, f"{code}_Sponsors", SPONSOR_COLUMNS, _sponsor_samples())


def _write_expenses(wb: Workbook) -> None:
    _write_data_sheet(wb, "Expenses", EXPENSE_COLUMNS, _expense_samples())


def _write_instructions_sheet(wb: Workbook) -> None:
    ws = wb.create_sheet(title="Instructions")

    title_cell = ws["A1"]
    title_cell.value = "HOW TO FILL IN THIS TEMPLATE"
    title_cell.font = Font(bold=True, size=13, color=_HEX_LABEL_TEXT, name="Calibri")
    title_cell.fill = PatternFill(fill_type="solid", fgColor=_HEX_LABEL_BG)
    title_cell.alignment = Alignment(horizontal="left", vertical="center")
    ws.row_dimensions[1].height = 24
    ws.merge_cells("A1:E1")

    instructions: list[str] = [
        "1. Replace the grey sample rows with your own data, starting at row 2.",
        f"2. Student sheets are named after the program code ({', '.join(PROGRAM_CODES)}).",
        "3. Sponsor sheets are named <CODE>_Sponsors; 'Sponsored Student' must match a student's Full Name.",
        "4. UGX amounts are per month except 'Termly Fees (UGX)'; sponsor amounts are EUR per month.",
        "5. Amounts may be plain numbers or formulas such as =D3/3.",
        "6. Do not rename the column headers or the sheets.",
    ]
    for row_offset, text in enumerate(instructions, start=2):
        cell = ws.cell(row=row_offset, column=1, value=text)
        cell.font = Font(size=10, name="Calibri", color="374151")
        cell.alignment = Alignment(horizontal="left", vertical="center", wrap_text=True)
        ws.row_dimensions[row_offset].height = 18
    ws.column_dimensions["A"].width = 100


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

#: Template kind -> sheet writers, in sheet order.
TEMPLATE_CATALOG: dict[str, list[Callable[[Workbook], None]]] = {
    "students": [_write_students],
    "sponsors": [_write_sponsors],
    "expenses": [_write_expenses],
    "all": [_write_students, _write_sponsors, _write_expenses],
}


def generate_template(kind: str) -> bytes:
    """Build the import template for *kind* and return it as ``.xlsx`` bytes.

    Raises:
        KeyError: If *kind* is not in ``TEMPLATE_CATALOG``.
    """
    writers = TEMPLATE_CATALOG.get(kind)
    if writers is None:
        raise KeyError(
            f"Template '{kind}' not found. Available: {', '.join(TEMPLATE_CATALOG)}"
        )

    wb = Workbook()
    wb.remove(wb.active)
    for writer in writers:
        writer(wb)
    _write_instructions_sheet(wb)

    buffer = io.BytesIO()
    wb.save(buffer)
    logger.info("generate_template: kind='%s' sheets=%s", kind, wb.sheetnames)
    return buffer.getvalue()


def generate_all_templates(templates_dir: Path) -> list[str]:
    """Write ``sponsorship_<kind>_template.xlsx`` for every kind into *templates_dir*.

    Returns:
        Absolute paths of the written files, in catalog order.
    """
    templates_dir.mkdir(parents=True, exist_ok=True)
    generated: list[str] = []
    for kind in TEMPLATE_CATALOG:
        path = templates_dir / f"sponsorship_{kind}_template.xlsx"
        path.write_bytes(generate_template(kind))
        generated.append(str(path.resolve()))
    logger.info("generate_all_templates: %d templates written to '%s'", len(generated), templates_dir)
    return generated
