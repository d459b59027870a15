"""
Excel export helper wrapping xlsxwriter.

Provides ``ExcelExporter`` — a builder that lays out a styled report
worksheet in memory and returns its bytes for streaming via FastAPI's
``StreamingResponse``.

Usage example::

    exporter = ExcelExporter(title="Financial Report", subtitle="Rate 1 EUR = 4,100 UGX")
    exporter.add_header()
    exporter.add_kpi_row({"Students": 12, "Income (EUR)": 840.0})
    exporter.add_section_title("Funding gap by program")
    exporter.add_data_table(headers, rows)
    file_bytes = exporter.finalize()

Design notes
------------
- Column widths grow with the longest value written (capped at 50).
- Numbers use ``#,##0.00``; negative numbers are shown in red.
- Data rows alternate white and light grey.
"""

from __future__ import annotations

import io
from datetime import datetime, timezone
from typing import Any, Sequence

import xlsxwriter

# Design tokens (kept in sync with template_service.py)
_COLOR_PRIMARY = "#2563EB"
_COLOR_DARK = "#1E3A5F"
_COLOR_WHITE = "#FFFFFF"
_COLOR_LIGHT_GREY = "#F3F4F6"
_COLOR_KPI_BG = "#EFF6FF"
_COLOR_TEXT = "#111827"
_NUM_FORMAT = "#,##0.00;[Red]-#,##0.00"

_MAX_COL_WIDTH = 50
_MIN_COL_WIDTH = 10
_HEADER_SPAN = 8


class ExcelExporter:
    """Single-sheet report builder.

    Args:
        title: Report title shown in the banner row.
        subtitle: Optional second banner line (e.g. the exchange rate).
        sheet_name: Worksheet tab name.
    """

    def __init__(self, title: str, subtitle: str | None = None, sheet_name: str = "Report") -> None:
        self._title = title
        self._subtitle = subtitle
        self._buffer = io.BytesIO()
        self._workbook = xlsxwriter.Workbook(self._buffer, {"in_memory": True})
        self._worksheet = self._workbook.add_worksheet(sheet_name)
        self._row = 0
        self._widths: dict[int, int] = {}
        self._formats = self._build_formats()

    def _build_formats(self) -> dict[str, Any]:
        add = self._workbook.add_format
        cell = {"font_size": 9, "font_color": _COLOR_TEXT, "valign": "vcenter", "border": 1, "border_color": "#E5E7EB"}
        return {
            "banner": add({"bold": True, "font_size": 16, "font_color": _COLOR_WHITE,
                           "bg_color": _COLOR_PRIMARY, "align": "center", "valign": "vcenter"}),
            "banner_sub": add({"font_size": 10, "font_color": _COLOR_WHITE,
                               "bg_color": _COLOR_DARK, "align": "center", "valign": "vcenter"}),
            "section": add({"bold": True, "font_size": 11, "font_color": _COLOR_DARK, "bottom": 2,
                            "bottom_color": _COLOR_PRIMARY}),
            "kpi_label": add({"bold": True, "font_size": 9, "font_color": "#374151", "bg_color": _COLOR_KPI_BG,
                              "align": "center", "border": 1, "border_color": "#BFDBFE", "text_wrap": True}),
            "kpi_value": add({"bold": True, "font_size": 12, "font_color": _COLOR_PRIMARY, "bg_color": _COLOR_KPI_BG,
                              "align": "center", "num_format": _NUM_FORMAT, "border": 1,
                              "border_color": "#BFDBFE"}),
            "col_header": add({"bold": True, "font_size": 10, "font_color": _COLOR_WHITE, "bg_color": _COLOR_DARK,
                               "align": "center", "valign": "vcenter", "border": 1, "text_wrap": True}),
            "text": add({**cell, "bg_color": _COLOR_WHITE}),
            "text_alt": add({**cell, "bg_color": _COLOR_LIGHT_GREY}),
            "number": add({**cell, "bg_color": _COLOR_WHITE, "align": "right", "num_format": _NUM_FORMAT}),
            "number_alt": add({**cell, "bg_color": _COLOR_LIGHT_GREY, "align": "right", "num_format": _NUM_FORMAT}),
            "total": add({**cell, "bold": True, "bg_color": _COLOR_KPI_BG, "align": "right",
                          "num_format": _NUM_FORMAT}),
        }

    def _track_width(self, col: int, value: Any) -> None:
        length = len(f"{value:,.2f}") if isinstance(value, float) else len(str(value or ""))
        self._widths[col] = min(_MAX_COL_WIDTH, max(self._widths.get(col, _MIN_COL_WIDTH), length + 2))

    # -----------------------------------------------------------------------
    # Builder methods
    # -----------------------------------------------------------------------

    def add_header(self) -> "ExcelExporter":
        """Banner with the title, the generation time and the optional subtitle."""
        ws = self._worksheet
        ws.set_row(self._row, 30)
        ws.merge_range(self._row, 0, self._row, _HEADER_SPAN - 1, self._title, self._formats["banner"])
        self._row += 1

        generated = datetime.now(timezone.utc).strftime("%d/%m/%Y %H:%M UTC")
        sub = f"Generated: {generated}"
        if self._subtitle:
            sub = f"{sub}  |  {self._subtitle}"
        ws.merge_range(self._row, 0, self._row, _HEADER_SPAN - 1, sub, self._formats["banner_sub"])
        self._row += 2
        return self

    def add_kpi_row(self, kpis: dict[str, Any]) -> "ExcelExporter":
        """Label cells above value cells, one KPI per column."""
        ws = self._worksheet
        ws.set_row(self._row, 28)
        ws.set_row(self._row + 1, 22)
        for col, (label, value) in enumerate(kpis.items()):
            ws.write(self._row, col, label, self._formats["kpi_label"])
            ws.write(self._row + 1, col, value, self._formats["kpi_value"])
            self._track_width(col, value)
        self._row += 3
        return self

    def add_section_title(self, text: str) -> "ExcelExporter":
        self._worksheet.write(self._row, 0, text, self._formats["section"])
        self._row += 1
        return self

    def add_data_table(
        self,
        headers: Sequence[str],
        rows: Sequence[Sequence[Any]],
        totals: Sequence[Any] | None = None,
    ) -> "ExcelExporter":
        """Styled table with alternating shading and an optional totals row.

        Numeric cells (``int``/``float``) get the number format; everything
        else is written as text.
        """
        ws = self._worksheet
        ws.set_row(self._row, 20)
        for col, header in enumerate(headers):
            ws.write(self._row, col, header, self._formats["col_header"])
            self._track_width(col, header)
        self._row += 1

        for index, data_row in enumerate(rows):
            alt = "_alt" if index % 2 else ""
            for col, value in enumerate(data_row):
                kind = "number" if isinstance(value, (int, float)) and not isinstance(value, bool) else "text"
                ws.write(self._row, col, value, self._formats[kind + alt])
                self._track_width(col, value)
            self._row += 1

        if totals is not None:
            for col, value in enumerate(totals):
                ws.write(self._row, col, value, self._formats["total"])
            self._row += 1

        self._row += 1
        return self

    def finalize(self) -> bytes:
        """Close the workbook and return the ``.xlsx`` bytes."""
        for col, width in self._widths.items():
            self._worksheet.set_column(col, col, width)
        self._workbook.close()
        return self._buffer.getvalue()
