"""
PDF export helper wrapping reportlab.

Provides ``PdfExporter`` — a builder that assembles a styled report as a
list of Platypus flowables and renders it to bytes for streaming.

Usage example::

    exporter = PdfExporter(title="Financial Report", subtitle="1 EUR = 4,100 UGX")
    exporter.add_header()
    exporter.add_kpi_section({"Students": 12, "Deficit (EUR)": -120.5})
    exporter.add_table(headers, rows, section_title="Funding gap")
    file_bytes = exporter.build()

Design notes
------------
- A4 landscape by default: the funding-gap table is wide.
- Every page gets a footer with the organization name and page number.
- Negative amounts are printed in red.
"""

from __future__ import annotations

import io
from datetime import datetime, timezone
from typing import Any, Sequence
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_LEFT, TA_RIGHT
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.units import cm, mm
from reportlab.platypus import HRFlowable, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

_PRIMARY = colors.HexColor("#2563EB")
_DARK = colors.HexColor("#1E3A5F")
_LIGHT_GREY = colors.HexColor("#F3F4F6")
_MID_GREY = colors.HexColor("#E5E7EB")
_KPI_BG = colors.HexColor("#EFF6FF")
_TEXT = colors.HexColor("#111827")
_DANGER = colors.HexColor("#DC2626")


def _format_value(value: Any) -> str:
    if isinstance(value, float):
        return f"{value:,.2f}"
    if isinstance(value, int) and not isinstance(value, bool):
        return f"{value:,}"
    return "" if value is None else str(value)


class PdfExporter:
    """Report document builder.

    Args:
        title: Document title.
        subtitle: Optional line under the title.
        organization: Name printed in the page footer.
        landscape_mode: A4 landscape when ``True`` (default), portrait otherwise.
    """

    def __init__(
        self,
        title: str,
        subtitle: str | None = None,
        organization: str = "Sponsorship Pro",
        landscape_mode: bool = True,
    ) -> None:
        self._title = title
        self._subtitle = subtitle
        self._organization = organization
        self._buffer = io.BytesIO()
        self._doc = SimpleDocTemplate(
            self._buffer,
            pagesize=landscape(A4) if landscape_mode else A4,
            rightMargin=1.5 * cm,
            leftMargin=1.5 * cm,
            topMargin=1.5 * cm,
            bottomMargin=2 * cm,
            title=title,
            author=organization,
        )
        self._story: list[Any] = []
        self._generated = datetime.now(timezone.utc).strftime("%d/%m/%Y %H:%M UTC")
        self._styles = self._build_styles()

    @staticmethod
    def _build_styles() -> dict[str, ParagraphStyle]:
        def style(name: str, **kwargs: Any) -> ParagraphStyle:
            kwargs.setdefault("fontName", "Helvetica")
            kwargs.setdefault("fontSize", 8)
            kwargs.setdefault("textColor", _TEXT)
            return ParagraphStyle(name, **kwargs)

        return {
            "title": style("title", fontName="Helvetica-Bold", fontSize=18, textColor=colors.white,
                           alignment=TA_CENTER, leading=22),
            "subtitle": style("subtitle", fontSize=9, textColor=colors.white, alignment=TA_CENTER),
            "section": style("section", fontName="Helvetica-Bold", fontSize=11, textColor=_DARK,
                             spaceBefore=8, spaceAfter=4),
            "kpi_label": style("kpi_label", fontName="Helvetica-Bold", textColor=_DARK, alignment=TA_CENTER),
            "kpi_value": style("kpi_value", fontName="Helvetica-Bold", fontSize=13, textColor=_PRIMARY,
                               alignment=TA_CENTER, leading=16),
            "th": style("th", fontName="Helvetica-Bold", textColor=colors.white, alignment=TA_CENTER),
            "td": style("td", alignment=TA_LEFT),
            "td_num": style("td_num", alignment=TA_RIGHT),
            "td_neg": style("td_neg", alignment=TA_RIGHT, textColor=_DANGER),
        }

    def _on_page(self, canvas: Any, doc: Any) -> None:
        canvas.saveState()
        canvas.setFont("Helvetica", 7)
        canvas.setFillColor(colors.grey)
        footer = f"{self._organization}  |  Generated: {self._generated}  |  Page {doc.page}"
        canvas.drawCentredString(self._doc.pagesize[0] / 2, 1.2 * cm, footer)
        canvas.restoreState()

    def _section(self, title: str) -> None:
        self._story.append(Paragraph(title, self._styles["section"]))
        self._story.append(HRFlowable(width="100%", thickness=1, color=_PRIMARY))
        self._story.append(Spacer(1, 3 * mm))

    # -----------------------------------------------------------------------
    # Builder methods
    # -----------------------------------------------------------------------

    def add_header(self) -> "PdfExporter":
        rows = [[Paragraph(escape(self._title), self._styles["title"])]]
        sub = f"Generated: {self._generated}"
        if self._subtitle:
            sub = f"{sub}  |  {self._subtitle}"
        rows.append([Paragraph(escape(sub), self._styles["subtitle"])])
        banner = Table(rows, colWidths=[self._doc.width])
        banner.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (0, 0), _PRIMARY),
            ("BACKGROUND", (0, 1), (0, 1), _DARK),
            ("TOPPADDING", (0, 0), (-1, -1), 8),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 8),
        ]))
        self._story.append(banner)
        self._story.append(Spacer(1, 5 * mm))
        return self

    def add_kpi_section(self, kpis: dict[str, Any], title: str = "Key figures") -> "PdfExporter":
        """One-row card strip: labels on top, values below."""
        if not kpis:
            return self
        self._section(title)
        labels = [Paragraph(escape(label), self._styles["kpi_label"]) for label in kpis]
        values = [Paragraph(_format_value(value), self._styles["kpi_value"]) for value in kpis.values()]
        strip = Table([labels, values], colWidths=[self._doc.width / len(kpis)] * len(kpis))
        strip.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (-1, -1), _KPI_BG),
            ("BOX", (0, 0), (-1, -1), 0.5, _PRIMARY),
            ("INNERGRID", (0, 0), (-1, -1), 0.25, _MID_GREY),
            ("TOPPADDING", (0, 0), (-1, -1), 5),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 5),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ]))
        self._story.append(strip)
        self._story.append(Spacer(1, 6 * mm))
        return self

    def add_table(
        self,
        headers: Sequence[str],
        rows: Sequence[Sequence[Any]],
        section_title: str,
        totals: Sequence[Any] | None = None,
    ) -> "PdfExporter":
        """Data table with a repeated header row, zebra rows and optional totals."""
        self._section(section_title)

        def cell(value: Any) -> Paragraph:
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                style = self._styles["td_neg"] if value < 0 else self._styles["td_num"]
            else:
                style = self._styles["td"]
            return Paragraph(escape(_format_value(value)), style)

        data: list[list[Any]] = [[Paragraph(escape(str(h)), self._styles["th"]) for h in headers]]
        data.extend([cell(v) for v in row] for row in rows)
        if totals is not None:
            data.append([cell(v) for v in totals])

        table = Table(data, colWidths=[self._doc.width / len(headers)] * len(headers), repeatRows=1)
        commands: list[tuple[Any, ...]] = [
            ("BACKGROUND", (0, 0), (-1, 0), _DARK),
            ("GRID", (0, 0), (-1, -1), 0.25, _MID_GREY),
            ("TOPPADDING", (0, 0), (-1, -1), 3),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 3),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ]
        for index in range(2, len(data), 2):
            commands.append(("BACKGROUND", (0, index), (-1, index), _LIGHT_GREY))
        if totals is not None:
            commands.append(("BACKGROUND", (0, len(data) - 1), (-1, len(data) - 1), _KPI_BG))
        table.setStyle(TableStyle(commands))
        self._story.append(table)
        self._story.append(Spacer(1, 4 * mm))
        return self

    def build(self) -> bytes:
        """Render the document and return the ``.pdf`` bytes."""
        self._doc.build(self._story, onFirstPage=self._on_page, onLaterPages=self._on_page)
        return self._buffer.getvalue()
