"""Excel workbook parsers for bulk import.

Public API
----------
BaseParser        — Abstract base; inherit to create a new sheet parser.
ParseResult       — Dataclass returned by every ``parser.parse()`` call.
parse_workbook    — Parse a workbook for an import kind into an ``ImportPayload``.

Concrete parsers (usable standalone):
    StudentsParser   — One sheet per program code (CH, YSP, ICCSP, OTM_GA)
    SponsorsParser   — ``<CODE>_Sponsors`` sheets
    ExpensesParser   — ``Expenses`` / ``Daily Expenses`` sheet

Usage example::

    from app.parsers import parse_workbook

    payload, warnings = parse_workbook(raw_bytes, "all", filename="term3.xlsx")
    print(payload.metadata.total_records, warnings)
"""

from .base_parser import BaseParser, ParseResult
from .expenses_parser import ExpensesParser
from .sponsors_parser import SponsorsParser
from .students_parser import StudentsParser
from .workbook_parser import parse_workbook

__all__: list[str] = [
    "BaseParser",
    "ParseResult",
    "parse_workbook",
    "StudentsParser",
    "SponsorsParser",
    "ExpensesParser",
]
