"""Turn an uploaded workbook into an ``ImportPayload`` for a given import kind."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, BinaryIO

from app.schemas.imports import ImportMetadata, ImportPayload
from app.utils.constants import IMPORT_KINDS

from .base_parser import BaseParser
from .expenses_parser import ExpensesParser
from .sponsors_parser import SponsorsParser
from .students_parser import StudentsParser

logger = logging.getLogger(__name__)

# Import kind -> parsers run for it
_PARSER_REGISTRY: dict[str, list[type[BaseParser]]] = {
    "students": [StudentsParser],
    "sponsors": [SponsorsParser],
    "expenses": [ExpensesParser],
    "all": [StudentsParser, SponsorsParser, ExpensesParser],
}


def _group_by_program(records: list[dict[str, Any]]) -> dict[str, list[dict[str, Any]]]:
    grouped: dict[str, list[dict[str, Any]]] = {}
    for record in records:
        code = record.pop("_program")
        grouped.setdefault(code, []).append(record)
    return grouped


def parse_workbook(
    source: str | bytes | BinaryIO,
    kind: str,
    filename: str = "",
) -> tuple[ImportPayload, list[str]]:
    """Parse *source* into the collections imported for *kind*.

    Args:
        source: Workbook path, bytes or binary file object.
        kind: ``students``, ``sponsors``, ``expenses`` or ``all``.
        filename: Original file name, recorded in the payload metadata.

    Returns:
        ``(payload, warnings)`` where warnings collects per-sheet structural
        errors and row-level warnings.

    Raises:
        ValueError: If *kind* is unknown or the bytes are not a workbook.
    """
    if kind not in IMPORT_KINDS:
        raise ValueError(f"Unknown import type: {kind!r}. Expected one of {IMPORT_KINDS}")

    content = BaseParser._read_source(source)
    data: dict[str, Any] = {}
    sheets: list[str] = []
    warnings: list[str] = []
    total = 0
    for parser_cls in _PARSER_REGISTRY[kind]:
        result = parser_cls(content).parse()
        warnings.extend(result.errors)
        warnings.extend(result.warnings)
        sheets.extend(s for s in result.sheets_processed if s not in sheets)
        total += result.record_count

        if parser_cls is StudentsParser:
            data["sponsorship_programs"] = _group_by_program(result.records)
        elif parser_cls is SponsorsParser:
            data["sponsorship_registry"] = _group_by_program(result.records)
        else:
            data["daily_expenses"] = result.records

    payload = ImportPayload.model_validate(
        {
            "type": kind,
            "data": data,
            "metadata": ImportMetadata(
                source_file=filename,
                import_date=datetime.now(timezone.utc).isoformat(),
                sheets_processed=sheets,
                total_records=total,
            ).model_dump(),
        }
    )
    logger.info("Parsed workbook %r as %s: %d records from %s", filename, kind, total, sheets)
    return payload, warnings
