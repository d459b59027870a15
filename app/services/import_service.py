"""
Bulk import into the dataset.

Imports arrive either as Excel workbooks (parsed by ``app.parsers``) or as
JSON.  Both end up as an ``ImportPayload`` integrated by
``integrate_imported_data`` inside a single ``MutationService.commit``, so an
import is saved, recalculated and broadcast like any other change.

Strategies
----------
replace  Discard the existing collection and use the imported one.
merge    Match on the natural key (student: full name; sponsor: student and
         sponsor name; expense: date, student and description).  A match is
         updated with the fields the import supplies and keeps its
         identifier; anything else is appended with a fresh identifier.
append   Always add, with a fresh identifier.

Sponsors whose student is not enrolled in the program are skipped and
reported as warnings.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Hashable
from datetime import datetime, timezone
from typing import Any, TypeVar

from pydantic import BaseModel

from app.parsers import parse_workbook
from app.schemas.dataset import Dataset, Expense, Program, Registry, SourceFile, Sponsor, Student
from app.schemas.imports import ImportPayload, ImportResult
from app.services.dataset_service import merge_record, next_id, renumber_sponsors, renumber_students
from app.services.mutation_service import MutationResult, MutationService
from app.utils.constants import EVENT_DATABASE_IMPORTED, MERGE_STRATEGIES, PROGRAM_CODES, PROGRAM_NAMES

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)


# ---------------------------------------------------------------------------
# Collection integration
# ---------------------------------------------------------------------------


def _integrate(
    existing: list[RecordT],
    imported: list[RecordT],
    strategy: str,
    key: Callable[[RecordT], Hashable],
    identifier: str,
    assign_id: Callable[[list[RecordT], RecordT], None],
) -> list[RecordT]:
    if strategy == "replace":
        result = [record.model_copy(deep=True) for record in imported]
        for record in result:
            setattr(record, identifier, None)
        return result

    result = list(existing)
    for record in imported:
        if strategy == "merge":
            match = next((i for i, current in enumerate(result) if key(current) == key(record)), None)
            if match is not None:
                result[match] = merge_record(
                    result[match], record.model_dump(exclude_unset=True), identifier=identifier
                )
                continue
        new_record = record.model_copy(deep=True)
        assign_id(result, new_record)
        result.append(new_record)
    return result


def _append_serial(students: list[Student], student: Student) -> None:
    student.serial_number = len(students) + 1


def _append_cid(sponsors: list[Sponsor], sponsor: Sponsor) -> None:
    sponsor.cid = len(sponsors) + 1


def _append_expense_id(expenses: list[Expense], expense: Expense) -> None:
    expense.id = next_id(expenses)


def _student_key(student: Student) -> Hashable:
    return student.full_name


def _sponsor_key(sponsor: Sponsor) -> Hashable:
    return (sponsor.full_name, sponsor.sponsor)


def _expense_key(expense: Expense) -> Hashable:
    return (expense.date, expense.student_name, expense.description)


def _known_programs(imported: dict[str, list[Any]], warnings: list[str]) -> None:
    for code in imported:
        if code not in PROGRAM_CODES:
            warnings.append(f"Unknown program '{code}' skipped.")


def _integrate_students(
    dataset: Dataset, imported: dict[str, list[Student]], strategy: str, warnings: list[str]
) -> None:
    _known_programs(imported, warnings)
    for code in PROGRAM_CODES:
        program = dataset.sponsorship_programs.setdefault(code, Program(program_name=PROGRAM_NAMES[code]))
        program.students = _integrate(
            program.students,
            imported.get(code, []),
            strategy,
            key=_student_key,
            identifier="serial_number",
            assign_id=_append_serial,
        )
        renumber_students(program.students)


def _integrate_sponsors(
    dataset: Dataset, imported: dict[str, list[Sponsor]], strategy: str, warnings: list[str]
) -> None:
    _known_programs(imported, warnings)
    for code in PROGRAM_CODES:
        program = dataset.sponsorship_programs.get(code)
        enrolled = {s.full_name for s in program.students} if program else set()
        accepted: list[Sponsor] = []
        for sponsor in imported.get(code, []):
            if sponsor.full_name in enrolled:
                accepted.append(sponsor)
            else:
                warnings.append(
                    f"{code}: sponsor '{sponsor.sponsor}' references unknown student "
                    f"'{sponsor.full_name}'; skipped."
                )
        registry = dataset.sponsorship_registry.setdefault(code, Registry())
        registry.sponsors = _integrate(
            registry.sponsors,
            accepted,
            strategy,
            key=_sponsor_key,
            identifier="cid",
            assign_id=_append_cid,
        )
        renumber_sponsors(registry.sponsors)


def _integrate_expenses(dataset: Dataset, imported: list[Expense], strategy: str) -> None:
    dataset.daily_expenses = _integrate(
        dataset.daily_expenses,
        imported,
        strategy,
        key=_expense_key,
        identifier="id",
        assign_id=_append_expense_id,
    )
    if strategy == "replace":
        for expense_id, expense in enumerate(dataset.daily_expenses, start=1):
            expense.id = expense_id


def _count_records(payload: ImportPayload) -> int:
    data = payload.data
    total = 0
    for collection in (data.sponsorship_programs, data.sponsorship_registry):
        if collection:
            total += sum(len(records) for records in collection.values())
    return total + len(data.daily_expenses or [])


def integrate_imported_data(dataset: Dataset, payload: ImportPayload, strategy: str = "merge") -> ImportResult:
    """Fold *payload* into *dataset* in place.

    Collections the payload does not carry (``None``) are left untouched.
    Derived metadata is not recomputed here; the repository does that on save.

    Raises:
        ValueError: If *strategy* is unknown.
    """
    if strategy not in MERGE_STRATEGIES:
        raise ValueError(f"Unknown merge strategy: {strategy!r}. Expected one of {MERGE_STRATEGIES}")

    kind = payload.type
    data = payload.data
    warnings: list[str] = []
    if kind in ("students", "all") and data.sponsorship_programs is not None:
        _integrate_students(dataset, data.sponsorship_programs, strategy, warnings)
    if kind in ("sponsors", "all") and data.sponsorship_registry is not None:
        _integrate_sponsors(dataset, data.sponsorship_registry, strategy, warnings)
    if kind in ("expenses", "all") and data.daily_expenses is not None:
        _integrate_expenses(dataset, data.daily_expenses, strategy)

    records = payload.metadata.total_records or _count_records(payload)
    source_file = payload.metadata.source_file or "import.json"
    dataset.metadata.source_files.append(
        SourceFile(
            filename=source_file,
            import_date=payload.metadata.import_date or datetime.now(timezone.utc).isoformat(),
            type=kind,
            records=records,
        )
    )
    logger.info("Integrated %s import from %r (%s, %d records)", kind, source_file, strategy, records)
    return ImportResult(
        type=kind,
        strategy=strategy,
        source_file=source_file,
        records=records,
        sheets_processed=payload.metadata.sheets_processed,
        warnings=warnings,
    )


def replace_dataset(dataset: Dataset, document: dict[str, Any]) -> Dataset:
    """Overwrite *dataset* in place with a complete exported document."""
    incoming = Dataset.model_validate(document)
    for name in Dataset.model_fields:
        setattr(dataset, name, getattr(incoming, name))
    for name, value in (incoming.model_extra or {}).items():
        setattr(dataset, name, value)
    for program in dataset.sponsorship_programs.values():
        renumber_students(program.students)
    for registry in dataset.sponsorship_registry.values():
        renumber_sponsors(registry.sponsors)
    return dataset


# ---------------------------------------------------------------------------
# Entry points used by the routers
# ---------------------------------------------------------------------------


def import_payload(
    service: MutationService,
    payload: ImportPayload,
    strategy: str = "merge",
    parse_warnings: list[str] | None = None,
) -> MutationResult[ImportResult]:
    """Integrate *payload* as one committed, broadcast mutation."""

    def mutate(dataset: Dataset) -> ImportResult:
        result = integrate_imported_data(dataset, payload, strategy)
        result.warnings = list(parse_warnings or []) + result.warnings
        return result

    return service.commit(
        mutate,
        event_type=EVENT_DATABASE_IMPORTED,
        message=f"Imported {payload.type} data ({strategy})",
    )


def import_workbook(
    service: MutationService,
    content: bytes,
    filename: str,
    kind: str,
    strategy: str = "merge",
) -> MutationResult[ImportResult]:
    """Parse an Excel workbook and integrate it.

    Raises:
        ValueError: Empty file, unknown kind or strategy, or unreadable workbook.
    """
    if not content:
        raise ValueError("The uploaded file is empty.")
    if strategy not in MERGE_STRATEGIES:
        raise ValueError(f"Unknown merge strategy: {strategy!r}. Expected one of {MERGE_STRATEGIES}")
    payload, warnings = parse_workbook(content, kind, filename=filename)
    return import_payload(service, payload, strategy, parse_warnings=warnings)


def import_json(
    service: MutationService,
    document: dict[str, Any],
    strategy: str = "merge",
) -> MutationResult[Any]:
    """Import a JSON body: an ``ImportPayload`` or a complete dataset export."""
    if "type" in document and "data" in document:
        return import_payload(service, ImportPayload.model_validate(document), strategy)

    def mutate(dataset: Dataset) -> dict[str, Any]:
        replace_dataset(dataset, document)
        return {"records": _count_dataset_records(dataset)}

    return service.commit(
        mutate,
        event_type=EVENT_DATABASE_IMPORTED,
        message="Database imported successfully",
    )


def _count_dataset_records(dataset: Dataset) -> int:
    students = sum(len(p.students) for p in dataset.sponsorship_programs.values())
    sponsors = sum(len(r.sponsors) for r in dataset.sponsorship_registry.values())
    return students + sponsors + len(dataset.daily_expenses) + len(dataset.events)
