"""
Targeted edits on a loaded ``Dataset``.

Every function mutates the dataset it is given and returns the affected
record.  Persistence, recalculation of aggregates and broadcasting are the
caller's business (see ``mutation_service``).

Identifier rules
----------------
- Student serial numbers and sponsor CIDs are dense ``1..N`` within their
  collection: new records get ``N + 1`` and deletions renumber the rest in
  their original order.
- Expense and event ids are ``max + 1`` and are never renumbered.
- Updates are shallow merges; identifiers in an update are ignored.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import AliasChoices, BaseModel

from app.schemas.dataset import (
    Dataset,
    Event,
    Expense,
    FinancialData,
    Program,
    Registry,
    Sponsor,
    Student,
    SystemSettings,
)
from app.services.financial_service import calculate_student_financials
from app.utils.constants import (
    DEFAULT_SPONSOR_CATEGORY,
    EXCHANGE_RATE,
    LOCAL_CURRENCY,
    PROGRAM_CODES,
    PROGRAM_NAMES,
    SETTINGS_SECTIONS,
    SPONSOR_ACTIVE,
)


ModelT = TypeVar("ModelT", bound=BaseModel)


class NotFoundError(LookupError):
    """A program, student, sponsor, expense, event or settings section does not exist."""


class StudentReferenceError(ValueError):
    """A sponsor names a student that is not enrolled in the program."""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _as_model(model_cls: type[ModelT], data: ModelT | Mapping[str, Any]) -> ModelT:
    if isinstance(data, model_cls):
        return data.model_copy(deep=True)
    return model_cls.model_validate(dict(data))


def _field_names(model_cls: type[BaseModel]) -> dict[str, str]:
    """Map every accepted input key (field name or alias) to its field name."""
    names: dict[str, str] = {}
    for name, info in model_cls.model_fields.items():
        alias = info.validation_alias
        choices = alias.choices if isinstance(alias, AliasChoices) else [alias or info.alias]
        for choice in choices:
            if isinstance(choice, str):
                names[choice] = name
        names[name] = name
    return names


def merge_record(model: ModelT, updates: Mapping[str, Any], identifier: str | None = None) -> ModelT:
    """Shallow, last-write-wins merge; *identifier* keeps its current value.

    Alias keys in *updates* (``studentName``) are resolved to field names
    first, so they replace the stored value instead of sitting beside it.
    """
    names = _field_names(type(model))
    changes: dict[str, Any] = {}
    for key, value in updates.items():
        field = names.get(key, key)
        if field != identifier:
            changes[field] = value
    return type(model).model_validate({**model.model_dump(), **changes})


def _index_of(items: list[Any], attr: str, value: int, label: str) -> int:
    for index, item in enumerate(items):
        if getattr(item, attr) == value:
            return index
    raise NotFoundError(f"{label} {value} not found")


def next_id(items: list[Any]) -> int:
    return max((item.id or 0 for item in items), default=0) + 1


def renumber_students(students: list[Student]) -> None:
    for serial, student in enumerate(students, start=1):
        student.serial_number = serial


def renumber_sponsors(sponsors: list[Sponsor]) -> None:
    for cid, sponsor in enumerate(sponsors, start=1):
        sponsor.cid = cid


def get_program(dataset: Dataset, code: str) -> Program:
    program = dataset.sponsorship_programs.get(code)
    if program is None:
        raise NotFoundError(f"Program {code} not found")
    return program


def get_registry(dataset: Dataset, code: str) -> Registry:
    registry = dataset.sponsorship_registry.get(code)
    if registry is None:
        raise NotFoundError(f"Registry for program {code} not found")
    return registry


def _check_student_reference(dataset: Dataset, code: str, full_name: str) -> None:
    program = dataset.sponsorship_programs.get(code)
    enrolled = {s.full_name for s in program.students} if program else set()
    if full_name not in enrolled:
        raise StudentReferenceError(
            f'Student "{full_name}" not found in {code} program. '
            "Please add the student first."
        )


# ---------------------------------------------------------------------------
# Programs and students
# ---------------------------------------------------------------------------


def upsert_program(dataset: Dataset, code: str, updates: Mapping[str, Any]) -> Program:
    """Create or shallow-update a program (and make sure it has a registry).

    Raises:
        NotFoundError: If *code* is not a known program code.
    """
    if code not in PROGRAM_CODES:
        raise NotFoundError(f"Unknown program code: {code}")
    current = dataset.sponsorship_programs.get(code) or Program(program_name=PROGRAM_NAMES[code])
    program = merge_record(current, updates)
    renumber_students(program.students)
    dataset.sponsorship_programs[code] = program
    dataset.sponsorship_registry.setdefault(code, Registry())
    return program


def add_student(
    dataset: Dataset,
    code: str,
    data: Student | Mapping[str, Any],
    rate: float = EXCHANGE_RATE,
) -> Student:
    """Append a student with the next serial number and computed financials.

    Raises:
        NotFoundError: If the program does not exist.
        ValueError: If the student has no name.
    """
    program = get_program(dataset, code)
    student = _as_model(Student, data)
    if not student.full_name.strip():
        raise ValueError("Student full_name is required")
    student.serial_number = len(program.students) + 1
    student.financial_data = FinancialData.model_validate(
        calculate_student_financials(student.financial_data, rate)
    )
    program.students.append(student)
    return student


def update_student(
    dataset: Dataset,
    code: str,
    serial_number: int,
    updates: Mapping[str, Any],
    rate: float = EXCHANGE_RATE,
) -> Student:
    """Shallow-merge *updates* into a student.

    A supplied ``financial_data`` replaces the previous record and is
    recalculated immediately.
    """
    program = get_program(dataset, code)
    index = _index_of(program.students, "serial_number", serial_number, "Student")
    updates = dict(updates)
    if updates.get("financial_data") is not None:
        updates["financial_data"] = calculate_student_financials(updates["financial_data"], rate)
    student = merge_record(program.students[index], updates, identifier="serial_number")
    program.students[index] = student
    return student


def delete_student(dataset: Dataset, code: str, serial_number: int) -> Student:
    program = get_program(dataset, code)
    index = _index_of(program.students, "serial_number", serial_number, "Student")
    removed = program.students.pop(index)
    renumber_students(program.students)
    return removed


def list_students(dataset: Dataset, code: str) -> list[dict[str, Any]]:
    """Light projection used by sponsor forms: serial, name and package."""
    program = get_program(dataset, code)
    return [
        {
            "serial_number": s.serial_number,
            "full_name": s.full_name,
            "sponsorship_package": s.sponsorship_package,
        }
        for s in program.students
    ]


# ---------------------------------------------------------------------------
# Sponsors
# ---------------------------------------------------------------------------


def add_sponsor(dataset: Dataset, code: str, data: Sponsor | Mapping[str, Any]) -> Sponsor:
    """Append a sponsor for a student of *code*; the registry is created if missing.

    Raises:
        StudentReferenceError: If the sponsored student is not in the program.
    """
    sponsor = _as_model(Sponsor, data)
    _check_student_reference(dataset, code, sponsor.full_name)
    registry = dataset.sponsorship_registry.setdefault(code, Registry())
    sponsor.cid = len(registry.sponsors) + 1
    sponsor.sponsorship_status = sponsor.sponsorship_status or SPONSOR_ACTIVE
    sponsor.category = sponsor.category or DEFAULT_SPONSOR_CATEGORY
    registry.sponsors.append(sponsor)
    return sponsor


def update_sponsor(dataset: Dataset, code: str, cid: int, updates: Mapping[str, Any]) -> Sponsor:
    """Shallow-merge *updates* into a sponsor, re-checking a changed student name."""
    registry = get_registry(dataset, code)
    index = _index_of(registry.sponsors, "cid", cid, "Sponsor")
    current = registry.sponsors[index]
    new_name = updates.get("full_name")
    if new_name is not None and new_name != current.full_name:
        _check_student_reference(dataset, code, new_name)
    sponsor = merge_record(current, updates, identifier="cid")
    registry.sponsors[index] = sponsor
    return sponsor


def delete_sponsor(dataset: Dataset, code: str, cid: int) -> Sponsor:
    registry = get_registry(dataset, code)
    index = _index_of(registry.sponsors, "cid", cid, "Sponsor")
    removed = registry.sponsors.pop(index)
    renumber_sponsors(registry.sponsors)
    return removed


def list_all_sponsors(dataset: Dataset) -> list[dict[str, Any]]:
    """Every sponsor of every registry, tagged with its program code."""
    return [
        {**sponsor.model_dump(mode="json"), "program": code}
        for code, registry in dataset.sponsorship_registry.items()
        for sponsor in registry.sponsors
    ]


# ---------------------------------------------------------------------------
# Expenses and events
# ---------------------------------------------------------------------------


def add_expense(dataset: Dataset, data: Expense | Mapping[str, Any]) -> Expense:
    expense = _as_model(Expense, data)
    expense.id = next_id(dataset.daily_expenses)
    expense.currency = expense.currency or LOCAL_CURRENCY
    dataset.daily_expenses.append(expense)
    return expense


def update_expense(dataset: Dataset, expense_id: int, updates: Mapping[str, Any]) -> Expense:
    index = _index_of(dataset.daily_expenses, "id", expense_id, "Expense")
    expense = merge_record(dataset.daily_expenses[index], updates, identifier="id")
    dataset.daily_expenses[index] = expense
    return expense


def delete_expense(dataset: Dataset, expense_id: int) -> Expense:
    index = _index_of(dataset.daily_expenses, "id", expense_id, "Expense")
    return dataset.daily_expenses.pop(index)


def add_event(dataset: Dataset, data: Event | Mapping[str, Any]) -> Event:
    event = _as_model(Event, data)
    event.id = next_id(dataset.events)
    dataset.events.append(event)
    return event


def update_event(dataset: Dataset, event_id: int, updates: Mapping[str, Any]) -> Event:
    index = _index_of(dataset.events, "id", event_id, "Event")
    event = merge_record(dataset.events[index], updates, identifier="id")
    dataset.events[index] = event
    return event


def delete_event(dataset: Dataset, event_id: int) -> Event:
    index = _index_of(dataset.events, "id", event_id, "Event")
    return dataset.events.pop(index)


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


def update_settings(dataset: Dataset, updates: Mapping[str, Any]) -> SystemSettings:
    """Shallow merge over the whole settings object."""
    dataset.system_settings = merge_record(dataset.system_settings, updates)
    return dataset.system_settings


def update_settings_section(dataset: Dataset, section: str, updates: Mapping[str, Any]) -> BaseModel:
    """Shallow merge inside one section (``organization``, ``forex`` or ``notifications``)."""
    if section not in SETTINGS_SECTIONS:
        raise NotFoundError(f"Unknown settings section: {section}")
    merged = merge_record(getattr(dataset.system_settings, section), updates)
    setattr(dataset.system_settings, section, merged)
    return merged


def set_logo(dataset: Dataset, logo_url: str | None) -> SystemSettings:
    dataset.system_settings.organization.logo = logo_url
    return dataset.system_settings
