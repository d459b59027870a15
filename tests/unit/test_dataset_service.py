"""Tests for targeted dataset edits: identifiers, merges and referential checks."""

from __future__ import annotations

import pytest

from app.schemas.dataset import Dataset, Registry, Sponsor
from app.services import dataset_service
from app.services.dataset_service import NotFoundError, StudentReferenceError

RATE = 4100.0


# --- Fixtures ---


@pytest.fixture
def dataset(empty_dataset: Dataset) -> Dataset:
    """CH with students A, B, C and one sponsor per student."""
    for name in ("A", "B", "C"):
        dataset_service.add_student(empty_dataset, "CH", {"full_name": name}, RATE)
        dataset_service.add_sponsor(empty_dataset, "CH", {"full_name": name, "sponsor": f"S-{name}", "amount": 50})
    return empty_dataset


def _names(items: list) -> list[str]:
    return [item.full_name for item in items]


# --- Programs ---


class TestPrograms:
    def test_upsert_keeps_students(self, dataset: Dataset) -> None:
        program = dataset_service.upsert_program(dataset, "CH", {"program_name": "CH Term I"})
        assert program.program_name == "CH Term I"
        assert _names(program.students) == ["A", "B", "C"]

    def test_upsert_creates_registry(self, dataset: Dataset) -> None:
        del dataset.sponsorship_programs["YSP"]
        del dataset.sponsorship_registry["YSP"]
        dataset_service.upsert_program(dataset, "YSP", {})
        assert "YSP" in dataset.sponsorship_programs
        assert dataset.sponsorship_registry["YSP"].sponsors == []

    def test_unknown_code(self, dataset: Dataset) -> None:
        with pytest.raises(NotFoundError):
            dataset_service.upsert_program(dataset, "XYZ", {})


# --- Students ---


class TestStudents:
    """Serial numbers stay dense 1..N."""

    def test_add_assigns_next_serial(self, dataset: Dataset, scenario_student: dict) -> None:
        student = dataset_service.add_student(dataset, "CH", scenario_student, RATE)
        assert student.serial_number == 4

    def test_add_ignores_supplied_serial(self, dataset: Dataset) -> None:
        student = dataset_service.add_student(dataset, "YSP", {"full_name": "Z", "serial_number": 42}, RATE)
        assert student.serial_number == 1

    def test_add_computes_financials(self, empty_dataset: Dataset, scenario_student: dict) -> None:
        student = dataset_service.add_student(empty_dataset, "CH", scenario_student, RATE)
        assert student.financial_data.monthly_output_ugx == pytest.approx(310000)
        assert student.financial_data.plus_minus_diff_ugx == pytest.approx(-23000)

    def test_add_requires_name(self, dataset: Dataset) -> None:
        with pytest.raises(ValueError):
            dataset_service.add_student(dataset, "CH", {"full_name": "  "}, RATE)

    def test_add_to_missing_program(self, dataset: Dataset) -> None:
        with pytest.raises(NotFoundError):
            dataset_service.add_student(dataset, "NOPE", {"full_name": "X"}, RATE)

    def test_delete_renumbers_in_order(self, dataset: Dataset) -> None:
        removed = dataset_service.delete_student(dataset, "CH", 2)
        students = dataset.sponsorship_programs["CH"].students

        assert removed.full_name == "B"
        assert _names(students) == ["A", "C"]
        assert [s.serial_number for s in students] == [1, 2]

    def test_update_is_shallow_and_keeps_serial(self, dataset: Dataset) -> None:
        student = dataset_service.update_student(
            dataset, "CH", 1, {"serial_number": 9, "notes": "moved to boarding"}, RATE
        )
        assert student.serial_number == 1
        assert student.full_name == "A"
        assert student.notes == "moved to boarding"

    def test_update_recalculates_financial_data(self, dataset: Dataset, scenario_student: dict) -> None:
        student = dataset_service.update_student(
            dataset, "CH", 2, {"financial_data": scenario_student["financial_data"]}, RATE
        )
        assert student.financial_data.cash_received_ugx == pytest.approx(287000)

    def test_update_missing_student(self, dataset: Dataset) -> None:
        with pytest.raises(NotFoundError):
            dataset_service.update_student(dataset, "CH", 99, {"notes": "x"}, RATE)

    def test_list_students_projection(self, dataset: Dataset) -> None:
        listing = dataset_service.list_students(dataset, "CH")
        assert listing[0] == {"serial_number": 1, "full_name": "A", "sponsorship_package": None}


# --- Sponsors ---


class TestSponsors:
    """CIDs stay dense and sponsors must reference enrolled students."""

    def test_add_assigns_cid_and_defaults(self, dataset: Dataset) -> None:
        dataset_service.add_student(dataset, "YSP", {"full_name": "Y"}, RATE)
        sponsor = dataset_service.add_sponsor(
            dataset, "YSP", {"full_name": "Y", "sponsor": "S", "sponsorship_status": None, "category": None}
        )
        assert sponsor.cid == 1
        assert sponsor.sponsorship_status == "active"
        assert sponsor.category == "Individual"

    def test_unknown_student_rejected(self, dataset: Dataset) -> None:
        before = dataset.sponsorship_registry["CH"].model_dump()
        with pytest.raises(StudentReferenceError, match="not found in CH program"):
            dataset_service.add_sponsor(dataset, "CH", {"full_name": "Ghost", "sponsor": "S"})
        assert dataset.sponsorship_registry["CH"].model_dump() == before

    def test_student_of_other_program_rejected(self, dataset: Dataset) -> None:
        with pytest.raises(StudentReferenceError):
            dataset_service.add_sponsor(dataset, "YSP", {"full_name": "A", "sponsor": "S"})

    def test_delete_renumbers(self, dataset: Dataset) -> None:
        dataset_service.delete_sponsor(dataset, "CH", 2)
        sponsors = dataset.sponsorship_registry["CH"].sponsors
        assert [s.cid for s in sponsors] == [1, 2]
        assert [s.sponsor for s in sponsors] == ["S-A", "S-C"]

    def test_update_keeps_cid(self, dataset: Dataset) -> None:
        sponsor = dataset_service.update_sponsor(dataset, "CH", 3, {"cid": 1, "amount": 80})
        assert sponsor.cid == 3
        assert sponsor.amount == 80

    def test_update_to_unknown_student_rejected(self, dataset: Dataset) -> None:
        with pytest.raises(StudentReferenceError):
            dataset_service.update_sponsor(dataset, "CH", 1, {"full_name": "Ghost"})

    def test_delete_missing_sponsor(self, dataset: Dataset) -> None:
        with pytest.raises(NotFoundError):
            dataset_service.delete_sponsor(dataset, "CH", 7)

    def test_list_all_sponsors_tags_program(self, dataset: Dataset) -> None:
        sponsors = dataset_service.list_all_sponsors(dataset)
        assert len(sponsors) == 3
        assert {s["program"] for s in sponsors} == {"CH"}


# --- Expenses and events ---


class TestExpensesAndEvents:
    """Ids are max + 1 and never renumbered."""

    def test_ids_after_delete(self, empty_dataset: Dataset) -> None:
        for amount in (100, 200, 300):
            dataset_service.add_expense(empty_dataset, {"amount": amount})
        dataset_service.delete_expense(empty_dataset, 2)
        expense = dataset_service.add_expense(empty_dataset, {"amount": 400})

        assert [e.id for e in empty_dataset.daily_expenses] == [1, 3, 4]
        assert expense.currency == "UGX"

    def test_camel_case_aliases(self, empty_dataset: Dataset) -> None:
        expense = dataset_service.add_expense(empty_dataset, {"studentName": "A", "studentId": 3, "amount": 5})
        assert expense.student_name == "A"
        assert expense.student_id == 3

    def test_update_with_camel_case_keys(self, empty_dataset: Dataset) -> None:
        dataset_service.add_expense(empty_dataset, {"studentName": "A", "studentId": 3, "amount": 5})
        expense = dataset_service.update_expense(empty_dataset, 1, {"studentName": "B", "studentId": 4})

        assert expense.student_name == "B"
        assert expense.student_id == 4
        assert expense.model_extra == {}
        assert empty_dataset.daily_expenses[0].student_name == "B"

    def test_update_expense_keeps_id(self, empty_dataset: Dataset) -> None:
        dataset_service.add_expense(empty_dataset, {"amount": 100, "category": "food"})
        expense = dataset_service.update_expense(empty_dataset, 1, {"id": 50, "amount": 150})
        assert expense.id == 1
        assert expense.amount == 150
        assert expense.category == "food"

    def test_missing_expense(self, empty_dataset: Dataset) -> None:
        with pytest.raises(NotFoundError):
            dataset_service.update_expense(empty_dataset, 1, {"amount": 1})

    def test_events(self, empty_dataset: Dataset) -> None:
        first = dataset_service.add_event(empty_dataset, {"title": "Visit", "date": "2025-10-01"})
        second = dataset_service.add_event(empty_dataset, {"title": "Reports"})
        dataset_service.update_event(empty_dataset, second.id, {"title": "Report cards"})
        dataset_service.delete_event(empty_dataset, first.id)

        assert [(e.id, e.title) for e in empty_dataset.events] == [(2, "Report cards")]


# --- Settings ---


class TestSettings:
    def test_section_merge(self, empty_dataset: Dataset) -> None:
        forex = dataset_service.update_settings_section(empty_dataset, "forex", {"manual_rate": 4200})
        assert forex.manual_rate == 4200
        assert forex.auto_update is False

    def test_unknown_section(self, empty_dataset: Dataset) -> None:
        with pytest.raises(NotFoundError):
            dataset_service.update_settings_section(empty_dataset, "billing", {})

    def test_whole_settings_merge(self, empty_dataset: Dataset) -> None:
        settings = dataset_service.update_settings(empty_dataset, {"notifications": {"email": False}})
        assert settings.notifications.email is False
        assert settings.organization.name == "Sponsorship Pro"

    def test_set_logo(self, empty_dataset: Dataset) -> None:
        dataset_service.set_logo(empty_dataset, "/uploads/logo.png")
        assert empty_dataset.system_settings.organization.logo == "/uploads/logo.png"


# --- Merge ---


def test_merge_record_resolves_alias_keys() -> None:
    registry = Registry(sponsors=[Sponsor(cid=1, sponsor="Old")])
    merged = dataset_service.merge_record(registry, {"students": [{"cid": 1, "sponsor": "New"}]})

    assert [s.sponsor for s in merged.sponsors] == ["New"]
    assert merged.model_extra == {}
