"""Tests for bulk import integration: strategies, skipped sponsors and entry points."""

from __future__ import annotations

import pytest

from app.schemas.dataset import Dataset
from app.schemas.imports import ImportPayload
from app.services import dataset_service, import_service
from app.services.mutation_service import MutationService
from app.services.storage import create_empty_dataset
from app.services.template_service import generate_template

RATE = 4100.0


# --- Fixtures ---


@pytest.fixture
def dataset(empty_dataset: Dataset) -> Dataset:
    """CH has A (food 1000) with sponsor S-A; YSP has Y."""
    dataset_service.add_student(empty_dataset, "CH", {"full_name": "A", "financial_data": {"food": 1000}}, RATE)
    dataset_service.add_student(empty_dataset, "YSP", {"full_name": "Y"}, RATE)
    dataset_service.add_sponsor(empty_dataset, "CH", {"full_name": "A", "sponsor": "S-A", "amount": 40})
    dataset_service.add_expense(empty_dataset, {"date": "2025-01-01", "studentName": "A", "description": "fees"})
    return empty_dataset


def _students_payload(*students: dict, code: str = "CH") -> ImportPayload:
    return ImportPayload.model_validate(
        {"type": "students", "data": {"sponsorship_programs": {code: list(students)}}}
    )


def _names(dataset: Dataset, code: str) -> list[str]:
    return [s.full_name for s in dataset.sponsorship_programs[code].students]


# --- Strategies ---


class TestStudentStrategies:
    def test_replace(self, dataset: Dataset) -> None:
        """Replace drops existing students, including programs absent from the import."""
        import_service.integrate_imported_data(
            dataset, _students_payload({"full_name": "B"}, {"full_name": "C"}), "replace"
        )
        assert _names(dataset, "CH") == ["B", "C"]
        assert [s.serial_number for s in dataset.sponsorship_programs["CH"].students] == [1, 2]
        assert _names(dataset, "YSP") == []

    def test_merge_updates_match_and_appends_new(self, dataset: Dataset) -> None:
        import_service.integrate_imported_data(
            dataset,
            _students_payload(
                {"full_name": "A", "serial_number": 5, "financial_data": {"food": 2000}},
                {"full_name": "D"},
            ),
            "merge",
        )
        students = dataset.sponsorship_programs["CH"].students
        assert _names(dataset, "CH") == ["A", "D"]
        assert students[0].serial_number == 1
        assert students[0].financial_data.food == 2000
        assert students[1].serial_number == 2
        assert _names(dataset, "YSP") == ["Y"]

    def test_append_allows_duplicates(self, dataset: Dataset) -> None:
        import_service.integrate_imported_data(dataset, _students_payload({"full_name": "A"}), "append")
        assert _names(dataset, "CH") == ["A", "A"]
        assert [s.serial_number for s in dataset.sponsorship_programs["CH"].students] == [1, 2]

    def test_unknown_strategy(self, dataset: Dataset) -> None:
        with pytest.raises(ValueError, match="Unknown merge strategy"):
            import_service.integrate_imported_data(dataset, _students_payload({"full_name": "B"}), "upsert")

    def test_unknown_program_is_reported(self, dataset: Dataset) -> None:
        result = import_service.integrate_imported_data(
            dataset, _students_payload({"full_name": "B"}, code="XX"), "merge"
        )
        assert any("XX" in warning for warning in result.warnings)
        assert "XX" not in dataset.sponsorship_programs


class TestSponsorImport:
    def test_unknown_student_is_skipped(self, dataset: Dataset) -> None:
        payload = ImportPayload.model_validate(
            {
                "type": "sponsors",
                "data": {
                    "sponsorship_registry": {
                        "CH": [
                            {"full_name": "A", "sponsor": "S-new", "amount": 20},
                            {"full_name": "Ghost", "sponsor": "S-ghost", "amount": 99},
                        ]
                    }
                },
            }
        )
        result = import_service.integrate_imported_data(dataset, payload, "merge")
        sponsors = dataset.sponsorship_registry["CH"].sponsors

        assert [s.sponsor for s in sponsors] == ["S-A", "S-new"]
        assert [s.cid for s in sponsors] == [1, 2]
        assert len(result.warnings) == 1
        assert "Ghost" in result.warnings[0]

    def test_merge_matches_student_and_sponsor(self, dataset: Dataset) -> None:
        payload = ImportPayload.model_validate(
            {
                "type": "sponsors",
                "data": {"sponsorship_registry": {"CH": [{"full_name": "A", "sponsor": "S-A", "amount": 75}]}},
            }
        )
        import_service.integrate_imported_data(dataset, payload, "merge")
        sponsors = dataset.sponsorship_registry["CH"].sponsors
        assert len(sponsors) == 1
        assert sponsors[0].amount == 75


class TestExpenseImport:
    def test_merge_on_natural_key(self, dataset: Dataset) -> None:
        payload = ImportPayload.model_validate(
            {
                "type": "expenses",
                "data": {
                    "daily_expenses": [
                        {"date": "2025-01-01", "student_name": "A", "description": "fees", "amount": 300},
                        {"date": "2025-01-02", "student_name": "A", "description": "bus", "amount": 20},
                    ]
                },
            }
        )
        import_service.integrate_imported_data(dataset, payload, "merge")
        assert [(e.id, e.amount) for e in dataset.daily_expenses] == [(1, 300), (2, 20)]

    def test_replace_renumbers_ids(self, dataset: Dataset) -> None:
        payload = ImportPayload.model_validate(
            {"type": "expenses", "data": {"daily_expenses": [{"id": 7, "amount": 1}, {"id": 9, "amount": 2}]}}
        )
        import_service.integrate_imported_data(dataset, payload, "replace")
        assert [e.id for e in dataset.daily_expenses] == [1, 2]


class TestImportBookkeeping:
    def test_missing_collection_is_untouched(self, dataset: Dataset) -> None:
        """A None collection means it was not imported, even for type 'all'."""
        payload = ImportPayload.model_validate({"type": "all", "data": {"daily_expenses": []}})
        import_service.integrate_imported_data(dataset, payload, "replace")

        assert _names(dataset, "CH") == ["A"]
        assert len(dataset.sponsorship_registry["CH"].sponsors) == 1
        assert dataset.daily_expenses == []

    def test_source_file_recorded(self, dataset: Dataset) -> None:
        payload = _students_payload({"full_name": "B"})
        payload.metadata.source_file = "term3.xlsx"
        result = import_service.integrate_imported_data(dataset, payload, "append")

        source = dataset.metadata.source_files[-1]
        assert source.filename == "term3.xlsx"
        assert source.type == "students"
        assert source.records == 1
        assert result.records == 1
        assert result.strategy == "append"


# --- Entry points ---


class TestEntryPoints:
    def test_import_json_full_dataset(self, mutation_service: MutationService, scenario_student: dict) -> None:
        document = create_empty_dataset(RATE)
        dataset_service.add_student(document, "OTM_GA", scenario_student, RATE)

        result = import_service.import_json(mutation_service, document.to_document(), "replace")

        assert result.event.type == "database_imported"
        stored = mutation_service.repository.load()
        assert [s.full_name for s in stored.sponsorship_programs["OTM_GA"].students] == ["A"]
        assert stored.metadata.programs_summary.total_students_across_all_programs == 1

    def test_import_json_payload(self, mutation_service: MutationService) -> None:
        document = {"type": "students", "data": {"sponsorship_programs": {"ICCSP": [{"full_name": "I"}]}}}
        result = import_service.import_json(mutation_service, document, "merge")

        assert result.entity.records == 1
        assert [s.full_name for s in result.dataset.sponsorship_programs["ICCSP"].students] == ["I"]

    def test_import_workbook_template(self, mutation_service: MutationService) -> None:
        result = import_service.import_workbook(
            mutation_service, generate_template("all"), "template.xlsx", "all", "replace"
        )
        dataset = result.dataset

        assert [s.full_name for s in dataset.sponsorship_programs["CH"].students] == [
            "Example Student 1",
            "Example Student 2",
        ]
        assert len(dataset.sponsorship_registry["YSP"].sponsors) == 2
        assert len(dataset.daily_expenses) == 3
        assert dataset.metadata.source_files[-1].filename == "template.xlsx"
        assert dataset.metadata.programs_summary.total_active_sponsorships == 8

    def test_import_workbook_empty(self, mutation_service: MutationService) -> None:
        with pytest.raises(ValueError, match="empty"):
            import_service.import_workbook(mutation_service, b"", "x.xlsx", "all")

    def test_import_workbook_not_excel(self, mutation_service: MutationService) -> None:
        with pytest.raises(ValueError):
            import_service.import_workbook(mutation_service, b"not a workbook", "x.xlsx", "all")
