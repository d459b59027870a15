"""Tests for dataset and report exports."""

from __future__ import annotations

import io
import json
import re

import pytest
from openpyxl import load_workbook

from app.schemas.dataset import Dataset
from app.services import dataset_service, export_service
from app.services.financial_service import recalculate_all_metadata

RATE = 4100.0


# --- Fixtures ---


@pytest.fixture
def dataset(empty_dataset: Dataset, scenario_student: dict) -> Dataset:
    dataset_service.add_student(empty_dataset, "CH", scenario_student, RATE)
    dataset_service.add_sponsor(empty_dataset, "CH", {"full_name": "A", "sponsor": "Anna Müller", "amount": 70})
    return recalculate_all_metadata(empty_dataset, RATE)


class TestExportJson:
    def test_full_document(self, dataset: Dataset) -> None:
        content = export_service.export_json(dataset)
        assert json.loads(content) == dataset.to_document()

    def test_utf8_not_escaped(self, dataset: Dataset) -> None:
        assert "Anna Müller".encode("utf-8") in export_service.export_json(dataset)


class TestExportReports:
    def test_excel(self, dataset: Dataset) -> None:
        content = export_service.export_excel(dataset, RATE)
        assert content.startswith(b"PK")

        ws = load_workbook(io.BytesIO(content)).active
        values = [cell for row in ws.iter_rows(values_only=True) for cell in row if cell is not None]
        assert "Funding gap by program" in values
        assert "CH" in values

    def test_pdf(self, dataset: Dataset) -> None:
        assert export_service.export_pdf(dataset, RATE).startswith(b"%PDF")

    def test_empty_dataset(self, empty_dataset: Dataset) -> None:
        assert export_service.export_pdf(empty_dataset, RATE).startswith(b"%PDF")
        assert export_service.export_excel(empty_dataset, RATE).startswith(b"PK")


def test_make_filename() -> None:
    name = export_service.make_filename("financial_report", "pdf")
    assert re.fullmatch(r"financial_report_\d{8}_\d{6}\.pdf", name)
