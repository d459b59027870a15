"""Tests for the Excel workbook parsers."""

from __future__ import annotations

import io
from datetime import datetime

import pandas as pd
import pytest

from app.parsers import ExpensesParser, SponsorsParser, StudentsParser, parse_workbook
from app.services.template_service import generate_template


def _workbook(sheets: dict[str, pd.DataFrame]) -> bytes:
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        for name, df in sheets.items():
            df.to_excel(writer, sheet_name=name, index=False)
    return buffer.getvalue()


# --- Fixtures ---


@pytest.fixture(scope="module")
def template_all() -> bytes:
    return generate_template("all")


@pytest.fixture
def students_workbook() -> bytes:
    return _workbook(
        {
            "YSP": pd.DataFrame(
                {
                    "Student Name": ["Atim Esther", None],
                    "Package": [None, "Boarding"],
                    "Termly Fees (UGX)": ["180,000", 450000],
                    "Food (UGX)": [60000, None],
                    "Cash Received (EUR)": [65, 80],
                }
            )
        }
    )


# --- Template round trip ---


class TestTemplateWorkbook:
    """The generated templates parse back without warnings about structure."""

    def test_all_kinds(self, template_all: bytes) -> None:
        payload, warnings = parse_workbook(template_all, "all", filename="template.xlsx")
        data = payload.data

        assert set(data.sponsorship_programs) == {"CH", "YSP", "ICCSP", "OTM_GA"}
        assert [s.full_name for s in data.sponsorship_programs["CH"]] == ["Example Student 1", "Example Student 2"]
        assert [s.sponsor for s in data.sponsorship_registry["OTM_GA"]] == ["Example Sponsor 1", "Example Sponsor 2"]
        assert len(data.daily_expenses) == 3
        assert payload.metadata.total_records == 8 + 8 + 3
        assert payload.metadata.source_file == "template.xlsx"
        assert {"CH", "CH_Sponsors", "Expenses"} <= set(payload.metadata.sheets_processed)
        assert warnings == []

    def test_student_values(self, template_all: bytes) -> None:
        payload, _ = parse_workbook(template_all, "students")
        student = payload.data.sponsorship_programs["ICCSP"][0]

        assert student.serial_number == 1
        assert student.sponsorship_package == "Day"
        assert student.financial_data.termly_school_fees == 208000
        assert student.financial_data.cash_received_euro == 70
        assert payload.data.sponsorship_registry is None
        assert payload.data.daily_expenses is None

    def test_sponsor_values(self, template_all: bytes) -> None:
        payload, _ = parse_workbook(template_all, "sponsors")
        sponsor = payload.data.sponsorship_registry["CH"][1]

        assert sponsor.cid == 2
        assert sponsor.full_name == "Example Student 2"
        assert sponsor.amount == 100
        assert sponsor.category == "Organization"
        assert sponsor.start_date is not None


# --- Custom workbooks ---


class TestStudentsParser:
    def test_aliases_defaults_and_missing_name(self, students_workbook: bytes) -> None:
        result = StudentsParser(students_workbook).parse()
        first, second = result.records

        assert result.sheets_processed == ["YSP"]
        assert first["_program"] == "YSP"
        assert first["full_name"] == "Atim Esther"
        assert first["sponsorship_package"] == "Day"
        assert first["financial_data"]["termly_school_fees"] == 180000.0
        assert first["financial_data"]["direct_spending_school_fees_ugx_monthly"] == 0.0
        assert second["full_name"] == "Student 2"
        assert second["financial_data"]["food"] == 0.0
        assert len(result.warnings) == 1

    def test_missing_name_column(self) -> None:
        content = _workbook({"CH": pd.DataFrame({"Food (UGX)": [1]})})
        result = StudentsParser(content).parse()
        assert result.records == []
        assert not result.ok

    def test_formula_kept_for_evaluation(self) -> None:
        assert StudentsParser._to_amount(" =D3/3 ") == "=D3/3"
        assert StudentsParser._to_amount("UGX 45,000") == 45000.0


class TestSponsorsParser:
    def test_program_sheet_fallback(self) -> None:
        content = _workbook(
            {
                "CH": pd.DataFrame(
                    {
                        "Student Name": ["A", "B"],
                        "Sponsor": ["S1", None],
                        "Amount": ["€70", 30],
                        "Status": ["Inactive", None],
                    }
                )
            }
        )
        result = SponsorsParser(content).parse()
        first, second = result.records

        assert result.sheets_processed == ["CH"]
        assert first["amount"] == 70.0
        assert first["sponsorship_status"] == "inactive"
        assert second["sponsor"] == "Sponsor 2"
        assert second["sponsorship_status"] == "active"
        assert second["category"] == "Individual"

    def test_student_sheet_without_sponsor_column_is_ignored(self, students_workbook: bytes) -> None:
        result = SponsorsParser(students_workbook).parse()
        assert result.records == []
        assert result.ok


class TestExpensesParser:
    def test_first_sheet_and_dates(self) -> None:
        content = _workbook(
            {
                "Ledger": pd.DataFrame(
                    {
                        "Date": [datetime(2025, 3, 14), None],
                        "Student Name": ["A", None],
                        "Category": ["Medical", None],
                        "Amount": [35000, "1,200"],
                        "Description": ["Clinic", "Stationery"],
                    }
                )
            }
        )
        result = ExpensesParser(content).parse()
        first, second = result.records

        assert first["date"] == "2025-03-14"
        assert first["category"] == "medical"
        assert first["id"] == 1
        assert second["category"] == "other"
        assert second["amount"] == 1200.0
        assert second["date"]

    def test_excel_serial_date(self) -> None:
        assert ExpensesParser._format_date(45000) == "2023-03-15"


# --- Errors ---


def test_unknown_kind(template_all: bytes) -> None:
    with pytest.raises(ValueError, match="Unknown import type"):
        parse_workbook(template_all, "invoices")


def test_not_a_workbook() -> None:
    with pytest.raises(ValueError, match="Failed to process Excel file"):
        parse_workbook(b"plain text, not xlsx", "students")
