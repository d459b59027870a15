"""Parser for student rosters: one sheet per program, named by program code."""

from __future__ import annotations

import logging

import pandas as pd

from app.utils.constants import DEFAULT_PACKAGE, PROGRAM_CODES

from .base_parser import BaseParser, ParseResult, match_column

logger = logging.getLogger(__name__)

_COL_ALIASES: dict[str, list[str]] = {
    "full_name": ["Full Name", "Student Name"],
    "sponsorship_package": ["Sponsorship Package", "Package"],
    "notes": ["Notes"],
}

# FinancialData field -> column header
_FINANCIAL_COLUMNS: dict[str, list[str]] = {
    "termly_school_fees": ["Termly Fees (UGX)"],
    "direct_spending_school_fees_ugx_monthly": ["Direct Spending (UGX)"],
    "food": ["Food (UGX)"],
    "average_medical": ["Medical (UGX)"],
    "school_personal_requirements_transport": ["Transport (UGX)"],
    "admin_utilities": ["Admin (UGX)"],
    "cash_received_euro": ["Cash Received (EUR)"],
}


class StudentsParser(BaseParser):
    """Read the ``CH``, ``YSP``, ``ICCSP`` and ``OTM_GA`` sheets into student records.

    Each record carries ``_program`` with the sheet's program code.  Serial
    numbers follow row order within each sheet.
    """

    FORMAT_NAME = "STUDENTS"

    def __init__(self, file_path_or_bytes, programs: list[str] | None = None) -> None:
        super().__init__(file_path_or_bytes)
        self.programs = programs or PROGRAM_CODES

    def validate_structure(self, df: pd.DataFrame) -> list[str]:
        if match_column(df, _COL_ALIASES["full_name"]) is None:
            return [
                "No student name column ('Full Name' or 'Student Name'). "
                f"Columns found: {list(df.columns)}"
            ]
        return []

    def parse(self) -> ParseResult:
        for code in self.programs:
            sheet = self._find_sheet([code])
            if sheet is None:
                continue
            df = self._load_sheet(sheet)
            if df.empty:
                continue
            errors = self.validate_structure(df)
            if errors:
                self.result.errors.extend(f"{sheet}: {e}" for e in errors)
                continue

            cols = {key: match_column(df, aliases) for key, aliases in _COL_ALIASES.items()}
            fin_cols = {key: match_column(df, aliases) for key, aliases in _FINANCIAL_COLUMNS.items()}

            for index, row in df.iterrows():
                serial = index + 1
                name = self._clean_str(self._cell(row, cols["full_name"]))
                if not name:
                    name = f"Student {serial}"
                    self.result.warnings.append(f"{sheet} row {serial + 1}: missing name, using '{name}'.")
                self.result.records.append(
                    {
                        "_program": code,
                        "serial_number": serial,
                        "full_name": name,
                        "sponsorship_package": self._clean_str(self._cell(row, cols["sponsorship_package"]))
                        or DEFAULT_PACKAGE,
                        "financial_data": {
                            key: self._to_amount(self._cell(row, col)) for key, col in fin_cols.items()
                        },
                        "notes": self._clean_str(self._cell(row, cols["notes"])),
                    }
                )
            self.result.sheets_processed.append(sheet)

        logger.info("StudentsParser: %s", self.result.summary())
        return self.result
