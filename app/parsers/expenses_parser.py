"""Parser for the daily expenses sheet."""

from __future__ import annotations

import logging
from datetime import date

import pandas as pd

from app.utils.constants import DEFAULT_EXPENSE_CATEGORY, LOCAL_CURRENCY

from .base_parser import BaseParser, ParseResult, match_column

logger = logging.getLogger(__name__)

_SHEET_CANDIDATES = ["Expenses", "expenses", "Daily Expenses"]

_COL_ALIASES: dict[str, list[str]] = {
    "date": ["Date"],
    "student_name": ["Student", "Student Name"],
    "category": ["Category"],
    "amount": ["Amount (UGX)", "Amount"],
    "description": ["Description"],
}


class ExpensesParser(BaseParser):
    """Read expenses from ``Expenses``/``Daily Expenses`` or the first sheet."""

    FORMAT_NAME = "EXPENSES"

    def validate_structure(self, df: pd.DataFrame) -> list[str]:
        if match_column(df, _COL_ALIASES["amount"]) is None:
            return [f"No amount column ('Amount (UGX)'). Columns found: {list(df.columns)}"]
        return []

    def parse(self) -> ParseResult:
        sheet = self._find_sheet(_SHEET_CANDIDATES) or self.sheet_names()[0]
        df = self._load_sheet(sheet)
        if df.empty:
            return self.result
        errors = self.validate_structure(df)
        if errors:
            self.result.errors.extend(f"{sheet}: {e}" for e in errors)
            return self.result

        today = date.today().isoformat()
        cols = {key: match_column(df, aliases) for key, aliases in _COL_ALIASES.items()}
        for index, row in df.iterrows():
            self.result.records.append(
                {
                    "id": index + 1,
                    "date": self._format_date(self._cell(row, cols["date"])) or today,
                    "student_id": None,
                    "student_name": self._clean_str(self._cell(row, cols["student_name"])),
                    "category": self._clean_str(self._cell(row, cols["category"])).lower()
                    or DEFAULT_EXPENSE_CATEGORY,
                    "amount": self._to_decimal(self._cell(row, cols["amount"])),
                    "description": self._clean_str(self._cell(row, cols["description"])),
                    "currency": LOCAL_CURRENCY,
                }
            )
        self.result.sheets_processed.append(sheet)

        logger.info("ExpensesParser: %s", self.result.summary())
        return self.result
