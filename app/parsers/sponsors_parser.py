"""Parser for sponsor registries: one ``<CODE>_Sponsors`` sheet per program."""

from __future__ import annotations

import logging
from datetime import date

import pandas as pd

from app.utils.constants import DEFAULT_SPONSOR_CATEGORY, PROGRAM_CODES, SPONSOR_ACTIVE

from .base_parser import BaseParser, ParseResult, match_column

logger = logging.getLogger(__name__)

_COL_ALIASES: dict[str, list[str]] = {
    "full_name": ["Sponsored Student", "Student Name"],
    "sponsor": ["Sponsor Name", "Sponsor"],
    "amount": ["Amount (EUR)", "Amount"],
    "sponsorship_status": ["Status"],
    "category": ["Category"],
    "start_date": ["Start Date"],
    "notes": ["Notes"],
}


class SponsorsParser(BaseParser):
    """Read sponsor sheets into sponsor records tagged with ``_program``.

    For each program the sheet is ``<CODE>_Sponsors``, ``<CODE>_sponsors`` or,
    failing those, ``<CODE>`` itself when it has a sponsor column.
    """

    FORMAT_NAME = "SPONSORS"

    def __init__(self, file_path_or_bytes, programs: list[str] | None = None) -> None:
        super().__init__(file_path_or_bytes)
        self.programs = programs or PROGRAM_CODES

    def validate_structure(self, df: pd.DataFrame) -> list[str]:
        errors: list[str] = []
        if match_column(df, _COL_ALIASES["full_name"]) is None:
            errors.append("No sponsored student column ('Sponsored Student' or 'Student Name').")
        if match_column(df, _COL_ALIASES["sponsor"]) is None:
            errors.append("No sponsor column ('Sponsor Name' or 'Sponsor').")
        return errors

    def _sponsor_sheet(self, code: str) -> tuple[str, pd.DataFrame] | None:
        sheet = self._find_sheet([f"{code}_Sponsors", f"{code}_sponsors"])
        if sheet is not None:
            return sheet, self._load_sheet(sheet)
        if code in self.sheet_names():
            df = self._load_sheet(code)
            if match_column(df, _COL_ALIASES["sponsor"]) is not None:
                return code, df
        return None

    def parse(self) -> ParseResult:
        today = date.today().isoformat()
        for code in self.programs:
            found = self._sponsor_sheet(code)
            if found is None:
                continue
            sheet, df = found
            if df.empty:
                continue
            errors = self.validate_structure(df)
            if errors:
                self.result.errors.extend(f"{sheet}: {e}" for e in errors)
                continue

            cols = {key: match_column(df, aliases) for key, aliases in _COL_ALIASES.items()}
            for index, row in df.iterrows():
                cid = index + 1
                student = self._clean_str(self._cell(row, cols["full_name"]))
                if not student:
                    self.result.warnings.append(f"{sheet} row {cid + 1}: no sponsored student.")
                status = self._clean_str(self._cell(row, cols["sponsorship_status"])).lower()
                self.result.records.append(
                    {
                        "_program": code,
                        "cid": cid,
                        "full_name": student,
                        "sponsor": self._clean_str(self._cell(row, cols["sponsor"])) or f"Sponsor {cid}",
                        "amount": self._to_decimal(self._cell(row, cols["amount"])),
                        "sponsorship_status": status or SPONSOR_ACTIVE,
                        "category": self._clean_str(self._cell(row, cols["category"])) or DEFAULT_SPONSOR_CATEGORY,
                        "start_date": self._format_date(self._cell(row, cols["start_date"])) or today,
                        "notes": self._clean_str(self._cell(row, cols["notes"])),
                    }
                )
            self.result.sheets_processed.append(sheet)

        logger.info("SponsorsParser: %s", self.result.summary())
        return self.result
