"""Abstract base class for the sponsorship workbook parsers.

Provides shared infrastructure for loading workbooks, locating sheets and
columns, and normalising cell values before the kind-specific subclasses
build their records.
"""

from __future__ import annotations

import io
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Any, BinaryIO

import pandas as pd

logger = logging.getLogger(__name__)

# Day zero of Excel's 1900 date system (accounts for the 1900 leap-year bug).
_EXCEL_EPOCH = date(1899, 12, 30)


# ---------------------------------------------------------------------------
# Result container
# ---------------------------------------------------------------------------


@dataclass
class ParseResult:
    """Container returned by every parser after processing a workbook.

    Attributes:
        records: List of dicts ready for Pydantic validation.  Keys starting
            with ``_`` (e.g. ``_program``) are routing hints, not fields.
        errors: Structural problems (the sheet was skipped).
        warnings: Non-fatal oddities (the row was kept but may need review).
        sheets_processed: Names of the sheets that produced records.
        format_name: Kind of data the parser extracts.
    """

    records: list[dict[str, Any]] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    sheets_processed: list[str] = field(default_factory=list)
    format_name: str = "UNKNOWN"

    @property
    def ok(self) -> bool:
        """True when no structural errors were collected."""
        return len(self.errors) == 0

    @property
    def record_count(self) -> int:
        return len(self.records)

    def summary(self) -> str:
        """One-line human-readable summary of the parse run."""
        status = "OK" if self.ok else "ERROR"
        return (
            f"[{status}] format={self.format_name} "
            f"records={self.record_count} "
            f"sheets={len(self.sheets_processed)} "
            f"errors={len(self.errors)} "
            f"warnings={len(self.warnings)}"
        )


def match_column(df: pd.DataFrame, aliases: list[str]) -> str | None:
    """Return the first column of *df* whose header equals one of *aliases*.

    Comparison ignores case and surrounding whitespace.
    """
    cols_lower = {str(c).lower().strip(): c for c in df.columns}
    for alias in aliases:
        col = cols_lower.get(alias.lower().strip())
        if col is not None:
            return col
    return None


# ---------------------------------------------------------------------------
# Base parser
# ---------------------------------------------------------------------------


class BaseParser(ABC):
    """Abstract base for workbook parsers.

    Subclasses must implement:
        * ``validate_structure(df)`` — check the expected columns.
        * ``parse()``               — extract records.

    The constructor accepts a file path string, raw bytes, or an open
    binary-mode file object so it works both from the filesystem and from
    FastAPI ``UploadFile.read()``.

    Raises:
        ValueError: From ``sheet_names()`` when the bytes are not a workbook.
    """

    FORMAT_NAME: str = "UNKNOWN"

    def __init__(self, file_path_or_bytes: str | bytes | BinaryIO) -> None:
        self.workbook_bytes: bytes = self._read_source(file_path_or_bytes)
        self.result: ParseResult = ParseResult(format_name=self.FORMAT_NAME)
        self._sheet_names: list[str] | None = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _read_source(source: str | bytes | BinaryIO) -> bytes:
        """Normalise any input type to raw bytes."""
        if isinstance(source, bytes):
            return source
        if isinstance(source, (str, Path)):
            return Path(source).read_bytes()
        data = source.read()
        return data if isinstance(data, bytes) else data.encode()

    def _open_excel(self) -> io.BytesIO:
        """Return a BytesIO handle positioned at byte 0."""
        return io.BytesIO(self.workbook_bytes)

    def sheet_names(self) -> list[str]:
        if self._sheet_names is None:
            try:
                with pd.ExcelFile(self._open_excel(), engine="openpyxl") as book:
                    self._sheet_names = [str(name) for name in book.sheet_names]
            except Exception as exc:
                raise ValueError(f"Failed to process Excel file: {exc}") from exc
        return self._sheet_names

    def _find_sheet(self, candidates: list[str]) -> str | None:
        names = self.sheet_names()
        for candidate in candidates:
            if candidate in names:
                return candidate
        return None

    # ------------------------------------------------------------------
    # Sheet loading
    # ------------------------------------------------------------------

    def _load_sheet(self, sheet_name: str | int = 0) -> pd.DataFrame:
        """Load a worksheet whose first row holds the column headers.

        Cells keep their native types (numbers, dates, text) and rows that
        are completely blank are dropped.

        Returns:
            The DataFrame, or an empty one when the sheet cannot be read (the
            error is recorded on ``self.result``).
        """
        try:
            df = pd.read_excel(
                self._open_excel(),
                sheet_name=sheet_name,
                header=0,
                dtype=object,
                engine="openpyxl",
            )
        except Exception as exc:
            msg = f"Failed to load sheet '{sheet_name}': {exc}"
            logger.error(msg)
            self.result.errors.append(msg)
            return pd.DataFrame()
        df.columns = [str(c).strip() for c in df.columns]
        return df.dropna(how="all").reset_index(drop=True)

    # ------------------------------------------------------------------
    # Value normalisation helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _cell(row: pd.Series, column: str | None) -> Any:
        if column is None:
            return None
        value = row.get(column)
        if value is None:
            return None
        try:
            if pd.isna(value):
                return None
        except (TypeError, ValueError):
            pass
        return value

    @staticmethod
    def _clean_str(value: Any) -> str:
        """Return a stripped string, converting NaN/None to empty string."""
        if value is None:
            return ""
        if isinstance(value, float) and pd.isna(value):
            return ""
        text = str(value).strip()
        return "" if text.lower() in ("nan", "none") else text

    @staticmethod
    def _to_decimal(value: Any, default: float = 0.0) -> float:
        """Parse a cell value to float, stripping formatting artefacts.

        Handles thousands separators (commas), leading/trailing spaces,
        currency symbols, and pure NaN.
        """
        if value is None:
            return default
        if isinstance(value, (int, float)):
            if pd.isna(value):
                return default
            return float(value)
        cleaned = re.sub(r"[,\s]", "", str(value).strip().lstrip("€$ ").removeprefix("UGX"))
        if not cleaned or cleaned in ("-", "—"):
            return default
        try:
            return float(cleaned)
        except ValueError:
            return default

    @staticmethod
    def _to_amount(value: Any) -> float | str:
        """Like ``_to_decimal`` but keeps ``=`` formulas for later evaluation."""
        if isinstance(value, str) and value.strip().startswith("="):
            return value.strip()
        return BaseParser._to_decimal(value)

    @staticmethod
    def _format_date(value: Any) -> str | None:
        """Normalise a date cell to ``YYYY-MM-DD``.

        Accepts real dates, parseable strings and Excel serial numbers.
        Returns ``None`` when the value is empty or not a date.
        """
        if value is None or value == "":
            return None
        if isinstance(value, (datetime, pd.Timestamp)):
            return value.date().isoformat()
        if isinstance(value, date):
            return value.isoformat()
        if isinstance(value, (int, float)):
            if pd.isna(value) or value <= 0:
                return None
            return (_EXCEL_EPOCH + timedelta(days=int(value))).isoformat()
        try:
            return pd.to_datetime(str(value).strip()).date().isoformat()
        except (ValueError, TypeError, OverflowError):
            return None

    # ------------------------------------------------------------------
    # Abstract interface
    # ------------------------------------------------------------------

    @abstractmethod
    def validate_structure(self, df: pd.DataFrame) -> list[str]:
        """Verify that the DataFrame has the required columns.

        Returns:
            List of error messages.  Empty list means structure is valid.
        """

    @abstractmethod
    def parse(self) -> ParseResult:
        """Execute the full parsing pipeline and return a ``ParseResult``."""
