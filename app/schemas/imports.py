"""
Pydantic v2 schemas for bulk import.

An ``ImportPayload`` is what the Excel parsers produce and what
``POST /api/import/json`` accepts when the body is not a full dataset.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.dataset import Expense, Sponsor, Student

ImportKind = Literal["students", "sponsors", "expenses", "all"]
MergeStrategy = Literal["replace", "merge", "append"]


class ImportData(BaseModel):
    """Imported collections keyed like the dataset; absent means "not imported"."""

    sponsorship_programs: dict[str, list[Student]] | None = None
    sponsorship_registry: dict[str, list[Sponsor]] | None = None
    daily_expenses: list[Expense] | None = None


class ImportMetadata(BaseModel):
    source_file: str = ""
    import_date: str | None = None
    sheets_processed: list[str] = Field(default_factory=list)
    total_records: int = 0


class ImportPayload(BaseModel):
    type: ImportKind
    data: ImportData = Field(default_factory=ImportData)
    metadata: ImportMetadata = Field(default_factory=ImportMetadata)


class ImportResult(BaseModel):
    """Summary returned after integrating an import."""

    type: str
    strategy: str
    source_file: str = ""
    records: int = Field(0, ge=0, description="Records read from the source.")
    sheets_processed: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "type": "sponsors",
                "strategy": "merge",
                "source_file": "sponsors_term3.xlsx",
                "records": 42,
                "sheets_processed": ["CH_Sponsors", "YSP_Sponsors"],
                "warnings": ["CH: sponsor 'Jane Doe' references unknown student 'John X'; skipped."],
            }
        }
    )
