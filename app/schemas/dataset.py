"""
Pydantic v2 schemas for the sponsorship dataset.

The dataset is a single aggregate root:

    Dataset
    ├── sponsorship_programs: {code: Program}
    │     └── students: [Student] ── financial_data: FinancialData
    ├── sponsorship_registry: {code: Registry}
    │     └── sponsors: [Sponsor]
    ├── daily_expenses: [Expense]
    ├── events: [Event]
    ├── system_settings: SystemSettings
    └── metadata: DatasetMetadata

Design notes:
- Every record accepts unknown keys and keeps them, so data written by
  other clients survives a load/save cycle.
- Raw financial inputs accept numbers, numeric strings, ``None`` and
  ``=`` formulas; the recalculation pass normalizes them to floats.
  Derived fields are always floats and default to ``0.0``.
- ``FinancialData`` declares its raw fields in evaluation order, so a
  formula may reference any field declared before it.
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from app.utils.constants import (
    BASE_CURRENCY,
    DEFAULT_SPONSOR_CATEGORY,
    EXCHANGE_RATE,
    LOCAL_CURRENCY,
    SPONSOR_ACTIVE,
)
from app.utils.money import to_number

RawAmount = float | str | None


class _Record(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


# ---------------------------------------------------------------------------
# Students
# ---------------------------------------------------------------------------


class FinancialData(_Record):
    """Monthly cost and income profile of one student."""

    termly_school_fees: RawAmount = 0.0
    direct_spending_school_fees_ugx_monthly: RawAmount = 0.0
    direct_spending_school_fees_euros_monthly: RawAmount = 0.0
    food: RawAmount = 0.0
    average_medical: RawAmount = 0.0
    school_personal_requirements_transport: RawAmount = 0.0
    admin_utilities: RawAmount = 0.0
    cash_received_euro: RawAmount = 0.0

    monthly_output_ugx: float = 0.0
    monthly_output_euro: float = 0.0
    cash_received_ugx: float = 0.0
    plus_minus_diff_ugx: float = 0.0
    plus_minus_diff_euro: float = 0.0

    @field_validator(
        "monthly_output_ugx",
        "monthly_output_euro",
        "cash_received_ugx",
        "plus_minus_diff_ugx",
        "plus_minus_diff_euro",
        mode="before",
    )
    @classmethod
    def _derived_as_number(cls, value: Any) -> float:
        # Derived; the recalculation overwrites whatever was stored.
        return to_number(value)


class Student(_Record):
    serial_number: int | None = Field(default=None, description="1-based position within the program.")
    full_name: str = ""
    sponsorship_package: str | None = None
    financial_data: FinancialData = Field(default_factory=FinancialData)
    notes: str | None = ""

    @field_validator("financial_data", mode="before")
    @classmethod
    def _none_is_empty(cls, value: Any) -> Any:
        return {} if value is None else value


class ProgramMetadata(_Record):
    total_students: int = 0
    sponsorship_types: dict[str, int] = Field(default_factory=dict)
    monthly_costs_ugx: float = 0.0
    monthly_costs_eur: float = 0.0


class Program(_Record):
    program_name: str = ""
    students: list[Student] = Field(default_factory=list)
    metadata: ProgramMetadata = Field(default_factory=ProgramMetadata)


# ---------------------------------------------------------------------------
# Sponsors
# ---------------------------------------------------------------------------


class Sponsor(_Record):
    """A sponsor funding one student of a program (amount in EUR per month)."""

    cid: int | None = Field(default=None, description="1-based position within the registry.")
    full_name: str = Field(default="", description="Full name of the sponsored student.")
    sponsor: str = ""
    amount: RawAmount = 0.0
    sponsorship_status: str | None = SPONSOR_ACTIVE
    category: str | None = DEFAULT_SPONSOR_CATEGORY
    start_date: str | None = None
    notes: str | None = ""


class RegistryMetadata(_Record):
    total_students: int = 0
    active_students: int = 0
    inactive_students: int = 0
    total_monthly_funding: float = 0.0


class Registry(_Record):
    sponsors: list[Sponsor] = Field(
        default_factory=list,
        validation_alias=AliasChoices("sponsors", "students"),
    )
    metadata: RegistryMetadata = Field(default_factory=RegistryMetadata)


# ---------------------------------------------------------------------------
# Expenses and events
# ---------------------------------------------------------------------------


class Expense(_Record):
    id: int | None = None
    date: str | None = None
    student_id: int | None = Field(default=None, validation_alias=AliasChoices("studentId", "student_id"))
    student_name: str | None = Field(default="", validation_alias=AliasChoices("studentName", "student_name"))
    category: str | None = "other"
    amount: RawAmount = 0.0
    description: str | None = ""
    currency: str = LOCAL_CURRENCY


class Event(_Record):
    id: int | None = None
    title: str = ""
    date: str | None = None
    description: str | None = ""


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


class OrganizationSettings(_Record):
    name: str = "Sponsorship Pro"
    currency: str = BASE_CURRENCY
    logo: str | None = None


class ForexSettings(_Record):
    manual_rate: float = EXCHANGE_RATE
    auto_update: bool = False


class NotificationSettings(_Record):
    email: bool = True
    event_reminders: bool = True
    low_balance: bool = True


class SystemSettings(_Record):
    organization: OrganizationSettings = Field(default_factory=OrganizationSettings)
    forex: ForexSettings = Field(default_factory=ForexSettings)
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)


# ---------------------------------------------------------------------------
# Dataset-wide metadata
# ---------------------------------------------------------------------------


class SourceFile(_Record):
    filename: str = ""
    import_date: str | None = None
    type: str = ""
    records: int = 0


class CurrencyConversion(_Record):
    euro_to_ugx: float = EXCHANGE_RATE


class ProgramsSummary(_Record):
    total_students_across_all_programs: int = 0
    total_active_sponsorships: int = 0
    total_monthly_funding_euros: float = 0.0
    total_monthly_funding_ugx: float = 0.0


class DatasetMetadata(_Record):
    source_files: list[SourceFile] = Field(default_factory=list)
    extraction_date: str | None = None
    currency_conversion_rate: CurrencyConversion = Field(default_factory=CurrencyConversion)
    programs_summary: ProgramsSummary = Field(default_factory=ProgramsSummary)


class Dataset(_Record):
    """The whole persisted document."""

    sponsorship_programs: dict[str, Program] = Field(default_factory=dict)
    sponsorship_registry: dict[str, Registry] = Field(default_factory=dict)
    financial_review: dict[str, Any] = Field(default_factory=dict)
    daily_expenses: list[Expense] = Field(default_factory=list)
    events: list[Event] = Field(default_factory=list)
    system_settings: SystemSettings = Field(default_factory=SystemSettings)
    metadata: DatasetMetadata = Field(default_factory=DatasetMetadata)
    last_updated: str | None = None

    @field_validator(
        "sponsorship_programs",
        "sponsorship_registry",
        "financial_review",
        "daily_expenses",
        "events",
        mode="before",
    )
    @classmethod
    def _none_is_empty(cls, value: Any, info: ValidationInfo) -> Any:
        if value is not None:
            return value
        return [] if info.field_name in ("daily_expenses", "events") else {}

    def to_document(self) -> dict[str, Any]:
        """JSON-ready dict used for persistence and transport."""
        return self.model_dump(mode="json")
