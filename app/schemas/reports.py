"""
Pydantic v2 schemas for the derived financial reports.

All amounts are monthly figures.  EUR values come from sponsor funding and
UGX values from student cost profiles; each is also shown converted with the
process-wide exchange rate.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class FinancialSummary(BaseModel):
    """Organization-wide income, costs and deficit."""

    total_students: int = Field(0, ge=0)
    total_income_eur: float = 0.0
    total_income_ugx: float = 0.0
    total_costs_eur: float = 0.0
    total_costs_ugx: float = 0.0
    total_deficit_eur: float = Field(0.0, description="Income minus costs; negative means a shortfall.")
    total_deficit_ugx: float = 0.0

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "total_students": 1,
                "total_income_eur": 70.0,
                "total_income_ugx": 287000.0,
                "total_costs_eur": 75.61,
                "total_costs_ugx": 310000.0,
                "total_deficit_eur": -5.61,
                "total_deficit_ugx": -23000.0,
            }
        }
    )


class ProgramFundingGap(BaseModel):
    name: str
    income_eur: float = 0.0
    income_ugx: float = 0.0
    costs_eur: float = 0.0
    costs_ugx: float = 0.0
    deficit_eur: float = 0.0
    deficit_ugx: float = 0.0
    student_count: int = 0


class FundingGap(BaseModel):
    programs: dict[str, ProgramFundingGap] = Field(default_factory=dict)
    total_deficit_eur: float = 0.0
    total_deficit_ugx: float = 0.0


class ProgramSponsorStats(BaseModel):
    total_sponsors: int = 0
    active_sponsors: int = 0
    monthly_funding: float = 0.0


class SponsorStatistics(BaseModel):
    total_sponsors: int = 0
    active_sponsors: int = 0
    total_monthly_funding: float = 0.0
    program_stats: dict[str, ProgramSponsorStats] = Field(default_factory=dict)


class ProgramDistribution(BaseModel):
    student_count: int = 0
    monthly_costs: float = Field(0.0, description="Monthly costs in UGX.")
    sponsorship_types: dict[str, int] = Field(default_factory=dict)


class Analytics(BaseModel):
    program_distribution: dict[str, ProgramDistribution] = Field(default_factory=dict)
    expense_breakdown: dict[str, float] = Field(default_factory=dict)
    sponsor_categories: dict[str, int] = Field(default_factory=dict)


class FinancialReport(BaseModel):
    """Combined report served by /api/reports/financial and the exporters."""

    summary: FinancialSummary
    funding_gap: FundingGap
    sponsor_statistics: SponsorStatistics
    generated_at: str
    exchange_rate: float
