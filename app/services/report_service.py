"""
Read-side report builders.

Every function takes an already recalculated ``Dataset`` and returns a
schema instance; none of them mutate the dataset.  Missing collections are
simply empty thanks to the schema defaults.
"""

from __future__ import annotations

from datetime import datetime, timezone

from app.schemas.dataset import Dataset
from app.schemas.reports import (
    Analytics,
    FinancialReport,
    FinancialSummary,
    FundingGap,
    ProgramDistribution,
    ProgramFundingGap,
    ProgramSponsorStats,
    SponsorStatistics,
)
from app.services.financial_service import is_active_sponsor
from app.utils.constants import DEFAULT_EXPENSE_CATEGORY, DEFAULT_SPONSOR_CATEGORY, EXCHANGE_RATE
from app.utils.money import eur_to_ugx, to_number


def calculate_financial_summary(dataset: Dataset, rate: float = EXCHANGE_RATE) -> FinancialSummary:
    """Totals across all programs: income from sponsors, costs from students."""
    summary = dataset.metadata.programs_summary
    income_eur = summary.total_monthly_funding_euros
    income_ugx = eur_to_ugx(income_eur, rate)
    costs_ugx = sum((p.metadata.monthly_costs_ugx for p in dataset.sponsorship_programs.values()), 0.0)
    costs_eur = sum((p.metadata.monthly_costs_eur for p in dataset.sponsorship_programs.values()), 0.0)
    return FinancialSummary(
        total_students=summary.total_students_across_all_programs,
        total_income_eur=income_eur,
        total_income_ugx=income_ugx,
        total_costs_eur=costs_eur,
        total_costs_ugx=costs_ugx,
        total_deficit_eur=income_eur - costs_eur,
        total_deficit_ugx=income_ugx - costs_ugx,
    )


def calculate_funding_gap(dataset: Dataset, rate: float = EXCHANGE_RATE) -> FundingGap:
    """Per-program income vs. cost, plus the grand total deficit."""
    gap = FundingGap()
    for code, program in dataset.sponsorship_programs.items():
        registry = dataset.sponsorship_registry.get(code)
        income_eur = registry.metadata.total_monthly_funding if registry else 0.0
        income_ugx = eur_to_ugx(income_eur, rate)
        costs_eur = program.metadata.monthly_costs_eur
        costs_ugx = program.metadata.monthly_costs_ugx
        entry = ProgramFundingGap(
            name=program.program_name or code,
            income_eur=income_eur,
            income_ugx=income_ugx,
            costs_eur=costs_eur,
            costs_ugx=costs_ugx,
            deficit_eur=income_eur - costs_eur,
            deficit_ugx=income_ugx - costs_ugx,
            student_count=len(program.students),
        )
        gap.programs[code] = entry
        gap.total_deficit_eur += entry.deficit_eur
        gap.total_deficit_ugx += entry.deficit_ugx
    return gap


def calculate_sponsor_statistics(dataset: Dataset) -> SponsorStatistics:
    """Sponsor counts and active monthly funding, per program and overall."""
    stats = SponsorStatistics()
    for code, registry in dataset.sponsorship_registry.items():
        active = [s for s in registry.sponsors if is_active_sponsor(s)]
        program_stats = ProgramSponsorStats(
            total_sponsors=len(registry.sponsors),
            active_sponsors=len(active),
            monthly_funding=sum((to_number(s.amount) for s in active), 0.0),
        )
        stats.program_stats[code] = program_stats
        stats.total_sponsors += program_stats.total_sponsors
        stats.active_sponsors += program_stats.active_sponsors
        stats.total_monthly_funding += program_stats.monthly_funding
    return stats


def calculate_analytics(dataset: Dataset) -> Analytics:
    """Program distribution, expense breakdown by category and sponsor categories."""
    analytics = Analytics()
    for code, program in dataset.sponsorship_programs.items():
        analytics.program_distribution[code] = ProgramDistribution(
            student_count=len(program.students),
            monthly_costs=program.metadata.monthly_costs_ugx,
            sponsorship_types=dict(program.metadata.sponsorship_types),
        )

    for expense in dataset.daily_expenses:
        category = expense.category or DEFAULT_EXPENSE_CATEGORY
        analytics.expense_breakdown[category] = (
            analytics.expense_breakdown.get(category, 0.0) + to_number(expense.amount)
        )

    for registry in dataset.sponsorship_registry.values():
        for sponsor in registry.sponsors:
            category = sponsor.category or DEFAULT_SPONSOR_CATEGORY
            analytics.sponsor_categories[category] = analytics.sponsor_categories.get(category, 0) + 1
    return analytics


def generate_financial_report(dataset: Dataset, rate: float = EXCHANGE_RATE) -> FinancialReport:
    """Bundle summary, funding gap and sponsor statistics with a timestamp."""
    return FinancialReport(
        summary=calculate_financial_summary(dataset, rate),
        funding_gap=calculate_funding_gap(dataset, rate),
        sponsor_statistics=calculate_sponsor_statistics(dataset),
        generated_at=datetime.now(timezone.utc).isoformat(),
        exchange_rate=rate,
    )
