"""
Financial recalculation engine.

Derives every per-student and aggregate financial figure of the dataset from
its raw inputs.  All functions are pure with respect to the raw inputs: they
only overwrite derived fields, so running them repeatedly is safe and yields
identical results.

Public API
----------
calculate_student_financials(financial_data, rate) -> dict
    Normalize one FinancialData record and compute its derived fields.
recalculate_all_metadata(dataset, rate) -> Dataset
    One coherent pass over programs, registries and the global summary.
is_active_sponsor(sponsor) -> bool

Design notes
------------
- Raw fields are normalized in enumeration order; a formula sees the fields
  before it already coerced and the ones after it still raw.
- Anything that does not parse becomes ``0.0`` and is logged; the engine
  never raises on bad input.
- A sponsor with no status counts as active.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from app.schemas.dataset import Dataset, FinancialData, Sponsor
from app.utils.constants import (
    EXCHANGE_RATE,
    MONTHLY_COST_FIELDS,
    RAW_FINANCIAL_FIELDS,
    SPONSOR_ACTIVE,
    SPONSOR_INACTIVE,
    TERM_MONTHS,
    UNSPECIFIED_PACKAGE,
)
from app.utils.formula import evaluate_formula
from app.utils.money import eur_to_ugx, is_formula, parse_number, to_number, ugx_to_eur

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Student level
# ---------------------------------------------------------------------------


def _normalize_field(key: str, value: Any, record: Mapping[str, Any]) -> Any:
    if is_formula(value):
        return evaluate_formula(value, record)
    if value is None:
        return 0.0
    if isinstance(value, (str, int, float)):
        number = parse_number(value)
        if number is None:
            logger.warning("Field %r has non-numeric value %r; using 0", key, value)
            return 0.0
        return number
    return value


def calculate_student_financials(
    financial_data: FinancialData | Mapping[str, Any] | None,
    rate: float = EXCHANGE_RATE,
) -> dict[str, Any]:
    """Normalize a student's financial record and derive its totals.

    Args:
        financial_data: Raw record; may be partial and may hold formula
            strings, numeric strings or ``None``.
        rate: EUR -> UGX exchange rate.

    Returns:
        A new dict with every field numeric plus ``monthly_output_ugx``,
        ``monthly_output_euro``, ``cash_received_ugx``,
        ``plus_minus_diff_ugx`` and ``plus_minus_diff_euro``.
    """
    if isinstance(financial_data, FinancialData):
        record: dict[str, Any] = financial_data.model_dump()
    else:
        record = dict(financial_data or {})
    for field in RAW_FINANCIAL_FIELDS:
        record.setdefault(field, 0.0)

    for key in list(record):
        record[key] = _normalize_field(key, record[key], record)

    def amount(field: str) -> float:
        return to_number(record.get(field))

    monthly_output_ugx = amount("termly_school_fees") / TERM_MONTHS
    for field in MONTHLY_COST_FIELDS:
        monthly_output_ugx += amount(field)
    cash_received_ugx = eur_to_ugx(amount("cash_received_euro"), rate)
    plus_minus_diff_ugx = cash_received_ugx - monthly_output_ugx

    record.update(
        monthly_output_ugx=monthly_output_ugx,
        monthly_output_euro=ugx_to_eur(monthly_output_ugx, rate),
        cash_received_ugx=cash_received_ugx,
        plus_minus_diff_ugx=plus_minus_diff_ugx,
        plus_minus_diff_euro=ugx_to_eur(plus_minus_diff_ugx, rate),
    )
    return record


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------


def is_active_sponsor(sponsor: Sponsor) -> bool:
    """Active means status exactly ``"active"`` or no status at all."""
    return not sponsor.sponsorship_status or sponsor.sponsorship_status == SPONSOR_ACTIVE


def recalculate_all_metadata(
    dataset: Dataset | Mapping[str, Any],
    rate: float = EXCHANGE_RATE,
) -> Dataset:
    """Recompute every derived field of the dataset in place.

    Args:
        dataset: The dataset (a raw mapping is validated first).
        rate: EUR -> UGX exchange rate.

    Returns:
        The same ``Dataset`` instance (or the validated one for a mapping).
    """
    if not isinstance(dataset, Dataset):
        dataset = Dataset.model_validate(dataset)

    total_students = 0
    for program in dataset.sponsorship_programs.values():
        histogram: dict[str, int] = {}
        costs_ugx = 0.0
        for student in program.students:
            package = student.sponsorship_package or UNSPECIFIED_PACKAGE
            histogram[package] = histogram.get(package, 0) + 1
            student.financial_data = FinancialData.model_validate(
                calculate_student_financials(student.financial_data, rate)
            )
            costs_ugx += student.financial_data.monthly_output_ugx

        meta = program.metadata
        meta.total_students = len(program.students)
        meta.sponsorship_types = histogram
        meta.monthly_costs_ugx = costs_ugx
        meta.monthly_costs_eur = ugx_to_eur(costs_ugx, rate)
        total_students += meta.total_students

    total_active = 0
    total_funding = 0.0
    for registry in dataset.sponsorship_registry.values():
        active = [s for s in registry.sponsors if is_active_sponsor(s)]
        meta = registry.metadata
        meta.total_students = len(registry.sponsors)
        meta.active_students = len(active)
        meta.inactive_students = sum(1 for s in registry.sponsors if s.sponsorship_status == SPONSOR_INACTIVE)
        meta.total_monthly_funding = sum((to_number(s.amount) for s in active), 0.0)
        total_active += meta.active_students
        total_funding += meta.total_monthly_funding

    summary = dataset.metadata.programs_summary
    summary.total_students_across_all_programs = total_students
    summary.total_active_sponsorships = total_active
    summary.total_monthly_funding_euros = total_funding
    summary.total_monthly_funding_ugx = eur_to_ugx(total_funding, rate)
    dataset.metadata.currency_conversion_rate.euro_to_ugx = rate

    logger.debug(
        "Recalculated metadata: %d students, %d active sponsorships, %.2f EUR/month",
        total_students,
        total_active,
        total_funding,
    )
    return dataset
