"""
Read-only dataset and report endpoints.

Mounts under ``/api`` (prefix set in ``main.py``).

Endpoints
---------
GET /data               — Complete dataset document.
GET /financial-summary  — Organization-wide income, costs and deficit.
GET /funding-gap        — Per-program funding gap.
GET /analytics          — Program distribution, expense and sponsor breakdowns.
GET /reports/financial  — Summary + funding gap + sponsor statistics.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter

from app.routers.deps import DatasetDep, RepositoryDep, envelope
from app.schemas.common import ApiResponse
from app.services import report_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Reports"])


@router.get(
    "/data",
    response_model=ApiResponse,
    summary="Complete dataset",
    description="Return the stored dataset with all derived metadata.",
)
def get_data(dataset: DatasetDep) -> ApiResponse:
    return envelope(dataset.to_document(), "Data loaded successfully")


@router.get(
    "/financial-summary",
    response_model=ApiResponse,
    summary="Financial summary",
    description="Total monthly income (sponsors), costs (students) and the resulting deficit in EUR and UGX.",
)
def get_financial_summary(dataset: DatasetDep, repository: RepositoryDep) -> ApiResponse:
    summary = report_service.calculate_financial_summary(dataset, repository.rate)
    return envelope(summary.model_dump(), "Financial summary loaded successfully")


@router.get(
    "/funding-gap",
    response_model=ApiResponse,
    summary="Funding gap by program",
)
def get_funding_gap(dataset: DatasetDep, repository: RepositoryDep) -> ApiResponse:
    gap = report_service.calculate_funding_gap(dataset, repository.rate)
    return envelope(gap.model_dump(), "Funding gap analysis loaded successfully")


@router.get(
    "/analytics",
    response_model=ApiResponse,
    summary="Analytics breakdowns",
)
def get_analytics(dataset: DatasetDep) -> ApiResponse:
    analytics = report_service.calculate_analytics(dataset)
    return envelope(analytics.model_dump(), "Analytics data loaded successfully")


@router.get(
    "/reports/financial",
    response_model=ApiResponse,
    summary="Financial report",
    description="Summary, funding gap and sponsor statistics stamped with the generation time.",
)
def get_financial_report(dataset: DatasetDep, repository: RepositoryDep) -> ApiResponse:
    report = report_service.generate_financial_report(dataset, repository.rate)
    return envelope(report.model_dump(), "Financial report generated successfully")
