"""
Daily expense endpoints.

Mounts under ``/api/expenses`` (prefix set in ``main.py``).  Expense ids are
``max + 1`` and survive deletions of other expenses.
"""

from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Body, Path, status

from app.routers.deps import DatasetDep, MutationDep, commit, envelope
from app.schemas.common import ApiResponse
from app.schemas.dataset import Expense
from app.services import dataset_service
from app.utils.constants import EVENT_EXPENSE_ADDED, EVENT_EXPENSE_DELETED, EVENT_EXPENSE_UPDATED

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Expenses"])

ExpenseIdPath = Annotated[int, Path(ge=1)]


@router.get("", response_model=ApiResponse, summary="List daily expenses")
def get_expenses(dataset: DatasetDep) -> ApiResponse:
    expenses = [e.model_dump(mode="json") for e in dataset.daily_expenses]
    return envelope(expenses, "Expenses loaded successfully")


@router.post(
    "",
    response_model=ApiResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record an expense",
)
def post_expense(expense: Expense, service: MutationDep) -> ApiResponse:
    return commit(
        service,
        lambda dataset: dataset_service.add_expense(dataset, expense),
        event_type=EVENT_EXPENSE_ADDED,
        message="Expense added successfully",
    )


@router.put(
    "/{expense_id}",
    response_model=ApiResponse,
    summary="Update an expense",
    responses={404: {"description": "Expense not found."}},
)
def put_expense(
    expense_id: ExpenseIdPath,
    updates: Annotated[dict[str, Any], Body(description="Expense fields to merge.")],
    service: MutationDep,
) -> ApiResponse:
    return commit(
        service,
        lambda dataset: dataset_service.update_expense(dataset, expense_id, updates),
        event_type=EVENT_EXPENSE_UPDATED,
        message=f"Expense {expense_id} updated successfully",
    )


@router.delete(
    "/{expense_id}",
    response_model=ApiResponse,
    summary="Delete an expense",
    responses={404: {"description": "Expense not found."}},
)
def delete_expense(expense_id: ExpenseIdPath, service: MutationDep) -> ApiResponse:
    return commit(
        service,
        lambda dataset: dataset_service.delete_expense(dataset, expense_id),
        event_type=EVENT_EXPENSE_DELETED,
        message=f"Expense {expense_id} deleted successfully",
    )
