"""
Export router.

Mounts under ``/api/export`` (prefix set in ``main.py``).

Endpoints
---------
GET /json   — Full dataset as a downloadable JSON document.
GET /excel  — Financial report as ``.xlsx``.
GET /pdf    — Financial report as ``.pdf``.

The ``Content-Disposition`` header uses ``attachment; filename=...`` so that
browsers prompt a download rather than displaying the file inline.
"""

from __future__ import annotations

import io
import logging
from collections.abc import Callable

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import StreamingResponse

from app.routers.deps import DatasetDep, RepositoryDep
from app.schemas.dataset import Dataset
from app.services import export_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Export"])

_XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _attachment(content: bytes, media_type: str, filename: str) -> StreamingResponse:
    return StreamingResponse(
        io.BytesIO(content),
        media_type=media_type,
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "Content-Length": str(len(content)),
        },
    )


def _render(builder: Callable[[Dataset, float], bytes], dataset: Dataset, rate: float, label: str) -> bytes:
    try:
        return builder(dataset, rate)
    except Exception as exc:
        logger.exception("export_%s failed: %s", label, exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error generating the {label} file: {exc}",
        ) from exc


@router.get(
    "/json",
    summary="Export the dataset as JSON",
    response_class=StreamingResponse,
    responses={200: {"content": {"application/json": {}}}},
)
def export_json(dataset: DatasetDep) -> StreamingResponse:
    content = export_service.export_json(dataset)
    return _attachment(content, "application/json", export_service.make_filename("sponsorship_data", "json"))


@router.get(
    "/excel",
    summary="Export the financial report to Excel (.xlsx)",
    response_class=StreamingResponse,
    responses={
        200: {"content": {_XLSX_MEDIA_TYPE: {}}},
        500: {"description": "Error generating the file."},
    },
)
def export_excel(dataset: DatasetDep, repository: RepositoryDep) -> StreamingResponse:
    content = _render(export_service.export_excel, dataset, repository.rate, "Excel")
    return _attachment(content, _XLSX_MEDIA_TYPE, export_service.make_filename("financial_report", "xlsx"))


@router.get(
    "/pdf",
    summary="Export the financial report to PDF",
    response_class=StreamingResponse,
    responses={
        200: {"content": {"application/pdf": {}}},
        500: {"description": "Error generating the file."},
    },
)
def export_pdf(dataset: DatasetDep, repository: RepositoryDep) -> StreamingResponse:
    content = _render(export_service.export_pdf, dataset, repository.rate, "PDF")
    return _attachment(content, "application/pdf", export_service.make_filename("financial_report", "pdf"))
