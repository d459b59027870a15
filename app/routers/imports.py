"""
Import router.

Mounts under ``/api`` (prefix set in ``main.py``).

Endpoints
---------
POST /import/json             — Import a full dataset export or an ``ImportPayload``.
POST /import/excel            — Upload an Excel workbook (students, sponsors, expenses or all).
GET  /export/template/{kind}  — Download the Excel import template for *kind*.

Both import endpoints recompute every aggregate on save and broadcast a
``database_imported`` event to connected observers.
"""

from __future__ import annotations

import io
import logging
from typing import Annotated, Any

from fastapi import APIRouter, Body, File, Form, HTTPException, Path, Query, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import StreamingResponse

from app.config import get_settings
from app.routers.deps import MutationDep, http_errors
from app.schemas.common import ApiResponse
from app.schemas.imports import ImportKind, MergeStrategy
from app.services import import_service
from app.services.template_service import TEMPLATE_CATALOG, generate_template
from app.utils.constants import EXCEL_CONTENT_TYPES

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Import"])

_XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _validate_excel_file(file: UploadFile) -> None:
    """Log uploads whose MIME type does not look like a workbook.

    Browsers often omit or mislabel the content type, so the file is still
    handed to the parser, which rejects anything it cannot open.
    """
    content_type = file.content_type or ""
    if content_type not in EXCEL_CONTENT_TYPES:
        logger.warning(
            "Unexpected content_type='%s' for file='%s', proceeding anyway",
            content_type,
            file.filename,
        )


# ---------------------------------------------------------------------------
# POST /import/json
# ---------------------------------------------------------------------------


@router.post(
    "/import/json",
    response_model=ApiResponse,
    summary="Import JSON data",
    description=(
        "Accepts either a complete dataset export (replaces everything) or an import "
        "payload ``{type, data, metadata}`` integrated with the strategy given in ``?merge=``."
    ),
    responses={
        400: {"description": "Body is not a JSON object."},
        422: {"description": "Invalid payload or strategy."},
    },
)
def import_json(
    document: Annotated[Any, Body(description="Dataset export or import payload.")],
    service: MutationDep,
    merge: Annotated[MergeStrategy, Query(description="replace, merge or append.")] = "replace",
) -> ApiResponse:
    if not isinstance(document, dict) or not document:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid data format")

    logger.info("POST /import/json type=%s merge=%s", document.get("type", "dataset"), merge)
    with http_errors():
        result = import_service.import_json(service, document, merge)
    return ApiResponse(success=True, message="Data imported successfully", data=result.event.data)


# ---------------------------------------------------------------------------
# POST /import/excel
# ---------------------------------------------------------------------------


@router.post(
    "/import/excel",
    response_model=ApiResponse,
    summary="Import an Excel workbook",
    description=(
        "Parses the uploaded ``.xlsx`` with the sheet layout of the import templates "
        "and integrates it using the requested merge strategy."
    ),
    responses={
        400: {"description": "No file or empty file."},
        413: {"description": "File larger than MAX_UPLOAD_MB."},
        422: {"description": "Unreadable workbook or invalid type/strategy."},
    },
)
async def import_excel(
    file: Annotated[UploadFile, File(description="Excel workbook (.xlsx)")],
    service: MutationDep,
    import_type: Annotated[ImportKind, Form(alias="type", description="students, sponsors, expenses or all.")] = "all",
    merge: Annotated[MergeStrategy, Form(description="replace, merge or append.")] = "replace",
) -> ApiResponse:
    _validate_excel_file(file)
    content = await file.read()
    if not content:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file uploaded")

    max_bytes = get_settings().MAX_UPLOAD_MB * 1024 * 1024
    if len(content) > max_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds the {get_settings().MAX_UPLOAD_MB} MB upload limit",
        )

    logger.info("POST /import/excel file='%s' type=%s merge=%s", file.filename, import_type, merge)
    with http_errors():
        result = await run_in_threadpool(
            import_service.import_workbook,
            service,
            content,
            file.filename or "upload.xlsx",
            import_type,
            merge,
        )
    return ApiResponse(success=True, message="Excel file imported successfully", data=result.event.data)


# ---------------------------------------------------------------------------
# GET /export/template/{kind}
# ---------------------------------------------------------------------------


@router.get(
    "/export/template/{kind}",
    summary="Download an Excel import template",
    response_class=StreamingResponse,
    responses={
        200: {"description": "Template workbook.", "content": {_XLSX_MEDIA_TYPE: {}}},
        400: {"description": "Unknown template kind."},
    },
)
def download_template(
    kind: Annotated[str, Path(description="students, sponsors, expenses or all.")],
) -> StreamingResponse:
    try:
        content = generate_template(kind)
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid template type '{kind}'. Valid: {', '.join(TEMPLATE_CATALOG)}",
        ) from exc

    filename = f"sponsorship_{kind}_template.xlsx"
    return StreamingResponse(
        io.BytesIO(content),
        media_type=_XLSX_MEDIA_TYPE,
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "Content-Length": str(len(content)),
        },
    )
