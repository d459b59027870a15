"""
System settings endpoints.

Mounts under ``/api/settings`` (prefix set in ``main.py``).

Endpoints
---------
GET  /           — Current settings.
PUT  /           — Shallow merge over the whole settings object.
PUT  /{section}  — Shallow merge inside ``organization``, ``forex`` or ``notifications``.
POST /logo       — Upload an organization logo image.
"""

from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Body, File, HTTPException, Path, UploadFile, status
from fastapi.concurrency import run_in_threadpool

from app.config import get_settings
from app.routers.deps import DatasetDep, MutationDep, commit, envelope
from app.schemas.common import ApiResponse
from app.services import dataset_service
from app.services.file_storage import save_logo
from app.utils.constants import EVENT_LOGO_UPDATED, EVENT_SETTINGS_UPDATED, SETTINGS_SECTIONS

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Settings"])


@router.get("", response_model=ApiResponse, summary="Get system settings")
def get_system_settings(dataset: DatasetDep) -> ApiResponse:
    return envelope(dataset.system_settings.model_dump(mode="json"), "Settings loaded successfully")


@router.put("", response_model=ApiResponse, summary="Update system settings")
def put_system_settings(
    updates: Annotated[dict[str, Any], Body(description="Settings fields to merge.")],
    service: MutationDep,
) -> ApiResponse:
    return commit(
        service,
        lambda dataset: dataset_service.update_settings(dataset, updates),
        event_type=EVENT_SETTINGS_UPDATED,
        message="Settings updated successfully",
    )


@router.put(
    "/{section}",
    response_model=ApiResponse,
    summary="Update one settings section",
    responses={404: {"description": "Unknown settings section."}},
)
def put_settings_section(
    section: Annotated[str, Path(description="organization, forex or notifications.")],
    updates: Annotated[dict[str, Any], Body(description="Section fields to merge.")],
    service: MutationDep,
) -> ApiResponse:
    if section not in SETTINGS_SECTIONS:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown settings section '{section}'. Valid: {sorted(SETTINGS_SECTIONS)}",
        )
    return commit(
        service,
        lambda dataset: dataset_service.update_settings_section(dataset, section, updates),
        event_type=SETTINGS_SECTIONS[section],
        message=f"{section.capitalize()} settings updated successfully",
    )


@router.post(
    "/logo",
    response_model=ApiResponse,
    summary="Upload the organization logo",
    responses={400: {"description": "Missing, empty or non-image file."}},
)
async def post_logo(
    file: Annotated[UploadFile, File(description="Logo image (png, jpg, gif, svg, webp).")],
    service: MutationDep,
) -> ApiResponse:
    raw_bytes = await file.read()
    try:
        logo_url = save_logo(raw_bytes, file.filename or "", get_settings().UPLOADS_DIR)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    logger.info("Logo stored at %s (%d bytes)", logo_url, len(raw_bytes))
    return await run_in_threadpool(
        commit,
        service,
        lambda dataset: dataset_service.set_logo(dataset, logo_url),
        event_type=EVENT_LOGO_UPDATED,
        message="Logo updated successfully",
    )
