"""
Sponsor registry endpoints.

Mounts under ``/api`` (prefix set in ``main.py``).

Endpoints
---------
GET    /registry                       — Every sponsor, tagged with its program.
GET    /sponsors                       — Same as ``/registry``.
GET    /registry-stats                 — Sponsor counts and funding per program.
GET    /registry/{code}                — One program's registry.
POST   /registry/{code}/sponsors       — Add a sponsor (CID = N + 1).
PUT    /registry/{code}/sponsors/{cid} — Shallow-update a sponsor.
DELETE /registry/{code}/sponsors/{cid} — Remove a sponsor and renumber.

A sponsor must name a student enrolled in the same program; otherwise the
request is rejected with 400 and nothing is saved.
"""

from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Body, Path, status

from app.routers.deps import DatasetDep, MutationDep, commit, envelope, http_errors
from app.schemas.common import ApiResponse
from app.schemas.dataset import Sponsor
from app.services import dataset_service, report_service
from app.utils.constants import EVENT_SPONSOR_ADDED, EVENT_SPONSOR_DELETED, EVENT_SPONSOR_UPDATED

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Registry"])

CodePath = Annotated[str, Path(description="Program code, e.g. CH, YSP, ICCSP, OTM_GA.")]
CidPath = Annotated[int, Path(ge=1, description="1-based sponsor CID within the registry.")]

_REFERENCE_ERROR = {400: {"description": "The sponsored student is not enrolled in the program."}}


@router.get("/registry", response_model=ApiResponse, summary="All sponsors")
@router.get("/sponsors", response_model=ApiResponse, summary="All sponsors")
def get_all_sponsors(dataset: DatasetDep) -> ApiResponse:
    return envelope(dataset_service.list_all_sponsors(dataset), "All sponsors loaded successfully")


@router.get("/registry-stats", response_model=ApiResponse, summary="Sponsor statistics")
def get_registry_stats(dataset: DatasetDep) -> ApiResponse:
    stats = report_service.calculate_sponsor_statistics(dataset)
    return envelope(stats.model_dump(), "Sponsor statistics loaded successfully")


@router.get(
    "/registry/{code}",
    response_model=ApiResponse,
    summary="Registry of one program",
    responses={404: {"description": "No registry for this program."}},
)
def get_registry(code: CodePath, dataset: DatasetDep) -> ApiResponse:
    with http_errors():
        registry = dataset_service.get_registry(dataset, code)
    return envelope(registry.model_dump(mode="json"), f"Registry {code} loaded successfully")


@router.post(
    "/registry/{code}/sponsors",
    response_model=ApiResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a sponsor",
    responses=_REFERENCE_ERROR,
)
def post_sponsor(code: CodePath, sponsor: Sponsor, service: MutationDep) -> ApiResponse:
    return commit(
        service,
        lambda dataset: dataset_service.add_sponsor(dataset, code, sponsor),
        event_type=EVENT_SPONSOR_ADDED,
        message=f"Sponsor added for {sponsor.full_name} in {code}",
        program=code,
    )


@router.put(
    "/registry/{code}/sponsors/{cid}",
    response_model=ApiResponse,
    summary="Update a sponsor",
    responses={**_REFERENCE_ERROR, 404: {"description": "Registry or sponsor not found."}},
)
def put_sponsor(
    code: CodePath,
    cid: CidPath,
    updates: Annotated[dict[str, Any], Body(description="Sponsor fields to merge.")],
    service: MutationDep,
) -> ApiResponse:
    return commit(
        service,
        lambda dataset: dataset_service.update_sponsor(dataset, code, cid, updates),
        event_type=EVENT_SPONSOR_UPDATED,
        message=f"Sponsor {cid} in {code} updated successfully",
        program=code,
    )


@router.delete(
    "/registry/{code}/sponsors/{cid}",
    response_model=ApiResponse,
    summary="Delete a sponsor",
    responses={404: {"description": "Registry or sponsor not found."}},
)
def delete_sponsor(code: CodePath, cid: CidPath, service: MutationDep) -> ApiResponse:
    return commit(
        service,
        lambda dataset: dataset_service.delete_sponsor(dataset, code, cid),
        event_type=EVENT_SPONSOR_DELETED,
        message=f"Sponsor {cid} removed from {code}",
        program=code,
    )
