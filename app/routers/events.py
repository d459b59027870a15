"""Calendar event endpoints, mounted under ``/api/events``."""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Body, Path, status

from app.routers.deps import DatasetDep, MutationDep, commit, envelope
from app.schemas.common import ApiResponse
from app.schemas.dataset import Event
from app.services import dataset_service
from app.utils.constants import EVENT_EVENT_ADDED, EVENT_EVENT_DELETED, EVENT_EVENT_UPDATED

router = APIRouter(tags=["Events"])

EventIdPath = Annotated[int, Path(ge=1)]


@router.get("", response_model=ApiResponse, summary="List events")
def get_events(dataset: DatasetDep) -> ApiResponse:
    return envelope([e.model_dump(mode="json") for e in dataset.events], "Events loaded successfully")


@router.post("", response_model=ApiResponse, status_code=status.HTTP_201_CREATED, summary="Add an event")
def post_event(event: Event, service: MutationDep) -> ApiResponse:
    return commit(
        service,
        lambda dataset: dataset_service.add_event(dataset, event),
        event_type=EVENT_EVENT_ADDED,
        message="Event added successfully",
    )


@router.put(
    "/{event_id}",
    response_model=ApiResponse,
    summary="Update an event",
    responses={404: {"description": "Event not found."}},
)
def put_event(
    event_id: EventIdPath,
    updates: Annotated[dict[str, Any], Body(description="Event fields to merge.")],
    service: MutationDep,
) -> ApiResponse:
    return commit(
        service,
        lambda dataset: dataset_service.update_event(dataset, event_id, updates),
        event_type=EVENT_EVENT_UPDATED,
        message=f"Event {event_id} updated successfully",
    )


@router.delete(
    "/{event_id}",
    response_model=ApiResponse,
    summary="Delete an event",
    responses={404: {"description": "Event not found."}},
)
def delete_event(event_id: EventIdPath, service: MutationDep) -> ApiResponse:
    return commit(
        service,
        lambda dataset: dataset_service.delete_event(dataset, event_id),
        event_type=EVENT_EVENT_DELETED,
        message=f"Event {event_id} deleted successfully",
    )
