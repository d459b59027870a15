"""Pydantic v2 schema for events pushed to WebSocket observers."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class BroadcastEvent(BaseModel):
    """One change notification.

    Attributes:
        type: Event name, e.g. ``"student_added"``.
        message: Human-readable description of the change.
        program: Program code the change belongs to, when there is one.
        entity_id: Serial number, CID or id of the affected record.
        data: The affected record after the change.
        database: Full dataset as persisted after the change.
    """

    type: str
    message: str = ""
    program: str | None = None
    entity_id: int | None = None
    data: Any = None
    database: dict[str, Any] = Field(default_factory=dict)
