"""
Shared Pydantic v2 schemas reused across routers.

Mutating endpoints answer with the ``ApiResponse`` envelope so that clients
can treat every write the same way.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ApiResponse(BaseModel):
    """Envelope returned by mutating endpoints.

    Attributes:
        success: ``True`` when the change was committed.
        message: Human-readable outcome.
        data: The affected entity (or collection) after the change.
    """

    success: bool = True
    message: str = ""
    data: Any = None


class MessageResponse(BaseModel):
    """Generic single-message response (e.g. for health checks)."""

    message: str = Field(..., description="Main message.")
    detail: str | None = Field(default=None, description="Optional extra detail.")
