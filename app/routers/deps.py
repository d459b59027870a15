"""
Dependencies and error translation shared by every router.

Service functions raise builtin-derived domain errors; ``http_errors`` maps
them onto ``HTTPException`` so each endpoint body stays a single call.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Annotated, Any

from fastapi import Depends, HTTPException, status

from app.schemas.common import ApiResponse
from app.schemas.dataset import Dataset
from app.services.dataset_service import NotFoundError, StudentReferenceError
from app.services.mutation_service import MutationService, get_mutation_service
from app.services.storage import DatasetRepository, PersistenceError, get_repository

logger = logging.getLogger(__name__)

RepositoryDep = Annotated[DatasetRepository, Depends(get_repository)]
MutationDep = Annotated[MutationService, Depends(get_mutation_service)]


@contextmanager
def http_errors() -> Iterator[None]:
    """Translate domain errors raised inside the block into HTTP errors.

    Raises:
        HTTPException 400: Sponsor references a student not in the program.
        HTTPException 404: Unknown program, record or settings section.
        HTTPException 422: Invalid input (bad field values, kind or strategy).
        HTTPException 500: The dataset could not be read or saved.
    """
    try:
        yield
    except StudentReferenceError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    except PersistenceError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc


def load_dataset(repository: RepositoryDep) -> Dataset:
    with http_errors():
        return repository.load()


DatasetDep = Annotated[Dataset, Depends(load_dataset)]


def commit(
    service: MutationService,
    mutate: Callable[[Dataset], Any],
    *,
    event_type: str,
    message: str,
    program: str | None = None,
) -> ApiResponse:
    """Run *mutate* through the mutation service and wrap the result in the envelope."""
    with http_errors():
        result = service.commit(mutate, event_type=event_type, message=message, program=program)
    return ApiResponse(success=True, message=message, data=result.event.data)


def envelope(data: Any, message: str) -> ApiResponse:
    return ApiResponse(success=True, message=message, data=data)
