"""
Serialized load → mutate → save → reload → publish.

All writes to the dataset go through ``MutationService.commit`` so that two
concurrent requests can never interleave their load/store cycles and lose an
update.  The lock is the repository's own, shared with first-run
initialization; it is per process, so run a single worker per dataset.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from app.schemas.dataset import Dataset
from app.schemas.realtime import BroadcastEvent
from app.services.broadcast import BroadcastHub, get_hub
from app.services.storage import DatasetRepository, PersistenceError, get_repository

logger = logging.getLogger(__name__)

T = TypeVar("T")

_ENTITY_ID_FIELDS = ("serial_number", "cid", "id")


@dataclass
class MutationResult(Generic[T]):
    entity: T
    dataset: Dataset
    event: BroadcastEvent


def _entity_id(entity: Any) -> int | None:
    for attr in _ENTITY_ID_FIELDS:
        value = getattr(entity, attr, None)
        if isinstance(value, int):
            return value
    return None


def _entity_payload(entity: Any) -> Any:
    if isinstance(entity, BaseModel):
        return entity.model_dump(mode="json")
    return entity


class MutationService:
    """Runs dataset edits one at a time and announces the committed result."""

    def __init__(self, repository: DatasetRepository, hub: BroadcastHub) -> None:
        self.repository = repository
        self.hub = hub
        self._lock = repository.lock

    def commit(
        self,
        mutate: Callable[[Dataset], T],
        *,
        event_type: str,
        message: str,
        program: str | None = None,
    ) -> MutationResult[T]:
        """Apply *mutate* to the current dataset and persist it.

        Args:
            mutate: Edits the dataset in place and returns the affected record.
                Any exception it raises aborts the commit; nothing is saved.
            event_type: Name of the event published after a successful save.
            message: Human-readable description carried by the event.
            program: Program code the change belongs to, if any.

        Returns:
            The affected record, the reloaded dataset and the published event.

        Raises:
            PersistenceError: If the dataset could not be saved; no event is
                published in that case.
        """
        with self._lock:
            dataset = self.repository.load()
            entity = mutate(dataset)
            if not self.repository.save(dataset):
                raise PersistenceError("Failed to save the dataset")
            updated = self.repository.load()

            event = BroadcastEvent(
                type=event_type,
                message=message,
                program=program,
                entity_id=_entity_id(entity),
                data=_entity_payload(entity),
                database=updated.to_document(),
            )
            delivered = self.hub.publish(event.model_dump(mode="json"))

        logger.info("%s committed (%d observers notified)", event_type, delivered)
        return MutationResult(entity=entity, dataset=updated, event=event)


@lru_cache
def get_mutation_service() -> MutationService:
    return MutationService(get_repository(), get_hub())
