"""
Dataset persistence.

The dataset is always read and written whole.  ``DatasetRepository`` owns the
load/save contract and delegates raw document I/O to a pluggable backend:

- ``InMemoryStorage``  — process-local, used by tests and the ``memory`` setting.
- ``JsonFileStorage``  — one JSON file, replaced atomically on every write.
- ``SqlStorage``       — one row of the ``dataset_snapshot`` table.

Design notes
------------
- ``save()`` stamps ``last_updated`` and runs the full recalculation right
  before writing, so a stored document is always internally consistent.
- ``load()`` on an empty store creates, saves and returns the empty dataset.
  A stored document that cannot be read raises ``PersistenceError`` instead
  of being silently replaced.
"""

from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
import threading
from datetime import date, datetime, timezone
from functools import lru_cache
from pathlib import Path
from typing import Any, Protocol

from pydantic import ValidationError
from sqlalchemy.orm import sessionmaker

from app.config import get_settings
from app.models.dataset_snapshot import DatasetSnapshot
from app.schemas.dataset import (
    CurrencyConversion,
    Dataset,
    DatasetMetadata,
    ForexSettings,
    Program,
    Registry,
    SystemSettings,
)
from app.services.financial_service import recalculate_all_metadata
from app.utils.constants import EXCHANGE_RATE, PROGRAM_CODES, PROGRAM_NAMES

logger = logging.getLogger(__name__)


class PersistenceError(RuntimeError):
    """The dataset could not be written, or the stored copy could not be read."""


# ---------------------------------------------------------------------------
# Empty dataset
# ---------------------------------------------------------------------------


def create_empty_dataset(rate: float = EXCHANGE_RATE) -> Dataset:
    """Fresh dataset with every known program and registry present but empty."""
    return Dataset(
        sponsorship_programs={
            code: Program(program_name=PROGRAM_NAMES[code]) for code in PROGRAM_CODES
        },
        sponsorship_registry={code: Registry() for code in PROGRAM_CODES},
        system_settings=SystemSettings(forex=ForexSettings(manual_rate=rate)),
        metadata=DatasetMetadata(
            extraction_date=date.today().isoformat(),
            currency_conversion_rate=CurrencyConversion(euro_to_ugx=rate),
        ),
        last_updated=datetime.now(timezone.utc).isoformat(),
    )


# ---------------------------------------------------------------------------
# Backends
# ---------------------------------------------------------------------------


class DatasetStorage(Protocol):
    def read(self) -> dict[str, Any] | None:
        """Return the stored document, or ``None`` when nothing is stored."""
        ...

    def write(self, document: dict[str, Any]) -> None:
        """Replace the stored document."""
        ...


class InMemoryStorage:
    def __init__(self, document: dict[str, Any] | None = None) -> None:
        self._document = copy.deepcopy(document)

    def read(self) -> dict[str, Any] | None:
        return copy.deepcopy(self._document)

    def write(self, document: dict[str, Any]) -> None:
        self._document = copy.deepcopy(document)


class JsonFileStorage:
    """Stores the dataset as a pretty-printed JSON file."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def read(self) -> dict[str, Any] | None:
        if not self.path.exists():
            return None
        with self.path.open("r", encoding="utf-8") as fh:
            return json.load(fh)

    def write(self, document: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(document, fh, indent=2, ensure_ascii=False)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


class SqlStorage:
    """Stores the dataset in the single-row ``dataset_snapshot`` table."""

    _ROW_ID = 1

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def read(self) -> dict[str, Any] | None:
        with self._session_factory() as db:
            row = db.get(DatasetSnapshot, self._ROW_ID)
            return json.loads(row.payload) if row is not None else None

    def write(self, document: dict[str, Any]) -> None:
        payload = json.dumps(document, ensure_ascii=False)
        with self._session_factory() as db:
            row = db.get(DatasetSnapshot, self._ROW_ID)
            if row is None:
                db.add(DatasetSnapshot(id=self._ROW_ID, payload=payload, version=1))
            else:
                row.payload = payload
                row.version = row.version + 1
            db.commit()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class DatasetRepository:
    """Load/save contract around a storage backend.

    Args:
        storage: Backend doing the raw document I/O.
        rate: EUR -> UGX rate applied by the recalculation on save.
    """

    def __init__(self, storage: DatasetStorage, rate: float = EXCHANGE_RATE) -> None:
        self.storage = storage
        self.rate = rate
        # Held by MutationService for each commit and by first-run initialization.
        self.lock = threading.RLock()

    def _read(self) -> dict[str, Any] | None:
        try:
            return self.storage.read()
        except Exception as exc:
            logger.exception("Error loading dataset")
            raise PersistenceError(f"Could not read the stored dataset: {exc}") from exc

    def load(self) -> Dataset:
        """Return the stored dataset, creating and saving an empty one if none exists.

        The empty dataset is written under ``self.lock`` after a second read,
        so it can never overwrite a commit that landed first.

        Raises:
            PersistenceError: If the stored document cannot be read or validated.
        """
        document = self._read()
        if document is None:
            with self.lock:
                document = self._read()
                if document is None:
                    dataset = create_empty_dataset(self.rate)
                    if not self.save(dataset):
                        raise PersistenceError("Could not initialize an empty dataset")
                    logger.info("Created empty dataset")
                    return dataset

        try:
            return Dataset.model_validate(document)
        except ValidationError as exc:
            logger.error("Stored dataset is invalid: %s", exc)
            raise PersistenceError("The stored dataset is not valid") from exc

    def save(self, dataset: Dataset) -> bool:
        """Recalculate and persist *dataset*.

        Returns:
            ``True`` on success, ``False`` when the backend failed (logged).
        """
        dataset.last_updated = datetime.now(timezone.utc).isoformat()
        recalculate_all_metadata(dataset, self.rate)
        try:
            self.storage.write(dataset.to_document())
        except Exception:
            logger.exception("Error saving dataset")
            return False
        return True


def build_storage(backend: str) -> DatasetStorage:
    """Instantiate the backend named by ``STORAGE_BACKEND``."""
    settings = get_settings()
    if backend == "json":
        return JsonFileStorage(settings.DB_FILE)
    if backend == "sql":
        from app.database import SessionLocal, init_db

        init_db()
        return SqlStorage(SessionLocal)
    if backend == "memory":
        return InMemoryStorage()
    raise ValueError(f"Unknown storage backend: {backend!r}")


@lru_cache
def get_repository() -> DatasetRepository:
    settings = get_settings()
    return DatasetRepository(build_storage(settings.STORAGE_BACKEND), settings.EXCHANGE_RATE)
