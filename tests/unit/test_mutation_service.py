"""Tests for serialized commits and the events they publish."""

from __future__ import annotations

import threading
from typing import Any

import pytest

from app.schemas.dataset import Dataset
from app.services import dataset_service
from app.services.broadcast import BroadcastHub
from app.services.mutation_service import MutationService
from app.services.storage import DatasetRepository, InMemoryStorage, PersistenceError, create_empty_dataset

RATE = 4100.0


class RecordingHub(BroadcastHub):
    """Hub that keeps every published event instead of delivering it."""

    def __init__(self) -> None:
        super().__init__()
        self.events: list[dict[str, Any]] = []

    def publish(self, event: dict[str, Any]) -> int:
        self.events.append(event)
        return 1


class BrokenStorage(InMemoryStorage):
    def write(self, document: dict[str, Any]) -> None:
        raise OSError("read-only filesystem")


# --- Fixtures ---


@pytest.fixture
def recording_hub() -> RecordingHub:
    return RecordingHub()


@pytest.fixture
def service(repository: DatasetRepository, recording_hub: RecordingHub) -> MutationService:
    return MutationService(repository, recording_hub)


class TestCommit:
    def test_publishes_entity_and_database(
        self, service: MutationService, recording_hub: RecordingHub, scenario_student: dict
    ) -> None:
        result = service.commit(
            lambda dataset: dataset_service.add_student(dataset, "CH", scenario_student, RATE),
            event_type="student_added",
            message="Student A added to CH",
            program="CH",
        )

        assert result.entity.serial_number == 1
        assert len(recording_hub.events) == 1
        event = recording_hub.events[0]
        assert event["type"] == "student_added"
        assert event["program"] == "CH"
        assert event["entity_id"] == 1
        assert event["data"]["full_name"] == "A"
        summary = event["database"]["metadata"]["programs_summary"]
        assert summary["total_students_across_all_programs"] == 1

    def test_returns_reloaded_dataset(self, service: MutationService, scenario_student: dict) -> None:
        result = service.commit(
            lambda dataset: dataset_service.add_student(dataset, "CH", scenario_student, RATE),
            event_type="student_added",
            message="added",
        )
        assert result.dataset.sponsorship_programs["CH"].metadata.monthly_costs_ugx == pytest.approx(310000)

    def test_failed_mutation_saves_nothing(
        self, service: MutationService, repository: DatasetRepository, recording_hub: RecordingHub
    ) -> None:
        before = repository.load().to_document()

        def mutate(dataset: Dataset) -> None:
            dataset_service.add_student(dataset, "CH", {"full_name": "A"}, RATE)
            dataset_service.add_sponsor(dataset, "CH", {"full_name": "Ghost", "sponsor": "S"})

        with pytest.raises(ValueError):
            service.commit(mutate, event_type="sponsor_added", message="added")

        after = repository.load().to_document()
        assert after["sponsorship_programs"] == before["sponsorship_programs"]
        assert recording_hub.events == []

    def test_failed_save_raises_and_publishes_nothing(self, recording_hub: RecordingHub) -> None:
        storage = BrokenStorage(create_empty_dataset(RATE).to_document())
        service = MutationService(DatasetRepository(storage, RATE), recording_hub)

        with pytest.raises(PersistenceError):
            service.commit(
                lambda dataset: dataset_service.add_event(dataset, {"title": "Visit"}),
                event_type="event_added",
                message="added",
            )
        assert recording_hub.events == []
        assert storage.read()["events"] == []

    def test_concurrent_commits_lose_no_update(self, service: MutationService) -> None:
        """Parallel writers each see the previous writer's result."""

        def add_expense(n: int) -> None:
            service.commit(
                lambda dataset: dataset_service.add_expense(dataset, {"amount": n}),
                event_type="expense_added",
                message=f"expense {n}",
            )

        threads = [threading.Thread(target=add_expense, args=(n,)) for n in range(20)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        expenses = service.repository.load().daily_expenses
        assert sorted(e.id for e in expenses) == list(range(1, 21))

    def test_waits_for_repository_lock(self, service: MutationService, recording_hub: RecordingHub) -> None:
        """First-run initialization and commits hold the same lock."""
        done = threading.Event()

        def add_event() -> None:
            service.commit(
                lambda dataset: dataset_service.add_event(dataset, {"title": "Visit"}),
                event_type="event_added",
                message="added",
            )
            done.set()

        with service.repository.lock:
            thread = threading.Thread(target=add_event)
            thread.start()
            assert not done.wait(0.2)
        thread.join(5)

        assert done.is_set()
        assert len(recording_hub.events) == 1
