import os
import tempfile
from collections.abc import Iterator

# Settings are cached on first use; point them at throwaway locations before
# anything under app/ is imported.
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("UPLOADS_DIR", tempfile.mkdtemp(prefix="sponsorship-uploads-"))
os.environ.setdefault("TEMPLATES_DIR", tempfile.mkdtemp(prefix="sponsorship-templates-"))

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.schemas.dataset import Dataset  # noqa: E402
from app.services.broadcast import BroadcastHub, get_hub  # noqa: E402
from app.services.mutation_service import MutationService, get_mutation_service  # noqa: E402
from app.services.storage import (  # noqa: E402
    DatasetRepository,
    InMemoryStorage,
    create_empty_dataset,
    get_repository,
)

RATE = 4100.0


# --- Fixtures ---


@pytest.fixture
def rate() -> float:
    return RATE


@pytest.fixture
def empty_dataset() -> Dataset:
    """Freshly initialized dataset: four empty programs and registries."""
    return create_empty_dataset(RATE)


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def repository(storage: InMemoryStorage) -> DatasetRepository:
    """Repository over an empty in-memory store."""
    return DatasetRepository(storage, RATE)


@pytest.fixture
def hub() -> BroadcastHub:
    return BroadcastHub(queue_size=10)


@pytest.fixture
def mutation_service(repository: DatasetRepository, hub: BroadcastHub) -> MutationService:
    return MutationService(repository, hub)


@pytest.fixture
def scenario_student() -> dict:
    """Student whose figures are 310000 UGX cost vs 287000 UGX income per month."""
    return {
        "full_name": "A",
        "sponsorship_package": "Day",
        "financial_data": {
            "termly_school_fees": 600000,
            "food": 90000,
            "average_medical": 10000,
            "school_personal_requirements_transport": 5000,
            "admin_utilities": 5000,
            "cash_received_euro": 70,
        },
    }


@pytest.fixture
def client(
    repository: DatasetRepository,
    hub: BroadcastHub,
    mutation_service: MutationService,
) -> Iterator[TestClient]:
    """TestClient wired to the in-memory repository and a private hub."""
    from app.main import app

    app.dependency_overrides[get_repository] = lambda: repository
    app.dependency_overrides[get_hub] = lambda: hub
    app.dependency_overrides[get_mutation_service] = lambda: mutation_service
    yield TestClient(app)
    app.dependency_overrides.clear()
