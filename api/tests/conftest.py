import os

import pytest

# Keep tracing local and quiet before the app module builds its settings.
os.environ.setdefault("OB_OTEL_ENABLED", "false")

from fastapi.testclient import TestClient  # noqa: E402

from factories import NOW  # noqa: E402
from listings_api.core.clock import FixedClock, get_clock  # noqa: E402
from listings_api.main import app  # noqa: E402
from listings_api.services.repository import get_repository  # noqa: E402
from listings_api.services.store import InMemoryRepository  # noqa: E402


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def store() -> InMemoryRepository:
    return InMemoryRepository()


@pytest.fixture
def client(store: InMemoryRepository, clock: FixedClock) -> TestClient:
    app.dependency_overrides[get_repository] = lambda: store
    app.dependency_overrides[get_clock] = lambda: clock

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
