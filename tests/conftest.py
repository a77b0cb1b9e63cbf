import os
from typing import Generator, List

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("PERSISTENCE_ENABLED", "false")
os.environ.setdefault("RATE_LIMITING_ENABLED", "false")
os.environ.setdefault("LOG_DIR", "./logs")

from roombook.config import reset_settings_cache  # noqa: E402

reset_settings_cache()

from roombook.models import Room  # noqa: E402
from roombook.renderer import ViewRenderer  # noqa: E402
from roombook.service import BookingService, default_rooms  # noqa: E402
from roombook.store import MemorySnapshotStore  # noqa: E402
from services.reservations.app import app, get_booking_service  # noqa: E402


class RecordingRenderer:
    """Renderer that remembers every refresh it receives."""

    def __init__(self) -> None:
        self.calls: List[tuple] = []

    def refresh(self, rooms, reservations) -> None:
        self.calls.append(([room.model_copy(deep=True) for room in rooms], list(reservations)))


@pytest.fixture()
def store() -> MemorySnapshotStore:
    return MemorySnapshotStore()


@pytest.fixture()
def renderer() -> RecordingRenderer:
    return RecordingRenderer()


@pytest.fixture()
def service(store, renderer) -> BookingService:
    return BookingService(default_rooms(), store, renderer)


@pytest.fixture()
def view_service(store) -> BookingService:
    return BookingService.from_store(store, ViewRenderer(ttl=60))


@pytest.fixture()
def reservations_client(view_service) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_booking_service] = lambda: view_service
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.pop(get_booking_service, None)


@pytest.fixture()
def single_room() -> Room:
    return Room(number=101, capacity=30)
