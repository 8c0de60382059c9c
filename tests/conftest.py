from __future__ import annotations

import os
import tempfile
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Generator

os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("IMAGES_DIR", tempfile.mkdtemp(prefix="tourdesk-images-"))

import pytest
from fastapi.testclient import TestClient

from tourdesk.main import app, get_image_storage, get_store
from tourdesk.storage import InMemoryDocumentStore
from tourdesk.uploads import LocalImageStorage


class TickingClock:
    """Returns a strictly increasing timestamp on every call."""

    def __init__(self) -> None:
        self._now = datetime.now(timezone.utc)

    def __call__(self) -> datetime:
        self._now += timedelta(seconds=1)
        return self._now


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore(clock=TickingClock())


@pytest.fixture
def images(tmp_path) -> LocalImageStorage:
    return LocalImageStorage(tmp_path / "images")


@pytest.fixture
def client(store: InMemoryDocumentStore, images: LocalImageStorage) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_image_storage] = lambda: images
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def future_date(days: int = 14) -> str:
    moment = datetime.now(timezone.utc) + timedelta(days=days)
    return moment.replace(hour=10, minute=0, second=0, microsecond=0).isoformat().replace("+00:00", "Z")


def build_tour_form(**overrides: Any) -> dict[str, str]:
    form = {
        "title": "Alpine Hiking Escape",
        "price": "1299.99",
        "duration": "1 week",
        "category": "adventure",
        "description": "Seven days of guided hiking through alpine meadows and glaciers.",
        "displayOrder": "0",
        "isActive": "true",
    }
    form.update({key: str(value) for key, value in overrides.items()})
    return form


def build_booking_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "name": "Maria Lopez",
        "phone": "+14155552671",
        "email": "Maria.Lopez@TravelMail.com",
        "adults": 2,
        "children": 1,
        "travelDate": future_date(),
        "confirmTrip": "paris",
        "tourId": "",
        "message": "Window seats if possible",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def create_tour(client: TestClient) -> Callable[..., dict[str, Any]]:
    def _create(**overrides: Any) -> dict[str, Any]:
        response = client.post("/api/tours", data=build_tour_form(**overrides))
        assert response.status_code == 201, response.json()
        return response.json()["data"]

    return _create


@pytest.fixture
def create_booking(client: TestClient) -> Callable[..., dict[str, Any]]:
    def _create(**overrides: Any) -> dict[str, Any]:
        response = client.post("/api/bookings", json=build_booking_payload(**overrides))
        assert response.status_code == 201, response.json()
        return response.json()["booking"]

    return _create
