"""Pytest fixtures for the catalog store, service and API tests."""

import os
from datetime import datetime, timedelta, timezone

# The API module builds its store at import time; keep it off disk and open.
os.environ["STORE_BACKEND"] = "memory"
os.environ["API_KEYS"] = ""

import pytest
from fastapi.testclient import TestClient

from src.catalog.service import CatalogService
from src.database.memory import MemoryStore


class TickingClock:
    """Returns a new instant 1 ms after the previous one on every call."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        self.now += timedelta(milliseconds=1)
        return self.now


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
def store():
    """In-memory document store for tests."""
    return MemoryStore()


@pytest.fixture
def service(store, clock):
    return CatalogService(store, clock=clock)


@pytest.fixture
def api_app(service, store):
    from src.api.main import app, get_service, get_store

    app.dependency_overrides[get_service] = lambda: service
    app.dependency_overrides[get_store] = lambda: store
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(api_app):
    with TestClient(api_app) as c:
        yield c


@pytest.fixture
def make_clock():
    return TickingClock
