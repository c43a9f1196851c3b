# tests/conftest.py

import pytest

from timekeeper.core.api_gateway import ApiGateway
from timekeeper.core.document_store import DocumentStore
from timekeeper.core.operations import TimeTracker
from timekeeper.core.settings import AppPaths


@pytest.fixture
def paths(tmp_path):
    """Application paths pointing at a fresh temporary config directory."""
    return AppPaths(tmp_path / "config")


@pytest.fixture
def store(paths):
    """A document store seeded with the first-run defaults."""
    store = DocumentStore(paths)
    store.initialize()
    return store


@pytest.fixture
def gateway(store):
    """A gateway in mock mode with a fixed clock, so generated ids are predictable."""
    return ApiGateway(store, clock=lambda: 1750000000.0)


@pytest.fixture
def tracker(store, gateway):
    return TimeTracker(store, gateway)
