from __future__ import annotations

import asyncio

import pytest
from fastapi.testclient import TestClient

from edu_console.api.dependencies import entity_store
from edu_console.db.seed import sample_snapshot
from edu_console.main import app
from edu_console.repos.entity_store import InMemoryEntityStore
from edu_console.services.console import ConsoleService


@pytest.fixture(autouse=True)
def reset_entity_store() -> None:
    """Every test starts from an empty store."""
    asyncio.run(entity_store.clear())


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def seeded() -> None:
    """Load the sample dataset (org-1/org-2, user-1..4, course-1/2, two enrollments)."""
    asyncio.run(entity_store.import_snapshot(sample_snapshot()))


@pytest.fixture
def service() -> ConsoleService:
    """A ConsoleService over its own empty in-memory store."""
    return ConsoleService(InMemoryEntityStore())


@pytest.fixture
def seeded_service() -> ConsoleService:
    store = InMemoryEntityStore()
    asyncio.run(store.import_snapshot(sample_snapshot()))
    return ConsoleService(store)

