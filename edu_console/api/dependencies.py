"""Store and service singletons shared by the routers.

The backend is chosen once at import time: PostgreSQL when DATABASE_URL is
configured, otherwise the in-memory store (mirrored to SNAPSHOT_PATH when
that is set).
"""

from __future__ import annotations

import logging

from edu_console.core.config import SETTINGS
from edu_console.db.engine import async_session_factory
from edu_console.repos.entity_store import EntityStore, InMemoryEntityStore
from edu_console.repos.pg_entity_store import PgEntityStore
from edu_console.services.console import ConsoleService

logger = logging.getLogger(__name__)

entity_store: EntityStore
if async_session_factory is not None:
    entity_store = PgEntityStore(async_session_factory)
else:
    entity_store = InMemoryEntityStore(SETTINGS.snapshot_path)

console_service = ConsoleService(entity_store)


def get_console() -> ConsoleService:
    """FastAPI dependency; override in tests to swap the service."""
    return console_service
