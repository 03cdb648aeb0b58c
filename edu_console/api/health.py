"""Liveness and readiness probes.

/health answers "is the process alive" and always returns 200; the body
reports whether the entity store answered.  /ready returns 503 while the
store is unreachable so a load balancer stops routing here without
restarting the process.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Response, status

from edu_console.api.dependencies import entity_store
from edu_console.repos.pg_entity_store import PgEntityStore
from edu_console.services.errors import StoreUnavailableError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


def _backend_name() -> str:
    return "postgres" if isinstance(entity_store, PgEntityStore) else "memory"


async def _store_ok() -> bool:
    try:
        await entity_store.ping()
    except StoreUnavailableError:
        logger.warning("Health check: entity store unreachable")
        return False
    return True


@router.get("/health")
async def health() -> dict:
    ok = await _store_ok()
    return {
        "status": "ok" if ok else "degraded",
        "checks": {"store": "ok" if ok else "degraded"},
        "backend": _backend_name(),
    }


@router.get("/ready")
async def ready() -> Response:
    if await _store_ok():
        return Response(status_code=status.HTTP_200_OK)
    return Response(status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
