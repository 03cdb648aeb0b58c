from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from edu_console.api.courses import router as courses_router
from edu_console.api.dashboard import router as dashboard_router
from edu_console.api.dependencies import entity_store
from edu_console.api.enrollments import router as enrollments_router
from edu_console.api.errors import register_error_handlers
from edu_console.api.exports import router as exports_router
from edu_console.api.health import router as health_router
from edu_console.api.metrics_endpoint import router as metrics_router
from edu_console.api.organizations import router as organizations_router
from edu_console.api.users import router as users_router
from edu_console.core.config import SETTINGS
from edu_console.core.logging import setup_logging
from edu_console.db.engine import lifespan_db
from edu_console.db.seed import seed_if_empty
from edu_console.middleware.metrics import MetricsMiddleware
from edu_console.middleware.request_context import RequestContextMiddleware
from edu_console.services.errors import StoreUnavailableError

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    async with lifespan_db():
        if SETTINGS.seed_sample_data:
            try:
                await seed_if_empty(entity_store)
            except StoreUnavailableError:
                logger.warning("Entity store unreachable at startup; skipped seeding")
        yield


app = FastAPI(
    title="edu-console",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Last-added runs first: RequestContext -> Metrics -> CORS -> route handler,
# so every request has an id before metrics are recorded.
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)

register_error_handlers(app)

app.include_router(metrics_router)
app.include_router(health_router)
app.include_router(organizations_router)
app.include_router(users_router)
app.include_router(courses_router)
app.include_router(enrollments_router)
app.include_router(dashboard_router)
app.include_router(exports_router)

logger.info(
    "edu-console started  env=%s log_level=%s port=%d store=%s docs=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    type(entity_store).__name__,
    "on" if SETTINGS.is_dev else "off",
)
