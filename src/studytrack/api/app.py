"""FastAPI application factory for StudyTrack.

Creates the application with:
- REST routers under /api (mock exams, subjects, topics, questions, trash,
  statistics, identity)
- Operational cache endpoints under /api/dev (when enabled)
- Health probes and Prometheus metrics
- Result/Message error handling
- A periodic sweep of expired cache entries
- ORJSON for fast JSON serialization
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager, suppress
from typing import cast

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from starlette.types import ExceptionHandler

from studytrack.api.errors import (
    ApiError,
    api_exception_handler,
    consistency_exception_handler,
    generic_exception_handler,
    request_validation_exception_handler,
    validation_exception_handler,
)
from studytrack.api.middleware import RequestContextMiddleware
from studytrack.api.routers import (
    auth,
    cache,
    health,
    mock_exams,
    questions,
    stats,
    subjects,
    topics,
    trash,
)
from studytrack.api.routers import metrics as metrics_router
from studytrack.config import Settings, settings
from studytrack.core.errors import ConsistencyError, ValidationError
from studytrack.observability import configure_logging
from studytrack.observability.metrics import MetricsMiddleware, get_metrics
from studytrack.persistence.factory import create_document_store
from studytrack.persistence.storage import Storage

logger = logging.getLogger(__name__)


async def _sweep_cache(storage: Storage, interval: float) -> None:
    while True:
        await asyncio.sleep(interval)
        removed = storage.cache.cleanup()
        if removed:
            logger.debug(f"Removed {removed} expired cache entries")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifecycle.

    On startup:
    - Configure structured logging
    - Initialize Prometheus metrics
    - Start the cache cleanup task

    On shutdown:
    - Stop the cache cleanup task
    - Close the document store
    """
    config: Settings = app.state.settings
    storage: Storage = app.state.storage

    configure_logging(json_format=config.env != "dev", level=config.log_level)
    get_metrics()

    logger.info(f"Starting StudyTrack ({config.env}, {config.document_store} document store)")
    sweeper = None
    if config.cache_cleanup_interval > 0:
        sweeper = asyncio.create_task(_sweep_cache(storage, config.cache_cleanup_interval))

    yield

    logger.info("Shutting down StudyTrack")
    if sweeper is not None:
        sweeper.cancel()
        with suppress(asyncio.CancelledError):
            await sweeper
    await storage.store.close()
    logger.info("StudyTrack shutdown complete")


def create_app(storage: Storage | None = None, config: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    ``storage`` defaults to a fresh cache over the configured document store;
    tests pass their own.
    """
    config = config or settings

    app = FastAPI(
        title="StudyTrack",
        description="Study tracking backend with a cache-fronted document store",
        version="0.1.0",
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    app.state.settings = config
    app.state.storage = storage or Storage(create_document_store(config))

    # RequestContextMiddleware is innermost to set context for everything below it
    app.add_middleware(RequestContextMiddleware)
    if config.enable_metrics:
        app.add_middleware(MetricsMiddleware)

    app.add_exception_handler(ApiError, cast(ExceptionHandler, api_exception_handler))
    app.add_exception_handler(
        ConsistencyError, cast(ExceptionHandler, consistency_exception_handler)
    )
    app.add_exception_handler(ValidationError, cast(ExceptionHandler, validation_exception_handler))
    app.add_exception_handler(
        RequestValidationError, cast(ExceptionHandler, request_validation_exception_handler)
    )
    app.add_exception_handler(Exception, generic_exception_handler)

    app.include_router(health.router)
    if config.enable_metrics:
        app.include_router(metrics_router.router)

    for module in (mock_exams, subjects, topics, questions, trash, stats, auth):
        app.include_router(module.router, prefix="/api")
    if config.cache_admin_enabled:
        app.include_router(cache.router, prefix="/api")

    return app


app = create_app()
