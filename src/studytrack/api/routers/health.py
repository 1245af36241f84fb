"""Health check endpoints for StudyTrack.

Provides Kubernetes-compatible liveness and readiness probes:
- /health/live  - Liveness probe (always returns OK if process is running)
- /health/ready - Readiness probe (checks the document store)
"""

from __future__ import annotations

import asyncio
import time
from typing import Any

from fastapi import APIRouter
from fastapi.responses import ORJSONResponse

from studytrack.api.deps import StorageDep

router = APIRouter(tags=["health"])


@router.get("/health/live")
async def live() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok"}


@router.get("/health/ready")
async def ready(storage: StorageDep) -> ORJSONResponse:
    """Readiness probe.

    Returns 200 if the document store answers, 503 otherwise.
    """
    start = time.monotonic()
    try:
        healthy = await asyncio.wait_for(storage.store.health_check(), timeout=5.0)
        message = None if healthy else "Document store check failed"
    except asyncio.TimeoutError:
        healthy = False
        message = "Document store check timed out"
    latency = (time.monotonic() - start) * 1000

    check: dict[str, Any] = {
        "status": "up" if healthy else "down",
        "latency_ms": round(latency, 2),
    }
    if message:
        check["message"] = message

    return ORJSONResponse(
        content={
            "status": "healthy" if healthy else "unhealthy",
            "checks": {"document_store": check},
            "cache": storage.cache_stats(),
        },
        status_code=200 if healthy else 503,
    )
