"""Prometheus metrics for StudyTrack.

Provides metrics collection and exposure:
- HTTP request metrics (latency, count)
- Cache metrics (hits, misses, invalidations, shared in-flight fetches)

Usage:
    from studytrack.observability.metrics import get_metrics

    metrics = get_metrics()
    metrics.http_requests_total.labels(method="GET", path="/api/questions", status=200).inc()
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable

from prometheus_client import REGISTRY, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from studytrack.config import settings

if TYPE_CHECKING:
    from starlette.types import ASGIApp

logger = logging.getLogger(__name__)

_HEX_ID = re.compile(r"^[0-9a-f]{32}$")


@dataclass
class MetricsRegistry:
    """Registry for Prometheus metrics."""

    # HTTP metrics
    http_requests_total: Any = None
    http_request_duration_seconds: Any = None

    # Cache metrics
    cache_hits_total: Any = None
    cache_misses_total: Any = None
    cache_invalidations_total: Any = None
    cache_shared_fetches_total: Any = None

    _initialized: bool = field(default=False, repr=False)
    _registry: Any = field(default=None, repr=False)

    def initialize(self) -> None:
        """Initialize Prometheus metrics."""
        if self._initialized:
            return

        if not settings.enable_metrics:
            logger.info("Metrics are disabled")
            self._initialized = True
            return

        self._registry = REGISTRY

        self.http_requests_total = Counter(
            "studytrack_http_requests_total",
            "Total HTTP requests",
            ["method", "path", "status"],
        )
        self.http_request_duration_seconds = Histogram(
            "studytrack_http_request_duration_seconds",
            "HTTP request latency in seconds",
            ["method", "path"],
            buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
        )
        self.cache_hits_total = Counter(
            "studytrack_cache_hits_total",
            "Cache hits",
            ["namespace"],
        )
        self.cache_misses_total = Counter(
            "studytrack_cache_misses_total",
            "Cache misses",
            ["namespace"],
        )
        self.cache_invalidations_total = Counter(
            "studytrack_cache_invalidations_total",
            "Cache entries removed by invalidation",
            ["namespace"],
        )
        self.cache_shared_fetches_total = Counter(
            "studytrack_cache_shared_fetches_total",
            "Callers that joined an in-flight fetch instead of querying the store",
            ["namespace"],
        )

        self._initialized = True
        logger.info("Prometheus metrics initialized")

    def generate_latest(self) -> bytes:
        """Generate Prometheus metrics in exposition format."""
        if not settings.enable_metrics or self._registry is None:
            return b"# Metrics disabled\n"
        return generate_latest(self._registry)


metrics_registry = MetricsRegistry()


def get_metrics() -> MetricsRegistry:
    """Get the global metrics registry, initializing it on first access."""
    if not metrics_registry._initialized:
        metrics_registry.initialize()
    return metrics_registry


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware recording request count and duration."""

    def __init__(self, app: "ASGIApp") -> None:
        super().__init__(app)
        self.metrics = get_metrics()

    async def dispatch(self, request: Request, call_next: Callable[[Request], Any]) -> Response:
        if request.url.path.startswith("/health") or request.url.path == "/metrics":
            return await call_next(request)

        method = request.method
        path = self._normalize_path(request.url.path)
        start_time = time.perf_counter()
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            duration = time.perf_counter() - start_time
            if self.metrics.http_requests_total:
                self.metrics.http_requests_total.labels(
                    method=method,
                    path=path,
                    status=status_code,
                ).inc()
            if self.metrics.http_request_duration_seconds:
                self.metrics.http_request_duration_seconds.labels(
                    method=method,
                    path=path,
                ).observe(duration)

    @staticmethod
    def _normalize_path(path: str) -> str:
        """Replace entity ids with a placeholder to keep label cardinality low.

        Examples:
            /api/questions/3f2a...e1 -> /api/questions/{id}
            /api/trash/3f2a...e1/restore -> /api/trash/{id}/restore
        """
        parts = ["{id}" if _HEX_ID.match(part) else part for part in path.split("/")]
        return "/".join(parts)


def record_cache_hit(namespace: str) -> None:
    metrics = get_metrics()
    if metrics.cache_hits_total:
        metrics.cache_hits_total.labels(namespace=namespace).inc()


def record_cache_miss(namespace: str) -> None:
    metrics = get_metrics()
    if metrics.cache_misses_total:
        metrics.cache_misses_total.labels(namespace=namespace).inc()


def record_cache_invalidation(namespace: str, removed: int) -> None:
    metrics = get_metrics()
    if metrics.cache_invalidations_total and removed:
        metrics.cache_invalidations_total.labels(namespace=namespace).inc(removed)


def record_shared_fetch(namespace: str) -> None:
    metrics = get_metrics()
    if metrics.cache_shared_fetches_total:
        metrics.cache_shared_fetches_total.labels(namespace=namespace).inc()
