"""Request context middleware.

Propagates request and correlation ids to logging and response headers, and
writes one access log line per request carrying the resolved owner.
"""

from __future__ import annotations

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from studytrack.observability.logging import correlation_id_var, owner_id_var, request_id_var

logger = logging.getLogger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Middleware for per-request logging context.

    Headers:
    - x-request-id: Unique ID for this request
    - x-correlation-id: ID for tracking across services (passed through)

    The owner is only known once the route's auth dependency has run, so it
    is read back from ``request.state.user`` after the response is produced.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        correlation_id = request.headers.get("x-correlation-id") or request_id

        request_token = request_id_var.set(request_id)
        correlation_token = correlation_id_var.set(correlation_id)
        owner_token = owner_id_var.set("")
        start = time.perf_counter()

        try:
            request.state.request_id = request_id
            request.state.correlation_id = correlation_id

            response = await call_next(request)

            user = getattr(request.state, "user", None)
            owner_id = user.owner_id if user is not None else ""
            owner_id_var.set(owner_id)
            logger.debug(
                f"{request.method} {request.url.path} -> {response.status_code}",
                extra={
                    "owner_id": owner_id,
                    "status_code": response.status_code,
                    "duration_ms": round((time.perf_counter() - start) * 1000, 2),
                },
            )

            response.headers["x-request-id"] = request_id
            response.headers["x-correlation-id"] = correlation_id
            return response
        finally:
            request_id_var.reset(request_token)
            correlation_id_var.reset(correlation_token)
            owner_id_var.reset(owner_token)
