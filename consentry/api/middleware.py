"""
Consentry - API Middleware

Cross-cutting HTTP concerns around the consent router:
- Correlation ID tracking for request tracing
- Request/response logging with timing
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Awaitable, Callable

import structlog
from starlette.datastructures import QueryParams
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger(__name__)

SENSITIVE_PARAM_KEYS = frozenset({
    "token", "access_token", "api_key", "apikey", "password", "secret",
    "auth", "authorization", "session", "key",
})


def sanitize_query_params(query_params: QueryParams | None) -> str | None:
    """Redact sensitive query values and truncate long ones for logging."""
    if not query_params:
        return None

    sanitized: dict[str, str] = {}
    for key, value in query_params.items():
        if any(sensitive in key.lower() for sensitive in SENSITIVE_PARAM_KEYS):
            sanitized[key] = "[REDACTED]"
        elif len(value) > 100:
            sanitized[key] = value[:100] + "...[truncated]"
        else:
            sanitized[key] = value

    return str(sanitized) if sanitized else None


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """
    Add a correlation ID to every request.

    Taken from the X-Correlation-ID header or generated, stored on
    ``request.state``, bound into structlog context and echoed back.
    """

    HEADER_NAME = "X-Correlation-ID"

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        correlation_id = request.headers.get(self.HEADER_NAME) or str(uuid.uuid4())
        request.state.correlation_id = correlation_id

        structlog.contextvars.bind_contextvars(correlation_id=correlation_id)
        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars("correlation_id")

        response.headers[self.HEADER_NAME] = correlation_id
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log method, path, status and duration of each request."""

    SKIP_PATHS = {"/health", "/favicon.ico"}

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        if request.url.path in self.SKIP_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        logger.info(
            "request_started",
            method=request.method,
            path=request.url.path,
            query=sanitize_query_params(request.query_params),
            client_ip=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.exception(
                "request_failed",
                method=request.method,
                path=request.url.path,
                duration_ms=round(duration_ms, 2),
                error=str(e),
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        status_code = response.status_code
        log_level = "info" if status_code < 400 else "warning" if status_code < 500 else "error"
        getattr(logger, log_level)(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status_code=status_code,
            duration_ms=round(duration_ms, 2),
        )

        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"
        return response
