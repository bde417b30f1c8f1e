"""
HTTP middleware: request correlation, access logging, and the request timeout.

Metrics are keyed by the matched route template ("GET /api/admin/orders/{order_id}")
so per-row URLs collapse into one endpoint.
"""
import asyncio
import time
from typing import Callable

from fastapi.responses import ORJSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from core.config import config
from core.observability import (
    generate_correlation_id,
    get_logger,
    metrics,
    set_correlation_id,
)
from web.routes.api._deps import client_ip

logger = get_logger(__name__)

# Endpoints that loop over many products
BULK_ENDPOINTS = {
    "/api/cron/sync-external-products",
    "/api/admin/imports/batch",
}

# Probes: no access log, no timeout
QUIET_PATHS = ("/api/health", "/health")


def route_label(request: Request) -> str:
    """Route template for a handled request, falling back to the raw path."""
    route = request.scope.get("route")
    path = getattr(route, "path_format", None) or getattr(route, "path", None)
    return f"{request.method} {path or request.url.path}"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Assigns the correlation ID, writes the access log and records per-route metrics."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = request.headers.get("X-Request-ID") or generate_correlation_id()
        set_correlation_id(correlation_id)

        path = request.url.path
        quiet = path in QUIET_PATHS
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"Request failed: {request.method} {path}",
                extra={
                    "path": path,
                    "client_ip": client_ip(request) or "unknown",
                    "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                    "error": str(e),
                },
            )
            metrics.record_error(type(e).__name__)
            raise

        duration_ms = (time.perf_counter() - started) * 1000
        response.headers["X-Request-ID"] = correlation_id
        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"

        label = route_label(request)
        metrics.record_request(label)
        metrics.record_timing(label, duration_ms)

        status = response.status_code
        if status >= 400:
            metrics.record_error(f"HTTP_{status}")

        if not quiet:
            if status >= 500:
                log = logger.error
            elif status >= 400:
                log = logger.warning
            else:
                log = logger.info
            log(
                f"{label} -> {status}",
                extra={
                    "path": path,
                    "status_code": status,
                    "client_ip": client_ip(request) or "unknown",
                    "duration_ms": round(duration_ms, 2),
                },
            )

        return response


class RequestTimeoutMiddleware(BaseHTTPMiddleware):
    """Answers 504 in the API error envelope when a request runs too long."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        if path in QUIET_PATHS:
            return await call_next(request)

        if path in BULK_ENDPOINTS:
            timeout = config.web.bulk_request_timeout
        else:
            timeout = config.web.request_timeout

        try:
            return await asyncio.wait_for(call_next(request), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(
                f"Request timed out after {timeout}s: {request.method} {path}",
                extra={"path": path, "timeout": timeout},
            )
            metrics.record_error("REQUEST_TIMEOUT")
            return ORJSONResponse(status_code=504, content={"error": "Request timed out"})
