"""
Custom middleware for the FastAPI application.
"""

import time
from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from bonlog.core.logging import log_http_request, log_http_response, set_correlation_id, get_correlation_id


class LoggingMiddleware(BaseHTTPMiddleware):
    """Request/response logging with correlation IDs."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Reuse an upstream correlation ID (e.g. from the main app) when present
        correlation_id = set_correlation_id(request.headers.get("X-Correlation-ID"))

        log_http_request(request, correlation_id)

        start_time = time.perf_counter()
        response = None
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
        finally:
            response_time_ms = (time.perf_counter() - start_time) * 1000
            log_http_response(request, status_code, response_time_ms, correlation_id)

            if response is not None:
                response.headers["X-Correlation-ID"] = correlation_id
                response.headers["X-Response-Time-Ms"] = f"{response_time_ms:.1f}"

        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds security and caching headers; search results are per-viewer."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if request.url.path.startswith("/api/"):
            response.headers.setdefault("Cache-Control", "private, no-store")

        correlation_id = get_correlation_id()
        if correlation_id:
            response.headers["X-Correlation-ID"] = correlation_id

        return response
