"""Request/response logging middleware."""

import logging
import time
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from tunegate.infrastructure.observability.logging import (
    get_correlation_id,
    set_correlation_id,
)

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


# Hey future me - this runs for every request, including proxied ones. It logs method, path
# and status only. Never the Authorization header, never the query string or body; guests
# send their session token and the proxy carries arbitrary provider payloads.
class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs each request with its duration and tags it with a correlation ID."""

    def __init__(self, app: ASGIApp, quiet_paths: tuple[str, ...] = ("/health",)) -> None:
        """Initialize middleware.

        Args:
            app: ASGI application
            quiet_paths: Paths whose successful responses are not logged
        """
        super().__init__(app)
        self.quiet_paths = quiet_paths

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        set_correlation_id(request.headers.get(CORRELATION_HEADER))

        method = request.method
        path = request.url.path
        quiet = path in self.quiet_paths

        if not quiet:
            logger.info(
                f"→ {method} {path}",
                extra={
                    "method": method,
                    "path": path,
                    "client_ip": request.client.host if request.client else "unknown",
                },
            )

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            logger.exception(
                f"Request failed: {method} {path}",
                extra={
                    "method": method,
                    "path": path,
                    "duration_ms": int((time.perf_counter() - start_time) * 1000),
                    "error_type": type(e).__name__,
                },
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        if not quiet or response.status_code >= 400:
            status_mark = "✓" if response.status_code < 400 else "✗"
            logger.info(
                f"{status_mark} {method} {path} → {response.status_code} ({duration_ms:.0f}ms)",
                extra={
                    "method": method,
                    "path": path,
                    "status_code": response.status_code,
                    "duration_ms": int(duration_ms),
                },
            )

        response.headers[CORRELATION_HEADER] = get_correlation_id()
        return response
