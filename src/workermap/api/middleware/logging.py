"""
Request logging middleware.

Logs inspection requests with timing information. WebSocket traffic bypasses
BaseHTTPMiddleware; the realtime route logs its own connection lifecycle.
"""

import logging
import time
import uuid
from typing import Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware to log HTTP requests with timing information.

    Logs method, path, client address, status code and duration, and echoes
    X-Request-ID (generated when absent) plus X-Process-Time on the response.
    """

    def __init__(
        self,
        app: ASGIApp,
        *,
        logger_instance: logging.Logger | None = None,
        skip_paths: set[str] | None = None,
    ) -> None:
        """
        Initialize the logging middleware.

        Args:
            app: ASGI application
            logger_instance: Custom logger instance
            skip_paths: Paths to skip logging for (default: /health, /metrics)
        """
        super().__init__(app)
        self._logger = logger_instance or logger
        self._skip_paths = skip_paths if skip_paths is not None else {"/health", "/metrics"}

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        if request.url.path in self._skip_paths:
            return await call_next(request)

        start_time = time.perf_counter()
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:16]
        context = {
            "method": request.method,
            "path": request.url.path,
            "client_ip": request.client.host if request.client else "unknown",
            "request_id": request_id,
        }

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            self._logger.error(
                "Request failed",
                extra={**context, "error": str(e), "duration_ms": round(duration_ms, 2)},
                exc_info=True,
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        self._logger.info(
            f"{request.method} {request.url.path} -> {response.status_code}",
            extra={**context, "status_code": response.status_code, "duration_ms": round(duration_ms, 2)},
        )

        response.headers["X-Process-Time"] = f"{duration_ms:.2f}"
        response.headers["X-Request-ID"] = request_id
        return response
