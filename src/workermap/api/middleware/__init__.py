"""
Middleware for the WorkerMap API.
"""

from workermap.api.middleware.cors import add_cors_middleware
from workermap.api.middleware.logging import RequestLoggingMiddleware

__all__ = [
    "add_cors_middleware",
    "RequestLoggingMiddleware",
]
