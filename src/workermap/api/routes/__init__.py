"""
API route handlers.

This package contains all route definitions for the WorkerMap API.
"""

from workermap.api.routes import health, metrics, realtime, workers

__all__ = [
    "health",
    "metrics",
    "realtime",
    "workers",
]
