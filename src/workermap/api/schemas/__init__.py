"""
Pydantic schemas for API responses and errors.
"""

from workermap.api.schemas.exceptions import APIException, ServiceUnavailableError
from workermap.api.schemas.responses import (
    ErrorResponse,
    HealthResponse,
    WorkerListResponse,
    WorkerResponse,
)

__all__ = [
    "APIException",
    "ServiceUnavailableError",
    "ErrorResponse",
    "HealthResponse",
    "WorkerListResponse",
    "WorkerResponse",
]
