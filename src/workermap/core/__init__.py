"""
WorkerMap Core Module.

Provides the record model, configuration and error taxonomy.
"""

__all__ = [
    "BoundingBox",
    "Level",
    "RejectReason",
    "WorkerRecord",
    "HubSettings",
    "get_settings",
    # Exceptions
    "WorkerMapError",
    "InvalidRecordError",
    "DuplicateRecordError",
    "CapacityExceededError",
    "RateLimitedError",
    "PersistenceError",
    "ConfigurationError",
]

from workermap.core.config import HubSettings, get_settings
from workermap.core.exceptions import (
    CapacityExceededError,
    ConfigurationError,
    DuplicateRecordError,
    InvalidRecordError,
    PersistenceError,
    RateLimitedError,
    WorkerMapError,
)
from workermap.core.models import BoundingBox, Level, RejectReason, WorkerRecord
