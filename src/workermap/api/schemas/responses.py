"""
Pydantic response schemas for the read-only inspection endpoints.
"""

from typing import Any

from pydantic import BaseModel, Field

from workermap.core.models import Level


class WorkerResponse(BaseModel):
    """A single registry entry."""

    name: str = Field(..., description="Worker name")
    address: str = Field(..., description="Worker address")
    lat: float = Field(..., description="Latitude")
    lng: float = Field(..., description="Longitude")
    level: Level = Field(Level.LOW, description="Severity level")

    model_config = {"extra": "forbid"}


class WorkerListResponse(BaseModel):
    """Response model for the registry snapshot."""

    workers: list[WorkerResponse] = Field(default_factory=list, description="Workers in insertion order")
    total: int = Field(..., description="Number of workers")

    model_config = {"extra": "forbid"}


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str = Field(..., description="Health status")
    version: str = Field(..., description="API version")
    timestamp: str = Field(..., description="Check timestamp")
    workers: int = Field(..., description="Workers in the registry")
    max_workers: int = Field(..., description="Registry capacity")
    connections: int = Field(..., description="Connected viewers")
    components: dict[str, str] = Field(default_factory=dict, description="Component statuses")

    model_config = {"extra": "forbid"}


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: dict[str, Any] = Field(..., description="Error details")

    model_config = {"extra": "forbid"}
