"""
Core data models for WorkerMap.

Everything that enters the registry is a sanitized WorkerRecord; raw
payloads never reach the hub's invariant-bearing code.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


class Level(str, Enum):
    """Severity level attached to a worker."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def parse(cls, value: Any) -> "Level":
        """Map a raw value to a Level; unknown or missing values become LOW."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                return cls.LOW
        return cls.LOW


class RejectReason(str, Enum):
    """Why an operation had no effect."""

    INVALID = "invalid"
    LIMIT = "limit"
    DUPLICATE = "duplicate"
    RATE_LIMITED = "rate_limited"
    NOT_FOUND = "not_found"


# Reasons that may be reported back to the submitting connection.
REPORTABLE_REASONS = frozenset({RejectReason.INVALID, RejectReason.LIMIT, RejectReason.DUPLICATE})


@dataclass(frozen=True)
class BoundingBox:
    """Inclusive geographic box that accepted coordinates must fall inside."""

    lat_min: float = 18.0
    lat_max: float = 73.0
    lng_min: float = -180.0
    lng_max: float = -50.0

    def contains(self, lat: float, lng: float) -> bool:
        """Return True if the point lies inside the box (edges included)."""
        return self.lat_min <= lat <= self.lat_max and self.lng_min <= lng <= self.lng_max

    def to_dict(self) -> dict[str, float]:
        return {
            "lat_min": self.lat_min,
            "lat_max": self.lat_max,
            "lng_min": self.lng_min,
            "lng_max": self.lng_max,
        }


class WorkerRecord(BaseModel):
    """A single sanitized worker entry in the registry."""

    model_config = ConfigDict(frozen=True)

    name: str
    address: str
    lat: float
    lng: float
    level: Level = Level.LOW

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, value: Any) -> Level:
        return Level.parse(value)

    def to_wire(self) -> dict[str, Any]:
        """Serialize for events and the persisted snapshot."""
        return self.model_dump(mode="json")
