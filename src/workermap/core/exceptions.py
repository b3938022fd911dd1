"""
WorkerMap Exception Hierarchy.

Defines the error taxonomy used by the registry hub and its collaborators.
Hub operations translate most of these into rejection events rather than
letting them escape to the connection.
"""

from typing import Any


class WorkerMapError(Exception):
    """
    Base exception for all WorkerMap errors.

    All custom exceptions inherit from this class, allowing
    generic catch blocks and consistent error handling.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None):
        """
        Initialize a WorkerMapError.

        Args:
            message: Human-readable error message
            details: Optional structured data for debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation with details."""
        base = self.message
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{base} ({details_str})"
        return base

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class InvalidRecordError(WorkerMapError):
    """
    Raised when an inbound worker payload fails validation.

    Covers:
    - Payloads that are not mappings
    - Empty or oversized name/address
    - Non-numeric or non-finite coordinates
    - Coordinates outside the configured bounding box
    """

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize an InvalidRecordError.

        Args:
            message: Human-readable error message
            field: Field name that failed validation
            value: Offending value (truncated repr)
            details: Optional structured data for debugging
        """
        details = details or {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = repr(value)[:80]

        super().__init__(message, details=details)
        self.field = field


class DuplicateRecordError(WorkerMapError):
    """Raised when a record's canonical key is already in the registry."""

    def __init__(self, message: str, *, key: str | None = None):
        details: dict[str, Any] = {}
        if key:
            details["key"] = key.replace("\x1f", " | ")
        super().__init__(message, details=details)
        self.key = key


class CapacityExceededError(WorkerMapError):
    """Raised when the registry already holds its maximum number of records."""

    def __init__(self, message: str, *, max_workers: int | None = None):
        details: dict[str, Any] = {}
        if max_workers is not None:
            details["max_workers"] = max_workers
        super().__init__(message, details=details)
        self.max_workers = max_workers


class RateLimitedError(WorkerMapError):
    """
    A connection exceeded its operation budget.

    Never surfaced to the offending connection; used for logging and metrics.
    """

    def __init__(self, message: str, *, connection_id: str | None = None):
        details: dict[str, Any] = {}
        if connection_id:
            details["connection_id"] = connection_id
        super().__init__(message, details=details)
        self.connection_id = connection_id


class PersistenceError(WorkerMapError):
    """
    A durable snapshot write did not complete.

    Non-fatal: the in-memory registry stays authoritative for the running
    process and the failure is only logged.
    """

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if path:
            details["path"] = path
        super().__init__(message, details=details)
        self.path = path


class ConfigurationError(WorkerMapError):
    """
    Errors in configuration loading or validation.

    Raised when:
    - An environment variable cannot be parsed
    - A rate limit string is malformed
    - Bounding box limits are inverted
    """

    def __init__(
        self,
        message: str,
        *,
        setting: str | None = None,
        env_var: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize a ConfigurationError.

        Args:
            message: Human-readable error message
            setting: Settings attribute that failed
            env_var: Environment variable involved
            details: Optional structured data for debugging
        """
        details = details or {}
        if setting:
            details["setting"] = setting
        if env_var:
            details["env_var"] = env_var

        super().__init__(message, details=details)
        self.setting = setting
        self.env_var = env_var


def format_exception(error: Exception) -> str:
    """
    Format an exception for logging or display.

    Args:
        error: Exception to format

    Returns:
        Formatted error string
    """
    if isinstance(error, WorkerMapError):
        return str(error)
    return f"{error.__class__.__name__}: {error}"
