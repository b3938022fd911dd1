"""
Runtime configuration for the WorkerMap hub.

Settings are read from WM_* environment variables:

    WM_DATA_FILE            Snapshot path (default: var/workers.json)
    WM_MAX_WORKERS          Registry capacity (default: 10000)
    WM_RATE_LIMIT           Per-connection budget, "<count>/<period>" (default: 30/2s)
    WM_BOUNDS               lat_min,lat_max,lng_min,lng_max (default: 18,73,-180,-50)
    WM_MAX_NAME_LENGTH      Default: 200
    WM_MAX_ADDRESS_LENGTH   Default: 400
    WM_OUTBOX_SIZE          Pending events per connection before it is dropped (default: 1000)
    WM_CORS_ORIGINS         Comma-separated allowed origins
    WM_LOG_LEVEL            Default: INFO
"""

import math
import os
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from workermap.core.exceptions import ConfigurationError
from workermap.core.models import BoundingBox

DEFAULT_DATA_FILE = Path("var/workers.json")
DEFAULT_RATE_LIMIT = "30/2s"
DEFAULT_CORS_ORIGINS: list[str] = [
    "http://localhost:3000",
    "http://localhost:8000",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:8000",
]


class HubSettings(BaseModel):
    """Validated hub configuration."""

    data_file: Path = DEFAULT_DATA_FILE
    max_workers: int = Field(default=10_000, ge=1)
    rate_limit_max: int = Field(default=30, ge=1)
    rate_limit_window_seconds: float = Field(default=2.0, gt=0)
    bounds: BoundingBox = Field(default_factory=BoundingBox)
    max_name_length: int = Field(default=200, ge=1)
    max_address_length: int = Field(default=400, ge=1)
    outbox_size: int = Field(default=1000, ge=1)
    cors_origins: list[str] = Field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "HubSettings":
        """
        Build settings from environment variables.

        Args:
            environ: Mapping to read from (default: os.environ)

        Returns:
            HubSettings instance

        Raises:
            ConfigurationError: If any variable cannot be parsed
        """
        # Local import: the hub package imports this module.
        from workermap.hub.rate_limit import parse_rate_limit

        env = os.environ if environ is None else environ
        values: dict[str, object] = {}

        if "WM_DATA_FILE" in env:
            values["data_file"] = Path(env["WM_DATA_FILE"])

        for env_var, setting in (
            ("WM_MAX_WORKERS", "max_workers"),
            ("WM_MAX_NAME_LENGTH", "max_name_length"),
            ("WM_MAX_ADDRESS_LENGTH", "max_address_length"),
            ("WM_OUTBOX_SIZE", "outbox_size"),
        ):
            if env_var in env:
                values[setting] = _parse_int(env[env_var], env_var=env_var, setting=setting)

        count, window = parse_rate_limit(env.get("WM_RATE_LIMIT", DEFAULT_RATE_LIMIT))
        values["rate_limit_max"] = count
        values["rate_limit_window_seconds"] = window

        if "WM_BOUNDS" in env:
            values["bounds"] = _parse_bounds(env["WM_BOUNDS"])

        if "WM_CORS_ORIGINS" in env:
            values["cors_origins"] = [o.strip() for o in env["WM_CORS_ORIGINS"].split(",") if o.strip()]

        if "WM_LOG_LEVEL" in env:
            values["log_level"] = env["WM_LOG_LEVEL"].strip().upper()

        try:
            return cls(**values)
        except PydanticValidationError as e:
            raise ConfigurationError(
                "Invalid hub settings",
                details={"errors": [err["msg"] for err in e.errors()]},
            ) from e


def _parse_int(raw: str, *, env_var: str, setting: str) -> int:
    try:
        return int(raw.strip())
    except ValueError as e:
        raise ConfigurationError(
            f"Expected an integer, got {raw!r}", setting=setting, env_var=env_var
        ) from e


def _parse_bounds(raw: str) -> BoundingBox:
    """Parse "lat_min,lat_max,lng_min,lng_max"."""
    parts = [p.strip() for p in raw.split(",")]
    if len(parts) != 4:
        raise ConfigurationError(
            "WM_BOUNDS needs four comma-separated numbers", setting="bounds", env_var="WM_BOUNDS"
        )
    try:
        lat_min, lat_max, lng_min, lng_max = (float(p) for p in parts)
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid WM_BOUNDS value: {raw!r}", setting="bounds", env_var="WM_BOUNDS"
        ) from e
    if not all(math.isfinite(v) for v in (lat_min, lat_max, lng_min, lng_max)):
        raise ConfigurationError(
            "WM_BOUNDS values must be finite", setting="bounds", env_var="WM_BOUNDS"
        )
    if lat_min > lat_max or lng_min > lng_max:
        raise ConfigurationError(
            "WM_BOUNDS minimums must not exceed maximums", setting="bounds", env_var="WM_BOUNDS"
        )
    return BoundingBox(lat_min=lat_min, lat_max=lat_max, lng_min=lng_min, lng_max=lng_max)


@lru_cache(maxsize=1)
def get_settings() -> HubSettings:
    """Get process-wide settings (cached)."""
    return HubSettings.from_env()
