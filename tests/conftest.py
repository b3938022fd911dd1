"""Pytest configuration and fixtures."""

import os
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any, Generator

import pytest

from workermap.core.config import HubSettings
from workermap.hub.connection import Connection
from workermap.hub.core import RegistryHub
from workermap.hub.rate_limit import RateLimiter

# Keep test logs quiet and rate limits out of the way
os.environ.setdefault("WM_LOG_LEVEL", "WARNING")
os.environ.setdefault("WM_RATE_LIMIT", "1000/second")


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def data_file(temp_dir: Path) -> Path:
    """Snapshot path inside the temporary directory."""
    return temp_dir / "var" / "workers.json"


@pytest.fixture
def make_settings(data_file: Path) -> Callable[..., HubSettings]:
    """Factory for settings pointing at the temporary snapshot."""

    def factory(**overrides: Any) -> HubSettings:
        values: dict[str, Any] = {
            "data_file": data_file,
            "rate_limit_max": 1000,
            "rate_limit_window_seconds": 1.0,
            "log_level": "WARNING",
        }
        values.update(overrides)
        return HubSettings(**values)

    return factory


@pytest.fixture
def settings(make_settings: Callable[..., HubSettings]) -> HubSettings:
    """Default test settings."""
    return make_settings()


@pytest.fixture
def make_hub(make_settings: Callable[..., HubSettings]) -> Callable[..., RegistryHub]:
    """Factory for (not yet started) hubs."""

    def factory(**overrides: Any) -> RegistryHub:
        return RegistryHub(make_settings(**overrides))

    return factory


@pytest.fixture
def make_connection() -> Callable[..., Connection]:
    """Factory for connections with a generous rate limit."""

    def factory(
        connection_id: str | None = None,
        *,
        limiter: RateLimiter | None = None,
        outbox_size: int = 1000,
    ) -> Connection:
        return Connection(
            limiter or RateLimiter(1000, 1.0),
            connection_id=connection_id,
            outbox_size=outbox_size,
        )

    return factory


@pytest.fixture
def worker() -> Callable[..., dict[str, Any]]:
    """Factory for raw worker payloads inside the default bounds."""

    def factory(name: str = "Alice", address: str = "1 Main St", **fields: Any) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "name": name,
            "address": address,
            "lat": 40.7,
            "lng": -74.0,
            "level": "high",
        }
        payload.update(fields)
        return payload

    return factory


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    """Provide a fake clock starting at zero."""
    return FakeClock()
