"""Tests for environment-driven configuration."""

from pathlib import Path

import pytest

from workermap.core.config import HubSettings
from workermap.core.exceptions import ConfigurationError
from workermap.core.models import BoundingBox


class TestHubSettings:
    """Tests for HubSettings.from_env()."""

    def test_defaults(self) -> None:
        """An empty environment yields the documented defaults."""
        settings = HubSettings.from_env({})
        assert settings.data_file == Path("var/workers.json")
        assert settings.max_workers == 10_000
        assert settings.rate_limit_max == 30
        assert settings.rate_limit_window_seconds == 2.0
        assert settings.bounds == BoundingBox(18, 73, -180, -50)
        assert settings.max_name_length == 200
        assert settings.max_address_length == 400
        assert settings.outbox_size == 1000
        assert settings.log_level == "INFO"

    def test_overrides(self) -> None:
        """Every WM_* variable is honoured."""
        settings = HubSettings.from_env(
            {
                "WM_DATA_FILE": "/tmp/w.json",
                "WM_MAX_WORKERS": "5",
                "WM_RATE_LIMIT": "100/minute",
                "WM_BOUNDS": "-90, 90, -180, 180",
                "WM_MAX_NAME_LENGTH": "50",
                "WM_MAX_ADDRESS_LENGTH": "60",
                "WM_OUTBOX_SIZE": "10",
                "WM_CORS_ORIGINS": "https://a.example, https://b.example,",
                "WM_LOG_LEVEL": "debug",
            }
        )
        assert settings.data_file == Path("/tmp/w.json")
        assert settings.max_workers == 5
        assert (settings.rate_limit_max, settings.rate_limit_window_seconds) == (100, 60.0)
        assert settings.bounds == BoundingBox(-90, 90, -180, 180)
        assert settings.max_name_length == 50
        assert settings.max_address_length == 60
        assert settings.outbox_size == 10
        assert settings.cors_origins == ["https://a.example", "https://b.example"]
        assert settings.log_level == "DEBUG"

    @pytest.mark.parametrize(
        "environ",
        [
            {"WM_MAX_WORKERS": "lots"},
            {"WM_MAX_WORKERS": "0"},
            {"WM_RATE_LIMIT": "fast"},
            {"WM_BOUNDS": "1,2,3"},
            {"WM_BOUNDS": "a,b,c,d"},
            {"WM_BOUNDS": "73,18,-180,-50"},
            {"WM_BOUNDS": "nan,73,-180,-50"},
        ],
    )
    def test_invalid_values(self, environ: dict[str, str]) -> None:
        """Unparseable or out-of-range values raise ConfigurationError."""
        with pytest.raises(ConfigurationError):
            HubSettings.from_env(environ)

    def test_error_names_variable(self) -> None:
        """Integer parse errors carry the offending variable."""
        with pytest.raises(ConfigurationError) as exc_info:
            HubSettings.from_env({"WM_OUTBOX_SIZE": "big"})
        assert exc_info.value.env_var == "WM_OUTBOX_SIZE"
        assert exc_info.value.setting == "outbox_size"
