"""Tests for per-connection rate limiting."""

import pytest

from workermap.core.exceptions import ConfigurationError
from workermap.hub.rate_limit import RateLimiter, parse_rate_limit


class TestParseRateLimit:
    """Tests for parse_rate_limit()."""

    @pytest.mark.parametrize(
        "limit_str, expected",
        [
            ("30/2s", (30, 2.0)),
            ("100/minute", (100, 60.0)),
            ("5/hour", (5, 3600.0)),
            ("10/second", (10, 1.0)),
            ("10", (10, 1.0)),
            (" 7 / 0.5s ", (7, 0.5)),
        ],
    )
    def test_valid_formats(self, limit_str: str, expected: tuple[int, float]) -> None:
        """Supported formats parse to (count, window seconds)."""
        assert parse_rate_limit(limit_str) == expected

    @pytest.mark.parametrize("limit_str", ["", "abc", "10/fortnight", "0/s", "-1/s", "10/0s"])
    def test_invalid_formats(self, limit_str: str) -> None:
        """Malformed or non-positive limits raise ConfigurationError."""
        with pytest.raises(ConfigurationError):
            parse_rate_limit(limit_str)


class TestRateLimiter:
    """Tests for RateLimiter."""

    def test_allows_up_to_budget(self, clock) -> None:
        """The 31st operation inside a 30/2s window is refused."""
        limiter = RateLimiter(30, 2.0, clock=clock)
        results = [limiter.allow() for _ in range(31)]
        assert results[:30] == [True] * 30
        assert results[30] is False
        assert limiter.remaining == 0

    def test_window_resets_after_elapsed(self, clock) -> None:
        """Once the window has passed, the budget is restored."""
        limiter = RateLimiter(2, 2.0, clock=clock)
        assert limiter.allow()
        assert limiter.allow()
        assert not limiter.allow()

        clock.advance(2.01)
        assert limiter.allow()
        assert limiter.remaining == 1

    def test_window_boundary_is_exclusive(self, clock) -> None:
        """Exactly window_seconds after the start is still the same window."""
        limiter = RateLimiter(1, 2.0, clock=clock)
        assert limiter.allow()
        clock.advance(2.0)
        assert not limiter.allow()

    def test_reset(self, clock) -> None:
        """reset() restores the full budget immediately."""
        limiter = RateLimiter(1, 60.0, clock=clock)
        limiter.allow()
        limiter.reset()
        assert limiter.allow()
