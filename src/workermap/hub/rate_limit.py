"""
Per-connection rate limiting for hub operations.

Each connection gets its own RateLimiter; operations beyond the budget are
dropped silently by the hub.

Rate limits are written as "<count>/<period>", where period is an optional
multiplier followed by a unit:

    "30/2s"      30 operations per 2 seconds
    "100/minute" 100 operations per minute
    "10"         10 operations per second
"""

import re
import time
from collections.abc import Callable

from workermap.core.exceptions import ConfigurationError

# Convert period names to seconds
_PERIOD_SECONDS = {
    "s": 1,
    "sec": 1,
    "second": 1,
    "seconds": 1,
    "m": 60,
    "min": 60,
    "minute": 60,
    "minutes": 60,
    "h": 3600,
    "hour": 3600,
    "hours": 3600,
}

_PERIOD_RE = re.compile(r"^(?P<multiplier>\d+(?:\.\d+)?)?\s*(?P<unit>[a-z]+)$")


def parse_rate_limit(limit_str: str) -> tuple[int, float]:
    """
    Parse rate limit string into (max_operations, window_seconds).

    Args:
        limit_str: Rate limit string like "30/2s" or "100/minute"

    Returns:
        Tuple of (max_operations, window_seconds)

    Raises:
        ConfigurationError: If the string cannot be parsed
    """
    count_part, _, period_part = limit_str.strip().partition("/")
    try:
        count = int(count_part.strip())
    except ValueError:
        raise ConfigurationError(
            f"Invalid rate limit format: {limit_str!r}", setting="rate_limit"
        ) from None

    period = period_part.strip().lower() or "second"
    match = _PERIOD_RE.match(period)
    if match is None or match.group("unit") not in _PERIOD_SECONDS:
        raise ConfigurationError(f"Invalid rate limit period: {limit_str!r}", setting="rate_limit")

    multiplier = float(match.group("multiplier") or 1)
    window_seconds = multiplier * _PERIOD_SECONDS[match.group("unit")]
    if count < 1 or window_seconds <= 0:
        raise ConfigurationError(
            f"Rate limit must be positive: {limit_str!r}", setting="rate_limit"
        )
    return count, window_seconds


class RateLimiter:
    """
    Fixed-window operation counter for a single connection.

    Tracks an operation count and the start of the current window. Once more
    than window_seconds have elapsed since the window started, both reset.
    Not shared across connections, so no locking is needed.
    """

    def __init__(
        self,
        max_operations: int,
        window_seconds: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize the rate limiter.

        Args:
            max_operations: Maximum operations allowed per window
            window_seconds: Window duration in seconds
            clock: Monotonic time source (injectable for tests)
        """
        self.max_operations = max_operations
        self.window_seconds = window_seconds
        self._clock = clock
        self._count = 0
        self._window_start = clock()

    def allow(self) -> bool:
        """Count one operation and return whether it is within budget."""
        now = self._clock()
        if now - self._window_start > self.window_seconds:
            self._count = 0
            self._window_start = now
        self._count += 1
        return self._count <= self.max_operations

    @property
    def remaining(self) -> int:
        """Operations left in the current window (as of the last check)."""
        return max(0, self.max_operations - self._count)

    def reset(self) -> None:
        self._count = 0
        self._window_start = self._clock()
