"""
Rate Limiting Value Objects

Immutable value objects for the auth rate limiter:
- RateLimitQuota: how many requests are allowed per sliding window
- FailurePolicy: what the limiter answers when its store is unavailable
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from devflow_auth.core.exceptions import ConfigurationError

PERIOD_SECONDS = {
    "second": 1,
    "minute": 60,
    "hour": 3600,
    "day": 86400,
}


class FailurePolicy(Enum):
    """
    Behaviour when the rate limit store raises.

    - FAIL_OPEN: allow the request with a permissive synthetic quota; favours
      availability of sign-in while the store is down
    - FAIL_CLOSED: throttle the request; favours strict enforcement
    """
    FAIL_OPEN = "fail-open"
    FAIL_CLOSED = "fail-closed"

    @classmethod
    def parse(cls, value: str) -> FailurePolicy:
        try:
            return cls(value)
        except ValueError:
            raise ConfigurationError(
                f"Unknown rate limit failure policy: {value!r}",
                code="invalid_failure_policy",
            ) from None


@dataclass(frozen=True, slots=True)
class RateLimitQuota:
    """
    Immutable quota: at most `max_requests` within any trailing window of
    `window_seconds`.

    Business Rules:
    - Both values must be positive
    """
    max_requests: int
    window_seconds: int

    def __post_init__(self):
        if self.max_requests <= 0:
            raise ValueError("max_requests must be positive")
        if self.window_seconds <= 0:
            raise ValueError("window_seconds must be positive")

    @property
    def window_ms(self) -> int:
        return self.window_seconds * 1000

    @classmethod
    def parse(cls, value: str) -> RateLimitQuota:
        """Build a quota from the settings format ``count/period``, e.g. ``10/minute``."""
        try:
            count, period = value.split("/")
            return cls(max_requests=int(count), window_seconds=PERIOD_SECONDS[period])
        except (ValueError, KeyError) as e:
            raise ConfigurationError(
                f"Invalid rate limit format: {value}. Must be 'count/period'.",
                code="invalid_rate_limit",
            ) from e

    def __str__(self) -> str:
        return f"{self.max_requests}/{self.window_seconds}s"
