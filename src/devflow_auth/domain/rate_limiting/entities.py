"""
Rate Limiting Entities

RateLimitResult is produced once per request by the limiter and consumed by
the gatekeeping pipeline to build its response headers.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict

# Synthetic quota reported when the store is down and the policy is fail-open.
FALLBACK_LIMIT = 1000
FALLBACK_WINDOW_MS = 60_000


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a single rate limit check.

    Attributes:
        success: Whether the request may proceed.
        limit: The quota ceiling that applied.
        remaining: Requests left in the current window, never negative.
        reset: Epoch milliseconds at which capacity is next freed.
        fallback_used: True when the result was synthesized because the
            store failed, rather than read from it.
    """

    success: bool
    limit: int
    remaining: int
    reset: int
    fallback_used: bool = False

    def __post_init__(self):
        if self.remaining < 0:
            object.__setattr__(self, "remaining", 0)

    @property
    def is_blocked(self) -> bool:
        return not self.success

    def retry_after_seconds(self, now_ms: int) -> int:
        """Seconds until reset, rounded up, never negative."""
        return max(0, math.ceil((self.reset - now_ms) / 1000))

    def to_http_headers(self) -> Dict[str, str]:
        """Convert result to the ``X-RateLimit-*`` response headers.

        - X-RateLimit-Limit: the ceiling for the window
        - X-RateLimit-Remaining: requests left in the window
        - X-RateLimit-Reset: epoch milliseconds when capacity frees up
        """
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset),
        }

    @classmethod
    def fail_open(cls, now_ms: int) -> RateLimitResult:
        """Permissive result used when the store is down and the policy is fail-open."""
        return cls(
            success=True,
            limit=FALLBACK_LIMIT,
            remaining=FALLBACK_LIMIT,
            reset=now_ms + FALLBACK_WINDOW_MS,
            fallback_used=True,
        )

    @classmethod
    def fail_closed(cls, limit: int, now_ms: int, window_ms: int) -> RateLimitResult:
        """Blocking result used when the store is down and the policy is fail-closed."""
        return cls(
            success=False,
            limit=limit,
            remaining=0,
            reset=now_ms + window_ms,
            fallback_used=True,
        )
