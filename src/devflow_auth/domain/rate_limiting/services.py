"""
Rate Limiting Services

SlidingWindowRateLimiter is the adapter the gatekeeping pipeline talks to:
one call per request, keyed by client identifier, returning a
RateLimitResult. Store failures never escape; they are converted according
to the configured FailurePolicy.
"""

from __future__ import annotations

import time
from typing import Callable, Optional

from structlog import get_logger

from .entities import RateLimitResult
from .repositories import RateLimitRepository
from .value_objects import FailurePolicy, RateLimitQuota

logger = get_logger(__name__)


def epoch_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class SlidingWindowRateLimiter:
    """
    Sliding-window rate limiter for the authentication routes.

    Each call consumes one unit of quota for `identifier` when capacity is
    left. Requests over the limit are not recorded, so a client that keeps
    hammering is admitted again as soon as its oldest hit leaves the window.
    """

    def __init__(
        self,
        repository: RateLimitRepository,
        quota: RateLimitQuota,
        failure_policy: FailurePolicy = FailurePolicy.FAIL_OPEN,
        key_prefix: str = "ratelimit:auth",
        enabled: bool = True,
        clock: Optional[Callable[[], int]] = None,
    ):
        """
        Args:
            repository: Store holding the sliding-window logs.
            quota: Requests allowed per window.
            failure_policy: What to answer when the store raises.
            key_prefix: Namespace for store keys.
            enabled: When False every check is allowed without touching the store.
            clock: Returns epoch milliseconds; injectable for tests.
        """
        self.repository = repository
        self.quota = quota
        self.failure_policy = failure_policy
        self.key_prefix = key_prefix
        self.enabled = enabled
        self._clock = clock or epoch_ms

    @classmethod
    def from_settings(cls, settings, repository: RateLimitRepository) -> SlidingWindowRateLimiter:
        return cls(
            repository=repository,
            quota=RateLimitQuota.parse(settings.RATE_LIMIT_AUTH),
            failure_policy=FailurePolicy.parse(settings.RATE_LIMIT_FAILURE_POLICY),
            key_prefix=settings.RATE_LIMIT_KEY_PREFIX,
            enabled=settings.RATE_LIMIT_ENABLED,
        )

    def key_for(self, identifier: str) -> str:
        return f"{self.key_prefix}:{identifier}"

    async def check_rate_limit(self, identifier: str) -> RateLimitResult:
        """
        Check and consume quota for `identifier`.

        Args:
            identifier: Client identifier, typically the source IP.

        Returns:
            RateLimitResult: success, limit, remaining and reset (epoch ms).
        """
        now_ms = self._clock()

        if not self.enabled:
            return RateLimitResult(
                success=True,
                limit=self.quota.max_requests,
                remaining=self.quota.max_requests,
                reset=now_ms + self.quota.window_ms,
            )

        key = self.key_for(identifier)
        try:
            window = await self.repository.hit(key, self.quota, now_ms)
        except Exception as e:
            return self._fallback(identifier, now_ms, e)

        return RateLimitResult(
            success=window.allowed,
            limit=self.quota.max_requests,
            remaining=self.quota.max_requests - window.count,
            reset=window.oldest_ms + self.quota.window_ms,
        )

    async def reset(self, identifier: str) -> None:
        await self.repository.reset(self.key_for(identifier), self.quota)

    def _fallback(self, identifier: str, now_ms: int, error: Exception) -> RateLimitResult:
        if self.failure_policy is FailurePolicy.FAIL_OPEN:
            logger.warning(
                "rate_limit_backend_failed_allowing_request",
                identifier=identifier,
                error=str(error),
                error_type=type(error).__name__,
            )
            return RateLimitResult.fail_open(now_ms)

        logger.error(
            "rate_limit_backend_failed_blocking_request",
            identifier=identifier,
            error=str(error),
            error_type=type(error).__name__,
        )
        return RateLimitResult.fail_closed(self.quota.max_requests, now_ms, self.quota.window_ms)
