"""Rate Limiting Domain Module

Sliding-window rate limiting for the authentication routes:

- Value Objects: RateLimitQuota, FailurePolicy
- Entities: RateLimitResult
- Repositories: Redis and in-memory sliding-window stores
- Services: SlidingWindowRateLimiter, the adapter the pipeline calls
"""

from .entities import RateLimitResult
from .repositories import (
    InMemorySlidingWindowRepository,
    RateLimitRepository,
    RedisSlidingWindowRepository,
    WindowHit,
)
from .services import SlidingWindowRateLimiter, epoch_ms
from .value_objects import FailurePolicy, RateLimitQuota

__all__ = [
    "RateLimitQuota",
    "FailurePolicy",
    "RateLimitResult",
    "RateLimitRepository",
    "RedisSlidingWindowRepository",
    "InMemorySlidingWindowRepository",
    "WindowHit",
    "SlidingWindowRateLimiter",
    "epoch_ms",
]
