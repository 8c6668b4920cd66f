"""
Rate Limiting Repositories

Storage for the sliding-window log behind the auth rate limiter.

- RateLimitRepository: contract used by the limiter service
- RedisSlidingWindowRepository: distributed store; one sorted set per key,
  updated atomically by a Lua script
- InMemorySlidingWindowRepository: per-process store for test mode and for
  deployments without Redis, built on the `limits` moving window
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, NamedTuple, Optional

import redis.asyncio as redis
from limits import RateLimitItemPerSecond
from limits.aio.storage import MemoryStorage
from limits.aio.strategies import MovingWindowRateLimiter
from redis.exceptions import NoScriptError, RedisError
from structlog import get_logger

from devflow_auth.core.exceptions import RateLimitBackendError

from .value_objects import RateLimitQuota

logger = get_logger(__name__)


class WindowHit(NamedTuple):
    """State of one key's window right after a hit was attempted.

    Attributes:
        allowed: Whether the hit was recorded (count was below the limit).
        count: Hits in the window after this attempt.
        oldest_ms: Timestamp of the oldest hit still inside the window.
    """

    allowed: bool
    count: int
    oldest_ms: int


class RateLimitRepository(ABC):
    """Contract for sliding-window counter stores.

    Implementations must evict expired hits, count what remains and record
    the new hit only when the count is below the quota, as one atomic step.
    Any store failure is raised as :class:`RateLimitBackendError`.
    """

    @abstractmethod
    async def hit(self, key: str, quota: RateLimitQuota, now_ms: int) -> WindowHit:
        """Attempt to record one request for `key` at `now_ms`."""

    @abstractmethod
    async def reset(self, key: str, quota: RateLimitQuota) -> None:
        """Forget every hit recorded for `key` under `quota`."""

    @abstractmethod
    async def health_check(self) -> Dict[str, Any]:
        """Report the store's status for the health endpoint."""


class RedisSlidingWindowRepository(RateLimitRepository):
    """
    Redis implementation of the sliding-window log.

    Each key maps to a sorted set whose members are unique per request and
    whose scores are the request timestamps in milliseconds. The Lua script
    makes evict, count and insert a single atomic operation, so concurrent
    gateway instances never over-admit.
    """

    _SLIDING_WINDOW_SCRIPT = """
    local key = KEYS[1]
    local now = tonumber(ARGV[1])
    local window = tonumber(ARGV[2])
    local limit = tonumber(ARGV[3])
    local member = ARGV[4]
    redis.call('ZREMRANGEBYSCORE', key, '-inf', now - window)
    local count = redis.call('ZCARD', key)
    local allowed = 0
    if count < limit then
        redis.call('ZADD', key, now, member)
        count = count + 1
        allowed = 1
    end
    redis.call('PEXPIRE', key, window)
    local oldest = redis.call('ZRANGE', key, 0, 0, 'WITHSCORES')
    local oldest_score = now
    if oldest[2] then
        oldest_score = tonumber(oldest[2])
    end
    return {allowed, count, oldest_score}
    """

    def __init__(self, redis_client: redis.Redis):
        """
        Args:
            redis_client: The async Redis client instance.
        """
        self.redis = redis_client
        self._sliding_window_sha: Optional[str] = None

    async def _register_scripts(self) -> str:
        """Register the Lua script with Redis and cache its SHA."""
        if self._sliding_window_sha is None:
            self._sliding_window_sha = await self.redis.script_load(self._SLIDING_WINDOW_SCRIPT)
        return self._sliding_window_sha

    async def _evaluate(self, key: str, quota: RateLimitQuota, now_ms: int) -> Any:
        member = f"{now_ms}-{uuid.uuid4().hex}"
        sha = await self._register_scripts()
        try:
            return await self.redis.evalsha(
                sha, 1, key, now_ms, quota.window_ms, quota.max_requests, member
            )
        except NoScriptError:
            # Script cache was flushed (restart, SCRIPT FLUSH); load it again once.
            self._sliding_window_sha = None
            sha = await self._register_scripts()
            return await self.redis.evalsha(
                sha, 1, key, now_ms, quota.window_ms, quota.max_requests, member
            )

    async def hit(self, key: str, quota: RateLimitQuota, now_ms: int) -> WindowHit:
        try:
            allowed, count, oldest = await self._evaluate(key, quota, now_ms)
        except RedisError as e:
            raise RateLimitBackendError(f"Redis sliding window failed for {key}: {e}") from e
        return WindowHit(allowed=bool(int(allowed)), count=int(count), oldest_ms=int(float(oldest)))

    async def reset(self, key: str, quota: RateLimitQuota) -> None:
        try:
            await self.redis.delete(key)
        except RedisError as e:
            raise RateLimitBackendError(f"Redis reset failed for {key}: {e}") from e

    async def health_check(self) -> Dict[str, Any]:
        try:
            await self.redis.ping()
            return {"status": "healthy", "backend": "redis"}
        except RedisError as e:
            logger.error("redis_health_check_failed", error=str(e))
            return {"status": "unhealthy", "backend": "redis", "error": str(e)}


class InMemorySlidingWindowRepository(RateLimitRepository):
    """
    Per-process sliding-window log backed by the `limits` memory storage.

    Used when TEST_MODE is on or no Redis URL is configured. Limits are not
    shared between processes. The storage keeps its own wall clock, so
    `now_ms` is ignored here; entries whose window has passed are expired by
    the storage, which also drops keys left without entries.
    """

    def __init__(self, storage: Optional[MemoryStorage] = None):
        self.storage = storage if storage is not None else MemoryStorage()
        self.strategy = MovingWindowRateLimiter(self.storage)

    @staticmethod
    def _item(quota: RateLimitQuota) -> RateLimitItemPerSecond:
        return RateLimitItemPerSecond(quota.max_requests, quota.window_seconds)

    async def hit(self, key: str, quota: RateLimitQuota, now_ms: int) -> WindowHit:
        item = self._item(quota)
        allowed = await self.strategy.hit(item, key)
        stats = await self.strategy.get_window_stats(item, key)
        return WindowHit(
            allowed=allowed,
            count=quota.max_requests - stats.remaining,
            oldest_ms=round(stats.reset_time * 1000) - quota.window_ms,
        )

    async def reset(self, key: str, quota: RateLimitQuota) -> None:
        await self.strategy.clear(self._item(quota), key)

    async def health_check(self) -> Dict[str, Any]:
        healthy = await self.storage.check()
        return {"status": "healthy" if healthy else "unhealthy", "backend": "memory"}
