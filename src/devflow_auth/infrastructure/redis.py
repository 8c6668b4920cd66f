"""
Redis Connection Module

Builds the asynchronous Redis client and the rate limit repository that sits
on top of it. The client is created once per application lifespan and shared
by every request; Redis itself makes the sliding-window update atomic across
concurrent requests and gateway instances.

**Security Note**: Use a `rediss://` URL when Redis is reached over an
untrusted network, and never log the assembled URL since it embeds the
password (OWASP A09:2021 - Security Logging and Monitoring Failures).
"""

import logging
from typing import Optional, Tuple

from redis.asyncio import Redis

from devflow_auth.domain.rate_limiting.repositories import (
    InMemorySlidingWindowRepository,
    RateLimitRepository,
    RedisSlidingWindowRepository,
)

logger = logging.getLogger(__name__)


def create_redis_client(redis_url: str) -> Redis:
    """
    Create an asynchronous Redis client. No connection is opened until the
    first command.
    """
    redis = Redis.from_url(redis_url, encoding="utf-8", decode_responses=True)
    logger.debug("Redis client created")
    return redis


def create_rate_limit_repository(settings) -> Tuple[RateLimitRepository, Optional[Redis]]:
    """
    Pick the rate limit store for the current settings.

    Returns:
        The repository, and the Redis client backing it (None for the
        in-memory store) so the caller can close it on shutdown.
    """
    if not settings.uses_redis:
        logger.info("Using in-memory rate limit store")
        return InMemorySlidingWindowRepository(), None

    client = create_redis_client(settings.REDIS_URL)
    return RedisSlidingWindowRepository(client), client
