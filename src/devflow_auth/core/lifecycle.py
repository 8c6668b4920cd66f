"""Application lifecycle management.

This module wires the gatekeeping pipeline together on startup and releases
its external clients (Redis, httpx) on shutdown.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from devflow_auth.core.config.settings import settings
from devflow_auth.core.gatekeeper import AuthGatekeeper, build_cors_headers
from devflow_auth.core.logging import logger
from devflow_auth.domain.interfaces.auth_delegate import AuthDelegate
from devflow_auth.domain.rate_limiting.repositories import RateLimitRepository
from devflow_auth.domain.rate_limiting.services import SlidingWindowRateLimiter
from devflow_auth.domain.security.request_validator import RequestValidator, SecurityPolicy
from devflow_auth.infrastructure.redis import create_rate_limit_repository
from devflow_auth.infrastructure.services.upstream_auth import UpstreamAuthDelegate


def build_gatekeeper(app_settings, repository: RateLimitRepository, delegate: AuthDelegate) -> AuthGatekeeper:
    """Assemble the pipeline from settings and its two external collaborators."""
    return AuthGatekeeper(
        validator=RequestValidator(SecurityPolicy.from_settings(app_settings)),
        rate_limiter=SlidingWindowRateLimiter.from_settings(app_settings, repository),
        delegate=delegate,
        cors_headers=build_cors_headers(app_settings.base_url),
    )


def create_lifespan_manager():
    """Create the application lifespan manager.

    Returns:
        AsyncContextManager: The lifespan manager for the FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Build the rate limit store, auth delegate and gatekeeper, then tear
        them down again on shutdown.

        Args:
            app (FastAPI): The FastAPI application instance
        """
        repository, redis_client = create_rate_limit_repository(settings)
        delegate = UpstreamAuthDelegate.from_settings(settings)

        app.state.rate_limit_repository = repository
        app.state.gatekeeper = build_gatekeeper(settings, repository, delegate)
        logger.info(
            "application_startup",
            env=settings.APP_ENV,
            version=settings.VERSION,
            rate_limit=settings.RATE_LIMIT_AUTH,
            failure_policy=settings.RATE_LIMIT_FAILURE_POLICY,
            upstream=settings.AUTH_UPSTREAM_URL,
        )

        yield

        await delegate.aclose()
        if redis_client is not None:
            await redis_client.aclose()
        logger.info("application_shutdown", env=settings.APP_ENV)

    return lifespan
