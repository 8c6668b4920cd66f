import os

os.environ.setdefault("APP_ENV", "test")

from unittest.mock import MagicMock  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from devflow_auth.adapters.api.dependencies import get_gatekeeper, get_rate_limit_repository  # noqa: E402
from devflow_auth.core.application import create_application  # noqa: E402
from devflow_auth.core.gatekeeper import AuthGatekeeper, build_cors_headers  # noqa: E402
from devflow_auth.domain.rate_limiting import (  # noqa: E402
    FailurePolicy,
    InMemorySlidingWindowRepository,
    RateLimitQuota,
    SlidingWindowRateLimiter,
)
from devflow_auth.domain.security.request_validator import RequestValidator, SecurityPolicy  # noqa: E402
from tests.utils.http_helpers import BROWSER_UA, SITE_ORIGIN, FakeAuthDelegate, FrozenClock  # noqa: E402


@pytest.fixture
def clock(mocker) -> FrozenClock:
    """Frozen epoch-ms clock. `time.time` follows it, since the in-memory
    rate limit store reads the wall clock itself."""
    frozen = FrozenClock()
    mocker.patch("time.time", new=lambda: frozen.now_ms / 1000)
    return frozen


@pytest.fixture
def security_policy() -> SecurityPolicy:
    return SecurityPolicy(allowed_origins=frozenset({SITE_ORIGIN, "http://localhost:3000"}))


@pytest.fixture
def validator(security_policy) -> RequestValidator:
    return RequestValidator(security_policy)


@pytest.fixture
def memory_repository() -> InMemorySlidingWindowRepository:
    return InMemorySlidingWindowRepository()


@pytest.fixture
def rate_limiter(memory_repository, clock) -> SlidingWindowRateLimiter:
    return SlidingWindowRateLimiter(
        repository=memory_repository,
        quota=RateLimitQuota(max_requests=10, window_seconds=60),
        failure_policy=FailurePolicy.FAIL_OPEN,
        clock=clock,
    )


@pytest.fixture
def delegate() -> FakeAuthDelegate:
    return FakeAuthDelegate()


@pytest.fixture
def request_logger() -> MagicMock:
    return MagicMock(name="request_logger")


@pytest.fixture
def gatekeeper(validator, rate_limiter, delegate, request_logger, clock) -> AuthGatekeeper:
    return AuthGatekeeper(
        validator=validator,
        rate_limiter=rate_limiter,
        delegate=delegate,
        cors_headers=build_cors_headers(SITE_ORIGIN),
        logger=request_logger,
        clock=clock,
    )


@pytest.fixture
def app(gatekeeper, memory_repository):
    application = create_application()
    application.dependency_overrides[get_gatekeeper] = lambda: gatekeeper
    application.dependency_overrides[get_rate_limit_repository] = lambda: memory_repository
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def client(app) -> TestClient:
    # Not used as a context manager: the lifespan would build real clients.
    return TestClient(app, headers={"user-agent": BROWSER_UA})
