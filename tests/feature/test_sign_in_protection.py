"""
End-to-end scenarios for the sign-in gate.

Each scenario drives the full pipeline (validator, limiter, delegate) the way
a client would hit ``/api/auth/*`` and checks what the client observes.
"""

from unittest.mock import AsyncMock

import pytest

from devflow_auth.core.exceptions import RateLimitBackendError
from devflow_auth.core.gatekeeper import AuthGatekeeper, build_cors_headers
from devflow_auth.domain.rate_limiting import (
    FailurePolicy,
    RateLimitQuota,
    RateLimitRepository,
    SlidingWindowRateLimiter,
)
from tests.utils.http_helpers import SITE_ORIGIN, FakeAuthDelegate, make_request

pytestmark = pytest.mark.feature

SIGN_IN = "/api/auth/callback/credentials"


def _sign_in_attempt(ip="198.51.100.23", user_agent="Mozilla/5.0 (iPhone; CPU iPhone OS 17_0)"):
    return make_request(
        method="POST",
        path=SIGN_IN,
        headers={"user-agent": user_agent, "origin": SITE_ORIGIN, "x-forwarded-for": ip},
        body=b"email=ada%40example.com&password=guess",
    )


@pytest.mark.asyncio
async def test_password_guessing_is_locked_out(gatekeeper, clock):
    """A client guessing passwords gets ten tries a minute, then a 429 that
    tells it when to come back."""
    statuses = []
    for _ in range(10):
        response = await gatekeeper.handle(_sign_in_attempt(), "POST", ["callback", "credentials"])
        statuses.append(response.status_code)
        clock.advance(2_000)

    locked = await gatekeeper.handle(_sign_in_attempt(), "POST", ["callback", "credentials"])

    assert statuses == [200] * 10
    assert locked.status_code == 429
    assert locked.headers["Retry-After"] == "40"
    assert len(gatekeeper.delegate.calls) == 10


@pytest.mark.asyncio
async def test_lockout_does_not_affect_other_users(gatekeeper):
    """One attacker exhausting its quota leaves other clients unaffected."""
    for _ in range(11):
        await gatekeeper.handle(_sign_in_attempt(ip="203.0.113.66"), "POST")

    response = await gatekeeper.handle(_sign_in_attempt(ip="192.0.2.8"), "POST")

    assert response.status_code == 200
    assert response.headers["X-RateLimit-Remaining"] == "9"


@pytest.mark.asyncio
async def test_locked_out_client_recovers_as_window_slides(gatekeeper, clock):
    """Capacity comes back one slot at a time as the oldest attempts age out."""
    for _ in range(10):
        await gatekeeper.handle(_sign_in_attempt(), "POST")
        clock.advance(6_000)
    clock.advance(1)

    # First attempt was just over 60s ago and has left the window.
    assert (await gatekeeper.handle(_sign_in_attempt(), "POST")).status_code == 200
    assert (await gatekeeper.handle(_sign_in_attempt(), "POST")).status_code == 429


@pytest.mark.asyncio
async def test_vulnerability_scanner_never_reaches_auth_handler(gatekeeper):
    """Scanners are turned away before they consume quota or touch the handler."""
    for _ in range(20):
        response = await gatekeeper.handle(_sign_in_attempt(user_agent="Nikto/2.5.0"), "POST")
        assert response.status_code == 403

    assert gatekeeper.delegate.calls == []
    response = await gatekeeper.handle(_sign_in_attempt(), "POST")
    assert response.headers["X-RateLimit-Remaining"] == "9"


@pytest.mark.asyncio
async def test_sign_in_stays_available_when_redis_is_down(validator, request_logger, clock):
    """With the fail-open policy, a store outage degrades to a permissive quota."""
    repository = AsyncMock(spec=RateLimitRepository)
    repository.hit.side_effect = RateLimitBackendError("connection refused")
    gatekeeper = AuthGatekeeper(
        validator=validator,
        rate_limiter=SlidingWindowRateLimiter(
            repository, RateLimitQuota(10, 60), FailurePolicy.FAIL_OPEN, clock=clock
        ),
        delegate=FakeAuthDelegate(),
        cors_headers=build_cors_headers(SITE_ORIGIN),
        logger=request_logger,
        clock=clock,
    )

    responses = [await gatekeeper.handle(_sign_in_attempt(), "POST") for _ in range(15)]

    assert {r.status_code for r in responses} == {200}
    assert responses[-1].headers["X-RateLimit-Limit"] == "1000"


@pytest.mark.asyncio
async def test_sign_in_is_refused_when_redis_is_down_and_policy_is_strict(validator, request_logger, clock):
    """With the fail-closed policy, a store outage throttles every attempt."""
    repository = AsyncMock(spec=RateLimitRepository)
    repository.hit.side_effect = RateLimitBackendError("connection refused")
    delegate = FakeAuthDelegate()
    gatekeeper = AuthGatekeeper(
        validator=validator,
        rate_limiter=SlidingWindowRateLimiter(
            repository, RateLimitQuota(10, 60), FailurePolicy.FAIL_CLOSED, clock=clock
        ),
        delegate=delegate,
        cors_headers=build_cors_headers(SITE_ORIGIN),
        logger=request_logger,
        clock=clock,
    )

    response = await gatekeeper.handle(_sign_in_attempt(), "POST")

    assert response.status_code == 429
    assert response.headers["Retry-After"] == "60"
    assert delegate.calls == []
