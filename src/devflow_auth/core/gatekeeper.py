"""Gatekeeping pipeline for the authentication routes.

Every GET/POST to ``/api/auth/...`` runs through the same fixed sequence:

    START -> SECURITY_CHECK -> RATE_LIMIT_CHECK -> DELEGATE -> RESPOND

with early exits to REJECTED (403) and THROTTLED (429), and FAILED (500) for
any exception raised at any stage. There are no retries and no backtracking.
The pipeline holds no state across requests; rate limit counters live in the
limiter's store.

OPTIONS preflights bypass the whole sequence.
"""

import time
import traceback
from enum import Enum
from typing import Callable, Dict, Optional, Sequence

from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response

from devflow_auth.core.logging import get_request_logger
from devflow_auth.domain.interfaces.auth_delegate import AuthDelegate
from devflow_auth.domain.rate_limiting.services import SlidingWindowRateLimiter, epoch_ms
from devflow_auth.domain.security.request_validator import RequestValidator
from devflow_auth.domain.value_objects.inbound_request import InboundRequest

SECURITY_HEADERS: Dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
}


def build_cors_headers(allow_origin: str) -> Dict[str, str]:
    """CORS headers answered to preflight requests on the auth routes."""
    return {
        "Access-Control-Allow-Origin": allow_origin,
        "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type, Authorization",
        "Access-Control-Allow-Credentials": "true",
    }


class PipelineStage(str, Enum):
    START = "start"
    SECURITY_CHECK = "security_check"
    RATE_LIMIT_CHECK = "rate_limit_check"
    DELEGATE = "delegate"
    RESPOND = "respond"


class AuthGatekeeper:
    """Runs security validation, rate limiting and logging around an auth delegate.

    Attributes:
        validator: Heuristic request classifier.
        rate_limiter: Sliding-window limiter keyed by client IP.
        delegate: The authentication handler admitted requests are passed to.
        cors_headers: Headers answered to OPTIONS preflights.
    """

    def __init__(
        self,
        validator: RequestValidator,
        rate_limiter: SlidingWindowRateLimiter,
        delegate: AuthDelegate,
        cors_headers: Dict[str, str],
        logger=None,
        clock: Optional[Callable[[], int]] = None,
    ):
        self.validator = validator
        self.rate_limiter = rate_limiter
        self.delegate = delegate
        self.cors_headers = dict(cors_headers)
        self.logger = logger if logger is not None else get_request_logger()
        self._clock = clock or epoch_ms

    async def handle(self, request: Request, method: str, segments: Sequence[str] = ()) -> Response:
        """Run the pipeline for one GET or POST request.

        Args:
            request: The incoming request, passed unchanged to the delegate.
            method: ``"GET"`` or ``"POST"``; selects the delegate entry point.
            segments: Dynamic path segments after ``/api/auth/``.

        Returns:
            The delegate's response decorated with security and rate limit
            headers, or a 403/429/500 produced by the pipeline itself.
        """
        started = time.monotonic()
        stage = PipelineStage.START
        ip = InboundRequest.UNKNOWN_CLIENT
        user_agent = "unknown"
        pathname = request.url.path

        try:
            inbound = InboundRequest.from_starlette(request, tuple(segments))
            ip = inbound.client_ip
            user_agent = inbound.user_agent or "unknown"
            pathname = inbound.path

            stage = PipelineStage.SECURITY_CHECK
            verdict = self.validator.validate(inbound)
            if not verdict.is_valid:
                self.logger.warning(
                    "security_validation_failed",
                    ip=ip,
                    user_agent=user_agent,
                    reason=verdict.reason,
                    pathname=pathname,
                )
                return PlainTextResponse("Forbidden", status_code=403, headers=SECURITY_HEADERS)

            stage = PipelineStage.RATE_LIMIT_CHECK
            limit = await self.rate_limiter.check_rate_limit(ip)
            if limit.is_blocked:
                self.logger.warning(
                    "rate_limit_exceeded",
                    ip=ip,
                    user_agent=user_agent,
                    pathname=pathname,
                    limit=limit.limit,
                    remaining=limit.remaining,
                )
                headers = {
                    **SECURITY_HEADERS,
                    "Retry-After": str(limit.retry_after_seconds(self._clock())),
                    **limit.to_http_headers(),
                }
                return PlainTextResponse("Too Many Requests", status_code=429, headers=headers)

            stage = PipelineStage.DELEGATE
            self.logger.info(
                "auth_request",
                method=method,
                ip=ip,
                user_agent=user_agent,
                pathname=pathname,
                provider=inbound.provider,
                action=inbound.action,
            )
            response = await self.delegate.dispatch(method, request)

            stage = PipelineStage.RESPOND
            for name, value in SECURITY_HEADERS.items():
                response.headers[name] = value
            for name, value in limit.to_http_headers().items():
                response.headers[name] = value

            self.logger.info(
                "auth_response",
                method=method,
                ip=ip,
                user_agent=user_agent,
                pathname=pathname,
                status=response.status_code,
                duration=self._elapsed_ms(started),
            )
            return response
        except Exception as e:
            self.logger.error(
                "auth_request_failed",
                error=str(e),
                stack=traceback.format_exc(),
                stage=stage.value,
                ip=ip,
                user_agent=user_agent,
                pathname=pathname,
                method=method,
                duration=self._elapsed_ms(started),
            )
            return Response(
                "Internal Server Error",
                status_code=500,
                headers={**SECURITY_HEADERS, "Content-Type": "application/json"},
            )

    def options(self) -> Response:
        """Answer a CORS preflight. No validation, rate limiting or logging."""
        return Response(status_code=200, headers={**self.cors_headers, **SECURITY_HEADERS})

    @staticmethod
    def _elapsed_ms(started: float) -> int:
        return int((time.monotonic() - started) * 1000)
