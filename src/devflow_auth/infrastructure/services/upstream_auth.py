"""HTTP proxy to the upstream authentication handler.

The gateway runs in front of the DevFlow auth handler (OAuth and credentials
sign-in, sessions, CSRF tokens). :class:`UpstreamAuthDelegate` forwards an
admitted request to that handler with httpx and mirrors its answer back
byte-for-byte: same status, same body, same headers minus hop-by-hop ones.

No retries are attempted; a sign-in POST is not safe to replay.
"""

from typing import Iterable, List, Optional, Tuple

import httpx
from starlette.requests import Request
from starlette.responses import Response
from structlog import get_logger

from devflow_auth.core.exceptions import AuthDelegateError
from devflow_auth.domain.interfaces.auth_delegate import AuthDelegate

logger = get_logger(__name__)

# RFC 7230 section 6.1, plus headers httpx recomputes itself.
HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailer",
        "transfer-encoding",
        "upgrade",
        "host",
        "content-length",
    }
)


def _filter_headers(headers: Iterable[Tuple[str, str]]) -> List[Tuple[str, str]]:
    return [(k, v) for k, v in headers if k.lower() not in HOP_BY_HOP_HEADERS]


class UpstreamAuthDelegate(AuthDelegate):
    """Forwards auth requests to `base_url` over HTTP.

    Attributes:
        base_url: Root URL of the auth handler, without trailing slash.
        client: Shared httpx client; owned by this delegate when not injected.
    """

    def __init__(
        self,
        base_url: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=False)

    @classmethod
    def from_settings(cls, settings) -> "UpstreamAuthDelegate":
        return cls(base_url=settings.AUTH_UPSTREAM_URL, timeout=settings.AUTH_UPSTREAM_TIMEOUT)

    async def get(self, request: Request) -> Response:
        return await self._forward(request)

    async def post(self, request: Request) -> Response:
        return await self._forward(request)

    async def _forward(self, request: Request) -> Response:
        # Undecoded path, so escapes such as %2F reach the handler unchanged.
        raw_path = request.scope.get("raw_path")
        path = raw_path.decode("latin-1") if raw_path else request.url.path
        url = f"{self.base_url}{path}"
        body = await request.body()
        headers = _filter_headers(request.headers.items())
        if request.client and "x-forwarded-for" not in request.headers:
            headers.append(("x-forwarded-for", request.client.host))

        try:
            upstream = await self.client.request(
                request.method,
                url,
                params=request.query_params.multi_items(),
                content=body,
                headers=headers,
            )
        except httpx.HTTPError as e:
            logger.error(
                "auth_upstream_unreachable",
                url=url,
                method=request.method,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise AuthDelegateError(f"Auth handler unreachable at {url}: {e}") from e

        response = Response(content=upstream.content, status_code=upstream.status_code)
        for name, value in _filter_headers(upstream.headers.multi_items()):
            if name.lower() == "content-encoding":
                # httpx already decoded the body.
                continue
            # Set-Cookie may legitimately repeat; append keeps every value.
            response.headers.append(name, value)
        return response

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()
