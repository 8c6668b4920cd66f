"""Authentication routes.

``/api/auth/{nextauth:path}`` is a catch-all: the first two path segments
name the provider and action (``/api/auth/signin/github``,
``/api/auth/callback/credentials``, ``/api/auth/session``). GET and POST run
through the gatekeeping pipeline; OPTIONS answers CORS preflights directly.
"""

from typing import List

from fastapi import APIRouter, Depends, Request
from starlette.responses import Response

from devflow_auth.adapters.api.dependencies import get_gatekeeper
from devflow_auth.core.gatekeeper import AuthGatekeeper

router = APIRouter()


def _segments(nextauth: str) -> List[str]:
    return [segment for segment in nextauth.split("/") if segment]


@router.get("/{nextauth:path}")
async def auth_get(
    nextauth: str,
    request: Request,
    gatekeeper: AuthGatekeeper = Depends(get_gatekeeper),
) -> Response:
    return await gatekeeper.handle(request, "GET", _segments(nextauth))


@router.post("/{nextauth:path}")
async def auth_post(
    nextauth: str,
    request: Request,
    gatekeeper: AuthGatekeeper = Depends(get_gatekeeper),
) -> Response:
    return await gatekeeper.handle(request, "POST", _segments(nextauth))


@router.options("/{nextauth:path}")
async def auth_options(gatekeeper: AuthGatekeeper = Depends(get_gatekeeper)) -> Response:
    """CORS preflight; no security check, rate limiting or logging."""
    return gatekeeper.options()
