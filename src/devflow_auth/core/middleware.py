"""Middleware configuration for the FastAPI application.

This module registers the page protection middleware: requests for protected
pages without a session cookie are redirected to the sign-in page. API
routes and static assets are never touched by it.
"""

from typing import Iterable

from fastapi import FastAPI, Request
from starlette.responses import RedirectResponse

from devflow_auth.core.config.settings import settings
from devflow_auth.core.logging import logger

# Prefixes the page protection never applies to.
EXCLUDED_PREFIXES = ("/api", "/_next/static", "/_next/image", "/favicon.ico")


def configure_middleware(app: FastAPI) -> None:
    """Configure all middleware for the FastAPI application.

    Args:
        app (FastAPI): The FastAPI application instance
    """
    app.middleware("http")(protect_pages_middleware)


def _is_excluded(path: str) -> bool:
    return path.startswith(EXCLUDED_PREFIXES)


def _is_protected(path: str, prefixes: Iterable[str]) -> bool:
    return any(path == prefix or path.startswith(prefix.rstrip("/") + "/") for prefix in prefixes)


def _has_session(request: Request, cookie_names: Iterable[str]) -> bool:
    return any(request.cookies.get(name) for name in cookie_names)


async def protect_pages_middleware(request: Request, call_next):
    """Redirect unauthenticated visitors away from protected pages.

    A visitor counts as signed in when any configured session cookie is
    present; the session itself is validated by the auth handler, not here.

    Args:
        request (Request): The incoming request
        call_next: The next middleware or route handler

    Returns:
        Response: A 307 redirect to the sign-in page, or the downstream response
    """
    path = request.url.path
    if not _is_excluded(path) and _is_protected(path, settings.PROTECTED_PATH_PREFIXES):
        if not _has_session(request, settings.SESSION_COOKIE_NAMES):
            logger.info("protected_page_redirect", pathname=path, to=settings.SIGN_IN_PATH)
            target = request.url.replace(path=settings.SIGN_IN_PATH, query="", fragment="")
            return RedirectResponse(url=str(target), status_code=307)
    return await call_next(request)
