"""
Global exception handlers for the FastAPI application.

The gatekeeping pipeline answers its own failures; these handlers cover the
rest of the application (health endpoint, dependency resolution) so that no
internal detail reaches the client.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette import status
from structlog import get_logger

from devflow_auth.core.exceptions import AuthDelegateError, DevflowAuthError

__all__ = [
    "auth_delegate_error_handler",
    "devflow_auth_error_handler",
    "register_exception_handlers",
]

logger = get_logger(__name__)


async def auth_delegate_error_handler(request: Request, exc: AuthDelegateError) -> JSONResponse:
    """Handles `AuthDelegateError`, returning a `502 Bad Gateway`.

    Args:
        request: The incoming `Request` object.
        exc: The `AuthDelegateError` instance.

    Returns:
        A `JSONResponse` with a 502 status code and a generic detail.
    """
    logger.error("auth_delegate_error", error=exc.code, path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"detail": "Authentication service unavailable"},
    )


async def devflow_auth_error_handler(request: Request, exc: DevflowAuthError) -> JSONResponse:
    """Handles any other `DevflowAuthError`, returning a `500 Internal Server Error`.

    Args:
        request: The incoming `Request` object.
        exc: The `DevflowAuthError` instance.

    Returns:
        A `JSONResponse` with a 500 status code and a generic detail.
    """
    logger.error("unhandled_application_error", error=exc.code, message=exc.message, path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal Server Error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all custom exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance.
    """
    app.add_exception_handler(AuthDelegateError, auth_delegate_error_handler)
    app.add_exception_handler(DevflowAuthError, devflow_auth_error_handler)
