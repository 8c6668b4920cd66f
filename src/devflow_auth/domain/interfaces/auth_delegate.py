"""Authentication delegate interface.

The gatekeeping pipeline does not authenticate anybody itself. It hands every
admitted request to an :class:`AuthDelegate`, the OAuth/credentials handler,
and returns whatever that handler answers.
"""

from abc import ABC, abstractmethod

from starlette.requests import Request
from starlette.responses import Response


class AuthDelegate(ABC):
    """Method-dispatched authentication handler pair.

    Implementations receive the original request untouched and return a
    response whose status and body the pipeline never alters. A delegate
    answering 4xx/5xx is a normal outcome; only failures to produce a
    response at all should raise.
    """

    @abstractmethod
    async def get(self, request: Request) -> Response:
        """Handle a GET to ``/api/auth/...`` (session, csrf, providers, callbacks)."""

    @abstractmethod
    async def post(self, request: Request) -> Response:
        """Handle a POST to ``/api/auth/...`` (sign-in, sign-out, credentials)."""

    async def dispatch(self, method: str, request: Request) -> Response:
        if method == "GET":
            return await self.get(request)
        if method == "POST":
            return await self.post(request)
        raise ValueError(f"Unsupported auth method: {method}")

    async def aclose(self) -> None:
        """Release any resources held by the delegate."""
