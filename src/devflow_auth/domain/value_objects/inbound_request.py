"""Inbound request value object.

A framework-free snapshot of the parts of an HTTP request the gatekeeping
pipeline inspects. The security validator and the rate limiter work on this
object, never on the Starlette request directly.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import ClassVar, Mapping, Optional, Tuple

from starlette.requests import Request


def _freeze_headers(headers: Mapping[str, str]) -> Mapping[str, str]:
    return MappingProxyType({key.lower(): value for key, value in headers.items()})


@dataclass(frozen=True)
class InboundRequest:
    """Immutable view of an inbound authentication request.

    Header names are stored lower-cased, so lookups through :meth:`header`
    are case-insensitive.
    """

    method: str
    path: str
    headers: Mapping[str, str] = field(default_factory=dict)
    client_ip: str = "unknown"
    path_segments: Tuple[str, ...] = ()

    UNKNOWN_CLIENT: ClassVar[str] = "unknown"

    def __post_init__(self):
        object.__setattr__(self, "method", self.method.upper())
        object.__setattr__(self, "headers", _freeze_headers(self.headers))
        object.__setattr__(self, "path_segments", tuple(self.path_segments))

    def header(self, name: str) -> Optional[str]:
        return self.headers.get(name.lower())

    @property
    def user_agent(self) -> Optional[str]:
        return self.header("user-agent")

    @property
    def origin(self) -> Optional[str]:
        return self.header("origin")

    @property
    def provider(self) -> Optional[str]:
        """First dynamic segment after ``/api/auth/``."""
        return self.path_segments[0] if len(self.path_segments) > 0 else None

    @property
    def action(self) -> Optional[str]:
        return self.path_segments[1] if len(self.path_segments) > 1 else None

    @classmethod
    def resolve_client_ip(cls, forwarded_for: Optional[str], peer: Optional[str]) -> str:
        """Pick the client identifier used for rate limiting and logs.

        The left-most ``X-Forwarded-For`` entry wins, then the socket peer.
        Clients with neither collapse onto the shared ``"unknown"`` identifier.
        """
        if forwarded_for:
            first = forwarded_for.split(",")[0].strip()
            if first:
                return first
        if peer:
            return peer
        return cls.UNKNOWN_CLIENT

    @classmethod
    def from_starlette(cls, request: Request, segments: Tuple[str, ...] = ()) -> "InboundRequest":
        """Snapshot a Starlette request.

        The path is taken undecoded from the ASGI ``raw_path`` when the server
        provides it, so percent-encoded attack strings such as ``%2e%2e`` stay visible.
        """
        peer = request.client.host if request.client else None
        raw_path = request.scope.get("raw_path")
        path = raw_path.decode("latin-1") if raw_path else request.url.path
        return cls(
            method=request.method,
            path=path,
            headers=dict(request.headers),
            client_ip=cls.resolve_client_ip(request.headers.get("x-forwarded-for"), peer),
            path_segments=segments,
        )
