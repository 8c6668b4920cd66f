"""Authentication delegate and route protection settings.
"""

import logging
from typing import List, Optional, Union

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class AuthSettings(BaseSettings):
    """Defines where authentication requests are delegated to and which pages
    require a signed-in session.

    Security Note:
        - AUTH_UPSTREAM_URL should point at an internal address of the auth
          handler; the gateway forwards cookies and credentials verbatim.
        - AUTH_UPSTREAM_TIMEOUT of None means the gateway waits for the auth
          handler indefinitely.
    """

    AUTH_UPSTREAM_URL: str = "http://localhost:3000"
    AUTH_UPSTREAM_TIMEOUT: Optional[float] = None

    PROTECTED_PATH_PREFIXES: Union[str, List[str]] = Field(default_factory=lambda: ["/dashboard"])
    SIGN_IN_PATH: str = "/signin"
    SESSION_COOKIE_NAMES: Union[str, List[str]] = Field(
        default_factory=lambda: [
            "authjs.session-token",
            "__Secure-authjs.session-token",
            "next-auth.session-token",
            "__Secure-next-auth.session-token",
        ]
    )

    @field_validator("PROTECTED_PATH_PREFIXES", "SESSION_COOKIE_NAMES", mode="before")
    @classmethod
    def split_comma_separated(cls, v: Union[str, List[str]]) -> List[str]:
        if isinstance(v, str):
            return [i.strip() for i in v.split(",") if i.strip()]
        return v

    @field_validator("AUTH_UPSTREAM_URL")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            logger.error(f"AUTH_UPSTREAM_URL must be an http(s) URL, got {v!r}")
            raise ValueError("AUTH_UPSTREAM_URL must start with http:// or https://")
        return v.rstrip("/")
