"""Structured exception hierarchy for the DevFlow auth gateway.

Each exception carries a machine-readable `code` for programmatic handling and
a human-readable `message` for logging. None of these messages are ever sent
to the client by the gatekeeping pipeline; it answers with generic bodies.
"""

from typing import Final

__all__: Final = [
    "DevflowAuthError",
    "ConfigurationError",
    "RateLimitBackendError",
    "AuthDelegateError",
]


class DevflowAuthError(Exception):
    """Base exception class for all custom errors in the auth gateway.

    Attributes:
        message (str): A human-readable error message, suitable for logging.
        code (str): A unique, machine-readable error code.
    """

    message: str
    code: str = "generic_error"

    def __init__(self, message: str, code: str = "generic_error"):
        self.message = message
        self.code = code
        Exception.__init__(self, self.message)

    def __str__(self) -> str:
        return self.message


class ConfigurationError(DevflowAuthError):
    """Raised when settings cannot be turned into a working component,
    e.g. an unparsable rate limit or an unknown failure policy."""

    def __init__(self, message: str, code: str = "configuration_error"):
        super().__init__(message, code)


# ---------------------------------------------------------------------------
# External collaborator failures
# ---------------------------------------------------------------------------


class RateLimitBackendError(DevflowAuthError):
    """Raised by rate limit repositories when the counter store fails.

    The limiter service never lets this escape; it is converted into a
    synthetic result according to the configured failure policy.
    """

    def __init__(self, message: str, code: str = "rate_limit_backend_error"):
        super().__init__(message, code)


class AuthDelegateError(DevflowAuthError):
    """Raised when the authentication handler cannot be reached.

    A delegate that answers with its own 4xx/5xx is not an error; only
    transport-level failures raise this. Maps to `502 Bad Gateway` outside
    the gatekeeping pipeline.
    """

    def __init__(self, message: str, code: str = "auth_delegate_unavailable"):
        super().__init__(message, code)
