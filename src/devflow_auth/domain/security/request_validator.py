"""Heuristic request validation for the authentication routes.

The validator classifies an inbound request as benign or hostile with three
static checks: a user-agent denylist, an origin allowlist for POST requests
and a denylist of path fragments typical of traversal, XSS and SQL injection
attempts. It is a coarse filter in front of the auth handler, not a security
guarantee; false negatives are expected.

All lists live in an immutable :class:`SecurityPolicy` built once at startup
and handed to :class:`RequestValidator`, so tests can substitute their own.
"""

from dataclasses import dataclass
from typing import ClassVar, FrozenSet, Optional, Tuple

from devflow_auth.domain.value_objects.inbound_request import InboundRequest

DEFAULT_SUSPICIOUS_AGENTS: Tuple[str, ...] = (
    "curl",
    "wget",
    "python",
    "scrapy",
    "bot",
    "crawler",
    "scanner",
    "nikto",
    "sqlmap",
    "nmap",
)

DEFAULT_ATTACK_PATTERNS: Tuple[str, ...] = (
    "../",
    "..\\",
    "%2e%2e",
    "%252e",
    "script>",
    "<script",
    "javascript:",
    "vbscript:",
    "onload=",
    "onerror=",
    "union+select",
    "drop+table",
    "insert+into",
)


@dataclass(frozen=True)
class SecurityVerdict:
    """Outcome of validating one request. Never mutated after creation."""

    is_valid: bool
    reason: Optional[str] = None

    SUSPICIOUS_USER_AGENT: ClassVar[str] = "Suspicious user agent"
    INVALID_ORIGIN: ClassVar[str] = "Invalid origin"
    MALICIOUS_PATTERN: ClassVar[str] = "Malicious pattern detected"

    @classmethod
    def valid(cls) -> "SecurityVerdict":
        return cls(is_valid=True)

    @classmethod
    def rejected(cls, reason: str) -> "SecurityVerdict":
        return cls(is_valid=False, reason=reason)


@dataclass(frozen=True)
class SecurityPolicy:
    """Immutable configuration for :class:`RequestValidator`.

    Attributes:
        suspicious_agents: Lower-cased substrings that mark a user agent as hostile.
        allowed_origins: Exact origins accepted on POST requests.
        attack_patterns: Lower-cased substrings that mark a path as hostile.
    """

    suspicious_agents: Tuple[str, ...] = DEFAULT_SUSPICIOUS_AGENTS
    allowed_origins: FrozenSet[str] = frozenset()
    attack_patterns: Tuple[str, ...] = DEFAULT_ATTACK_PATTERNS

    def __post_init__(self):
        object.__setattr__(
            self, "suspicious_agents", tuple(a.lower() for a in self.suspicious_agents)
        )
        object.__setattr__(self, "allowed_origins", frozenset(self.allowed_origins))
        object.__setattr__(
            self, "attack_patterns", tuple(p.lower() for p in self.attack_patterns)
        )

    @classmethod
    def from_settings(cls, settings) -> "SecurityPolicy":
        """Build the policy from application settings.

        Only the origin allowlist depends on the environment; the denylists
        are fixed.
        """
        return cls(allowed_origins=frozenset(settings.allowed_origins()))


class RequestValidator:
    """Classifies inbound requests using a :class:`SecurityPolicy`.

    Checks run in a fixed order and the first failure wins:

    1. user agent against the denylist (case-insensitive substring)
    2. ``Origin`` against the allowlist, POST only and only when present
    3. path against the attack pattern denylist (case-insensitive substring)
    """

    def __init__(self, policy: SecurityPolicy):
        self.policy = policy

    def validate(self, request: InboundRequest) -> SecurityVerdict:
        if self._has_suspicious_user_agent(request.user_agent):
            return SecurityVerdict.rejected(SecurityVerdict.SUSPICIOUS_USER_AGENT)

        if request.method == "POST" and not self._is_allowed_origin(request.origin):
            return SecurityVerdict.rejected(SecurityVerdict.INVALID_ORIGIN)

        if self._has_attack_pattern(request.path):
            return SecurityVerdict.rejected(SecurityVerdict.MALICIOUS_PATTERN)

        return SecurityVerdict.valid()

    def _has_suspicious_user_agent(self, user_agent: Optional[str]) -> bool:
        if not user_agent:
            return False
        lowered = user_agent.lower()
        return any(agent in lowered for agent in self.policy.suspicious_agents)

    def _is_allowed_origin(self, origin: Optional[str]) -> bool:
        # Requests without an Origin header are not origin-checked.
        if not origin:
            return True
        return origin in self.policy.allowed_origins

    def _has_attack_pattern(self, path: str) -> bool:
        lowered = path.lower()
        return any(pattern in lowered for pattern in self.policy.attack_patterns)
