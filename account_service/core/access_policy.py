"""
Static URL access policy: ordered (path patterns, requirement) rules, first match wins.

Patterns use Ant/Spring syntax: ``*`` matches within one path segment and ``**``
matches zero or more whole segments, so ``/api/users/**`` also covers ``/api/users``.
Order matters: the broad user-management rule would otherwise shadow the public
login/registration endpoints.
"""

from dataclasses import dataclass
from enum import Enum
from fnmatch import fnmatchcase

from account_service.core.config import settings
from account_service.models.user import UserRole


class Requirement(str, Enum):
    """What a caller needs to reach a path."""

    PUBLIC = "public"
    AUTHENTICATED = "authenticated"
    ADMIN = "admin"


class AccessDecision(str, Enum):
    """Outcome of evaluating a request against the policy."""

    ALLOW = "allow"
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"


@dataclass(frozen=True)
class AccessRule:
    patterns: tuple[str, ...]
    requirement: Requirement

    def matches(self, path: str) -> bool:
        return any(path_matches(pattern, path) for pattern in self.patterns)


def build_access_rules(api_prefix: str = "/api") -> tuple[AccessRule, ...]:
    """The policy table with the user-account patterns rooted at api_prefix."""
    users = f"{api_prefix.rstrip('/')}/users"
    return (
        AccessRule((f"{users}/login", f"{users}/register"), Requirement.PUBLIC),
        AccessRule((f"{users}/check-username",), Requirement.PUBLIC),
        AccessRule(("/health", "/actuator/health", "/error"), Requirement.PUBLIC),
        AccessRule(
            ("/css/**", "/js/**", "/images/**", "/webjars/**", "/favicon.ico"),
            Requirement.PUBLIC,
        ),
        AccessRule(("/docs", "/docs/**", "/redoc", "/openapi.json"), Requirement.PUBLIC),
        AccessRule(
            (f"{users}/statistics", f"{users}/role/**", f"{users}/search"),
            Requirement.ADMIN,
        ),
        AccessRule((f"{users}/**",), Requirement.ADMIN),
        AccessRule(("/**",), Requirement.AUTHENTICATED),
    )


ACCESS_RULES: tuple[AccessRule, ...] = build_access_rules(settings.API_PREFIX)


def _segments(path: str) -> list[str]:
    return [s for s in path.split("/") if s]


def _match_segments(pattern: list[str], path: list[str]) -> bool:
    if not pattern:
        return not path
    head = pattern[0]
    if head == "**":
        rest = pattern[1:]
        return any(_match_segments(rest, path[i:]) for i in range(len(path) + 1))
    if not path:
        return False
    return fnmatchcase(path[0], head) and _match_segments(pattern[1:], path[1:])


def path_matches(pattern: str, path: str) -> bool:
    """True if path matches the Ant-style pattern (trailing slashes are ignored)."""
    return _match_segments(_segments(pattern), _segments(path))


def resolve_rule(path: str, rules: tuple[AccessRule, ...] = ACCESS_RULES) -> AccessRule:
    """Return the first rule whose patterns match path."""
    for rule in rules:
        if rule.matches(path):
            return rule
    # The catch-all rule makes this unreachable for the default table.
    return AccessRule(("/**",), Requirement.AUTHENTICATED)


def check_access(
    path: str,
    role: UserRole | None,
    rules: tuple[AccessRule, ...] = ACCESS_RULES,
) -> AccessDecision:
    """
    Decide whether a caller holding role (None when anonymous) may reach path.

    Anonymous callers on gated paths are UNAUTHENTICATED; authenticated callers
    lacking the ADMIN role on admin paths are FORBIDDEN.
    """
    requirement = resolve_rule(path, rules).requirement
    if requirement is Requirement.PUBLIC:
        return AccessDecision.ALLOW
    if role is None:
        return AccessDecision.UNAUTHENTICATED
    if requirement is Requirement.ADMIN and role is not UserRole.ADMIN:
        return AccessDecision.FORBIDDEN
    return AccessDecision.ALLOW
