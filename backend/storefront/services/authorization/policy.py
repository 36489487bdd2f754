"""Ordered route rules deciding who may call what."""

from __future__ import annotations

import enum
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from functools import lru_cache

from storefront.models.user import Role

ANY_METHOD = "*"


class Decision(str, enum.Enum):
    PERMIT = "permit"
    AUTHENTICATION_REQUIRED = "authentication_required"
    INSUFFICIENT_ROLE = "insufficient_role"


@lru_cache(maxsize=512)
def _segments(path: str) -> tuple[str, ...]:
    return tuple(part for part in path.split("/") if part)


def _match_segments(pattern: tuple[str, ...], path: tuple[str, ...]) -> bool:
    if not pattern:
        return not path
    head, rest = pattern[0], pattern[1:]
    if head == "**":
        # ``**`` swallows zero or more segments.
        return any(_match_segments(rest, path[i:]) for i in range(len(path) + 1))
    if not path:
        return False
    if head == "*" or head == path[0]:
        return _match_segments(rest, path[1:])
    return False


def path_matches(pattern: str, path: str) -> bool:
    """
    Ant-style matching: ``*`` is one segment, ``**`` any number (even none).

    >>> path_matches("/api/admin/**", "/api/admin")
    True
    >>> path_matches("/api/*/items", "/api/carts/items")
    True
    """
    return _match_segments(_segments(pattern), _segments(path))


@dataclass(frozen=True, slots=True)
class AuthorizationRule:
    """
    One route rule.

    :param pattern: Ant-style path pattern.
    :param methods: Upper-case HTTP methods, or ``{"*"}`` for any.
    :param roles: Roles of which at least one is required. Empty means any
        authenticated principal.
    :param permit_all: Anonymous access allowed.
    """

    pattern: str
    methods: frozenset[str] = field(default_factory=lambda: frozenset({ANY_METHOD}))
    roles: frozenset[Role] = frozenset()
    permit_all: bool = False

    def matches(self, path: str, method: str) -> bool:
        if ANY_METHOD not in self.methods and method.upper() not in self.methods:
            return False
        return path_matches(self.pattern, path)


def permit_all(*patterns: str, methods: Iterable[str] = (ANY_METHOD,)) -> list[AuthorizationRule]:
    verbs = frozenset(m.upper() for m in methods)
    return [AuthorizationRule(p, methods=verbs, permit_all=True) for p in patterns]


def require(
    pattern: str, *roles: Role, methods: Iterable[str] = (ANY_METHOD,)
) -> AuthorizationRule:
    return AuthorizationRule(
        pattern,
        methods=frozenset(m.upper() for m in methods),
        roles=frozenset(roles),
    )


def authenticated(pattern: str, methods: Iterable[str] = (ANY_METHOD,)) -> AuthorizationRule:
    return AuthorizationRule(pattern, methods=frozenset(m.upper() for m in methods))


class AuthorizationPolicy:
    """
    First-match evaluation over an ordered rule list.

    Overlapping rules are not disambiguated at runtime: more specific
    patterns must be registered before general ones. Requests matching no
    rule require an authenticated principal with any role.
    """

    def __init__(self, rules: Sequence[AuthorizationRule]) -> None:
        self.rules = tuple(rules)

    def match(self, path: str, method: str) -> AuthorizationRule | None:
        for rule in self.rules:
            if rule.matches(path, method):
                return rule
        return None

    def permits_anonymous(self, path: str, method: str) -> bool:
        rule = self.match(path, method)
        return rule is not None and rule.permit_all

    def decide(
        self,
        path: str,
        method: str,
        principal_roles: Iterable[Role | str] | None,
    ) -> Decision:
        """
        Decide whether a caller may reach ``method path``.

        :param principal_roles: Roles from a validated token, or ``None`` for
            an anonymous caller.
        """
        rule = self.match(path, method)
        if rule is not None and rule.permit_all:
            return Decision.PERMIT
        if principal_roles is None:
            return Decision.AUTHENTICATION_REQUIRED
        if rule is None or not rule.roles:
            return Decision.PERMIT
        held = {r.value if isinstance(r, Role) else str(r) for r in principal_roles}
        if held & {r.value for r in rule.roles}:
            return Decision.PERMIT
        return Decision.INSUFFICIENT_ROLE


def default_rules() -> list[AuthorizationRule]:
    """
    Storefront route table.

    Product writes are listed before the public product rule so that only
    catalogue reads stay anonymous.
    """
    return [
        authenticated("/api/auth/logout-all"),
        authenticated("/api/auth/change-password"),
        authenticated("/api/auth/me"),
        require("/api/products", Role.ADMIN, Role.SELLER, methods=["POST"]),
        require("/api/products/**", Role.ADMIN, Role.SELLER, methods=["PUT", "PATCH"]),
        require("/api/products/**", Role.ADMIN, methods=["DELETE"]),
        *permit_all(
            "/api/auth/**",
            "/api/products/**",
            "/api/categories/**",
            "/api/reviews/**",
            "/oauth2/**",
            "/login/oauth2/**",
            "/api/health/**",
            "/static/**",
            "/css/**",
            "/js/**",
            "/images/**",
            "/favicon.ico",
        ),
        require("/api/admin/**", Role.ADMIN),
        require("/api/users/**", Role.ADMIN, Role.USER),
        require("/api/orders/admin/**", Role.ADMIN),
        require("/api/cart/**", Role.USER, Role.ADMIN),
        require("/api/orders/**", Role.USER, Role.ADMIN),
        require("/api/seller/**", Role.SELLER, Role.ADMIN),
    ]
