"""Unit tests for the ordered route rules."""

from __future__ import annotations

import pytest
from storefront.models.user import Role
from storefront.services.authorization import (
    AuthorizationPolicy,
    Decision,
    default_rules,
    path_matches,
    permit_all,
    require,
)


@pytest.fixture()
def policy() -> AuthorizationPolicy:
    return AuthorizationPolicy(default_rules())


@pytest.mark.parametrize(
    "pattern, path, expected",
    [
        ("/api/admin/**", "/api/admin", True),
        ("/api/admin/**", "/api/admin/users/1/roles", True),
        ("/api/admin/**", "/api/administrator", False),
        ("/api/*/items", "/api/carts/items", True),
        ("/api/*/items", "/api/carts/x/items", False),
        ("/favicon.ico", "/favicon.ico", True),
    ],
)
def test_path_matches(pattern, path, expected):
    assert path_matches(pattern, path) is expected


@pytest.mark.parametrize(
    "method, path",
    [
        ("POST", "/api/auth/login"),
        ("GET", "/api/products"),
        ("GET", "/api/products/42"),
        ("GET", "/api/categories/shoes"),
        ("GET", "/api/reviews/7"),
        ("GET", "/oauth2/authorization/google"),
        ("GET", "/login/oauth2/code/google"),
        ("GET", "/api/health"),
    ],
)
def test_public_routes_permit_anonymous(policy, method, path):
    assert policy.decide(path, method, None) is Decision.PERMIT


@pytest.mark.parametrize(
    "method, path",
    [
        ("POST", "/api/auth/logout-all"),
        ("POST", "/api/auth/change-password"),
        ("GET", "/api/auth/me"),
        ("GET", "/api/cart"),
        ("GET", "/api/orders/1"),
        ("GET", "/api/unlisted"),
    ],
)
def test_protected_routes_require_authentication(policy, method, path):
    assert policy.decide(path, method, None) is Decision.AUTHENTICATION_REQUIRED


@pytest.mark.parametrize(
    "method, path, roles, expected",
    [
        ("GET", "/api/admin/users", {"USER"}, Decision.INSUFFICIENT_ROLE),
        ("GET", "/api/admin/users", {"ADMIN"}, Decision.PERMIT),
        ("GET", "/api/cart", {"USER"}, Decision.PERMIT),
        ("GET", "/api/cart", {"SELLER"}, Decision.INSUFFICIENT_ROLE),
        ("GET", "/api/orders/admin/stats", {"USER"}, Decision.INSUFFICIENT_ROLE),
        ("GET", "/api/orders/mine", {"USER"}, Decision.PERMIT),
        ("GET", "/api/seller/inventory", {"SELLER"}, Decision.PERMIT),
        ("GET", "/api/seller/inventory", {"USER"}, Decision.INSUFFICIENT_ROLE),
        ("GET", "/api/users/me", {"MODERATOR"}, Decision.INSUFFICIENT_ROLE),
        ("GET", "/api/unlisted", {"MODERATOR"}, Decision.PERMIT),
        ("POST", "/api/auth/logout-all", {"MODERATOR"}, Decision.PERMIT),
    ],
)
def test_role_rules(policy, method, path, roles, expected):
    assert policy.decide(path, method, roles) is expected


@pytest.mark.parametrize(
    "method, roles, expected",
    [
        ("GET", None, Decision.PERMIT),
        ("POST", None, Decision.AUTHENTICATION_REQUIRED),
        ("POST", {"USER"}, Decision.INSUFFICIENT_ROLE),
        ("POST", {"SELLER"}, Decision.PERMIT),
        ("PUT", {"SELLER"}, Decision.PERMIT),
        ("DELETE", {"SELLER"}, Decision.INSUFFICIENT_ROLE),
        ("DELETE", {"ADMIN"}, Decision.PERMIT),
    ],
)
def test_product_writes_are_restricted_before_public_reads(policy, method, roles, expected):
    path = "/api/products" if method == "POST" else "/api/products/9"
    assert policy.decide(path, method, roles) is expected


def test_first_match_wins():
    """A general rule listed first shadows a specific one listed later."""
    shadowed = AuthorizationPolicy(
        [*permit_all("/api/**"), require("/api/admin/**", Role.ADMIN)]
    )
    assert shadowed.decide("/api/admin/users", "GET", None) is Decision.PERMIT


def test_decide_accepts_role_enums(policy):
    assert policy.decide("/api/admin/x", "GET", {Role.ADMIN}) is Decision.PERMIT


def test_permits_anonymous(policy):
    assert policy.permits_anonymous("/api/products", "GET")
    assert not policy.permits_anonymous("/api/products", "POST")
    assert not policy.permits_anonymous("/api/unlisted", "GET")
