"""Integration tests for the per-request security gate."""

from __future__ import annotations

from storefront.models.user import Role
from tests.factories.user import AdminFactory, UserFactory
from tests.helpers.assertions import assert_error
from tests.helpers.auth import bearer, expired_token, foreign_token, login


def test_anonymous_request_to_protected_route(client) -> None:
    resp = client.get("/api/auth/me")

    body = assert_error(resp, 401, "authentication_required")
    assert body["error"] == "Unauthorized"
    assert body["message"] == "Full authentication is required to access this resource"
    assert body["path"] == "/api/auth/me"


def test_unlisted_route_requires_authentication(client) -> None:
    assert_error(client.get("/api/orders/42"), 401, "authentication_required")


def test_public_route_needs_no_token(client) -> None:
    resp = client.post("/api/auth/forgot-password", json={"email": "nobody@example.com"})

    assert resp.status_code == 200


def test_sixth_login_attempt_is_rate_limited(client) -> None:
    UserFactory(email="limit@example.com")

    for _ in range(5):
        assert login(client, "limit@example.com", "wrong-pass", ip="198.51.100.7").status_code == 401

    resp = login(client, "limit@example.com", "wrong-pass", ip="198.51.100.7")

    body = assert_error(resp, 429, "rate_limit_exceeded")
    assert body["error"] == "Rate Limit Exceeded"
    # Other clients are unaffected.
    assert login(client, "limit@example.com", ip="198.51.100.8").status_code == 200


def test_rate_limit_blocks_before_authentication(client, rate_limiter) -> None:
    for _ in range(5):
        rate_limiter.check_and_consume("198.51.100.9", rate_limiter.select_policy("/api/auth/login"))

    resp = login(client, "anyone@example.com", ip="198.51.100.9")

    assert resp.status_code == 429


def test_expired_token(client, app) -> None:
    user = UserFactory()
    with app.app_context():
        token = expired_token(user.id)

    assert_error(client.get("/api/auth/me", headers=bearer(token)), 401, "token_expired")


def test_token_signed_with_foreign_key(client) -> None:
    token = foreign_token("someone")

    assert_error(client.get("/api/auth/me", headers=bearer(token)), 401, "token_bad_signature")


def test_malformed_token(client) -> None:
    assert_error(client.get("/api/auth/me", headers=bearer("garbage")), 401, "token_malformed")


def test_invalid_token_rejected_on_public_route(client) -> None:
    resp = client.post(
        "/api/auth/forgot-password",
        json={"email": "a@example.com"},
        headers=bearer("garbage"),
    )

    assert resp.status_code == 401


def test_logged_out_token_is_revoked(client, tokens) -> None:
    user = UserFactory()
    pair = tokens.issue(user.id, user.roles)

    assert client.post("/api/auth/logout", headers=bearer(pair.access_token)).status_code == 200

    assert_error(client.get("/api/auth/me", headers=bearer(pair.access_token)), 401, "token_revoked")


def test_token_superseded_by_newer_login(client) -> None:
    UserFactory(email="twice@example.com")
    first = login(client, "twice@example.com").get_json()["token"]
    second = login(client, "twice@example.com").get_json()["token"]

    assert client.get("/api/auth/me", headers=bearer(second)).status_code == 200
    assert_error(client.get("/api/auth/me", headers=bearer(first)), 401, "token_revoked")


def test_insufficient_role(client, tokens) -> None:
    user = UserFactory()
    pair = tokens.issue(user.id, user.roles)

    resp = client.put(
        f"/api/admin/users/{user.id}/roles",
        json={"roles": ["ADMIN"]},
        headers=bearer(pair.access_token),
    )

    body = assert_error(resp, 403, "insufficient_role")
    assert body["error"] == "Access Denied"


def test_access_denied_is_logged_as_warning(client, tokens, caplog) -> None:
    user = UserFactory()
    pair = tokens.issue(user.id, user.roles)

    with caplog.at_level("WARNING", logger="storefront.api.pipeline"):
        client.post(f"/api/admin/users/{user.id}/deactivate", headers=bearer(pair.access_token))

    denied = [r for r in caplog.records if r.getMessage() == "security.forbidden"]
    assert [r.levelname for r in denied] == ["WARNING"]
    assert denied[0].subject_id == user.id


def test_product_writes_need_seller_or_admin(client, tokens) -> None:
    user = UserFactory()
    seller = UserFactory(roles=[Role.SELLER])
    user_token = tokens.issue(user.id, user.roles).access_token
    seller_token = tokens.issue(seller.id, seller.roles).access_token

    assert client.post("/api/products", json={}, headers=bearer(user_token)).status_code == 403
    # Authorized; no product routes are mounted here.
    assert client.post("/api/products", json={}, headers=bearer(seller_token)).status_code == 404
    assert client.get("/api/products/1").status_code == 404


def test_admin_passes_role_check(client, tokens) -> None:
    admin = AdminFactory()
    token = tokens.issue(admin.id, admin.roles).access_token

    resp = client.post("/api/admin/users/missing/deactivate", headers=bearer(token))

    assert_error(resp, 404, "not_found")


def test_preflight_bypasses_the_gate(client) -> None:
    resp = client.options("/api/auth/me")

    assert resp.status_code in (200, 204)


def test_response_carries_request_id(client) -> None:
    resp = client.get("/api/health")

    assert resp.headers.get("X-Request-ID")
