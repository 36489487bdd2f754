"""Integration tests for the OAuth2 authorization-code endpoints."""

from __future__ import annotations

import json
from urllib.parse import parse_qs, urlsplit

import responses
from storefront.models.user import AuthProvider, User
from tests.factories.user import UserFactory
from tests.helpers.assertions import assert_error
from tests.helpers.auth import bearer


def _state_from(location: str) -> str:
    return parse_qs(urlsplit(location).query)["state"][0]


def _mock_google(email: str = "jane@example.com") -> None:
    responses.add(
        responses.POST,
        "https://oauth2.googleapis.com/token",
        json={"access_token": "provider-token"},
    )
    responses.add(
        responses.GET,
        "https://openidconnect.googleapis.com/v1/userinfo",
        json={"sub": "g-1", "email": email, "name": "Jane Doe", "picture": "https://img/j.png"},
    )


def test_authorization_redirects_to_provider(client, cache) -> None:
    resp = client.get("/oauth2/authorization/google")

    assert resp.status_code == 302
    location = resp.headers["Location"]
    query = parse_qs(urlsplit(location).query)
    assert location.startswith("https://accounts.google.com/")
    assert query["redirect_uri"] == ["http://testserver/login/oauth2/code/google"]
    assert cache.get(f"oauth2_state:{_state_from(location)}") == "google"


def test_unknown_provider(client) -> None:
    assert_error(client.get("/oauth2/authorization/myspace"), 404, "unknown_provider")


@responses.activate
def test_callback_provisions_user_and_redirects_to_frontend(client, session) -> None:
    _mock_google()
    state = _state_from(client.get("/oauth2/authorization/google").headers["Location"])

    resp = client.get(f"/login/oauth2/code/google?code=abc&state={state}")

    assert resp.status_code == 302
    location = resp.headers["Location"]
    assert location.startswith("http://frontend.test/oauth2/redirect?")
    params = parse_qs(urlsplit(location).query)
    user_json = json.loads(params["user"][0])
    assert user_json["email"] == "jane@example.com"
    assert user_json["firstName"] == "Jane"
    assert user_json["imageUrl"] == "https://img/j.png"

    user = session.get(User, user_json["id"])
    assert user.provider is AuthProvider.GOOGLE
    assert user.provider_id == "g-1"
    assert client.get("/api/auth/me", headers=bearer(params["token"][0])).status_code == 200


@responses.activate
def test_callback_links_existing_account(client) -> None:
    existing = UserFactory(email="jane@example.com", image_url=None)
    _mock_google()
    state = _state_from(client.get("/oauth2/authorization/google").headers["Location"])

    resp = client.get(f"/login/oauth2/code/google?code=abc&state={state}")

    user_json = json.loads(parse_qs(urlsplit(resp.headers["Location"]).query)["user"][0])
    assert user_json["id"] == existing.id
    assert existing.image_url == "https://img/j.png"
    assert existing.provider is AuthProvider.LOCAL


def test_callback_with_unknown_state(client) -> None:
    assert_error(
        client.get("/login/oauth2/code/google?code=abc&state=forged"),
        400,
        "invalid_oauth2_state",
    )


@responses.activate
def test_state_cannot_be_replayed(client) -> None:
    _mock_google()
    state = _state_from(client.get("/oauth2/authorization/google").headers["Location"])

    assert client.get(f"/login/oauth2/code/google?code=abc&state={state}").status_code == 302
    assert client.get(f"/login/oauth2/code/google?code=abc&state={state}").status_code == 400


@responses.activate
def test_provider_failure_is_bad_gateway(client) -> None:
    responses.add(responses.POST, "https://oauth2.googleapis.com/token", status=500)
    state = _state_from(client.get("/oauth2/authorization/google").headers["Location"])

    resp = client.get(f"/login/oauth2/code/google?code=abc&state={state}")

    assert_error(resp, 502, "oauth2_exchange_failed")
