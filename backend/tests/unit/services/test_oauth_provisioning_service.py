"""Unit tests for OAuth2 user provisioning and the login hand-off."""

from __future__ import annotations

import json
from urllib.parse import parse_qs, urlsplit

import pytest
from storefront.models.user import AuthProvider, User
from storefront.services._shared.errors import (
    InvalidCredentialsError,
    MissingProviderEmailError,
    OAuth2StateError,
    UnknownProviderError,
)
from storefront.services.oauth import OAuth2ProvisioningService, split_name
from tests.factories.user import OAuthUserFactory, UserFactory


class StubOAuth2Client:
    """In-process stand-in for the provider HTTP client."""

    def __init__(self, profile: dict) -> None:
        self.profile = profile
        self.calls: list[tuple[str, str, str]] = []

    def supports(self, provider: str) -> bool:
        return provider.lower() in {"google", "github"}

    def authorization_url(self, provider: str, *, state: str, redirect_uri: str) -> str:
        return f"https://idp.test/{provider}/authorize?state={state}"

    def fetch_profile(self, provider: str, *, code: str, redirect_uri: str) -> dict:
        self.calls.append((provider, code, redirect_uri))
        return dict(self.profile)


JANE = {"id": "g-123", "email": "jane@example.com", "name": "Jane Doe", "picture": "https://img/jane.png"}


@pytest.fixture()
def client_stub() -> StubOAuth2Client:
    return StubOAuth2Client(JANE)


@pytest.fixture()
def service(tokens, cache, client_stub) -> OAuth2ProvisioningService:
    return OAuth2ProvisioningService(
        tokens=tokens,
        cache=cache,
        client=client_stub,
        success_redirect_url="http://frontend.test/oauth2/redirect",
    )


@pytest.mark.parametrize(
    "name, expected",
    [
        ("Jane Doe", ("Jane", "Doe")),
        ("Mary Ann Smith", ("Mary", "Ann Smith")),
        ("Cher", ("Cher", "")),
        ("", ("", "")),
        (None, ("", "")),
    ],
)
def test_split_name(name, expected):
    assert split_name(name) == expected


def test_provision_creates_user(service, session):
    user = service.provision("google", JANE)

    stored = session.get(User, user.id)
    assert stored.email == "jane@example.com"
    assert (stored.first_name, stored.last_name) == ("Jane", "Doe")
    assert stored.roles == ["USER"]
    assert stored.provider is AuthProvider.GOOGLE
    assert stored.provider_id == "g-123"
    assert stored.image_url == "https://img/jane.png"
    assert stored.is_active is True
    assert stored.password_hash is None


def test_provision_patches_missing_image_only(service, session):
    existing = UserFactory(email="jane@example.com", first_name="Janet", image_url=None)

    user = service.provision("google", JANE)

    assert user.id == existing.id
    assert user.first_name == "Janet"
    assert user.image_url == "https://img/jane.png"
    # Provider stays as originally registered.
    assert user.provider is AuthProvider.LOCAL


def test_provision_keeps_existing_image(service):
    OAuthUserFactory(email="jane@example.com", image_url="https://img/old.png")

    user = service.provision("google", JANE)

    assert user.image_url == "https://img/old.png"


def test_provision_requires_email(service):
    with pytest.raises(MissingProviderEmailError):
        service.provision("google", {"name": "No Mail"})
    with pytest.raises(MissingProviderEmailError):
        service.provision("google", {**JANE, "email": ""})


def test_provision_rejects_deactivated_account(service):
    UserFactory(email="jane@example.com", is_active=False)

    with pytest.raises(InvalidCredentialsError):
        service.provision("google", JANE)


def test_provision_unknown_provider(service):
    with pytest.raises(UnknownProviderError):
        service.provision("myspace", JANE)


def test_complete_login_builds_redirect(service, tokens):
    url = service.complete_login("google", JANE)

    parts = urlsplit(url)
    assert f"{parts.scheme}://{parts.netloc}{parts.path}" == "http://frontend.test/oauth2/redirect"
    query = parse_qs(parts.query)
    user = json.loads(query["user"][0])
    assert user["email"] == "jane@example.com"
    assert user["firstName"] == "Jane"
    assert user["lastName"] == "Doe"
    assert user["imageUrl"] == "https://img/jane.png"
    assert user["roles"] == ["USER"]
    assert tokens.validate(query["token"][0]).subject_id == user["id"]
    assert query["refreshToken"][0]


def test_begin_then_callback(service, client_stub, cache):
    consent = service.begin("google", redirect_uri="http://testserver/cb")
    state = parse_qs(urlsplit(consent).query)["state"][0]
    assert cache.get(f"oauth2_state:{state}") == "google"
    assert 0 < cache.ttl(f"oauth2_state:{state}") <= 600

    url = service.callback("google", code="abc", state=state, redirect_uri="http://testserver/cb")

    assert url.startswith("http://frontend.test/oauth2/redirect?")
    assert client_stub.calls == [("google", "abc", "http://testserver/cb")]
    # State is single use.
    with pytest.raises(OAuth2StateError):
        service.callback("google", code="abc", state=state, redirect_uri="http://testserver/cb")


def test_callback_rejects_state_from_other_provider(service):
    consent = service.begin("github", redirect_uri="http://testserver/cb")
    state = parse_qs(urlsplit(consent).query)["state"][0]

    with pytest.raises(OAuth2StateError):
        service.callback("google", code="abc", state=state, redirect_uri="http://testserver/cb")


def test_begin_unsupported_provider(service):
    with pytest.raises(UnknownProviderError):
        service.begin("facebook", redirect_uri="http://testserver/cb")
