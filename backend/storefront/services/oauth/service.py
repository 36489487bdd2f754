from __future__ import annotations

import json
import logging
import secrets
from collections.abc import Mapping
from typing import Any
from urllib.parse import urlencode

from storefront.models.user import AuthProvider, Role, User
from storefront.services._shared.base import BaseService, ServiceContext
from storefront.services._shared.errors import (
    InvalidCredentialsError,
    MissingProviderEmailError,
    OAuth2StateError,
    UnknownProviderError,
)
from storefront.services._shared.ports import KeyValueCache, OAuth2ProfileClient
from storefront.services.tokens import TokenPair, TokenService

log = logging.getLogger(__name__)

STATE_TTL_SECONDS = 600
NAME_MAX = 50


def split_name(name: str | None) -> tuple[str, str]:
    """Split on the first space; either half falls back to ``""``."""
    if not name:
        return "", ""
    first, _, last = name.strip().partition(" ")
    return first[:NAME_MAX], last.strip()[:NAME_MAX]


def provider_from_registration(registration_id: str) -> AuthProvider:
    try:
        return AuthProvider(registration_id.strip().upper())
    except ValueError as exc:
        raise UnknownProviderError(f"Unsupported OAuth2 provider: {registration_id}") from exc


class OAuth2ProvisioningService(BaseService):
    """
    Third-party login: state handling, user provisioning and token hand-off.

    The provider's profile is trusted for ``email``, ``name`` and
    ``picture``. Existing active accounts are matched by email and only
    gain missing fields.
    """

    def __init__(
        self,
        *,
        tokens: TokenService,
        cache: KeyValueCache,
        client: OAuth2ProfileClient | None = None,
        success_redirect_url: str = "http://localhost:3000/oauth2/redirect",
        ctx: ServiceContext | None = None,
    ) -> None:
        super().__init__(ctx=ctx)
        self.tokens = tokens
        self.cache = cache
        self.client = client
        self.success_redirect_url = success_redirect_url

    # ------------------------------------------------------------------ #
    # Provisioning
    # ------------------------------------------------------------------ #

    def provision(self, registration_id: str, profile: Mapping[str, Any]) -> User:
        """
        Find or create the credential record behind a provider profile.

        :param registration_id: Provider name (``google``, ``github``...).
        :param profile: Normalized profile with ``email``, ``name``, ``picture``
            and ``id``.
        :returns: The persisted user.
        :raises MissingProviderEmailError: When the profile carries no email.
        :raises InvalidCredentialsError: When the email belongs to a
            deactivated account.
        """
        email = (profile.get("email") or "").strip()
        if not email:
            raise MissingProviderEmailError()
        name = profile.get("name")
        picture = profile.get("picture") or None
        provider = provider_from_registration(registration_id)

        with self.rw_uow() as uow:
            user = uow.users.get_active_by_email(email)
            if user is not None:
                changed = False
                if user.image_url is None and picture:
                    user.image_url = picture
                    changed = True
                if user.provider is None:
                    user.provider = provider
                    changed = True
                if changed:
                    uow.users.flush()
                    log.info("oauth2.user_updated", extra={"subject_id": user.id})
                return user

            if uow.users.exists_by_email(email):
                raise InvalidCredentialsError("Account is deactivated")

            first_name, last_name = split_name(name)
            ext_id = profile.get("id")
            user = User(
                email=email,
                first_name=first_name,
                last_name=last_name,
                image_url=picture,
                provider=provider,
                provider_id=str(ext_id) if ext_id is not None else None,
                roles=[Role.USER],
                is_active=True,
            )
            uow.users.add(user)

        log.info("oauth2.user_created", extra={"subject_id": user.id, "reason": provider.value})
        return user

    def complete_login(self, registration_id: str, profile: Mapping[str, Any]) -> str:
        """Provision, mint tokens and return the frontend redirect URL."""
        user = self.provision(registration_id, profile)
        pair = self.tokens.issue(user.id, user.roles)
        return self.build_redirect_url(user, pair, picture=profile.get("picture"))

    def build_redirect_url(self, user: User, pair: TokenPair, *, picture: str | None = None) -> str:
        user_json = json.dumps(
            {
                "id": user.id,
                "email": user.email,
                "firstName": user.first_name,
                "lastName": user.last_name,
                "imageUrl": user.image_url or picture,
                "roles": list(user.roles),
            },
            separators=(",", ":"),
        )
        query = urlencode(
            {"token": pair.access_token, "refreshToken": pair.refresh_token, "user": user_json}
        )
        sep = "&" if "?" in self.success_redirect_url else "?"
        return f"{self.success_redirect_url}{sep}{query}"

    # ------------------------------------------------------------------ #
    # Authorization-code flow
    # ------------------------------------------------------------------ #

    def _require_client(self, registration_id: str) -> OAuth2ProfileClient:
        if self.client is None or not self.client.supports(registration_id):
            raise UnknownProviderError(f"Unsupported OAuth2 provider: {registration_id}")
        return self.client

    @staticmethod
    def state_key(state: str) -> str:
        return f"oauth2_state:{state}"

    def begin(self, registration_id: str, *, redirect_uri: str) -> str:
        """Create a one-time ``state`` and return the provider consent URL."""
        client = self._require_client(registration_id)
        state = secrets.token_urlsafe(24)
        self.cache.set(self.state_key(state), registration_id.lower(), STATE_TTL_SECONDS)
        return client.authorization_url(registration_id, state=state, redirect_uri=redirect_uri)

    def callback(self, registration_id: str, *, code: str, state: str, redirect_uri: str) -> str:
        """
        Finish the authorization-code flow and return the frontend redirect.

        :raises OAuth2StateError: Unknown, expired, reused or cross-provider state.
        """
        client = self._require_client(registration_id)
        if not state or not code:
            raise OAuth2StateError("Missing code or state")
        key = self.state_key(state)
        expected = self.cache.get(key)
        self.cache.delete(key)
        if expected is None or expected != registration_id.lower():
            raise OAuth2StateError()
        profile = client.fetch_profile(registration_id, code=code, redirect_uri=redirect_uri)
        return self.complete_login(registration_id, profile)
