"""OAuth2 authorization-code client for Google, Facebook and GitHub over ``requests``."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode

import requests

from storefront.services._shared.errors import OAuth2ExchangeError, UnknownProviderError

log = logging.getLogger(__name__)

DEFAULT_ENDPOINTS: dict[str, dict[str, str]] = {
    "google": {
        "authorize_url": "https://accounts.google.com/o/oauth2/v2/auth",
        "token_url": "https://oauth2.googleapis.com/token",
        "userinfo_url": "https://openidconnect.googleapis.com/v1/userinfo",
        "scope": "openid email profile",
    },
    "facebook": {
        "authorize_url": "https://www.facebook.com/v18.0/dialog/oauth",
        "token_url": "https://graph.facebook.com/v18.0/oauth/access_token",
        "userinfo_url": "https://graph.facebook.com/me?fields=id,name,email,picture",
        "scope": "email public_profile",
    },
    "github": {
        "authorize_url": "https://github.com/login/oauth/authorize",
        "token_url": "https://github.com/login/oauth/access_token",
        "userinfo_url": "https://api.github.com/user",
        "emails_url": "https://api.github.com/user/emails",
        "scope": "read:user user:email",
    },
}


@dataclass(frozen=True, slots=True)
class ProviderConfig:
    """
    Client registration for one provider.

    :param name: Lower-case registration id (``google``, ``github``...).
    :param emails_url: GitHub only; consulted when the profile hides the email.
    """

    name: str
    client_id: str
    client_secret: str
    authorize_url: str
    token_url: str
    userinfo_url: str
    scope: str
    emails_url: str | None = None


def build_registry(raw: Mapping[str, Mapping[str, Any]]) -> dict[str, ProviderConfig]:
    """
    Merge configured credentials with the built-in endpoint defaults.

    Providers without a ``client_id`` are left out.
    """
    registry: dict[str, ProviderConfig] = {}
    for name, values in raw.items():
        key = name.strip().lower()
        merged: dict[str, Any] = {**DEFAULT_ENDPOINTS.get(key, {}), **dict(values)}
        if not merged.get("client_id"):
            continue
        missing = [f for f in ("authorize_url", "token_url", "userinfo_url") if not merged.get(f)]
        if missing:
            raise ValueError(f"OAuth2 provider {key!r} is missing {missing}")
        registry[key] = ProviderConfig(
            name=key,
            client_id=str(merged["client_id"]),
            client_secret=str(merged.get("client_secret", "")),
            authorize_url=str(merged["authorize_url"]),
            token_url=str(merged["token_url"]),
            userinfo_url=str(merged["userinfo_url"]),
            scope=str(merged.get("scope", "")),
            emails_url=merged.get("emails_url"),
        )
    return registry


def normalize_profile(provider: str, data: Mapping[str, Any]) -> dict[str, Any]:
    """Map provider attributes onto ``id``, ``email``, ``name`` and ``picture``."""
    picture = data.get("picture")
    if isinstance(picture, Mapping):  # Facebook: {"data": {"url": ...}}
        picture = (picture.get("data") or {}).get("url")
    if provider == "github":
        picture = picture or data.get("avatar_url")
    ext_id = data.get("sub") or data.get("id")
    return {
        "id": str(ext_id) if ext_id is not None else None,
        "email": data.get("email"),
        "name": data.get("name") or data.get("login"),
        "picture": picture,
    }


class OAuth2Client:
    """Authorization-code grant plus userinfo lookup using ``requests``."""

    def __init__(
        self,
        providers: Mapping[str, ProviderConfig],
        *,
        timeout: float = 10,
        session: requests.Session | None = None,
    ) -> None:
        self.providers = dict(providers)
        self.timeout = timeout
        self.http = session or requests.Session()

    def supports(self, provider: str) -> bool:
        return provider.lower() in self.providers

    def _config(self, provider: str) -> ProviderConfig:
        cfg = self.providers.get(provider.lower())
        if cfg is None:
            raise UnknownProviderError(f"Unsupported OAuth2 provider: {provider}")
        return cfg

    def authorization_url(self, provider: str, *, state: str, redirect_uri: str) -> str:
        cfg = self._config(provider)
        params = {
            "response_type": "code",
            "client_id": cfg.client_id,
            "redirect_uri": redirect_uri,
            "scope": cfg.scope,
            "state": state,
        }
        return f"{cfg.authorize_url}?{urlencode(params)}"

    def fetch_profile(self, provider: str, *, code: str, redirect_uri: str) -> dict[str, Any]:
        """
        Exchange ``code`` for a provider access token and load the profile.

        :raises OAuth2ExchangeError: On transport errors, non-2xx answers, or
            a token response without ``access_token``.
        """
        cfg = self._config(provider)
        token_payload = self._request_json(
            "POST",
            cfg.token_url,
            data={
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": redirect_uri,
                "client_id": cfg.client_id,
                "client_secret": cfg.client_secret,
            },
        )
        access_token = token_payload.get("access_token")
        if not access_token:
            raise OAuth2ExchangeError("Provider did not return an access token")

        auth = {"Authorization": f"Bearer {access_token}"}
        profile = normalize_profile(cfg.name, self._request_json("GET", cfg.userinfo_url, headers=auth))

        if not profile.get("email") and cfg.emails_url:
            profile["email"] = self._primary_email(cfg.emails_url, auth)
        return profile

    def _primary_email(self, url: str, headers: dict[str, str]) -> str | None:
        emails = self._request_json("GET", url, headers=headers)
        if not isinstance(emails, list):
            return None
        for entry in emails:
            if entry.get("primary") and entry.get("verified"):
                return entry.get("email")
        return None

    def _request_json(self, method: str, url: str, **kwargs: Any) -> Any:
        headers = {"Accept": "application/json", **kwargs.pop("headers", {})}
        try:
            resp = self.http.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
            resp.raise_for_status()
            return resp.json()
        except ValueError as exc:
            raise OAuth2ExchangeError("Provider returned invalid JSON") from exc
        except requests.RequestException as exc:
            log.warning("oauth2.http_failed", extra={"path": url, "reason": type(exc).__name__})
            raise OAuth2ExchangeError() from exc
