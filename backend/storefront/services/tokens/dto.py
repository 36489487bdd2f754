from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

ACCESS = "access"
REFRESH = "refresh"


@dataclass(frozen=True, slots=True)
class TokenSettings:
    """
    Token emission and cache-layout configuration.

    :param access_expires: Access token lifetime (and cache TTL).
    :type access_expires: timedelta
    :param refresh_expires: Refresh token lifetime (and cache TTL).
    :type refresh_expires: timedelta
    :param token_prefix: Prefix of the "current token" pointer keys.
    :type token_prefix: str
    :param blacklist_prefix: Prefix of the blacklist keys.
    :type blacklist_prefix: str
    """

    access_expires: timedelta = timedelta(hours=1)
    refresh_expires: timedelta = timedelta(days=7)
    token_prefix: str = "token:"
    blacklist_prefix: str = "blacklist:"

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> TokenSettings:
        """Build settings from a Flask config (or any mapping)."""
        return cls(
            access_expires=timedelta(seconds=int(config.get("ACCESS_TOKEN_EXPIRES_SECONDS", 3600))),
            refresh_expires=timedelta(
                seconds=int(config.get("REFRESH_TOKEN_EXPIRES_SECONDS", 7 * 24 * 3600))
            ),
        )

    def pointer_key(self, subject_id: str, token_type: str = ACCESS) -> str:
        """``token:<id>`` for access tokens, ``token:<id>:refresh`` for refresh tokens."""
        key = f"{self.token_prefix}{subject_id}"
        return f"{key}:{REFRESH}" if token_type == REFRESH else key

    def blacklist_key(self, token: str) -> str:
        return f"{self.blacklist_prefix}{token}"


@dataclass(frozen=True, slots=True)
class TokenPair:
    """
    Access and refresh tokens minted together.

    :param access_token: Encoded access JWT.
    :param refresh_token: Encoded refresh JWT.
    :param expires_in: Access token lifetime in seconds.
    """

    access_token: str
    refresh_token: str
    expires_in: int


@dataclass(frozen=True, slots=True)
class TokenClaims:
    """
    Verified view of a bearer token.

    :param subject_id: Credential record id carried in ``sub``.
    :param roles: Role names embedded at issuance time.
    :param token_type: ``"access"`` or ``"refresh"``.
    :param expires_at: Expiry instant (UTC).
    """

    subject_id: str
    roles: frozenset[str]
    token_type: str
    expires_at: datetime
