from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable, Iterable
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from flask_jwt_extended.exceptions import JWTDecodeError

from storefront.services._shared.errors import (
    InvalidRefreshTokenError,
    TokenBadSignatureError,
    TokenExpiredError,
    TokenMalformedError,
    TokenRevokedError,
)
from storefront.services._shared.ports import KeyValueCache, TokenProvider
from storefront.services.tokens.dto import (
    ACCESS,
    REFRESH,
    TokenClaims,
    TokenPair,
    TokenSettings,
)

log = logging.getLogger(__name__)


class TokenService:
    """
    Bearer token lifecycle: issue, validate, blacklist, refresh, revoke-all.

    Signed tokens are mirrored into the cache under ``token:<id>`` and
    ``token:<id>:refresh``. A token is *currently valid* when its signature and
    expiry check out, it equals the value stored under its pointer key, and
    it is absent from the blacklist. Overwriting the pointer on every issue
    leaves a single active token per kind and subject (last writer wins).
    """

    def __init__(
        self,
        *,
        token_provider: TokenProvider,
        cache: KeyValueCache,
        settings: TokenSettings | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        """
        Initialize the service with its dependencies.

        :param token_provider: Adapter for signing/decoding JWTs.
        :param cache: Key-value cache holding pointers and blacklist entries.
        :param settings: Lifetimes and key layout.
        :param clock: Epoch-seconds source for remaining-lifetime math.
        """
        self.tokens = token_provider
        self.cache = cache
        self.settings = settings or TokenSettings()
        self._clock = clock or (lambda: time.time())

    # ------------------------------------------------------------------ #
    # Issue
    # ------------------------------------------------------------------ #

    def issue(self, subject_id: str, roles: Iterable[str]) -> TokenPair:
        """
        Mint an access/refresh pair and record both as current.

        :param subject_id: Credential record id.
        :param roles: Role names embedded in both tokens.
        :returns: The new token pair.
        """
        subject = str(subject_id)
        claims = {"roles": sorted({str(r) for r in roles})}
        access = self._mint_access(subject, claims)
        refresh = self.tokens.sign(
            identity=subject,
            kind=REFRESH,
            claims=claims,
            expires_delta=self.settings.refresh_expires,
        )
        self.cache.set(
            self.settings.pointer_key(subject, REFRESH),
            refresh,
            self._seconds(self.settings.refresh_expires),
        )
        log.info("tokens.issued", extra={"subject_id": subject})
        return TokenPair(
            access_token=access,
            refresh_token=refresh,
            expires_in=self._seconds(self.settings.access_expires),
        )

    # ------------------------------------------------------------------ #
    # Validate
    # ------------------------------------------------------------------ #

    def validate(self, token: str, *, expected_type: str = ACCESS) -> TokenClaims:
        """
        Verify a bearer token and return its claims.

        :param token: Encoded JWT.
        :param expected_type: ``"access"`` (default) or ``"refresh"``.
        :returns: Verified claims.
        :raises TokenExpiredError: Signature fine but ``exp`` has passed.
        :raises TokenBadSignatureError: Signed with another key.
        :raises TokenMalformedError: Not a JWT, missing claims, or wrong type.
        :raises TokenRevokedError: Superseded, revoked, or blacklisted.
        """
        claims = self._verify(token)
        if claims.token_type != expected_type:
            raise TokenMalformedError(f"Expected an {expected_type} token")
        self._ensure_current(token, claims)
        return claims

    # ------------------------------------------------------------------ #
    # Blacklist
    # ------------------------------------------------------------------ #

    def blacklist(self, token: str) -> bool:
        """
        Blacklist ``token`` for the rest of its natural lifetime.

        :param token: Encoded JWT (access or refresh).
        :returns: ``True`` if an entry was written, ``False`` when the token
            had already expired.
        :raises TokenBadSignatureError: If the token was not signed by us.
        :raises TokenMalformedError: If the token cannot be decoded.
        """
        payload = self._decode(token, allow_expired=True)
        remaining = float(payload["exp"]) - self._clock()
        if remaining <= 0:
            log.info("tokens.blacklist_skipped_expired")
            return False
        subject = str(payload.get("sub", ""))
        self.cache.set(self.settings.blacklist_key(token), subject, math.ceil(remaining))
        log.info("tokens.blacklisted", extra={"subject_id": subject})
        return True

    def is_blacklisted(self, token: str) -> bool:
        return self.cache.exists(self.settings.blacklist_key(token))

    # ------------------------------------------------------------------ #
    # Refresh
    # ------------------------------------------------------------------ #

    def refresh(self, refresh_token: str) -> str:
        """
        Mint a new access token from a currently valid refresh token.

        The refresh token itself is not rotated. The new access token replaces
        the subject's current access pointer.

        :param refresh_token: Encoded refresh JWT.
        :returns: New encoded access token.
        :raises TokenExpiredError: If the refresh token has expired.
        :raises InvalidRefreshTokenError: Wrong token type, superseded, revoked
            or blacklisted.
        """
        claims = self._verify(refresh_token)
        if claims.token_type != REFRESH:
            raise InvalidRefreshTokenError("Token is not a refresh token")
        try:
            self._ensure_current(refresh_token, claims)
        except TokenRevokedError as exc:
            raise InvalidRefreshTokenError(exc.message) from exc
        log.info("tokens.refreshed", extra={"subject_id": claims.subject_id})
        return self._mint_access(claims.subject_id, {"roles": sorted(claims.roles)})

    # ------------------------------------------------------------------ #
    # Revoke
    # ------------------------------------------------------------------ #

    def revoke_all(self, subject_id: str) -> None:
        """Drop both pointers so every outstanding token for the subject fails."""
        subject = str(subject_id)
        self.cache.delete(
            self.settings.pointer_key(subject, ACCESS),
            self.settings.pointer_key(subject, REFRESH),
        )
        log.info("tokens.revoked_all", extra={"subject_id": subject})

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    @staticmethod
    def _seconds(delta: timedelta) -> int:
        return max(1, int(delta.total_seconds()))

    def _mint_access(self, subject: str, claims: dict[str, Any]) -> str:
        access = self.tokens.sign(
            identity=subject,
            kind=ACCESS,
            claims=claims,
            expires_delta=self.settings.access_expires,
        )
        self.cache.set(
            self.settings.pointer_key(subject, ACCESS),
            access,
            self._seconds(self.settings.access_expires),
        )
        return access

    def _decode(self, token: str, *, allow_expired: bool = False) -> dict[str, Any]:
        if not token or not isinstance(token, str):
            raise TokenMalformedError("Token is empty")
        try:
            return self.tokens.decode(token, allow_expired=allow_expired)
        except jwt.ExpiredSignatureError as exc:
            raise TokenExpiredError() from exc
        except jwt.InvalidSignatureError as exc:
            raise TokenBadSignatureError() from exc
        except (jwt.InvalidTokenError, JWTDecodeError) as exc:
            raise TokenMalformedError() from exc

    def _verify(self, token: str) -> TokenClaims:
        payload = self._decode(token)
        subject = payload.get("sub")
        token_type = payload.get("type")
        if not subject or token_type not in (ACCESS, REFRESH):
            raise TokenMalformedError("Token is missing required claims")
        roles = payload.get("roles") or []
        if not isinstance(roles, list):
            raise TokenMalformedError("Token roles claim must be a list")
        return TokenClaims(
            subject_id=str(subject),
            roles=frozenset(str(r) for r in roles),
            token_type=str(token_type),
            expires_at=datetime.fromtimestamp(int(payload["exp"]), tz=UTC),
        )

    def _ensure_current(self, token: str, claims: TokenClaims) -> None:
        stored = self.cache.get(self.settings.pointer_key(claims.subject_id, claims.token_type))
        if stored != token:
            raise TokenRevokedError("Token is no longer active")
        if self.is_blacklisted(token):
            raise TokenRevokedError()
