from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from flask_jwt_extended import create_access_token, create_refresh_token, decode_token

from storefront.services._shared.ports import TokenProvider
from storefront.services._shared.ports.token_provider import TokenKind


@dataclass(slots=True)
class JWTTokenProvider(TokenProvider):
    """
    :class:`TokenProvider` over Flask-JWT-Extended.

    Key and algorithm come from ``JWT_SECRET_KEY`` / ``JWT_ALGORITHM`` of the
    current app, so calls need an application context.
    """

    def sign(
        self,
        *,
        identity: str,
        kind: TokenKind,
        claims: dict[str, Any],
        expires_delta: timedelta,
    ) -> str:
        create = create_refresh_token if kind == "refresh" else create_access_token
        return create(identity=identity, additional_claims=claims, expires_delta=expires_delta)

    def decode(self, token: str, *, allow_expired: bool = False) -> dict[str, Any]:
        return decode_token(token, allow_expired=allow_expired)
