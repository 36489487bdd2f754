from __future__ import annotations

from datetime import timedelta
from typing import Any, Literal, Protocol

TokenKind = Literal["access", "refresh"]


class TokenProvider(Protocol):
    """
    Signs and decodes bearer JWTs.

    Issued tokens carry ``sub``, ``type`` (the ``kind``), ``iat``, ``exp``
    and any ``claims`` passed in. ``decode`` lets the signing library's own
    exceptions escape; :class:`~storefront.services.tokens.TokenService`
    sorts them into expired, bad-signature and malformed.
    """

    def sign(
        self,
        *,
        identity: str,
        kind: TokenKind,
        claims: dict[str, Any],
        expires_delta: timedelta,
    ) -> str: ...

    def decode(self, token: str, *, allow_expired: bool = False) -> dict[str, Any]: ...
