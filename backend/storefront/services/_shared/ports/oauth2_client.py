from __future__ import annotations

from typing import Any, Protocol


class OAuth2ProfileClient(Protocol):
    """
    Port for talking to third-party OAuth2 providers.

    Profiles are normalized to the keys ``id``, ``email``, ``name`` and
    ``picture`` regardless of the provider's own attribute names.
    """

    def supports(self, provider: str) -> bool: ...

    def authorization_url(self, provider: str, *, state: str, redirect_uri: str) -> str: ...

    def fetch_profile(self, provider: str, *, code: str, redirect_uri: str) -> dict[str, Any]: ...
