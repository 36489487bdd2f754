"""
storefront.services._shared.ports
=================================

Collection of *ports* (hexagonal interfaces) that define the contracts for
token signing and the shared key-value cache.

Modules
-------
- :mod:`token_provider`:
    Defines :class:`~.TokenProvider`, the abstraction for JWT creation and decoding.

- :mod:`cache_store`:
    Defines :class:`~.KeyValueCache` (get/set-with-TTL/incr/delete/exists) and the
    thread-safe :class:`~.InMemoryKeyValueCache` used without Redis.

- :mod:`oauth2_client`:
    Defines :class:`~.OAuth2ProfileClient`, the code-exchange and userinfo contract.

Concrete adapters live under ``storefront.infra``.
"""

from __future__ import annotations

from .cache_store import InMemoryKeyValueCache, KeyValueCache
from .oauth2_client import OAuth2ProfileClient
from .token_provider import TokenProvider

__all__ = [
    "TokenProvider",
    "KeyValueCache",
    "InMemoryKeyValueCache",
    "OAuth2ProfileClient",
]
