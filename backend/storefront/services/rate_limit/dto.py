from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any


class RateLimitPolicy(str, enum.Enum):
    """Which counters gate a request."""

    LOGIN = "login"
    API = "api"
    EXEMPT = "exempt"


@dataclass(frozen=True, slots=True)
class RateLimitSettings:
    """
    Ceilings, windows and path classification for the rate limiter.

    :param login_max_attempts: Allowed attempts per login window.
    :param login_window_seconds: Login window length (fixed, keyed by IP only).
    :param per_minute: General API ceiling per minute window.
    :param per_hour: General API ceiling per hour window.
    :param auth_paths: Exact paths that use the login policy.
    :param api_prefix: Prefix selecting the general API policy.
    :param static_prefixes: Prefixes that are never counted.
    :param enabled: Master switch; when off every request is allowed.
    """

    login_max_attempts: int = 5
    login_window_seconds: int = 15 * 60
    per_minute: int = 60
    per_hour: int = 1000
    auth_paths: frozenset[str] = frozenset(
        {"/api/auth/login", "/api/auth/register", "/api/auth/forgot-password"}
    )
    api_prefix: str = "/api/"
    static_prefixes: tuple[str, ...] = ("/static/", "/css/", "/js/", "/images/", "/favicon.ico")
    enabled: bool = True
    key_prefix: str = "rate_limit:"

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> RateLimitSettings:
        """Build settings from a Flask config (or any mapping)."""
        return cls(
            login_max_attempts=int(config.get("RATE_LIMIT_LOGIN_MAX", 5)),
            login_window_seconds=int(config.get("RATE_LIMIT_LOGIN_WINDOW_SECONDS", 15 * 60)),
            per_minute=int(config.get("RATE_LIMIT_PER_MINUTE", 60)),
            per_hour=int(config.get("RATE_LIMIT_PER_HOUR", 1000)),
            enabled=bool(config.get("RATE_LIMIT_ENABLED", True)),
        )
