"""Application settings with environment-based simple classes."""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from typing import Any, Final

from dotenv import load_dotenv

# Public selector env var
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'


# Loads .env in development (no-op when the file is missing)
load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """``1``, ``true``, ``yes``, ``y`` or ``on`` (any case) read as ``True``."""
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def env_int(name: str, default: int) -> int:
    """Parse an integer from an environment variable, falling back to ``default``."""
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    return int(val)


def env_json(name: str, default: Mapping[str, Any]) -> dict[str, Any]:
    """Parse a JSON object from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable holding a JSON document.
    default: Mapping[str, Any]
        Value copied and returned when the variable is unset or blank.

    Returns
    -------
    dict[str, Any]
        Decoded mapping.

    Raises
    ------
    ValueError
        If the variable is set but does not decode to a JSON object.
    """
    val = os.getenv(name)
    if val is None or not val.strip():
        return dict(default)
    decoded = json.loads(val)
    if not isinstance(decoded, dict):
        raise ValueError(f"{name} must contain a JSON object")
    return decoded


def _oauth2_provider_from_env(prefix: str) -> dict[str, str]:
    return {
        "client_id": os.getenv(f"{prefix}_CLIENT_ID", ""),
        "client_secret": os.getenv(f"{prefix}_CLIENT_SECRET", ""),
    }


class BaseConfig:
    """Settings shared by every environment, read from the process environment.

    Security-relevant keys:

    * ``JWT_SECRET_KEY`` / ``JWT_ALGORITHM``: HMAC key and algorithm (``HS512``
      needs at least 64 bytes of key).
    * ``ACCESS_TOKEN_EXPIRES_SECONDS`` / ``REFRESH_TOKEN_EXPIRES_SECONDS``: token
      lifetimes, reused as the TTL of ``token:<id>`` and ``token:<id>:refresh``.
    * ``REDIS_URL``: shared cache; empty selects the in-memory cache.
    * ``RATE_LIMIT_*``: login and API ceilings.
    * ``OAUTH2_PROVIDERS``: client credentials and endpoint overrides per provider.
    * ``CORS_ORIGINS``: comma-separated origins, or ``*``.
    """

    API_BASE_PREFIX = "/api"

    # Secrets / security
    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "CHANGE_ME_JWT")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS512")
    ACCESS_TOKEN_EXPIRES_SECONDS = env_int("ACCESS_TOKEN_EXPIRES_SECONDS", 3600)
    REFRESH_TOKEN_EXPIRES_SECONDS = env_int("REFRESH_TOKEN_EXPIRES_SECONDS", 7 * 24 * 3600)

    # DB
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)

    # Cache
    REDIS_URL = os.getenv("REDIS_URL", "")

    # Rate limiting
    RATE_LIMIT_ENABLED = env_bool("RATE_LIMIT_ENABLED", True)
    RATE_LIMIT_LOGIN_MAX = env_int("RATE_LIMIT_LOGIN_MAX", 5)
    RATE_LIMIT_LOGIN_WINDOW_SECONDS = env_int("RATE_LIMIT_LOGIN_WINDOW_SECONDS", 15 * 60)
    RATE_LIMIT_PER_MINUTE = env_int("RATE_LIMIT_PER_MINUTE", 60)
    RATE_LIMIT_PER_HOUR = env_int("RATE_LIMIT_PER_HOUR", 1000)

    # OAuth2
    OAUTH2_PROVIDERS = env_json(
        "OAUTH2_PROVIDERS",
        {
            "google": _oauth2_provider_from_env("GOOGLE"),
            "facebook": _oauth2_provider_from_env("FACEBOOK"),
            "github": _oauth2_provider_from_env("GITHUB"),
        },
    )
    OAUTH2_REDIRECT_URI_TEMPLATE = os.getenv(
        "OAUTH2_REDIRECT_URI_TEMPLATE", "http://localhost:8000/login/oauth2/code/{provider}"
    )
    OAUTH2_SUCCESS_REDIRECT_URL = os.getenv(
        "OAUTH2_SUCCESS_REDIRECT_URL", "http://localhost:3000/oauth2/redirect"
    )
    OAUTH2_HTTP_TIMEOUT_SECONDS = env_int("OAUTH2_HTTP_TIMEOUT_SECONDS", 10)

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    # Logging, CORS & proxy
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:3000")
    USE_PROXYFIX = env_bool("USE_PROXYFIX", False)

    # Flask built-ins
    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Local runs: debug on, in-memory cache unless ``REDIS_URL`` is set."""

    DEBUG = env_bool("FLASK_DEBUG", True)
    CORS_MAX_AGE = 600


class TestingConfig(BaseConfig):
    """Test runs: in-memory SQLite, no Redis, rate limiting left enabled."""

    TESTING = True
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    REDIS_URL = ""


class ProductionConfig(BaseConfig):
    """Behind a reverse proxy; ``X-Forwarded-Proto``/``Host`` are trusted."""

    USE_PROXYFIX = env_bool("USE_PROXYFIX", True)


CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Config class named by ``APP_ENV``; unknown or unset means development."""
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)
