"""API blueprints and their mount points."""

from __future__ import annotations

from flask import Blueprint

# Import blueprints *only here* to keep imports localized and avoid cycles.
from .admin import bp as admin_bp  # noqa: E402
from .auth import bp as auth_bp  # noqa: E402
from .health import bp as health_bp  # noqa: E402
from .oauth import bp as oauth_bp  # noqa: E402
from .users import bp as users_bp  # noqa: E402

# Each tuple: (blueprint, url_prefix_relative_to_api_base)
API_REGISTRY: list[tuple[Blueprint, str]] = [
    (health_bp, ""),  # -> /api/health
    (auth_bp, "/auth"),  # -> /api/auth
    (users_bp, "/users"),
    (admin_bp, "/admin"),
]

# Browser-facing OAuth2 routes live outside the API prefix.
ROOT_REGISTRY: list[tuple[Blueprint, str]] = [
    (oauth_bp, ""),
]
