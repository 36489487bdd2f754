"""Cross-origin access for the JSON API."""

from __future__ import annotations

from flask import Flask
from flask_cors import CORS

from storefront.core.logger import REQUEST_ID_HEADER


def parse_origins(raw: str | None) -> list[str] | str:
    """Turn ``CORS_ORIGINS`` into a list, or ``"*"`` when unrestricted."""
    origins = [o.strip() for o in (raw or "").split(",") if o.strip()]
    if not origins or "*" in origins:
        return "*"
    return origins


def init_app(app: Flask) -> None:
    """Expose ``/api/*`` to the configured storefront origins.

    Bearer tokens travel in ``Authorization``, so that header must be
    allowed on preflight. Credentials (cookies) are only allowed for an
    explicit origin list; browsers refuse them with ``*``.
    """
    origins = parse_origins(app.config.get("CORS_ORIGINS"))
    CORS(
        app,
        resources={r"/api/*": {"origins": origins}},
        supports_credentials=origins != "*",
        allow_headers=["Authorization", "Content-Type", REQUEST_ID_HEADER],
        expose_headers=[REQUEST_ID_HEADER],
        max_age=app.config.get("CORS_MAX_AGE", 3600),
    )
