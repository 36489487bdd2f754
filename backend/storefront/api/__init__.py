"""HTTP surface: the security gate plus the auth, profile, admin and OAuth2 blueprints."""

from __future__ import annotations

from collections.abc import Iterable

from flask import Blueprint, Flask


def register_blueprint_group(
    app: Flask,
    *,
    base_prefix: str,
    entries: Iterable[tuple[Blueprint, str]],
) -> None:
    """Mount each ``(blueprint, relative_prefix)`` under ``base_prefix``.

    Segments are joined with single slashes; when both are empty the
    blueprint lands on the application root (``/oauth2/...``).
    """
    for bp, rel_prefix in entries:
        segments = [s for s in (base_prefix.strip("/"), rel_prefix.strip("/")) if s]
        app.register_blueprint(bp, url_prefix="/" + "/".join(segments) if segments else None)


def init_app(app: Flask) -> None:
    """Install the security gate, then every blueprint behind it."""
    from storefront.api import pipeline
    from storefront.api.routes import API_REGISTRY, ROOT_REGISTRY

    pipeline.init_app(app)
    register_blueprint_group(
        app, base_prefix=app.config.get("API_BASE_PREFIX", "/api"), entries=API_REGISTRY
    )
    register_blueprint_group(app, base_prefix="", entries=ROOT_REGISTRY)


__all__ = ["init_app", "register_blueprint_group"]
