"""Reverse-proxy awareness."""

from __future__ import annotations

from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix


def init_app(app: Flask) -> None:
    """Wrap the WSGI app in :class:`ProxyFix` when ``USE_PROXYFIX`` is set.

    ``X-Forwarded-For`` is left alone (``x_for=0``): the rate limiter reads
    it directly, and rewriting ``remote_addr`` here would make the
    ``X-Real-IP`` and peer fallbacks unreachable.
    """
    if not app.config.get("USE_PROXYFIX", False):
        return
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=0, x_proto=1, x_host=1, x_prefix=1)
