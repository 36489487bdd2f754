"""Application factory."""

from __future__ import annotations

from flask import Flask

from storefront import api, cli
from storefront.core import cors, errors, extensions, logger, proxy
from storefront.core.config import BaseConfig, get_config


def create_app(config: type[BaseConfig] | object | None = None) -> Flask:
    """
    Build the storefront security service.

    Order matters: extensions (database, JWT, cache) must exist before the
    API package builds the token service and rate limiter on top of them,
    and error handlers are attached once every blueprint is registered.

    :param config: Config class or object; defaults to the one selected by
        ``APP_ENV``.
    """
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config if config is not None else get_config())
    app.config.from_pyfile("config.py", silent=True)

    logger.configure_logging(app.config.get("LOG_LEVEL", "INFO"))
    proxy.init_app(app)
    extensions.init_app(app)
    logger.init_app(app)
    cors.init_app(app)
    api.init_app(app)
    errors.init_app(app)
    cli.init_app(app)
    return app
