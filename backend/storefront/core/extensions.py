"""Extension singletons and the key-value cache every security component shares."""

from __future__ import annotations

import redis  # type: ignore[import-untyped]
from flask import Flask, current_app
from flask_jwt_extended import JWTManager
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import MetaData

from storefront.infra.redis.redis_cache_store import RedisKeyValueCache
from storefront.services._shared.ports import InMemoryKeyValueCache, KeyValueCache

# Constraint names are referenced by the migration and by ``violates()``.
NAMING_CONVENTION = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

db: SQLAlchemy = SQLAlchemy(
    session_options={"autoflush": False},
    metadata=MetaData(naming_convention=NAMING_CONVENTION),
)
migrate = Migrate(render_as_batch=True)
jwt = JWTManager()

CACHE_EXTENSION_KEY = "kv_cache"


def init_cache(app: Flask) -> KeyValueCache:
    """
    Build the cache that holds token pointers, blacklist entries, rate-limit
    counters and OAuth2 states.

    Without ``REDIS_URL`` the process-local :class:`InMemoryKeyValueCache`
    is used, which is only correct for a single worker.

    :raises RuntimeError: ``REDIS_URL`` is set but the server does not answer.
    """
    redis_url = app.config.get("REDIS_URL")
    if not redis_url:
        app.logger.info("cache.backend in-memory")
        return InMemoryKeyValueCache()

    client = redis.Redis.from_url(redis_url, decode_responses=True)
    try:
        client.ping()
    except RedisError as exc:
        raise RuntimeError(f"Failed to connect to Redis at {redis_url!r}") from exc
    app.logger.info("cache.backend redis")
    return RedisKeyValueCache(client)


def init_app(app: Flask) -> None:
    """Bind SQLAlchemy, Alembic and JWT to ``app`` and attach the cache."""
    db.init_app(app)
    from storefront import models as _models  # noqa: F401  (register tables for Alembic)

    migrate.init_app(app, db)
    jwt.init_app(app)
    app.extensions[CACHE_EXTENSION_KEY] = init_cache(app)


def get_cache(app: Flask | None = None) -> KeyValueCache:
    """Cache attached to ``app``, or to the current app."""
    cache = (app or current_app).extensions.get(CACHE_EXTENSION_KEY)
    if cache is None:
        raise RuntimeError("Key-value cache is not initialized. Call init_app() first.")
    return cache
