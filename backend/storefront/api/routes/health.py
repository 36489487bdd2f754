"""Health check endpoint."""

from __future__ import annotations

import uuid

from flask import Blueprint, current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from storefront.api.deps import cache, json_response, timing
from storefront.core.extensions import db

bp = Blueprint("health", __name__)


@bp.get("/health")
@timing
def healthcheck():
    """Return application, database and cache health information."""

    db_status = "ok"
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError:  # pragma: no cover - depends on DB backend
        current_app.logger.exception("healthcheck.db_error")
        db_status = "fail"

    cache_status = "ok"
    probe = f"health:{uuid.uuid4().hex}"
    try:
        store = cache()
        store.set(probe, "1", 5)
        store.delete(probe)
    except Exception:  # pragma: no cover - depends on cache backend
        current_app.logger.exception("healthcheck.cache_error")
        cache_status = "fail"

    healthy = db_status == "ok" and cache_status == "ok"
    payload = {
        "status": "ok" if healthy else "degraded",
        "db": db_status,
        "cache": cache_status,
        "version": current_app.config.get("APP_VERSION", "dev"),
    }
    return json_response(payload, status=200 if healthy else 503)
