"""Shared fixtures: one app per run, one rolled-back transaction per test.

Tables are created once on an in-memory SQLite database. Every test runs
inside an outer transaction plus a SAVEPOINT that is re-opened whenever the
code under test commits or rolls back, so nothing leaks between tests. The
in-memory cache is emptied before each test, which resets token pointers,
blacklist entries, rate-limit counters and OAuth2 states.
"""

from __future__ import annotations

import os

import pytest
from sqlalchemy import event
from sqlalchemy.orm import scoped_session, sessionmaker
from storefront.core.config import TestingConfig
from storefront.core.extensions import db as _db
from storefront.core.extensions import get_cache
from storefront.factory import create_app


class TestConfig(TestingConfig):
    """HS512 needs a 64-byte key; OAuth2 endpoints are mocked with ``responses``."""

    SECRET_KEY = "test-secret"
    JWT_SECRET_KEY = "t" * 64
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    REDIS_URL = ""
    LOG_LEVEL = "WARNING"
    OAUTH2_PROVIDERS = {
        "google": {"client_id": "google-client", "client_secret": "google-secret"},
        "github": {"client_id": "github-client", "client_secret": "github-secret"},
    }
    OAUTH2_REDIRECT_URI_TEMPLATE = "http://testserver/login/oauth2/code/{provider}"
    OAUTH2_SUCCESS_REDIRECT_URL = "http://frontend.test/oauth2/redirect"


@pytest.fixture(scope="session")
def app():
    for var in ("DATABASE_URL", "REDIS_URL"):
        os.environ.pop(var, None)
    application = create_app(TestConfig)
    application.logger.setLevel("WARNING")
    return application


@pytest.fixture(scope="session")
def db(app):
    """Create the schema once; the app context stays pushed for the whole run."""
    with app.app_context():
        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope="session")
def connection(db):
    conn = db.engine.connect()
    yield conn
    conn.close()


@pytest.fixture()
def session(db, connection):
    """Scoped session on ``connection`` that replaces ``db.session`` for one test."""
    outer = connection.begin()
    scoped = scoped_session(sessionmaker(bind=connection, future=True, autoflush=False))
    connection.begin_nested()

    @event.listens_for(scoped(), "after_transaction_end")
    def _reopen_savepoint(sess, trans):  # pragma: no cover
        if trans.nested and not trans._parent.nested:
            connection.begin_nested()

    real_session = db.session
    db.session.remove()
    db.session = scoped
    try:
        yield scoped
    finally:
        scoped.remove()
        db.session = real_session
        outer.rollback()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def cache(app):
    """The application's key-value cache (in-memory under tests)."""
    return get_cache(app)


@pytest.fixture(autouse=True)
def _flush_cache(app):
    get_cache(app).clear()
    yield


@pytest.fixture()
def security(app):
    """Components built by :func:`storefront.api.pipeline.init_app`."""
    return app.extensions["security"]


@pytest.fixture()
def tokens(security):
    return security["tokens"]


@pytest.fixture()
def rate_limiter(security):
    return security["rate_limiter"]


@pytest.fixture(scope="session")
def faker():
    """Faker seeded for reproducible names."""
    from faker import Faker

    Faker.seed(1337)
    return Faker()


@pytest.fixture(autouse=True)
def _factories_session(session):
    """Point factory_boy at this test's session."""
    from tests.factories import SQLAlchemySession

    SQLAlchemySession.set(session)
    yield
