"""Integration tests for the ``users`` CLI group."""

from __future__ import annotations

from storefront.models.user import Role
from storefront.repositories import UserRepository
from tests.factories.user import UserFactory


def test_create_admin(app, rate_limiter) -> None:
    runner = app.test_cli_runner()

    result = runner.invoke(
        args=["users", "create-admin", "--email", "root@example.com", "--password", "Adm1n!pass"]
    )

    assert result.exit_code == 0, result.output
    assert "Admin created" in result.output
    user = UserRepository().get_by_email("root@example.com")
    assert user.has_role(Role.ADMIN)
    assert user.verify_password("Adm1n!pass")


def test_create_admin_promotes_existing_user(app) -> None:
    UserFactory(email="promote@example.com")
    runner = app.test_cli_runner()

    result = runner.invoke(
        args=["users", "create-admin", "--email", "promote@example.com", "--password", "x"]
    )

    assert result.exit_code == 0, result.output
    assert "Admin promoted" in result.output
    assert UserRepository().get_by_email("promote@example.com").roles == ["ADMIN", "USER"]


def test_reset_login_attempts(app, rate_limiter) -> None:
    policy = rate_limiter.select_policy("/api/auth/login")
    for _ in range(5):
        rate_limiter.check_and_consume("192.0.2.50", policy)

    result = app.test_cli_runner().invoke(args=["users", "reset-login-attempts", "192.0.2.50"])

    assert result.exit_code == 0
    assert rate_limiter.check_and_consume("192.0.2.50", policy)
