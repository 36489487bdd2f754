"""Flask CLI commands for credential administration."""

from __future__ import annotations

import logging

import click
from flask.cli import with_appcontext

from storefront.api.deps import get_rate_limiter
from storefront.models.user import AuthProvider, Role, User, normalize_roles
from storefront.uow import SQLAlchemyUnitOfWork

LOGGER = logging.getLogger(__name__)


@click.group("users")
def users_cli() -> None:
    """Collection of user administration commands."""


@users_cli.command("create-admin")
@click.option("--email", required=True, help="Admin email address.")
@click.option("--password", required=True, prompt=True, hide_input=True, confirmation_prompt=True)
@click.option("--first-name", default="Admin", show_default=True)
@click.option("--last-name", default="User", show_default=True)
@with_appcontext
def create_admin(email: str, password: str, first_name: str, last_name: str) -> None:
    """Create an ADMIN account, or grant ADMIN to an existing one."""
    with SQLAlchemyUnitOfWork() as uow:
        user = uow.users.get_by_email(email)
        if user is None:
            user = User(
                email=email,
                first_name=first_name,
                last_name=last_name,
                roles=[Role.ADMIN, Role.USER],
                provider=AuthProvider.LOCAL,
                is_active=True,
            )
            user.password = password
            uow.users.add(user)
            action = "created"
        else:
            user.roles = normalize_roles([*user.roles, Role.ADMIN])
            uow.users.flush()
            action = "promoted"

    LOGGER.info("cli.create_admin", extra={"subject_id": user.id, "reason": action})
    click.echo(f"Admin {action}: {user.email} ({user.id})")


@users_cli.command("reset-login-attempts")
@click.argument("ip")
@with_appcontext
def reset_login_attempts(ip: str) -> None:
    """Clear the login lockout counter for IP."""
    get_rate_limiter().reset_login_attempts(ip)
    click.echo(f"Login attempts reset for {ip}")
