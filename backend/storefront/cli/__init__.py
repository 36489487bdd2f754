"""``flask`` sub-commands for operators."""

from __future__ import annotations

from flask import Flask

from .users import users_cli


def init_app(app: Flask) -> None:
    """Attach the ``users`` group (``flask users create-admin`` and friends)."""
    app.cli.add_command(users_cli)
