"""Credential record model and its role/provider enums."""

from __future__ import annotations

import enum
from collections.abc import Iterable
from typing import Any

from sqlalchemy import JSON, Boolean, Enum, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, validates
from werkzeug.security import check_password_hash, generate_password_hash

from storefront.core.extensions import db

from .base import RecordMixin


class Role(str, enum.Enum):
    """Authorization roles embedded in access tokens."""

    USER = "USER"
    ADMIN = "ADMIN"
    MODERATOR = "MODERATOR"
    SELLER = "SELLER"


class AuthProvider(str, enum.Enum):
    """Origin of a credential record."""

    LOCAL = "LOCAL"
    GOOGLE = "GOOGLE"
    FACEBOOK = "FACEBOOK"
    GITHUB = "GITHUB"


def normalize_roles(values: Iterable[Role | str]) -> list[str]:
    """
    Validate role names and return them de-duplicated in a stable order.

    :param values: Role enums or their names (case-insensitive).
    :returns: Sorted list of role names.
    :raises ValueError: If the set is empty or contains an unknown role.
    """
    names: set[str] = set()
    for value in values:
        raw = value.value if isinstance(value, Role) else str(value).strip().upper()
        try:
            names.add(Role(raw).value)
        except ValueError as exc:
            raise ValueError(f"Unknown role: {value!r}") from exc
    if not names:
        raise ValueError("A user must hold at least one role.")
    return sorted(names)


class User(RecordMixin, db.Model):
    """
    Credential record for both local and provider-issued identities.

    Fields
    ------
    email : str
        Login email. Stored normalized (lowercase, trimmed). Globally unique.
    password_hash : str | None
        Hashed password (write-only setter via ``password``). ``None`` for
        records created through OAuth2.
    first_name, last_name : str
        Display names; may be empty strings for provider-created records.
    roles : list[str]
        Non-empty list of :class:`Role` names. Defaults to ``["USER"]``.
    is_active : bool
        Soft-deactivation flag; records are never deleted.
    provider : AuthProvider
        Where the identity comes from.
    provider_id : str | None
        External id assigned by the provider.
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(254), nullable=False)
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    first_name: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    last_name: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    roles: Mapped[list[str]] = mapped_column(
        JSON, nullable=False, default=lambda: [Role.USER.value]
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    provider: Mapped[AuthProvider] = mapped_column(
        Enum(AuthProvider, name="auth_provider", native_enum=False, length=16),
        nullable=False,
        default=AuthProvider.LOCAL,
    )
    provider_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    __table_args__ = (
        UniqueConstraint("email", name="uq_users_email"),
        Index("ix_users_provider_provider_id", "provider", "provider_id"),
    )

    # -------------------- Password API --------------------
    @property
    def password(self) -> Any:  # pragma: no cover - explicit write-only contract
        """
        Disallow reading passwords.

        :raises AttributeError: Always, to ensure password is write-only.
        """
        raise AttributeError("Password is write-only.")

    @password.setter
    def password(self, raw: str) -> None:
        if not isinstance(raw, str) or not raw:
            raise ValueError("Password must be a non-empty string.")
        self.password_hash = generate_password_hash(raw)

    def verify_password(self, raw: str) -> bool:
        """
        Verify a password against the stored hash.

        :param raw: Plain text password candidate.
        :type raw: str
        :returns: ``True`` if it matches; ``False`` otherwise or when the
            record has no local password.
        :rtype: bool
        """
        if not self.password_hash:
            return False
        return bool(check_password_hash(self.password_hash, raw))

    # -------------------- Roles --------------------
    @property
    def role_set(self) -> frozenset[Role]:
        return frozenset(Role(name) for name in self.roles or ())

    def has_role(self, role: Role) -> bool:
        return role in self.role_set

    # -------------------- Validators --------------------
    @validates("email")
    def _normalize_email(self, key: str, value: str) -> str:
        """
        Normalize and validate email.

        :raises ValueError: If email is missing or malformed.
        """
        if not value or not isinstance(value, str):
            raise ValueError("Email is required.")
        v = value.strip().lower()
        # Minimal sanity check; full validation happens at API layer.
        if "@" not in v or "." not in v.split("@")[-1]:
            raise ValueError("Email format looks invalid.")
        return v

    @validates("roles")
    def _validate_roles(self, key: str, value: Iterable[Role | str]) -> list[str]:
        return normalize_roles(value)

    @validates("first_name", "last_name")
    def _strip_names(self, key: str, value: str | None) -> str:
        return (value or "").strip()
