"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and should never import or depend
on Flask or HTTP. They serve as stable contracts between repositories, the
security components and application services.

The translation to HTTP responses is handled by
``storefront/core/errors.py`` via :func:`storefront.core.errors.from_service_error`.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from sqlalchemy.exc import IntegrityError


def violates(exc: IntegrityError, constraint_name: str) -> bool:
    """
    Check whether an IntegrityError originates from a specific constraint.

    Parameters
    ----------
    exc : IntegrityError
        The exception raised by SQLAlchemy during flush/commit.
    constraint_name : str
        The name of the database constraint to match (e.g., 'uq_users_email').

    Returns
    -------
    bool
        True if the IntegrityError matches the given constraint.
    """
    message = str(exc.orig).lower() if exc.orig else ""
    return constraint_name.lower() in message


# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - Each subclass carries a stable ``code`` reused in the JSON error body.
    """

    code = "bad_request"
    default_message = "Bad request"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


# --------------------------------------------------------------------------- #
# Authentication & token lifecycle
# --------------------------------------------------------------------------- #


class AuthenticationError(ServiceError):
    """Base for failures that map to *401 Unauthorized*."""

    code = "unauthorized"
    default_message = "Authentication failed"


class AuthenticationRequiredError(AuthenticationError):
    """No bearer token was presented on a route that needs one."""

    code = "authentication_required"
    default_message = "Full authentication is required to access this resource"


class InvalidTokenError(AuthenticationError):
    """Base for every bearer-token validation failure."""

    code = "invalid_token"
    default_message = "Invalid token"


class TokenExpiredError(InvalidTokenError):
    code = "token_expired"
    default_message = "Token has expired"


class TokenMalformedError(InvalidTokenError):
    code = "token_malformed"
    default_message = "Token is malformed"


class TokenBadSignatureError(InvalidTokenError):
    code = "token_bad_signature"
    default_message = "Token signature is invalid"


class TokenRevokedError(InvalidTokenError):
    """Token is blacklisted, superseded by a newer one, or revoked in bulk."""

    code = "token_revoked"
    default_message = "Token has been revoked"


class InvalidRefreshTokenError(InvalidTokenError):
    code = "invalid_refresh_token"
    default_message = "Invalid refresh token"


class InvalidCredentialsError(AuthenticationError):
    code = "invalid_credentials"
    default_message = "Invalid email or password"


# --------------------------------------------------------------------------- #
# Authorization & throttling
# --------------------------------------------------------------------------- #


class InsufficientRoleError(ServiceError):
    """The principal is authenticated but lacks every role the rule requires."""

    code = "insufficient_role"
    default_message = "You don't have permission to access this resource"


class RateLimitExceededError(ServiceError):
    code = "rate_limit_exceeded"
    default_message = "Rate limit exceeded. Please try again later."


# --------------------------------------------------------------------------- #
# Provisioning & validation
# --------------------------------------------------------------------------- #


class MissingProviderEmailError(ServiceError):
    code = "missing_provider_email"
    default_message = "Email not found from OAuth2 provider"


class UnknownProviderError(ServiceError):
    code = "unknown_provider"
    default_message = "Unsupported OAuth2 provider"


class OAuth2StateError(ServiceError):
    code = "invalid_oauth2_state"
    default_message = "OAuth2 state is missing or expired"


class OAuth2ExchangeError(ServiceError):
    code = "oauth2_exchange_failed"
    default_message = "OAuth2 provider exchange failed"


class ValidationFailedError(ServiceError):
    """
    Raised when a payload breaks one or more field rules.

    :param field_errors: Mapping of field name to a human-readable message.
    :type field_errors: Mapping[str, str]
    """

    code = "validation_failed"
    default_message = "Validation failed"

    def __init__(self, field_errors: Mapping[str, str], message: str | None = None) -> None:
        super().__init__(message)
        self.field_errors = dict(field_errors)


# --------------------------------------------------------------------------- #
# Persistence-level errors
# --------------------------------------------------------------------------- #


@dataclass(slots=True)
class NotFoundError(ServiceError):
    """
    Raised when an entity is not found in the repository.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param key: Identifier or search key.
    :type key: str | int
    """

    entity: str
    key: str | int
    code: str = field(default="not_found", init=False)

    def __post_init__(self) -> None:
        ServiceError.__init__(self, f"{self.entity} not found: {self.key}")

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.entity} not found: {self.key}"


@dataclass(slots=True)
class ConflictError(ServiceError):
    """
    Raised when a unique constraint or business rule conflict occurs.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param detail: Short human-readable explanation.
    :type detail: str
    """

    entity: str
    detail: str
    code: str = field(default="conflict", init=False)

    def __post_init__(self) -> None:
        ServiceError.__init__(self, self.detail)

    def __str__(self) -> str:  # pragma: no cover
        return f"Conflict on {self.entity}: {self.detail}"
