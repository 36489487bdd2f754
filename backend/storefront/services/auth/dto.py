from __future__ import annotations

from dataclasses import dataclass

from storefront.models.user import User
from storefront.services.tokens.dto import TokenPair

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class RegisterIn:
    """
    Input DTO for local registration.

    :param email: User email (validated at the boundary).
    :param password: Raw password (policy checked at the boundary).
    :param first_name: Given name.
    :param last_name: Family name.
    :param phone: Optional E.164-like phone number.
    """

    email: str
    password: str
    first_name: str
    last_name: str
    phone: str | None = None


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for login.

    :param email: User email.
    :type email: str
    :param password: Raw password (to be verified).
    :type password: str
    """

    email: str
    password: str


@dataclass(frozen=True, slots=True)
class PasswordChangeIn:
    current_password: str
    new_password: str
    confirm_password: str


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class AuthResult:
    """
    Tokens plus the authenticated user.

    :param user: Credential record the tokens were minted for.
    :param access_token: Encoded access JWT.
    :param refresh_token: Encoded refresh JWT.
    :param expires_in: Access token lifetime in seconds.
    """

    user: User
    access_token: str
    refresh_token: str
    expires_in: int

    @classmethod
    def from_pair(cls, user: User, pair: TokenPair) -> AuthResult:
        return cls(
            user=user,
            access_token=pair.access_token,
            refresh_token=pair.refresh_token,
            expires_in=pair.expires_in,
        )
