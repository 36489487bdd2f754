from __future__ import annotations

import logging

from storefront.models.user import AuthProvider, Role, User
from storefront.services._shared.base import BaseService, ServiceContext
from storefront.services._shared.errors import (
    ConflictError,
    InvalidCredentialsError,
    InvalidRefreshTokenError,
    NotFoundError,
    ValidationFailedError,
)
from storefront.services.auth.dto import AuthResult, LoginIn, PasswordChangeIn, RegisterIn
from storefront.services.rate_limit import RateLimiter
from storefront.services.tokens import TokenService

log = logging.getLogger(__name__)


class AuthService(BaseService):
    """
    Local-credential lifecycle: register, login, refresh, logout, password change.

    Token state lives in :class:`TokenService`; this service only decides
    *when* tokens are minted or dropped.
    """

    def __init__(
        self,
        *,
        tokens: TokenService,
        rate_limiter: RateLimiter | None = None,
        ctx: ServiceContext | None = None,
    ) -> None:
        """
        :param tokens: Token lifecycle service.
        :param rate_limiter: When given, a successful login clears the
            caller's login attempt counter (``ctx.client_ip``).
        :param ctx: Request-scoped context.
        """
        super().__init__(ctx=ctx)
        self.tokens = tokens
        self.rate_limiter = rate_limiter

    # ------------------------------------------------------------------ #
    # Register / Login
    # ------------------------------------------------------------------ #

    def register(self, dto: RegisterIn) -> AuthResult:
        """
        Create a LOCAL user with role USER and log them in.

        :raises ConflictError: If the email is already registered.
        """
        with self.rw_uow() as uow:
            if uow.users.exists_by_email(dto.email):
                raise ConflictError("User", "Email is already taken")
            user = User(
                email=dto.email,
                first_name=dto.first_name,
                last_name=dto.last_name,
                phone=dto.phone,
                roles=[Role.USER],
                provider=AuthProvider.LOCAL,
                is_active=True,
            )
            user.password = dto.password
            uow.users.add(user)

        log.info("auth.registered", extra={"subject_id": user.id})
        return AuthResult.from_pair(user, self.tokens.issue(user.id, user.roles))

    def login(self, dto: LoginIn) -> AuthResult:
        """
        Authenticate credentials and issue a fresh token pair.

        :raises InvalidCredentialsError: Unknown email, wrong password, or a
            deactivated account.
        """
        with self.ro_uow() as uow:
            user = uow.users.authenticate(dto.email, dto.password)
        if user is None:
            log.info("auth.login_failed")
            raise InvalidCredentialsError()

        result = AuthResult.from_pair(user, self.tokens.issue(user.id, user.roles))
        if self.rate_limiter is not None and self.ctx.client_ip:
            self.rate_limiter.reset_login_attempts(self.ctx.client_ip)
        log.info("auth.login_succeeded", extra={"subject_id": user.id})
        return result

    # ------------------------------------------------------------------ #
    # Refresh / Logout
    # ------------------------------------------------------------------ #

    def refresh(self, refresh_token: str) -> AuthResult:
        """
        Mint a new access token; the refresh token is returned unchanged.

        :raises InvalidRefreshTokenError: If the owner is gone or deactivated.
        """
        access = self.tokens.refresh(refresh_token)
        subject_id = self.tokens.validate(access).subject_id
        with self.ro_uow() as uow:
            user = uow.users.get(subject_id)
        if user is None or not user.is_active:
            self.tokens.revoke_all(subject_id)
            raise InvalidRefreshTokenError("User is no longer active")
        return AuthResult(
            user=user,
            access_token=access,
            refresh_token=refresh_token,
            expires_in=int(self.tokens.settings.access_expires.total_seconds()),
        )

    def logout(self, token: str) -> None:
        self.tokens.blacklist(token)
        log.info("auth.logout", extra={"subject_id": self.ctx.actor_id})

    def logout_all(self, subject_id: str) -> None:
        self.tokens.revoke_all(subject_id)
        log.info("auth.logout_all", extra={"subject_id": subject_id})

    # ------------------------------------------------------------------ #
    # Password
    # ------------------------------------------------------------------ #

    def change_password(self, subject_id: str, dto: PasswordChangeIn) -> None:
        """
        Replace the password and revoke every outstanding token.

        :raises NotFoundError: Unknown or deactivated user.
        :raises ValidationFailedError: Wrong current password or mismatched
            confirmation.
        """
        if dto.new_password != dto.confirm_password:
            raise ValidationFailedError(
                {"confirmPassword": "New password and confirmation do not match"}
            )
        with self.rw_uow() as uow:
            user = uow.users.get(subject_id)
            if user is None or not user.is_active:
                raise NotFoundError("User", subject_id)
            if not user.verify_password(dto.current_password):
                raise ValidationFailedError({"currentPassword": "Current password is incorrect"})
            uow.users.update_password(user, dto.new_password)

        self.tokens.revoke_all(subject_id)
        log.info("auth.password_changed", extra={"subject_id": subject_id})

    def forgot_password(self, email: str) -> None:
        """Acknowledge a reset request without revealing whether the email exists."""
        with self.ro_uow() as uow:
            known = uow.users.get_active_by_email(email) is not None
        # TODO: send the reset link once an outbound mail adapter exists.
        log.info("auth.forgot_password", extra={"reason": "known" if known else "unknown"})

    # ------------------------------------------------------------------ #
    # Profile
    # ------------------------------------------------------------------ #

    def me(self, subject_id: str) -> User:
        with self.ro_uow() as uow:
            user = uow.users.get(subject_id)
        if user is None or not user.is_active:
            raise NotFoundError("User", subject_id)
        return user
