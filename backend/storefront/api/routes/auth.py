"""Authentication endpoints using the service layer."""

from __future__ import annotations

from datetime import datetime, timezone

from flask import Blueprint, request

from storefront.api.deps import (
    get_rate_limiter,
    get_token_service,
    json_response,
    require_principal,
    service_context,
    timing,
)
from storefront.api.pipeline import bearer_token
from storefront.schemas import (
    ForgotPasswordSchema,
    LoginSchema,
    PasswordChangeSchema,
    RefreshSchema,
    RegisterSchema,
    TokenResponseSchema,
    UserSchema,
)
from storefront.services.auth import AuthResult, AuthService, LoginIn, PasswordChangeIn, RegisterIn

bp = Blueprint("auth", __name__)

register_schema = RegisterSchema()
login_schema = LoginSchema()
refresh_schema = RefreshSchema()
password_change_schema = PasswordChangeSchema()
forgot_password_schema = ForgotPasswordSchema()
token_schema = TokenResponseSchema()
user_schema = UserSchema()

FORGOT_PASSWORD_MESSAGE = "If the email exists, a password reset link has been sent"


def _auth_service() -> AuthService:
    return AuthService(
        tokens=get_token_service(),
        rate_limiter=get_rate_limiter(),
        ctx=service_context(),
    )


def _message(text: str, *, status: int = 200):
    return json_response(
        {"message": text, "timestamp": datetime.now(timezone.utc).isoformat()},
        status=status,
    )


def _token_body(result: AuthResult) -> dict:
    return token_schema.dump(
        {
            "access_token": result.access_token,
            "refresh_token": result.refresh_token,
            "expires_in": result.expires_in,
            "user": result.user,
        }
    )


@bp.post("/register")
@timing
def register():
    """Register a LOCAL account and log it in."""

    data = register_schema.load(request.get_json(silent=True) or {})
    result = _auth_service().register(RegisterIn(**data))
    return json_response(_token_body(result), status=201)


@bp.post("/login")
@timing
def login():
    """Authenticate credentials and issue a token pair."""

    data = login_schema.load(request.get_json(silent=True) or {})
    result = _auth_service().login(LoginIn(**data))
    return json_response(_token_body(result))


@bp.post("/refresh")
@timing
def refresh():
    data = refresh_schema.load(request.get_json(silent=True) or {})
    result = _auth_service().refresh(data["refresh_token"])
    return json_response(_token_body(result))


@bp.post("/logout")
@timing
def logout():
    """Blacklist the presented bearer token, if any."""

    token = bearer_token()
    if token is not None:
        _auth_service().logout(token)
    return _message("Logged out successfully")


@bp.post("/logout-all")
@timing
def logout_all():
    principal = require_principal()
    _auth_service().logout_all(principal.subject_id)
    return _message("Logged out from all devices successfully")


@bp.post("/change-password")
@timing
def change_password():
    principal = require_principal()
    data = password_change_schema.load(request.get_json(silent=True) or {})
    _auth_service().change_password(principal.subject_id, PasswordChangeIn(**data))
    return _message("Password changed successfully")


@bp.post("/forgot-password")
@timing
def forgot_password():
    data = forgot_password_schema.load(request.get_json(silent=True) or {})
    _auth_service().forgot_password(data["email"])
    return _message(FORGOT_PASSWORD_MESSAGE)


@bp.get("/me")
@timing
def me():
    """Return the authenticated user profile."""

    principal = require_principal()
    user = _auth_service().me(principal.subject_id)
    return json_response(user_schema.dump(user))
