"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from marshmallow import Schema, fields, validate

EMAIL_PATTERN = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
PASSWORD_PATTERN = r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]{6,}$"
NAME_PATTERN = r"^[a-zA-Z\s]+$"
PHONE_PATTERN = r"^[+]?[1-9]\d{1,14}$"

PASSWORD_POLICY_MESSAGE = (
    "Password must contain at least one uppercase letter, one lowercase letter, "
    "one digit, and one special character"
)


def email_field(**kwargs) -> fields.String:
    return fields.String(
        validate=[
            validate.Length(max=254),
            validate.Regexp(EMAIL_PATTERN, error="Email should be valid"),
        ],
        **kwargs,
    )


def name_field(label: str, **kwargs) -> fields.String:
    return fields.String(
        validate=[
            validate.Length(min=2, max=50, error=f"{label} must be between 2 and 50 characters"),
            validate.Regexp(NAME_PATTERN, error=f"{label} can only contain letters and spaces"),
        ],
        **kwargs,
    )


def strong_password_field(**kwargs) -> fields.String:
    return fields.String(
        load_only=True,
        validate=[
            validate.Length(min=6, max=128, error="Password must be at least 6 characters long"),
            validate.Regexp(PASSWORD_PATTERN, error=PASSWORD_POLICY_MESSAGE),
        ],
        **kwargs,
    )


def phone_field(**kwargs) -> fields.String:
    return fields.String(
        validate=validate.Regexp(PHONE_PATTERN, error="Phone number should be valid"),
        **kwargs,
    )


class RegisterSchema(Schema):
    """Input payload for account registration."""

    first_name = name_field("First name", required=True, data_key="firstName")
    last_name = name_field("Last name", required=True, data_key="lastName")
    email = email_field(required=True)
    password = strong_password_field(required=True)
    phone = phone_field(load_default=None, allow_none=True)


class LoginSchema(Schema):
    """Input payload for authenticating a user."""

    email = email_field(required=True)
    password = fields.String(
        required=True,
        load_only=True,
        validate=validate.Length(min=6, error="Password must be at least 6 characters long"),
    )


class RefreshSchema(Schema):
    refresh_token = fields.String(
        required=True, data_key="refreshToken", validate=validate.Length(min=1)
    )


class PasswordChangeSchema(Schema):
    """Input payload for changing the current user's password."""

    current_password = fields.String(
        required=True, load_only=True, data_key="currentPassword", validate=validate.Length(min=1)
    )
    new_password = strong_password_field(required=True, data_key="newPassword")
    confirm_password = fields.String(
        required=True, load_only=True, data_key="confirmPassword", validate=validate.Length(min=1)
    )


class ForgotPasswordSchema(Schema):
    email = email_field(required=True)


class TokenResponseSchema(Schema):
    """Response payload returned by login, register and refresh."""

    access_token = fields.String(required=True, data_key="token")
    refresh_token = fields.String(required=True, data_key="refreshToken")
    token_type = fields.String(dump_default="Bearer", data_key="type")
    expires_in = fields.Integer(required=True, data_key="expiresIn")
    user = fields.Nested("UserSchema", required=True)
