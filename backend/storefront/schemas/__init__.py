"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import (
    ForgotPasswordSchema,
    LoginSchema,
    PasswordChangeSchema,
    RefreshSchema,
    RegisterSchema,
    TokenResponseSchema,
)
from .user import ProfileUpdateSchema, RolesUpdateSchema, UserSchema

__all__ = [
    "ForgotPasswordSchema",
    "LoginSchema",
    "PasswordChangeSchema",
    "ProfileUpdateSchema",
    "RefreshSchema",
    "RegisterSchema",
    "RolesUpdateSchema",
    "TokenResponseSchema",
    "UserSchema",
]
