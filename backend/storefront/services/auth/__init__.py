from .dto import AuthResult, LoginIn, PasswordChangeIn, RegisterIn
from .service import AuthService

__all__ = ["AuthResult", "AuthService", "LoginIn", "PasswordChangeIn", "RegisterIn"]
