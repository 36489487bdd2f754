"""SQLAlchemy models registered on the shared metadata."""

from .user import AuthProvider, Role, User

__all__ = ["AuthProvider", "Role", "User"]
