"""User repository for persistence and credential lookups."""

from __future__ import annotations

from storefront.models.user import User
from storefront.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Persistence-only repository for :class:`User`.

    This repository focuses on safe lookup and password checks. It never
    handles tokens; that is the token service's job.
    """

    model = User

    def _filterable_fields(self):
        return {
            "email": User.email,
            "is_active": User.is_active,
        }

    def _updatable_fields(self):
        """Profile fields a user may edit (never email, roles or password)."""
        return {"first_name", "last_name", "phone", "image_url"}

    # ---------------------------- Lookup helpers ----------------------------

    def get_by_email(self, email: str) -> User | None:
        """Fetch a user by email (case-insensitive), active or not."""
        return self.find_one(email=email.lower().strip())

    def get_active_by_email(self, email: str) -> User | None:
        """Fetch an active user by email (case-insensitive)."""
        return self.find_one(email=email.lower().strip(), is_active=True)

    def exists_by_email(self, email: str) -> bool:
        return self.exists(email=email.lower().strip())

    # ---------------------------- Password ops ----------------------------

    def authenticate(self, email: str, password: str) -> User | None:
        """Authenticate an active user by email and password.

        :param email: Email address to authenticate.
        :type email: str
        :param password: Raw password to verify.
        :type password: str
        :returns: Authenticated user or ``None`` when credentials fail or the
            account is deactivated.
        :rtype: User | None
        """
        user = self.get_active_by_email(email)
        if not user or not user.verify_password(password):
            return None
        return user

    def update_password(self, user: User, new_password: str) -> None:
        user.password = new_password  # invokes setter → hash
        self.flush()
