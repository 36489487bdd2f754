from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from storefront.models.user import Role, User, normalize_roles
from storefront.services._shared.base import BaseService, ServiceContext
from storefront.services._shared.errors import NotFoundError, ValidationFailedError
from storefront.services.tokens import TokenService

log = logging.getLogger(__name__)


class UserAdminService(BaseService):
    """
    Profile edits and credential administration.

    Role claims are frozen into tokens at issuance, so any change to roles
    or the active flag revokes the user's tokens.
    """

    def __init__(self, *, tokens: TokenService, ctx: ServiceContext | None = None) -> None:
        super().__init__(ctx=ctx)
        self.tokens = tokens

    def update_profile(self, subject_id: str, fields: Mapping[str, Any]) -> User:
        """
        Apply profile edits to an active user.

        :raises ValidationFailedError: A field outside the profile whitelist.
        """
        with self.rw_uow() as uow:
            user = uow.users.get(subject_id)
            if user is None or not user.is_active:
                raise NotFoundError("User", subject_id)
            try:
                uow.users.assign_updates(user, fields)
            except ValueError as exc:
                raise ValidationFailedError({"_schema": str(exc)}) from exc
        return user

    def set_roles(self, user_id: str, roles: Iterable[Role | str]) -> User:
        """
        Replace the role set of ``user_id``.

        :raises ValidationFailedError: Empty or unknown roles.
        :raises NotFoundError: Unknown user.
        """
        try:
            names = normalize_roles(roles)
        except ValueError as exc:
            raise ValidationFailedError({"roles": str(exc)}) from exc

        with self.rw_uow() as uow:
            user = uow.users.get(user_id)
            if user is None:
                raise NotFoundError("User", user_id)
            user.roles = names
            uow.users.flush()

        self.tokens.revoke_all(user_id)
        log.info(
            "users.roles_changed",
            extra={"subject_id": user_id, "reason": ",".join(names)},
        )
        return user

    def deactivate(self, user_id: str) -> User:
        with self.rw_uow() as uow:
            user = uow.users.get(user_id)
            if user is None:
                raise NotFoundError("User", user_id)
            user.is_active = False
            uow.users.flush()

        self.tokens.revoke_all(user_id)
        log.info("users.deactivated", extra={"subject_id": user_id})
        return user
