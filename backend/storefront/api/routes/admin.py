"""Credential administration endpoints (ADMIN only, enforced by the policy)."""

from __future__ import annotations

from flask import Blueprint, request

from storefront.api.deps import get_token_service, json_response, service_context, timing
from storefront.schemas import RolesUpdateSchema, UserSchema
from storefront.services.users import UserAdminService

bp = Blueprint("admin", __name__)

user_schema = UserSchema()
roles_update_schema = RolesUpdateSchema()


def _service() -> UserAdminService:
    return UserAdminService(tokens=get_token_service(), ctx=service_context())


@bp.put("/users/<user_id>/roles")
@timing
def set_roles(user_id: str):
    """Replace the role set; the user's outstanding tokens are revoked."""

    data = roles_update_schema.load(request.get_json(silent=True) or {})
    user = _service().set_roles(user_id, data["roles"])
    return json_response(user_schema.dump(user))


@bp.post("/users/<user_id>/deactivate")
@timing
def deactivate(user_id: str):
    user = _service().deactivate(user_id)
    return json_response(user_schema.dump(user))
