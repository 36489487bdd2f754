"""Self-service profile endpoints."""

from __future__ import annotations

from flask import Blueprint, request

from storefront.api.deps import (
    get_token_service,
    json_response,
    require_principal,
    service_context,
    timing,
)
from storefront.schemas import ProfileUpdateSchema, UserSchema
from storefront.services.auth import AuthService
from storefront.services.users import UserAdminService

bp = Blueprint("users", __name__)

user_schema = UserSchema()
profile_update_schema = ProfileUpdateSchema()


@bp.get("/me")
@timing
def get_me():
    principal = require_principal()
    service = AuthService(tokens=get_token_service(), ctx=service_context())
    return json_response(user_schema.dump(service.me(principal.subject_id)))


@bp.patch("/me")
@timing
def update_me():
    """Partially update the caller's profile fields."""

    principal = require_principal()
    data = profile_update_schema.load(request.get_json(silent=True) or {})
    service = UserAdminService(tokens=get_token_service(), ctx=service_context())
    user = service.update_profile(principal.subject_id, data)
    return json_response(user_schema.dump(user))
