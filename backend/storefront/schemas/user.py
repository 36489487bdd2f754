"""User resource schemas."""

from __future__ import annotations

from marshmallow import Schema, fields, validate

from storefront.models.user import Role
from storefront.schemas.auth import name_field, phone_field


class UserSchema(Schema):
    """Public representation of a user entity."""

    class Meta:
        ordered = True

    id = fields.String(dump_only=True)
    email = fields.String(dump_only=True)
    first_name = fields.String(dump_only=True, data_key="firstName")
    last_name = fields.String(dump_only=True, data_key="lastName")
    phone = fields.String(dump_only=True, allow_none=True)
    image_url = fields.String(dump_only=True, allow_none=True, data_key="imageUrl")
    roles = fields.List(fields.String(), dump_only=True)
    provider = fields.Function(
        lambda obj: obj.provider.value if obj.provider is not None else None, dump_only=True
    )
    is_active = fields.Boolean(dump_only=True, data_key="active")
    created_at = fields.DateTime(dump_only=True, data_key="createdAt")
    updated_at = fields.DateTime(dump_only=True, data_key="updatedAt")


class ProfileUpdateSchema(Schema):
    """Partial update of the caller's own profile."""

    first_name = name_field("First name", data_key="firstName")
    last_name = name_field("Last name", data_key="lastName")
    phone = phone_field(allow_none=True)
    image_url = fields.Url(allow_none=True, data_key="imageUrl", validate=validate.Length(max=512))


class RolesUpdateSchema(Schema):
    roles = fields.List(
        fields.String(validate=validate.OneOf([r.value for r in Role])),
        required=True,
        validate=validate.Length(min=1, error="At least one role is required"),
    )
