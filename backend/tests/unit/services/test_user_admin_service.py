from __future__ import annotations

import pytest
from storefront.services._shared.errors import (
    NotFoundError,
    TokenRevokedError,
    ValidationFailedError,
)
from storefront.services.users import UserAdminService
from tests.factories.user import UserFactory


@pytest.fixture()
def service(tokens) -> UserAdminService:
    return UserAdminService(tokens=tokens)


def test_update_profile_changes_profile_fields(service):
    user = UserFactory(first_name="Old")

    updated = service.update_profile(user.id, {"first_name": "New", "phone": "+34600111222"})

    assert updated.first_name == "New"
    assert updated.phone == "+34600111222"


def test_update_profile_refuses_non_profile_fields(service):
    user = UserFactory(email="keep@example.com")

    with pytest.raises(ValidationFailedError):
        service.update_profile(user.id, {"email": "hijack@example.com"})
    assert user.email == "keep@example.com"


def test_set_roles_revokes_tokens(service, tokens):
    user = UserFactory()
    pair = tokens.issue(user.id, user.roles)

    updated = service.set_roles(user.id, ["seller", "USER"])

    assert updated.roles == ["SELLER", "USER"]
    with pytest.raises(TokenRevokedError):
        tokens.validate(pair.access_token)


@pytest.mark.parametrize("roles", [[], ["ROOT"]])
def test_set_roles_rejects_bad_input(service, roles):
    user = UserFactory()

    with pytest.raises(ValidationFailedError):
        service.set_roles(user.id, roles)


def test_set_roles_unknown_user(service):
    with pytest.raises(NotFoundError):
        service.set_roles("missing", ["USER"])


def test_deactivate_revokes_tokens(service, tokens):
    user = UserFactory()
    pair = tokens.issue(user.id, user.roles)

    updated = service.deactivate(user.id)

    assert updated.is_active is False
    with pytest.raises(TokenRevokedError):
        tokens.validate(pair.access_token)
