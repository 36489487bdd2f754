"""Factory Boy definition for :class:`storefront.models.user.User`."""

from __future__ import annotations

import factory
from sqlalchemy.orm import object_session
from storefront.models.user import AuthProvider, Role, User
from tests.factories import BaseFactory

DEFAULT_PASSWORD = "Passw0rd!"


class UserFactory(BaseFactory):
    """
    Build persisted LOCAL :class:`storefront.models.user.User` instances.

    Notes
    -----
    - ``password`` is applied through the model setter so it is hashed.
    - Provider-created records come from :class:`OAuthUserFactory`.
    """

    class Meta:
        model = User

    email = factory.Sequence(lambda n: f"user{n}@example.com")
    first_name = factory.Faker("first_name")
    last_name = factory.Faker("last_name")
    roles = factory.LazyFunction(lambda: [Role.USER.value])
    is_active = True
    provider = AuthProvider.LOCAL
    password_hash = None  # set via postgen

    @factory.post_generation
    def password(obj, create, extracted, **kwargs):
        """Set password using model setter (ensures hashing)."""
        obj.password = extracted or DEFAULT_PASSWORD
        session = object_session(obj) if create else None
        if session is not None:
            session.flush()


class AdminFactory(UserFactory):
    roles = factory.LazyFunction(lambda: [Role.ADMIN.value, Role.USER.value])


class OAuthUserFactory(BaseFactory):
    """Provider-created record: no local password, provider id set."""

    class Meta:
        model = User

    email = factory.Sequence(lambda n: f"oauth{n}@example.com")
    first_name = factory.Faker("first_name")
    last_name = factory.Faker("last_name")
    roles = factory.LazyFunction(lambda: [Role.USER.value])
    is_active = True
    provider = AuthProvider.GOOGLE
    provider_id = factory.Sequence(lambda n: f"google-{n}")
    image_url = None
