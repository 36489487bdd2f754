"""Unit tests for UserRepository."""

import pytest
from storefront.repositories.user import UserRepository
from tests.factories.user import DEFAULT_PASSWORD, OAuthUserFactory, UserFactory


class TestUserRepository:
    """Ensure ``UserRepository`` performs core persistence operations."""

    @pytest.fixture()
    def repo(self):
        return UserRepository()

    def test_create_and_get_user(self, repo, session):
        """Create a user and fetch it by email to verify retrieval."""
        u = UserFactory(email="alice@example.com")
        session.commit()

        fetched = repo.get_by_email("ALICE@example.com")
        assert fetched is not None
        assert fetched.id == u.id
        assert repo.get(u.id) is fetched

    def test_exists_by_email(self, repo, session):
        """Return existence flags for known and unknown email addresses."""
        UserFactory(email="bob@example.com")

        assert repo.exists_by_email("bob@example.com")
        assert not repo.exists_by_email("nonexistent@example.com")

    def test_active_lookup_skips_deactivated(self, repo):
        UserFactory(email="off@example.com", is_active=False)

        assert repo.get_active_by_email("off@example.com") is None
        assert repo.get_by_email("off@example.com") is not None

    def test_authenticate(self, repo):
        u = UserFactory(email="c@example.com")

        assert repo.authenticate("c@example.com", DEFAULT_PASSWORD) is u
        assert repo.authenticate("c@example.com", "wrong") is None

    def test_authenticate_oauth_user_without_password(self, repo):
        OAuthUserFactory(email="o@example.com")

        assert repo.authenticate("o@example.com", "") is None

    def test_update_password(self, repo):
        """Update a user's password hash and verify authentication works."""
        u = UserFactory(email="d@example.com")
        old_hash = u.password_hash

        repo.update_password(u, "N3w!pass")

        assert u.password_hash != old_hash
        assert repo.authenticate("d@example.com", "N3w!pass") is u

    def test_lookups_reject_unlisted_filters(self, repo):
        with pytest.raises(ValueError):
            repo.find_one(password_hash="x")

    def test_assign_updates_rejects_non_profile_fields(self, repo):
        u = UserFactory()

        with pytest.raises(ValueError):
            repo.assign_updates(u, {"roles": ["ADMIN"]})
        repo.assign_updates(u, {"last_name": "Stone"})
        assert u.last_name == "Stone"
