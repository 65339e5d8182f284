"""
Tests for the User and Profile models and the UserManager.
"""

import pytest
from django.core.exceptions import ValidationError

from authentication.models import Profile, User


class TestUserManager:
    """
    Verifies:
    - create_user normalizes email and hashes the password
    - A profile is auto-created for every new user
    - Superusers get elevated flags
    """

    def test_create_user_hashes_password_and_normalizes_email(self, db):
        user = User.objects.create_user(email="Ada@EXAMPLE.COM", password="Secret123!")

        assert user.email == "Ada@example.com"
        assert user.check_password("Secret123!") is True
        assert user.is_staff is False

    def test_create_user_requires_email(self, db):
        with pytest.raises(ValueError):
            User.objects.create_user(email="", password="Secret123!")

    def test_profile_created_by_signal(self, db):
        user = User.objects.create_user(email="signal@example.com")

        assert Profile.objects.filter(user=user).exists()
        assert user.has_usable_password() is False

    def test_create_superuser_sets_flags(self, db):
        admin = User.objects.create_superuser(email="root@example.com", password="x")

        assert admin.is_staff is True
        assert admin.is_superuser is True


class TestProfile:
    """Verifies username normalization, validation and naming helpers."""

    def test_username_lowercased_on_save(self, user):
        user.profile.username = "MixedCase"
        user.profile.save()
        user.profile.refresh_from_db()

        assert user.profile.username == "mixedcase"

    def test_full_name_falls_back_to_email(self, user):
        assert user.get_full_name() == user.email

    def test_full_name_from_profile(self, user_with_profile):
        assert user_with_profile.get_full_name() == "Ada Lovelace"

    @pytest.mark.parametrize("username", ["Admin", "ab", "has space", "x" * 31])
    def test_invalid_usernames_rejected(self, user, username):
        user.profile.username = username

        with pytest.raises(ValidationError):
            user.profile.full_clean()
