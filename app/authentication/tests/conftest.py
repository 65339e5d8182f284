"""
Test configuration and fixtures for authentication tests.
"""

import pytest

from authentication.tests.factories import ProfileFactory, UserFactory


@pytest.fixture
def user(db):
    """An active user with an auto-created, empty profile."""
    return UserFactory()


@pytest.fixture
def user_with_profile(db):
    """A user whose profile has a username and name."""
    user = UserFactory()
    ProfileFactory(user=user, username="ada_l", name="Ada Lovelace")
    return user
