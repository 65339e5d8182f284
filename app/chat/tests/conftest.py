"""
Test configuration and fixtures for chat tests.

This module provides:
- Named users with profiles (alice, bob, carol, dave)
- ChatService instances with and without an encryption key
- API client helpers for authenticated requests

Usage:
    def test_example(alice, bob, chat_service):
        make_mutual(alice, bob)
        room = chat_service.find_or_create_dm_chat_room(alice.id, bob.id)
"""

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from authentication.tests.factories import ProfileFactory, UserFactory
from chat.tests.factories import TEST_MASTER_KEY, build_chat_service


# =============================================================================
# User Fixtures
# =============================================================================


def _named_user(username, name):
    user = UserFactory()
    ProfileFactory(user=user, username=username, name=name)
    return user


@pytest.fixture
def alice(db):
    return _named_user("alice", "Alice Liddell")


@pytest.fixture
def bob(db):
    return _named_user("bob", "Bob Builder")


@pytest.fixture
def carol(db):
    return _named_user("carol", "Carol Danvers")


@pytest.fixture
def dave(db):
    """A user with an empty profile."""
    return UserFactory()


# =============================================================================
# Service Fixtures
# =============================================================================


@pytest.fixture
def chat_service(db):
    """ChatService that encrypts message content."""
    return build_chat_service(master_key=TEST_MASTER_KEY)


@pytest.fixture
def plaintext_chat_service(db):
    """ChatService without an encryption key; content is stored as-is."""
    return build_chat_service(master_key=None)


@pytest.fixture
def encryption_settings(settings):
    """Configure the key ChatService.default() reads, as views and consumers use it."""
    settings.MESSAGE_ENCRYPTION_KEY = TEST_MASTER_KEY
    settings.MESSAGE_ENCRYPTION_REQUIRED = False
    return settings


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
def api_client():
    return APIClient()


def authenticated_client(user):
    """Return an APIClient carrying a JWT access token for the user."""
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
    return client


@pytest.fixture
def alice_client(alice):
    return authenticated_client(alice)


@pytest.fixture
def bob_client(bob):
    return authenticated_client(bob)


@pytest.fixture
def carol_client(carol):
    return authenticated_client(carol)
