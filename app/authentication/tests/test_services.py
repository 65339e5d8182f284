"""
Tests for UserDirectoryService.

The chat core never reads Profile fields directly; it goes through
these lookups to embed author and member details.
"""

from authentication.services import UserDirectoryService, UserSummary
from authentication.tests.factories import UserFactory


class TestUserDirectoryGetById:
    """
    Verifies:
    - Known users resolve to a public summary
    - Unknown and inactive users resolve to None
    """

    def test_returns_public_summary(self, user_with_profile):
        summary = UserDirectoryService.get_by_id(user_with_profile.id)

        assert summary == UserSummary(
            id=user_with_profile.id,
            username="ada_l",
            name="Ada Lovelace",
            profile_picture=None,
        )

    def test_unknown_user_returns_none(self, db):
        assert UserDirectoryService.get_by_id(987654) is None

    def test_inactive_user_returns_none(self, db):
        user = UserFactory(is_active=False)

        assert UserDirectoryService.get_by_id(user.id) is None


class TestUserDirectoryBulkLookups:
    """Verifies get_many skips unknown ids."""

    def test_get_many_keys_by_id(self, db):
        first, second = UserFactory(), UserFactory()

        summaries = UserDirectoryService.get_many([first.id, second.id, 987654])

        assert set(summaries) == {first.id, second.id}
        assert summaries[first.id].username == ""
