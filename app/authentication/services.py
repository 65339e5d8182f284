"""
User directory service.

Resolves user ids to the small public view other apps display next to
chat rooms and messages. Nothing outside this module reads Profile
fields directly, so what counts as "public" is decided here.

Usage:
    from authentication.services import UserDirectoryService

    summary = UserDirectoryService.get_by_id(user_id)
    summaries = UserDirectoryService.get_many([1, 2, 3])  # {id: UserSummary}
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from authentication.models import Profile, User
from core.services import BaseService


@dataclass(frozen=True)
class UserSummary:
    """
    Public profile of a user.

    Attributes:
        id: User id
        username: Profile username ("" until the user picks one)
        name: Full name from the profile ("" when unset)
        profile_picture: Picture URL, or None
    """

    id: int
    username: str
    name: str
    profile_picture: str | None

    @classmethod
    def from_user(cls, user: User) -> UserSummary:
        try:
            profile = user.profile
        except Profile.DoesNotExist:
            return cls(id=user.pk, username="", name="", profile_picture=None)
        return cls(
            id=user.pk,
            username=profile.username,
            name=profile.name,
            profile_picture=profile.profile_picture.url if profile.profile_picture else None,
        )


class UserDirectoryService(BaseService):
    """Read-only lookups of active users."""

    @classmethod
    def _queryset(cls):
        return User.objects.filter(is_active=True).select_related("profile")

    @classmethod
    def get_by_id(cls, user_id: int) -> UserSummary | None:
        """Return the user's public profile, or None when unknown or inactive."""
        user = cls._queryset().filter(pk=user_id).first()
        return UserSummary.from_user(user) if user else None

    @classmethod
    def get_many(cls, user_ids: Iterable[int]) -> dict[int, UserSummary]:
        """Return public profiles keyed by id. Unknown ids are absent."""
        return {
            user.pk: UserSummary.from_user(user)
            for user in cls._queryset().filter(pk__in=set(user_ids))
        }
