"""
Follow relationship service.

FollowService is the default follow oracle for the chat core: it
answers ``is_following(follower_id, followed_id)`` from the Follow table.
"""

from __future__ import annotations

from django.db import IntegrityError

from core.exceptions import ValidationError
from core.services import BaseService
from social.models import Follow


class FollowService(BaseService):
    """Create, remove and query follow edges."""

    @classmethod
    def is_following(cls, follower_id, followed_id) -> bool:
        """Return True when ``follower_id`` follows ``followed_id``."""
        return Follow.objects.filter(
            follower_id=follower_id,
            followed_id=followed_id,
        ).exists()

    @classmethod
    def is_mutual(cls, user1_id, user2_id) -> bool:
        """Return True when both users follow each other."""
        return cls.is_following(user1_id, user2_id) and cls.is_following(
            user2_id, user1_id
        )

    @classmethod
    def follow(cls, follower_id, followed_id) -> Follow:
        """
        Create a follow edge. Following someone twice is a no-op.

        Raises:
            ValidationError: If a user tries to follow themselves
        """
        if follower_id == followed_id:
            raise ValidationError(
                "Users cannot follow themselves",
                error_code="SELF_FOLLOW",
            )
        try:
            follow, created = Follow.objects.get_or_create(
                follower_id=follower_id,
                followed_id=followed_id,
            )
        except IntegrityError:
            # Lost a race with an identical request
            follow, created = Follow.objects.get(
                follower_id=follower_id, followed_id=followed_id
            ), False
        if created:
            cls.get_logger().info(f"User {follower_id} followed {followed_id}")
        return follow

    @classmethod
    def unfollow(cls, follower_id, followed_id) -> bool:
        """Remove a follow edge. Returns True if an edge was removed."""
        deleted, _ = Follow.objects.filter(
            follower_id=follower_id,
            followed_id=followed_id,
        ).delete()
        return deleted > 0
