"""
Social graph models.

Follow is a directed edge: ``follower`` follows ``followed``. A mutual
follow is two edges, one in each direction.
"""

from django.conf import settings
from django.db import models
from django.db.models import F, Q

from core.models import BaseModel


class Follow(BaseModel):
    """
    A directed follow relationship between two users.

    Fields:
        follower: User who follows
        followed: User being followed

    Constraints:
        - One row per (follower, followed)
        - Users cannot follow themselves
    """

    follower = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="following_edges",
        help_text="User who follows",
    )
    followed = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="follower_edges",
        help_text="User being followed",
    )

    class Meta:
        db_table = "social_follow"
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["follower", "followed"],
                name="unique_follow_edge",
            ),
            models.CheckConstraint(
                condition=~Q(follower=F("followed")),
                name="no_self_follow",
            ),
        ]

    def __str__(self):
        return f"{self.follower_id} -> {self.followed_id}"
