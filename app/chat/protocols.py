"""
Interfaces the chat core consumes from other apps.

The chat services never import the social graph or the user tables
directly; they are handed objects satisfying these protocols.

Available Protocols:
    FollowOracle: Answers "does A follow B?"
    UserDirectory: Resolves user ids to public profiles

Default implementations:
    FollowOracle -> social.services.FollowService
    UserDirectory -> authentication.services.UserDirectoryService

Usage:
    class StaticOracle:
        def __init__(self, edges):
            self.edges = set(edges)

        def is_following(self, follower_id, followed_id):
            return (follower_id, followed_id) in self.edges

    # StaticOracle is a valid FollowOracle without inheriting from it
    gate = MutualFollowGate(StaticOracle({(1, 2), (2, 1)}))
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable

    from authentication.services import UserSummary


@runtime_checkable
class FollowOracle(Protocol):
    """Source of truth for directed follow relationships."""

    def is_following(self, follower_id: int, followed_id: int) -> bool:
        """Return True when ``follower_id`` follows ``followed_id``."""
        ...


@runtime_checkable
class UserDirectory(Protocol):
    """Lookup of active users' public profiles."""

    def get_by_id(self, user_id: int) -> UserSummary | None:
        """Return the profile, or None for unknown or inactive users."""
        ...

    def get_many(self, user_ids: Iterable[int]) -> dict[int, UserSummary]:
        """Return profiles keyed by id; unknown ids are absent."""
        ...
