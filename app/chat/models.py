"""
Chat system models.

This module defines the data models for the chat system supporting:
- Direct (1:1) rooms between exactly two users
- Group rooms with one or more members

Models:
    ChatRoom: Container for messages between members
    DirectRoomPair: Helper for enforcing uniqueness of DM rooms
    ChatRoomMember: User membership in a room with a read cursor
    Message: Individual message within a room, optionally encrypted

Design Decisions:
    - DM rooms are immutable once created (no adding/removing members)
    - DM uniqueness is enforced by the database, not by application locks
    - Message content is stored as hex ciphertext when encryption is on;
      iv and tag are present exactly when is_encrypted is True
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models import F, Q

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


class RoomType(models.TextChoices):
    """
    Type of chat room.

    DM: Exactly two members, immutable membership, no name
    GROUP: One or more members, renameable
    """

    DM = "DM", "Direct Message"
    GROUP = "GROUP", "Group"


class MessageType(models.TextChoices):
    """Type of message content."""

    TEXT = "TEXT", "Text"
    IMAGE = "IMAGE", "Image"
    FILE = "FILE", "File"


class ChatRoom(UUIDPrimaryKeyMixin, BaseModel):
    """
    A chat room between one or more users.

    Room Types:
        DM: Exactly 2 members. Unique per user pair (enforced via
            DirectRoomPair). Name is always empty.

        GROUP: 1+ members. Name may be changed by any member.

    Fields:
        name: Group name (empty string for DMs)
        room_type: DM or GROUP

    Relationships:
        memberships: All ChatRoomMember records for this room
        messages: All Message records for this room
        direct_pair: DirectRoomPair if type is DM

    Note:
        updated_at is bumped whenever a message is sent, so ordering by it
        lists rooms by latest activity.
    """

    name = models.CharField(
        max_length=100,
        blank=True,
        default="",
        help_text="Name for group rooms (empty for DMs)",
    )

    room_type = models.CharField(
        max_length=10,
        choices=RoomType.choices,
        default=RoomType.GROUP,
        db_index=True,
        help_text="Type of room (DM or GROUP)",
    )

    class Meta:
        db_table = "chat_room"
        ordering = ["-updated_at", "-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=~Q(room_type=RoomType.DM) | Q(name=""),
                name="chat_room_dm_has_no_name",
            ),
        ]

    def __str__(self) -> str:
        """Return human-readable representation."""
        if self.room_type == RoomType.DM:
            return f"DM({self.pk})"
        if self.name:
            return f"Group: {self.name}"
        return f"Group({self.pk})"

    @property
    def is_dm(self) -> bool:
        """Check if this is a DM room."""
        return self.room_type == RoomType.DM

    @property
    def is_group(self) -> bool:
        """Check if this is a group room."""
        return self.room_type == RoomType.GROUP


class DirectRoomPair(models.Model):
    """
    Enforces uniqueness of DM rooms between two users.

    Stores user pairs in canonical order (lower user id first), so there
    can only be one DM between any pair regardless of who starts it.

    Fields:
        room: The DM room (OneToOne, serves as PK)
        user_lower: User with lower id
        user_higher: User with higher id

    Constraints:
        - UniqueConstraint(user_lower, user_higher): One DM per pair
        - CheckConstraint(user_lower_id < user_higher_id): Canonical order
    """

    room = models.OneToOneField(
        ChatRoom,
        on_delete=models.CASCADE,
        primary_key=True,
        related_name="direct_pair",
        help_text="The DM room this pair represents",
    )

    user_lower = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="+",
        help_text="User with lower id in this pair",
    )

    user_higher = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="+",
        help_text="User with higher id in this pair",
    )

    class Meta:
        db_table = "chat_direct_room_pair"
        constraints = [
            models.UniqueConstraint(
                fields=["user_lower", "user_higher"],
                name="unique_direct_room_pair",
            ),
            models.CheckConstraint(
                condition=Q(user_lower_id__lt=F("user_higher_id")),
                name="direct_pair_user_lower_less_than_higher",
            ),
        ]

    def __str__(self) -> str:
        """Return human-readable representation."""
        return f"DirectPair({self.user_lower_id}, {self.user_higher_id})"

    @staticmethod
    def canonical(user1_id: int, user2_id: int) -> tuple[int, int]:
        """Return the pair ordered lower id first."""
        return (user1_id, user2_id) if user1_id < user2_id else (user2_id, user1_id)


class ChatRoomMember(models.Model):
    """
    A user's membership in a chat room.

    Fields:
        room: Room this membership belongs to
        user: Member
        joined_at: When the user joined
        last_read_at: Read cursor; messages after it count as unread.
            NULL means the member has never read the room.

    Constraints:
        - UniqueConstraint(room, user): One membership per user per room
    """

    room = models.ForeignKey(
        ChatRoom,
        on_delete=models.CASCADE,
        related_name="memberships",
        help_text="Room this membership belongs to",
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="chat_memberships",
        help_text="Member of the room",
    )

    joined_at = models.DateTimeField(
        auto_now_add=True,
        help_text="When the user joined this room",
    )

    last_read_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Last time the user read this room (for unread counts)",
    )

    class Meta:
        db_table = "chat_room_member"
        ordering = ["joined_at", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["room", "user"],
                name="unique_chat_room_member",
            ),
        ]
        indexes = [
            models.Index(fields=["user", "room"], name="chat_member_user_room_idx"),
        ]

    def __str__(self) -> str:
        """Return human-readable representation."""
        return f"Member: {self.user_id} in {self.room_id}"


class Message(UUIDPrimaryKeyMixin, BaseModel):
    """
    A message within a chat room.

    Storage:
        When is_encrypted is True, content holds hex ciphertext and iv/tag
        hold the hex AES-GCM nonce and authentication tag. Otherwise content
        is the sanitized plaintext and iv/tag are NULL.

    Fields:
        room: Room this message belongs to
        author: User who sent the message
        content: Sanitized plaintext or hex ciphertext
        message_type: TEXT, IMAGE or FILE
        is_encrypted: Whether content is ciphertext
        iv: Hex nonce (NULL when not encrypted)
        tag: Hex GCM tag (NULL when not encrypted)
    """

    room = models.ForeignKey(
        ChatRoom,
        on_delete=models.CASCADE,
        related_name="messages",
        help_text="Room this message belongs to",
    )

    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="chat_messages",
        help_text="User who sent this message",
    )

    content = models.TextField(
        help_text="Sanitized plaintext, or hex ciphertext when encrypted",
    )

    message_type = models.CharField(
        max_length=10,
        choices=MessageType.choices,
        default=MessageType.TEXT,
        help_text="Type of message content",
    )

    is_encrypted = models.BooleanField(
        default=False,
        help_text="Whether content is stored encrypted",
    )

    iv = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        help_text="Hex-encoded AES-GCM nonce",
    )

    tag = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        help_text="Hex-encoded AES-GCM authentication tag",
    )

    class Meta:
        db_table = "chat_message"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(
                fields=["room", "created_at", "id"],
                name="chat_msg_room_cursor_idx",
            ),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(is_encrypted=True, iv__isnull=False, tag__isnull=False)
                    | Q(is_encrypted=False, iv__isnull=True, tag__isnull=True)
                ),
                name="chat_msg_iv_tag_iff_encrypted",
            ),
        ]

    def __str__(self) -> str:
        """Return human-readable representation."""
        state = "encrypted" if self.is_encrypted else "plain"
        return f"Message {self.pk} by {self.author_id} [{state}]"
