"""
Data types for chat operations.

Services return these dataclasses instead of model instances, so message
content is always the decrypted plaintext and user details come from the
user directory. Serializers render them for HTTP and WebSocket clients.

Types:
    CreateChatRoomData: Input for creating a room
    SendMessageData: Input for sending a message
    MessageData: A message with plaintext content
    LastMessagePreview: Latest message shown in room listings
    ChatRoomMemberData: A membership merged with the member's profile
    ChatRoomSummary: A room in the caller's room list
    ChatRoomDetail: A room with its members

Usage:
    from chat.types import CreateChatRoomData

    data = CreateChatRoomData(
        room_type=RoomType.GROUP,
        member_ids=[requester.id, friend.id],
        name="Weekend plans",
    )
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING
from uuid import UUID

from chat.models import MessageType, RoomType

if TYPE_CHECKING:
    from datetime import datetime

    from authentication.services import UserSummary


@dataclass
class CreateChatRoomData:
    """
    Parameters for creating a chat room.

    Attributes:
        room_type: DM or GROUP
        member_ids: Every member, the requester included
        name: Group name (ignored for DMs)
    """

    room_type: str
    member_ids: list[int]
    name: str = ""


@dataclass
class SendMessageData:
    """Parameters for sending a message."""

    room_id: UUID
    author_id: int
    content: str
    message_type: str = MessageType.TEXT


@dataclass
class MessageData:
    """
    A message as returned to clients.

    ``content`` is plaintext, or the decryption placeholder when the
    stored ciphertext could not be decrypted.
    """

    id: UUID
    room_id: UUID
    author_id: int
    content: str
    message_type: str
    is_encrypted: bool
    created_at: datetime
    updated_at: datetime
    author: UserSummary | None = None


@dataclass
class LastMessagePreview:
    """Latest message in a room, for room listings."""

    content: str
    created_at: datetime
    author_id: int
    author_name: str


@dataclass
class ChatRoomMemberData:
    """A room membership merged with the member's public profile."""

    id: int
    room_id: UUID
    user_id: int
    joined_at: datetime
    last_read_at: datetime | None
    user: UserSummary | None = None


@dataclass
class ChatRoomSummary:
    """A room in a user's room list, with counts and a preview."""

    id: UUID
    name: str
    room_type: str
    created_at: datetime
    updated_at: datetime
    member_count: int
    unread_count: int
    last_message: LastMessagePreview | None = None

    @property
    def is_dm(self) -> bool:
        return self.room_type == RoomType.DM


@dataclass
class ChatRoomDetail:
    """A single room with its members."""

    id: UUID
    name: str
    room_type: str
    created_at: datetime
    updated_at: datetime
    members: list[ChatRoomMemberData] = field(default_factory=list)
