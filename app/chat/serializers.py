"""
Serializers for chat API.

Input serializers validate request shape only; business rules live in
chat.services. Output serializers render the dataclasses the services
return (chat.types), never model instances, so message content is always
plaintext.

Serializer Hierarchy:
    Input:
        ChatRoomCreateSerializer: Create a DM or group
        DirectRoomCreateSerializer: Find or create a DM with one user
        ChatRoomUpdateSerializer: Rename a group
        MessageCreateSerializer: Send a message
        MessageUpdateSerializer: Edit a message
        MessageListQuerySerializer: limit/cursor query parameters
        MemberCreateSerializer: Add a member

    Output:
        UserSummarySerializer
        MessageSerializer
        LastMessagePreviewSerializer
        ChatRoomMemberSerializer
        ChatRoomSummarySerializer
        ChatRoomDetailSerializer
        UnreadCountSerializer
"""

from __future__ import annotations

from rest_framework import serializers

from chat.constants import MESSAGE_CONFIG
from chat.models import MessageType, RoomType

# Raw content may carry markup that sanitizing removes, so the request
# limit is looser than MESSAGE_CONFIG.MAX_CONTENT_LENGTH.
RAW_CONTENT_MAX_LENGTH = MESSAGE_CONFIG.MAX_CONTENT_LENGTH * 10


# =============================================================================
# Input Serializers
# =============================================================================


class ChatRoomCreateSerializer(serializers.Serializer):
    """
    Serializer for creating a chat room.

    member_ids must include the requesting user.
    """

    room_type = serializers.ChoiceField(
        choices=RoomType.choices,
        help_text="DM or GROUP",
    )
    member_ids = serializers.ListField(
        child=serializers.IntegerField(min_value=1),
        allow_empty=False,
        max_length=100,
        help_text="Ids of every member, including the requester",
    )
    name = serializers.CharField(
        max_length=100,
        required=False,
        allow_blank=True,
        default="",
        help_text="Group name (ignored for DMs)",
    )


class DirectRoomCreateSerializer(serializers.Serializer):
    """Serializer for opening a DM with another user."""

    user_id = serializers.IntegerField(
        min_value=1,
        help_text="The other user in the DM",
    )


class ChatRoomUpdateSerializer(serializers.Serializer):
    """Serializer for renaming a group."""

    name = serializers.CharField(max_length=100, allow_blank=True)


class MessageCreateSerializer(serializers.Serializer):
    """
    Serializer for sending a message.

    Content is not trimmed here; emptiness and length are judged after
    sanitizing by the message service.
    """

    content = serializers.CharField(
        max_length=RAW_CONTENT_MAX_LENGTH,
        allow_blank=True,
        trim_whitespace=False,
    )
    message_type = serializers.ChoiceField(
        choices=MessageType.choices,
        default=MessageType.TEXT,
    )


class MessageUpdateSerializer(serializers.Serializer):
    """Serializer for editing a message."""

    content = serializers.CharField(
        max_length=RAW_CONTENT_MAX_LENGTH,
        allow_blank=True,
        trim_whitespace=False,
    )


class MessageListQuerySerializer(serializers.Serializer):
    """Query parameters for listing messages."""

    limit = serializers.IntegerField(
        required=False,
        min_value=1,
        max_value=MESSAGE_CONFIG.MAX_PAGE_SIZE,
        help_text=f"Page size (default {MESSAGE_CONFIG.DEFAULT_PAGE_SIZE})",
    )
    cursor = serializers.UUIDField(
        required=False,
        help_text="Id of the oldest message already received",
    )


class MemberCreateSerializer(serializers.Serializer):
    """Serializer for adding a member to a group."""

    user_id = serializers.IntegerField(min_value=1)


# =============================================================================
# Output Serializers
# =============================================================================


class UserSummarySerializer(serializers.Serializer):
    """Public profile of a user."""

    id = serializers.IntegerField(read_only=True)
    username = serializers.CharField(read_only=True)
    name = serializers.CharField(read_only=True)
    profile_picture = serializers.CharField(read_only=True, allow_null=True)


class MessageSerializer(serializers.Serializer):
    """A message with plaintext content and its author."""

    id = serializers.UUIDField(read_only=True)
    room_id = serializers.UUIDField(read_only=True)
    author_id = serializers.IntegerField(read_only=True)
    author = UserSummarySerializer(read_only=True, allow_null=True)
    content = serializers.CharField(read_only=True)
    message_type = serializers.CharField(read_only=True)
    is_encrypted = serializers.BooleanField(read_only=True)
    created_at = serializers.DateTimeField(read_only=True)
    updated_at = serializers.DateTimeField(read_only=True)


class LastMessagePreviewSerializer(serializers.Serializer):
    """Latest message shown in room listings."""

    content = serializers.CharField(read_only=True)
    created_at = serializers.DateTimeField(read_only=True)
    author_id = serializers.IntegerField(read_only=True)
    author_name = serializers.CharField(read_only=True)


class ChatRoomMemberSerializer(serializers.Serializer):
    """A membership with the member's public profile."""

    id = serializers.IntegerField(read_only=True)
    room_id = serializers.UUIDField(read_only=True)
    user_id = serializers.IntegerField(read_only=True)
    user = UserSummarySerializer(read_only=True, allow_null=True)
    joined_at = serializers.DateTimeField(read_only=True)
    last_read_at = serializers.DateTimeField(read_only=True, allow_null=True)


class ChatRoomSummarySerializer(serializers.Serializer):
    """A room in the caller's room list."""

    id = serializers.UUIDField(read_only=True)
    name = serializers.CharField(read_only=True)
    room_type = serializers.CharField(read_only=True)
    member_count = serializers.IntegerField(read_only=True)
    unread_count = serializers.IntegerField(read_only=True)
    last_message = LastMessagePreviewSerializer(read_only=True, allow_null=True)
    created_at = serializers.DateTimeField(read_only=True)
    updated_at = serializers.DateTimeField(read_only=True)


class ChatRoomDetailSerializer(serializers.Serializer):
    """A room with its members."""

    id = serializers.UUIDField(read_only=True)
    name = serializers.CharField(read_only=True)
    room_type = serializers.CharField(read_only=True)
    members = ChatRoomMemberSerializer(many=True, read_only=True)
    created_at = serializers.DateTimeField(read_only=True)
    updated_at = serializers.DateTimeField(read_only=True)


class UnreadCountSerializer(serializers.Serializer):
    """Unread message count for one room."""

    room_id = serializers.UUIDField(read_only=True)
    unread_count = serializers.IntegerField(read_only=True)
