"""
Chat system service layer.

This module provides the business logic for the chat system, encapsulating
all operations on rooms, memberships and messages.

Services:
    RoomService: Room lifecycle (DM find-or-create, group creation, rename, delete)
    MembershipService: Membership checks, add/remove/leave, read cursors
    MessageService: Sanitize, encrypt, store and read back messages
    ChatService: Facade used by views and consumers; adds mutual-follow checks

Design Principles:
    - RoomService and MembershipService are stateless (use class methods)
    - MessageService and ChatService are built with their collaborators
      (cipher, follow gate, user directory) and keep no per-request state
    - Expected failures raise typed exceptions from chat.exceptions
    - Multi-row writes run inside a single transaction

Usage:
    from chat.services import ChatService

    chat = ChatService.default()

    room = chat.find_or_create_dm_chat_room(alice.id, bob.id)
    message = chat.send_message(
        SendMessageData(room_id=room.id, author_id=alice.id, content="hello")
    )
    chat.get_unread_count(room.id, bob.id)  # 1
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING

from django.db import IntegrityError
from django.db.models import Q
from django.utils import timezone

from authentication.services import UserDirectoryService
from chat.constants import MESSAGE_CONFIG
from chat.encryption import EncryptionConfig, MessageCipher
from chat.exceptions import (
    ChatRoomNotFoundError,
    EncryptionNotConfiguredError,
    MessageDecryptionError,
    MessageNotFoundError,
    MutualFollowRequiredError,
    NotChatRoomMemberError,
    NotMessageAuthorError,
    UserNotFoundError,
)
from chat.follow_gate import MutualFollowGate
from chat.models import (
    ChatRoom,
    ChatRoomMember,
    DirectRoomPair,
    Message,
    MessageType,
    RoomType,
)
from chat.sanitizers import sanitize_message_content
from chat.types import (
    ChatRoomDetail,
    ChatRoomMemberData,
    ChatRoomSummary,
    CreateChatRoomData,
    LastMessagePreview,
    MessageData,
    SendMessageData,
)
from core.exceptions import ConflictError, PermissionDeniedError, ValidationError
from core.services import BaseService
from social.services import FollowService

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from chat.protocols import UserDirectory


def _dm_membership_error(room: ChatRoom) -> ValidationError:
    return ValidationError(
        "DM chat membership cannot be changed",
        error_code="DM_MEMBERSHIP_IMMUTABLE",
        details={"room_id": str(room.id)},
    )


class RoomService(BaseService):
    """
    Service for room lifecycle operations.

    Methods:
        find_or_create_dm: Return the single DM for a user pair, creating it once
        create_group_with_members: Create a group and its memberships atomically
        get_by_id: Fetch a room or raise ChatRoomNotFoundError
        find_by_member: Rooms a user belongs to, latest activity first
        update_name: Rename a group
        delete: Delete a room with its memberships and messages
        get_unread_count_for_user: Unread messages for one member
    """

    user_directory: UserDirectory = UserDirectoryService

    @classmethod
    def ensure_users_exist(cls, user_ids: Iterable[int]) -> None:
        """
        Raise UserNotFoundError unless every id resolves to an active user.
        """
        wanted = list(dict.fromkeys(user_ids))
        found = cls.user_directory.get_many(wanted)
        missing = [user_id for user_id in wanted if user_id not in found]
        if missing:
            raise UserNotFoundError(
                "User not found",
                details={"user_ids": missing},
            )

    @classmethod
    def _find_dm(cls, user_lower_id: int, user_higher_id: int) -> ChatRoom | None:
        pair = (
            DirectRoomPair.objects.select_related("room")
            .filter(user_lower_id=user_lower_id, user_higher_id=user_higher_id)
            .first()
        )
        return pair.room if pair else None

    @classmethod
    def find_or_create_dm(cls, user1_id: int, user2_id: int) -> ChatRoom:
        """
        Return the DM room between two users, creating it if needed.

        DMs are unique per user pair. Concurrent callers for the same pair
        all receive the same room: the loser of a creation race hits the
        DirectRoomPair unique constraint, rolls back its savepoint and
        reads the winner's room.

        Implementation:
            1. Validate users are different
            2. Canonicalize order (lower user id first)
            3. Look up existing DirectRoomPair
            4. If not found, create room, pair and both memberships
               in a savepoint

        Raises:
            ValidationError: Both ids are the same user
            UserNotFoundError: Either user does not exist
        """
        if user1_id == user2_id:
            raise ValidationError(
                "Cannot create a DM chat with yourself",
                error_code="SAME_USER",
            )

        user_lower_id, user_higher_id = DirectRoomPair.canonical(user1_id, user2_id)

        with cls.atomic():
            existing = cls._find_dm(user_lower_id, user_higher_id)
            if existing:
                cls.get_logger().debug(
                    f"Found existing DM {existing.id} "
                    f"between users {user_lower_id} and {user_higher_id}"
                )
                return existing

            cls.ensure_users_exist([user_lower_id, user_higher_id])

            try:
                with cls.atomic():
                    room = ChatRoom.objects.create(room_type=RoomType.DM, name="")
                    DirectRoomPair.objects.create(
                        room=room,
                        user_lower_id=user_lower_id,
                        user_higher_id=user_higher_id,
                    )
                    ChatRoomMember.objects.bulk_create(
                        [
                            ChatRoomMember(room=room, user_id=user_lower_id),
                            ChatRoomMember(room=room, user_id=user_higher_id),
                        ]
                    )
            except IntegrityError:
                winner = cls._find_dm(user_lower_id, user_higher_id)
                if winner is None:
                    raise
                cls.get_logger().info(
                    f"Lost DM creation race for users {user_lower_id} and "
                    f"{user_higher_id}; using room {winner.id}"
                )
                return winner

        cls.get_logger().info(
            f"Created DM {room.id} between users {user_lower_id} and {user_higher_id}"
        )
        return room

    @classmethod
    def create_group_with_members(cls, name: str, member_ids: Iterable[int]) -> ChatRoom:
        """
        Create a group room and all of its memberships in one transaction.

        Duplicate ids are collapsed. If any membership cannot be created,
        the room is rolled back too.

        Raises:
            ValidationError: No members, or name too long
            UserNotFoundError: Any member does not exist
        """
        member_ids = list(dict.fromkeys(member_ids))
        if not member_ids:
            raise ValidationError(
                "A group chat needs at least one member",
                error_code="NO_MEMBERS",
            )

        name = (name or "").strip()
        cls._validate_name(name)
        cls.ensure_users_exist(member_ids)

        with cls.atomic():
            room = ChatRoom.objects.create(room_type=RoomType.GROUP, name=name)
            ChatRoomMember.objects.bulk_create(
                [ChatRoomMember(room=room, user_id=user_id) for user_id in member_ids]
            )

        cls.get_logger().info(
            f"Created group room {room.id} with {len(member_ids)} members"
        )
        return room

    @classmethod
    def get_by_id(cls, room_id: UUID) -> ChatRoom:
        """
        Raises:
            ChatRoomNotFoundError: Room does not exist
        """
        room = ChatRoom.objects.filter(pk=room_id).first()
        if room is None:
            raise ChatRoomNotFoundError(
                "Chat room not found",
                details={"room_id": str(room_id)},
            )
        return room

    @classmethod
    def find_by_member(cls, user_id: int) -> list[ChatRoom]:
        """Rooms the user belongs to, most recently active first."""
        return list(
            ChatRoom.objects.filter(memberships__user_id=user_id).order_by(
                "-updated_at", "-created_at"
            )
        )

    @classmethod
    def update_name(cls, room_id: UUID, name: str) -> ChatRoom:
        """
        Rename a group room.

        Raises:
            ChatRoomNotFoundError: Room does not exist
            ValidationError: Room is a DM, or name too long
        """
        room = cls.get_by_id(room_id)
        if room.is_dm:
            raise ValidationError(
                "DM chats cannot be renamed",
                error_code="DM_RENAME_NOT_ALLOWED",
                details={"room_id": str(room.id)},
            )

        name = (name or "").strip()
        cls._validate_name(name)

        room.name = name
        room.save(update_fields=["name", "updated_at"])

        cls.get_logger().info(f"Renamed room {room.id}")
        return room

    @classmethod
    def delete(cls, room_id: UUID) -> None:
        """
        Delete a room. Memberships, the DM pair and messages cascade.

        Raises:
            ChatRoomNotFoundError: Room does not exist
        """
        room = cls.get_by_id(room_id)
        room.delete()
        cls.get_logger().info(f"Deleted room {room_id}")

    @classmethod
    def get_unread_count_for_user(cls, room_id: UUID, user_id: int) -> int:
        """
        Count messages the user has not read.

        Unread messages are those written by someone else after the
        member's last_read_at. If last_read_at is None, all of them count.

        Returns:
            Number of unread messages (0 if the user is not a member)
        """
        membership = ChatRoomMember.objects.filter(room_id=room_id, user_id=user_id).first()
        if membership is None:
            return 0

        queryset = Message.objects.filter(room_id=room_id).exclude(author_id=user_id)
        if membership.last_read_at:
            queryset = queryset.filter(created_at__gt=membership.last_read_at)

        return queryset.count()

    @staticmethod
    def _validate_name(name: str) -> None:
        max_length = ChatRoom._meta.get_field("name").max_length
        if len(name) > max_length:
            raise ValidationError(
                f"Chat room name cannot exceed {max_length} characters",
                error_code="NAME_TOO_LONG",
                details={"max_length": max_length},
            )


class MembershipService(BaseService):
    """
    Service for room memberships and read cursors.

    Methods:
        is_member: Existence check, no side effects
        require_member: Raise unless the user is a member
        add_member: Add a user to a group (requester must be a member)
        remove_member: Remove a member (self-removal only)
        get_members: Members with their public profiles
        update_last_read: Move a read cursor (last write wins)
        leave_chat_room: Leave a group; idempotent
        get_member_count: Number of members
    """

    user_directory: UserDirectory = UserDirectoryService

    @classmethod
    def is_member(cls, room_id: UUID, user_id: int) -> bool:
        return ChatRoomMember.objects.filter(room_id=room_id, user_id=user_id).exists()

    @classmethod
    def require_member(cls, room_id: UUID, user_id: int) -> None:
        """
        Raises:
            ChatRoomNotFoundError: Room does not exist
            NotChatRoomMemberError: Room exists but the user is not a member
        """
        if cls.is_member(room_id, user_id):
            return
        if not ChatRoom.objects.filter(pk=room_id).exists():
            raise ChatRoomNotFoundError(
                "Chat room not found",
                details={"room_id": str(room_id)},
            )
        cls.get_logger().warning(f"User {user_id} denied access to room {room_id}")
        raise NotChatRoomMemberError(
            "User is not a member of this chat room",
            details={"room_id": str(room_id)},
        )

    @classmethod
    def member_ids(cls, room_id: UUID) -> list[int]:
        return list(
            ChatRoomMember.objects.filter(room_id=room_id)
            .order_by("joined_at", "id")
            .values_list("user_id", flat=True)
        )

    @classmethod
    def add_member(
        cls, room_id: UUID, user_id: int, requester_id: int
    ) -> ChatRoomMemberData:
        """
        Add a user to a group room.

        Checks run in this order: requester membership, room existence,
        room type, existing membership, user existence.

        Raises:
            NotChatRoomMemberError: Requester is not a member
            ChatRoomNotFoundError: Room does not exist
            ValidationError: Room is a DM
            ConflictError: User is already a member
            UserNotFoundError: User does not exist
        """
        if not cls.is_member(room_id, requester_id):
            cls.get_logger().warning(
                f"User {requester_id} denied adding members to room {room_id}"
            )
            raise NotChatRoomMemberError(
                "User is not a member of this chat room",
                details={"room_id": str(room_id)},
            )

        room = RoomService.get_by_id(room_id)
        if room.is_dm:
            raise _dm_membership_error(room)

        if cls.is_member(room_id, user_id):
            raise ConflictError(
                "User is already a member of this chat room",
                error_code="ALREADY_MEMBER",
                details={"room_id": str(room_id), "user_id": user_id},
            )

        RoomService.ensure_users_exist([user_id])

        try:
            with cls.atomic():
                membership = ChatRoomMember.objects.create(room=room, user_id=user_id)
        except IntegrityError as e:
            raise ConflictError(
                "User is already a member of this chat room",
                error_code="ALREADY_MEMBER",
                details={"room_id": str(room_id), "user_id": user_id},
            ) from e

        cls.get_logger().info(
            f"User {requester_id} added user {user_id} to room {room_id}"
        )
        return cls._to_member_data(membership, cls.user_directory.get_by_id(user_id))

    @classmethod
    def remove_member(cls, room_id: UUID, user_id: int, requester_id: int) -> None:
        """
        Remove a member. Members can only remove themselves.

        Raises:
            ChatRoomNotFoundError: Room does not exist
            NotChatRoomMemberError: Requester is not a member
            PermissionDeniedError: Requester tried to remove someone else
            ValidationError: Room is a DM
        """
        cls.require_member(room_id, requester_id)

        if user_id != requester_id:
            cls.get_logger().warning(
                f"User {requester_id} tried to remove user {user_id} from room {room_id}"
            )
            raise PermissionDeniedError(
                "You can only remove yourself from chat rooms",
                error_code="SELF_REMOVAL_ONLY",
            )

        cls.leave_chat_room(room_id, user_id)

    @classmethod
    def get_members(cls, room_id: UUID, requester_id: int) -> list[ChatRoomMemberData]:
        """
        List members with their public profiles.

        Raises:
            ChatRoomNotFoundError: Room does not exist
            NotChatRoomMemberError: Requester is not a member
        """
        cls.require_member(room_id, requester_id)
        return cls.list_members(room_id)

    @classmethod
    def list_members(cls, room_id: UUID) -> list[ChatRoomMemberData]:
        """List members without an access check, for callers that already did one."""
        memberships = list(
            ChatRoomMember.objects.filter(room_id=room_id).order_by("joined_at", "id")
        )
        summaries = cls.user_directory.get_many(m.user_id for m in memberships)
        return [cls._to_member_data(m, summaries.get(m.user_id)) for m in memberships]

    @classmethod
    def update_last_read(
        cls, room_id: UUID, user_id: int, timestamp: datetime | None = None
    ) -> datetime:
        """
        Set the member's read cursor. Concurrent updates: last write wins.

        A user who is not a member is left untouched.

        Returns:
            The timestamp written
        """
        timestamp = timestamp or timezone.now()
        ChatRoomMember.objects.filter(room_id=room_id, user_id=user_id).update(
            last_read_at=timestamp
        )
        return timestamp

    @classmethod
    def leave_chat_room(cls, room_id: UUID, user_id: int) -> bool:
        """
        Leave a room. Leaving a room you are not in is a no-op.

        Raises:
            ValidationError: Room is a DM

        Returns:
            True if a membership was removed
        """
        room = ChatRoom.objects.filter(pk=room_id).first()
        if room is not None and room.is_dm:
            raise _dm_membership_error(room)

        deleted, _ = ChatRoomMember.objects.filter(room_id=room_id, user_id=user_id).delete()
        if deleted:
            cls.get_logger().info(f"User {user_id} left room {room_id}")
        return deleted > 0

    @classmethod
    def get_member_count(cls, room_id: UUID) -> int:
        return ChatRoomMember.objects.filter(room_id=room_id).count()

    @staticmethod
    def _to_member_data(membership: ChatRoomMember, summary) -> ChatRoomMemberData:
        return ChatRoomMemberData(
            id=membership.id,
            room_id=membership.room_id,
            user_id=membership.user_id,
            joined_at=membership.joined_at,
            last_read_at=membership.last_read_at,
            user=summary,
        )


class MessageService(BaseService):
    """
    Service for message operations.

    Content is sanitized, then encrypted when the cipher has a key.
    Everything returned to callers is plaintext.

    Methods:
        create_message: Store a message and move the author's read cursor
        get_chat_room_messages: Page through a room, newest first
        get_message: Fetch one message
        update_message: Edit a message (author only)
        get_last_message: Preview of a room's latest message
    """

    def __init__(
        self,
        cipher: MessageCipher,
        membership_service: type[MembershipService] = MembershipService,
        user_directory: UserDirectory = UserDirectoryService,
    ):
        self.cipher = cipher
        self.membership_service = membership_service
        self.user_directory = user_directory

    def create_message(
        self,
        room_id: UUID,
        author_id: int,
        content: str,
        message_type: str = MessageType.TEXT,
    ) -> MessageData:
        """
        Send a message to a room.

        The message row, the room's activity timestamp and the author's
        read cursor are written in one transaction.

        Raises:
            ChatRoomNotFoundError: Room does not exist
            NotChatRoomMemberError: Author is not a member
            InvalidMessageContentError: Content empty or too long after sanitizing
            ValidationError: Unknown message type
            EncryptionNotConfiguredError: Encryption required but no key
        """
        self.membership_service.require_member(room_id, author_id)
        self._validate_message_type(message_type)
        plaintext = sanitize_message_content(content)
        stored = self._seal(plaintext, room_id)

        with self.atomic():
            message = Message.objects.create(
                room_id=room_id,
                author_id=author_id,
                message_type=message_type,
                **stored,
            )
            now = timezone.now()
            ChatRoom.objects.filter(pk=room_id).update(updated_at=now)
            self.membership_service.update_last_read(room_id, author_id, now)

        self.get_logger().info(
            f"User {author_id} sent message {message.id} to room {room_id}"
        )
        return self._to_data(message, plaintext, self.user_directory.get_by_id(author_id))

    def get_chat_room_messages(
        self,
        room_id: UUID,
        user_id: int,
        limit: int | None = None,
        cursor: UUID | None = None,
    ) -> list[MessageData]:
        """
        Return a page of messages, newest first, and mark the room read.

        Membership and the cursor are checked before the read cursor is
        moved, so a rejected call changes nothing.

        Args:
            limit: Page size, clamped to 1..MAX_PAGE_SIZE
            cursor: Id of the last message already seen; the page starts
                strictly after it

        Raises:
            ChatRoomNotFoundError: Room does not exist
            NotChatRoomMemberError: User is not a member
            ValidationError: Cursor is not a message in this room
        """
        self.membership_service.require_member(room_id, user_id)

        limit = self._clamp_limit(limit)
        queryset = Message.objects.filter(room_id=room_id).order_by("-created_at", "-id")

        if cursor is not None:
            anchor = Message.objects.filter(pk=cursor, room_id=room_id).first()
            if anchor is None:
                raise ValidationError(
                    "Invalid cursor",
                    error_code="INVALID_CURSOR",
                    details={"cursor": str(cursor)},
                )
            queryset = queryset.filter(
                Q(created_at__lt=anchor.created_at)
                | Q(created_at=anchor.created_at, id__lt=anchor.id)
            )

        self.membership_service.update_last_read(room_id, user_id)

        messages = list(queryset[:limit])
        authors = self.user_directory.get_many({m.author_id for m in messages})
        return [
            self._to_data(m, self._open(m), authors.get(m.author_id)) for m in messages
        ]

    def get_message(self, message_id: UUID, user_id: int) -> MessageData:
        """
        Raises:
            MessageNotFoundError: Message does not exist
            NotChatRoomMemberError: User is not a member of the message's room
        """
        message = self._get_message(message_id)
        self.membership_service.require_member(message.room_id, user_id)
        return self._to_data(
            message, self._open(message), self.user_directory.get_by_id(message.author_id)
        )

    def update_message(self, message_id: UUID, content: str, user_id: int) -> MessageData:
        """
        Edit a message. The new content is sanitized and re-encrypted
        with a fresh nonce.

        Raises:
            MessageNotFoundError: Message does not exist
            NotMessageAuthorError: User did not write the message
            NotChatRoomMemberError: Author has since left the room
            InvalidMessageContentError: Content empty or too long after sanitizing
        """
        message = self._get_message(message_id)
        if message.author_id != user_id:
            self.get_logger().warning(
                f"User {user_id} tried to edit message {message_id} by another user"
            )
            raise NotMessageAuthorError(
                "User is not the author of this message",
                details={"message_id": str(message_id)},
            )
        self.membership_service.require_member(message.room_id, user_id)

        plaintext = sanitize_message_content(content)
        for field_name, value in self._seal(plaintext, message.room_id).items():
            setattr(message, field_name, value)
        message.save(update_fields=["content", "is_encrypted", "iv", "tag", "updated_at"])

        self.get_logger().info(f"User {user_id} edited message {message_id}")
        return self._to_data(message, plaintext, self.user_directory.get_by_id(user_id))

    def get_last_message(self, room_id: UUID) -> LastMessagePreview | None:
        """Latest message in a room with plaintext content, or None."""
        message = Message.objects.filter(room_id=room_id).order_by("-created_at", "-id").first()
        if message is None:
            return None

        author = self.user_directory.get_by_id(message.author_id)
        author_name = (author.name or author.username) if author else ""
        return LastMessagePreview(
            content=self._open(message),
            created_at=message.created_at,
            author_id=message.author_id,
            author_name=author_name,
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _seal(self, plaintext: str, room_id: UUID) -> dict:
        """Return the storage fields for plaintext content."""
        self.cipher.ensure_usable()
        if not self.cipher.is_enabled:
            return {"content": plaintext, "is_encrypted": False, "iv": None, "tag": None}

        payload = self.cipher.encrypt(plaintext, room_id)
        return {
            "content": payload.ciphertext,
            "is_encrypted": True,
            "iv": payload.iv,
            "tag": payload.tag,
        }

    def _open(self, message: Message) -> str:
        """
        Return displayable content for a stored message.

        A message that fails to decrypt is replaced by a placeholder so one
        bad row does not hide the rest of the page. Encrypted rows read
        without a key get the placeholder too, unless encryption is
        required, in which case the configuration error propagates.
        """
        if not message.is_encrypted:
            return message.content
        try:
            return self.cipher.decrypt(
                message.content, message.iv, message.tag, message.room_id
            )
        except MessageDecryptionError:
            self.get_logger().warning(f"Failed to decrypt message {message.id}")
            return MESSAGE_CONFIG.DECRYPTION_PLACEHOLDER
        except EncryptionNotConfiguredError:
            if self.cipher.config.required:
                raise
            self.get_logger().warning(
                f"No encryption key configured to read message {message.id}"
            )
            return MESSAGE_CONFIG.DECRYPTION_PLACEHOLDER

    @staticmethod
    def _get_message(message_id: UUID) -> Message:
        message = Message.objects.filter(pk=message_id).first()
        if message is None:
            raise MessageNotFoundError(
                "Message not found",
                details={"message_id": str(message_id)},
            )
        return message

    @staticmethod
    def _clamp_limit(limit: int | None) -> int:
        if limit is None:
            return MESSAGE_CONFIG.DEFAULT_PAGE_SIZE
        return max(1, min(int(limit), MESSAGE_CONFIG.MAX_PAGE_SIZE))

    @staticmethod
    def _validate_message_type(message_type: str) -> None:
        if message_type not in MessageType.values:
            raise ValidationError(
                "Unknown message type",
                error_code="INVALID_MESSAGE_TYPE",
                details={"allowed": list(MessageType.values)},
            )

    @staticmethod
    def _to_data(message: Message, content: str, author=None) -> MessageData:
        return MessageData(
            id=message.id,
            room_id=message.room_id,
            author_id=message.author_id,
            content=content,
            message_type=message.message_type,
            is_encrypted=message.is_encrypted,
            created_at=message.created_at,
            updated_at=message.updated_at,
            author=author,
        )


class ChatService(BaseService):
    """
    Entry point for transports.

    Composes the room, membership and message services and adds the
    mutual-follow requirement: users may only share a room with people
    they follow and who follow them back.

    A fresh MutualFollowGate is built for every operation that checks
    follows, so memoized answers never outlive one request.

    Example:
        chat = ChatService.default()
        detail = chat.create_chat_room(
            CreateChatRoomData(room_type=RoomType.GROUP, member_ids=[a, b, c], name="Trip"),
            requester_id=a,
        )
    """

    def __init__(
        self,
        room_service: type[RoomService],
        membership_service: type[MembershipService],
        message_service: MessageService,
        follow_gate_factory: Callable[[], MutualFollowGate],
        user_directory: UserDirectory,
    ):
        self.room_service = room_service
        self.membership_service = membership_service
        self.message_service = message_service
        self.follow_gate_factory = follow_gate_factory
        self.user_directory = user_directory

    @classmethod
    def default(cls) -> ChatService:
        """Wire the production collaborators from Django settings."""
        return cls(
            room_service=RoomService,
            membership_service=MembershipService,
            message_service=MessageService(MessageCipher(EncryptionConfig.from_settings())),
            follow_gate_factory=lambda: MutualFollowGate(FollowService),
            user_directory=UserDirectoryService,
        )

    # =========================================================================
    # Rooms
    # =========================================================================

    def create_chat_room(self, data: CreateChatRoomData, requester_id: int) -> ChatRoomDetail:
        """
        Create a DM or group room.

        Every pair of members must follow each other; pairs are checked in
        input order and the first failing pair is reported. A DM goes
        through find-or-create, so an existing DM is returned instead of
        a duplicate.

        Raises:
            ValidationError: Requester not in members, bad room type, or
                a DM without exactly 2 members
            MutualFollowRequiredError: Some pair does not follow each other
            FollowServiceUnavailableError: Follows cannot be verified
            UserNotFoundError: Some member does not exist
        """
        member_ids = list(dict.fromkeys(data.member_ids))

        if requester_id not in member_ids:
            raise ValidationError(
                "Requester must be included in the chat room members",
                error_code="REQUESTER_NOT_IN_MEMBERS",
            )

        if data.room_type not in RoomType.values:
            raise ValidationError(
                "Unknown chat room type",
                error_code="INVALID_ROOM_TYPE",
                details={"allowed": list(RoomType.values)},
            )

        if data.room_type == RoomType.DM and len(member_ids) != 2:
            raise ValidationError(
                "DM chats must have exactly 2 members",
                error_code="INVALID_DM_MEMBER_COUNT",
                details={"member_count": len(member_ids)},
            )

        pair = self.follow_gate_factory().first_non_mutual_pair(member_ids)
        if pair:
            self.get_logger().warning(
                f"Room creation by user {requester_id} refused: "
                f"users {pair[0]} and {pair[1]} are not mutual follows"
            )
            raise MutualFollowRequiredError(
                f"Users {pair[0]} and {pair[1]} must follow each other to be in the same group",
                details={"user_ids": list(pair)},
            )

        if data.room_type == RoomType.DM:
            room = self.room_service.find_or_create_dm(member_ids[0], member_ids[1])
        else:
            room = self.room_service.create_group_with_members(data.name, member_ids)

        return self._room_detail(room)

    def find_or_create_dm_chat_room(self, user1_id: int, user2_id: int) -> ChatRoomDetail:
        """
        Return the DM between two mutual followers, creating it once.

        Raises:
            ValidationError: Both ids are the same user
            MutualFollowRequiredError: Users do not follow each other
            FollowServiceUnavailableError: Follows cannot be verified
        """
        if user1_id == user2_id:
            raise ValidationError(
                "Cannot create a DM chat with yourself",
                error_code="SAME_USER",
            )

        if not self.follow_gate_factory().are_mutual(user1_id, user2_id):
            self.get_logger().warning(
                f"DM between users {user1_id} and {user2_id} refused: not mutual follows"
            )
            raise MutualFollowRequiredError(
                "Users must follow each other to chat",
                details={"user_ids": [user1_id, user2_id]},
            )

        return self._room_detail(self.room_service.find_or_create_dm(user1_id, user2_id))

    def get_user_chat_rooms(self, user_id: int) -> list[ChatRoomSummary]:
        """Rooms the user belongs to with member count, last message and unread count."""
        return [
            ChatRoomSummary(
                id=room.id,
                name=room.name,
                room_type=room.room_type,
                created_at=room.created_at,
                updated_at=room.updated_at,
                member_count=self.membership_service.get_member_count(room.id),
                unread_count=self.room_service.get_unread_count_for_user(room.id, user_id),
                last_message=self.message_service.get_last_message(room.id),
            )
            for room in self.room_service.find_by_member(user_id)
        ]

    def get_chat_room(self, room_id: UUID, user_id: int) -> ChatRoomDetail:
        self.membership_service.require_member(room_id, user_id)
        return self._room_detail(self.room_service.get_by_id(room_id))

    def update_chat_room(self, room_id: UUID, name: str, user_id: int) -> ChatRoomDetail:
        """Rename a group. Any member may rename."""
        self.membership_service.require_member(room_id, user_id)
        return self._room_detail(self.room_service.update_name(room_id, name))

    def delete_chat_room(self, room_id: UUID, user_id: int) -> None:
        """Delete a room. Any member may delete."""
        self.membership_service.require_member(room_id, user_id)
        self.room_service.delete(room_id)

    # =========================================================================
    # Messages
    # =========================================================================

    def send_message(self, data: SendMessageData) -> MessageData:
        return self.message_service.create_message(
            room_id=data.room_id,
            author_id=data.author_id,
            content=data.content,
            message_type=data.message_type,
        )

    def get_chat_room_messages(
        self,
        room_id: UUID,
        user_id: int,
        limit: int | None = None,
        cursor: UUID | None = None,
    ) -> list[MessageData]:
        return self.message_service.get_chat_room_messages(
            room_id, user_id, limit=limit, cursor=cursor
        )

    def get_message(self, message_id: UUID, user_id: int) -> MessageData:
        return self.message_service.get_message(message_id, user_id)

    def update_message(self, message_id: UUID, content: str, user_id: int) -> MessageData:
        return self.message_service.update_message(message_id, content, user_id)

    # =========================================================================
    # Members
    # =========================================================================

    def get_chat_room_members(self, room_id: UUID, user_id: int) -> list[ChatRoomMemberData]:
        return self.membership_service.get_members(room_id, user_id)

    def add_member(self, room_id: UUID, user_id: int, requester_id: int) -> ChatRoomMemberData:
        """
        Add a user to a group.

        The new member must mutually follow every current member.

        Raises:
            NotChatRoomMemberError: Requester is not a member
            ChatRoomNotFoundError: Room does not exist
            ValidationError: Room is a DM
            MutualFollowRequiredError: New member and some member are not mutual
            ConflictError: User is already a member
            UserNotFoundError: User does not exist
        """
        if not self.membership_service.is_member(room_id, requester_id):
            raise NotChatRoomMemberError(
                "User is not a member of this chat room",
                details={"room_id": str(room_id)},
            )

        room = self.room_service.get_by_id(room_id)
        if room.is_dm:
            raise _dm_membership_error(room)

        gate = self.follow_gate_factory()
        for member_id in self.membership_service.member_ids(room_id):
            if member_id != user_id and not gate.are_mutual(user_id, member_id):
                raise MutualFollowRequiredError(
                    f"Users {user_id} and {member_id} must follow each other "
                    "to be in the same group",
                    details={"user_ids": [user_id, member_id]},
                )

        return self.membership_service.add_member(room_id, user_id, requester_id)

    def remove_member(self, room_id: UUID, user_id: int, requester_id: int) -> None:
        self.membership_service.remove_member(room_id, user_id, requester_id)

    def leave_chat_room(self, room_id: UUID, user_id: int) -> bool:
        return self.membership_service.leave_chat_room(room_id, user_id)

    # =========================================================================
    # Read state
    # =========================================================================

    def update_last_read(self, room_id: UUID, user_id: int) -> datetime:
        """Mark the room read up to now."""
        self.membership_service.require_member(room_id, user_id)
        return self.membership_service.update_last_read(room_id, user_id)

    def get_unread_count(self, room_id: UUID, user_id: int) -> int:
        self.membership_service.require_member(room_id, user_id)
        return self.room_service.get_unread_count_for_user(room_id, user_id)

    def _room_detail(self, room: ChatRoom) -> ChatRoomDetail:
        return ChatRoomDetail(
            id=room.id,
            name=room.name,
            room_type=room.room_type,
            created_at=room.created_at,
            updated_at=room.updated_at,
            members=self.membership_service.list_members(room.id),
        )
