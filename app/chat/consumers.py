"""
WebSocket consumers for the chat application.

This module implements the WebSocket consumer for real-time chat,
delegating every rule to ChatService so sockets and HTTP behave alike.

Consumers:
    ChatConsumer: Handles WebSocket connections for chat rooms

Authentication:
    Users are authenticated via JWT token passed as query parameter.
    JWTAuthMiddleware attaches the user to self.scope["user"].

Channel Groups:
    Each room has a channel group named "chat_{room_id}". Each connected
    user also joins "chat_user_{user_id}", which carries per-user events
    such as unread counts.

Message Types (from client):
    - message: {"type": "message", "content": "...", "message_type": "TEXT"}
    - typing: {"type": "typing", "is_typing": true}
    - read: {"type": "read"}

Message Types (to client):
    - message: New message in the room
    - typing: Another member is typing
    - unread_count: Unread messages in the room for this user
    - user_joined / user_left: Presence in the room
    - error: {"type": "error", "error": "...", "error_code": "..."}

Close Codes:
    4001: Not authenticated
    4003: Not a member of the room
    4004: Room does not exist
"""

from __future__ import annotations

import logging
from uuid import UUID

from asgiref.sync import sync_to_async
from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer
from django.contrib.auth.models import AnonymousUser

from chat.constants import SOCKET_CONFIG
from chat.models import ChatRoom, MessageType
from chat.serializers import MessageSerializer
from chat.services import ChatService, MembershipService, RoomService
from chat.types import SendMessageData
from core.exceptions import BaseApplicationError
from core.rate_limit import RateLimiter

logger = logging.getLogger(__name__)

message_limiter = RateLimiter(
    key="chat_socket_message",
    limit=SOCKET_CONFIG.MESSAGE_LIMIT,
    period=SOCKET_CONFIG.RATE_LIMIT_PERIOD_SECONDS,
)
typing_limiter = RateLimiter(
    key="chat_socket_typing",
    limit=SOCKET_CONFIG.TYPING_LIMIT,
    period=SOCKET_CONFIG.RATE_LIMIT_PERIOD_SECONDS,
)
room_operation_limiter = RateLimiter(
    key="chat_socket_room_operation",
    limit=SOCKET_CONFIG.ROOM_OPERATION_LIMIT,
    period=SOCKET_CONFIG.RATE_LIMIT_PERIOD_SECONDS,
)


def user_group_name(user_id) -> str:
    return f"chat_user_{user_id}"


class ChatConsumer(AsyncJsonWebsocketConsumer):
    """
    WebSocket consumer for real-time chat functionality.

    Handles:
        - Connection authentication and authorization
        - Joining/leaving room and per-user channel groups
        - Sending messages and pushing unread counts to other members
        - Typing indicators
        - Read receipts

    Attributes:
        room_id: UUID of the connected room
        room_group_name: Channel layer group name for the room
        user_group_name: Channel layer group name for the connected user
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.room_id: UUID | None = None
        self.room_group_name: str | None = None
        self.user_group_name: str | None = None
        self.chat: ChatService | None = None

    async def connect(self):
        """
        Handle WebSocket connection.

        Validates:
            1. User is authenticated
            2. Room exists
            3. User is a member of the room

        On success, joins the channel groups, accepts the connection and
        announces the user to the room.
        """
        self.room_id = self.scope["url_route"]["kwargs"]["room_id"]

        user = self.scope.get("user")
        if not user or isinstance(user, AnonymousUser):
            logger.warning(f"Rejected unauthenticated connection to room {self.room_id}")
            await self.close(code=SOCKET_CONFIG.CLOSE_UNAUTHENTICATED)
            return

        if not await self._room_exists():
            logger.warning(
                f"User {user.id} tried to connect to non-existent room {self.room_id}"
            )
            await self.close(code=SOCKET_CONFIG.CLOSE_NOT_FOUND)
            return

        if not await self._is_member(user.id):
            logger.warning(f"User {user.id} is not a member of room {self.room_id}")
            await self.close(code=SOCKET_CONFIG.CLOSE_FORBIDDEN)
            return

        self.chat = ChatService.default()
        self.room_group_name = f"chat_{self.room_id}"
        self.user_group_name = user_group_name(user.id)

        await self.channel_layer.group_add(self.room_group_name, self.channel_name)
        await self.channel_layer.group_add(self.user_group_name, self.channel_name)
        subprotocols = self.scope.get("subprotocols", [])
        await self.accept(subprotocol="jwt" if "jwt" in subprotocols else None)

        await self.channel_layer.group_send(
            self.room_group_name,
            {"type": "chat.user_joined", "user_id": user.id},
        )
        logger.info(f"User {user.id} connected to room {self.room_id}")

    async def disconnect(self, close_code):
        """
        Handle WebSocket disconnection.

        Announces the departure and leaves the groups joined on connect.
        """
        if not self.room_group_name:
            return

        user = self.scope["user"]
        await self.channel_layer.group_send(
            self.room_group_name,
            {"type": "chat.user_left", "user_id": user.id},
        )
        await self.channel_layer.group_discard(self.room_group_name, self.channel_name)
        await self.channel_layer.group_discard(self.user_group_name, self.channel_name)
        logger.info(f"User {user.id} disconnected from room {self.room_id}")

    async def receive_json(self, content):
        """
        Handle incoming WebSocket messages.

        Service errors (including rate limits) are reported back to this
        client as an error event; the connection stays open.
        """
        handlers = {
            "message": (message_limiter, self._handle_message),
            "typing": (typing_limiter, self._handle_typing),
            "read": (room_operation_limiter, self._handle_read),
        }

        event_type = content.get("type") if isinstance(content, dict) else None
        if event_type not in handlers:
            await self.send_json(
                {
                    "type": "error",
                    "error": f"Unknown message type: {event_type}",
                    "error_code": "UNKNOWN_EVENT_TYPE",
                }
            )
            return

        limiter, handler = handlers[event_type]
        user = self.scope["user"]
        try:
            await sync_to_async(limiter.hit)(f"user:{user.id}")
            await handler(user, content)
        except BaseApplicationError as e:
            await self.send_json({"type": "error", **e.to_dict()})

    async def _handle_message(self, user, content):
        """
        Create the message and broadcast it.

        Other members then receive their new unread count on their own
        user group, whether or not they are connected to this room.
        """
        message = await self._send_message(
            user.id,
            content.get("content", ""),
            content.get("message_type") or MessageType.TEXT,
        )

        await self.channel_layer.group_send(
            self.room_group_name,
            {"type": "chat.message", "message": message},
        )

        for member_id, unread_count in (await self._unread_counts_for_others(user.id)).items():
            await self.channel_layer.group_send(
                user_group_name(member_id),
                {
                    "type": "chat.unread_count",
                    "room_id": str(self.room_id),
                    "unread_count": unread_count,
                },
            )

    async def _handle_typing(self, user, content):
        """Broadcast typing status to all other members."""
        await self.channel_layer.group_send(
            self.room_group_name,
            {
                "type": "chat.typing",
                "user_id": user.id,
                "is_typing": bool(content.get("is_typing", False)),
            },
        )

    async def _handle_read(self, user, content):
        """Mark the room read and reply with the new unread count."""
        unread_count = await self._mark_read(user.id)
        await self.send_json(
            {
                "type": "unread_count",
                "room_id": str(self.room_id),
                "unread_count": unread_count,
            }
        )

    # =========================================================================
    # Channel layer event handlers
    # =========================================================================

    async def chat_message(self, event):
        await self.send_json({"type": "message", "message": event["message"]})

    async def chat_typing(self, event):
        """Send typing indicator to the client, except to the sender."""
        if self.scope["user"].id == event["user_id"]:
            return

        await self.send_json(
            {
                "type": "typing",
                "user_id": event["user_id"],
                "is_typing": event["is_typing"],
            }
        )

    async def chat_unread_count(self, event):
        await self.send_json(
            {
                "type": "unread_count",
                "room_id": event["room_id"],
                "unread_count": event["unread_count"],
            }
        )

    async def chat_user_joined(self, event):
        await self.send_json({"type": "user_joined", "user_id": event["user_id"]})

    async def chat_user_left(self, event):
        await self.send_json({"type": "user_left", "user_id": event["user_id"]})

    # =========================================================================
    # Database access
    # =========================================================================

    @database_sync_to_async
    def _room_exists(self) -> bool:
        return ChatRoom.objects.filter(pk=self.room_id).exists()

    @database_sync_to_async
    def _is_member(self, user_id) -> bool:
        return MembershipService.is_member(self.room_id, user_id)

    @database_sync_to_async
    def _send_message(self, user_id, content: str, message_type: str) -> dict:
        message = self.chat.send_message(
            SendMessageData(
                room_id=self.room_id,
                author_id=user_id,
                content=content,
                message_type=message_type,
            )
        )
        return dict(MessageSerializer(message).data)

    @database_sync_to_async
    def _unread_counts_for_others(self, user_id) -> dict:
        return {
            member_id: RoomService.get_unread_count_for_user(self.room_id, member_id)
            for member_id in MembershipService.member_ids(self.room_id)
            if member_id != user_id
        }

    @database_sync_to_async
    def _mark_read(self, user_id) -> int:
        self.chat.update_last_read(self.room_id, user_id)
        return self.chat.get_unread_count(self.room_id, user_id)
