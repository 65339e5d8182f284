"""
ViewSets for chat API.

This module provides REST API endpoints for the chat system:
- ChatRoomViewSet: Room CRUD and room actions
- ChatRoomMemberViewSet: Membership management (nested under room)
- MessageViewSet: Message operations (nested under room)

URL Structure:
    /api/v1/chat/rooms/                                 GET, POST
    /api/v1/chat/rooms/dm/                              POST
    /api/v1/chat/rooms/{id}/                            GET, PATCH, DELETE
    /api/v1/chat/rooms/{id}/read/                       POST
    /api/v1/chat/rooms/{id}/leave/                      POST
    /api/v1/chat/rooms/{id}/unread-count/               GET
    /api/v1/chat/rooms/{id}/members/                    GET, POST
    /api/v1/chat/rooms/{id}/members/{user_id}/          DELETE
    /api/v1/chat/rooms/{id}/messages/                   GET, POST
    /api/v1/chat/rooms/{id}/messages/{message_id}/      GET, PATCH

Design Decisions:
    - Views only parse input and render output; every rule is enforced
      by ChatService, so HTTP and WebSocket behave the same
    - Service errors are rendered with their to_dict() body and the
      status of their error category
"""

from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import (
    OpenApiParameter,
    OpenApiResponse,
    extend_schema,
    extend_schema_view,
)
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from chat.serializers import (
    ChatRoomCreateSerializer,
    ChatRoomDetailSerializer,
    ChatRoomMemberSerializer,
    ChatRoomSummarySerializer,
    ChatRoomUpdateSerializer,
    DirectRoomCreateSerializer,
    MemberCreateSerializer,
    MessageCreateSerializer,
    MessageListQuerySerializer,
    MessageSerializer,
    MessageUpdateSerializer,
    UnreadCountSerializer,
)
from chat.exceptions import MessageNotFoundError
from chat.services import ChatService
from chat.types import CreateChatRoomData, SendMessageData
from core.exceptions import BaseApplicationError, http_status_for


class ChatServiceViewMixin:
    """
    Shared plumbing for chat views.

    Provides the ChatService instance and renders BaseApplicationError
    raised anywhere in a handler as a JSON error response.
    """

    permission_classes = [IsAuthenticated]

    def get_chat_service(self) -> ChatService:
        return ChatService.default()

    def handle_exception(self, exc):
        if isinstance(exc, BaseApplicationError):
            return Response(exc.to_dict(), status=http_status_for(exc))
        return super().handle_exception(exc)


ERROR_RESPONSES = {
    400: OpenApiResponse(description="Invalid input"),
    403: OpenApiResponse(description="Not a member, or mutual follow required"),
    404: OpenApiResponse(description="Chat room, message or user not found"),
}


# =============================================================================
# Rooms
# =============================================================================


@extend_schema_view(
    list=extend_schema(
        operation_id="list_chat_rooms",
        summary="List chat rooms",
        description="Rooms the current user belongs to, most recently active first.",
        responses={200: ChatRoomSummarySerializer(many=True)},
        tags=["Chat - Rooms"],
    ),
    create=extend_schema(
        operation_id="create_chat_room",
        summary="Create chat room",
        description=(
            "Create a DM or group. Every pair of members must follow each other. "
            "Creating a DM that already exists returns the existing room."
        ),
        request=ChatRoomCreateSerializer,
        responses={201: ChatRoomDetailSerializer, **ERROR_RESPONSES},
        tags=["Chat - Rooms"],
    ),
    retrieve=extend_schema(
        operation_id="get_chat_room",
        summary="Get chat room",
        responses={200: ChatRoomDetailSerializer, **ERROR_RESPONSES},
        tags=["Chat - Rooms"],
    ),
    partial_update=extend_schema(
        operation_id="rename_chat_room",
        summary="Rename group chat",
        request=ChatRoomUpdateSerializer,
        responses={200: ChatRoomDetailSerializer, **ERROR_RESPONSES},
        tags=["Chat - Rooms"],
    ),
    destroy=extend_schema(
        operation_id="delete_chat_room",
        summary="Delete chat room",
        responses={204: None, **ERROR_RESPONSES},
        tags=["Chat - Rooms"],
    ),
)
class ChatRoomViewSet(ChatServiceViewMixin, viewsets.ViewSet):
    """
    ViewSet for chat room operations.

    list:
        Rooms of the current user with member count, last message preview
        and unread count.

    create:
        Create a DM or group room. The requester must be in member_ids.

    dm:
        Find or create the DM between the current user and user_id.

    retrieve / partial_update / destroy:
        Members only. Only groups can be renamed.

    read:
        Mark the room read up to now.

    leave:
        Leave a group.

    unread_count:
        Unread messages for the current user.
    """

    def list(self, request):
        rooms = self.get_chat_service().get_user_chat_rooms(request.user.id)
        return Response(ChatRoomSummarySerializer(rooms, many=True).data)

    def create(self, request):
        serializer = ChatRoomCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        detail = self.get_chat_service().create_chat_room(
            CreateChatRoomData(**serializer.validated_data),
            requester_id=request.user.id,
        )
        return Response(
            ChatRoomDetailSerializer(detail).data, status=status.HTTP_201_CREATED
        )

    def retrieve(self, request, pk=None):
        detail = self.get_chat_service().get_chat_room(pk, request.user.id)
        return Response(ChatRoomDetailSerializer(detail).data)

    def partial_update(self, request, pk=None):
        serializer = ChatRoomUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        detail = self.get_chat_service().update_chat_room(
            pk, serializer.validated_data["name"], request.user.id
        )
        return Response(ChatRoomDetailSerializer(detail).data)

    def destroy(self, request, pk=None):
        self.get_chat_service().delete_chat_room(pk, request.user.id)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        operation_id="find_or_create_dm",
        summary="Open DM",
        description="Find or create the DM with another user. Both must follow each other.",
        request=DirectRoomCreateSerializer,
        responses={200: ChatRoomDetailSerializer, **ERROR_RESPONSES},
        tags=["Chat - Rooms"],
    )
    @action(detail=False, methods=["post"])
    def dm(self, request):
        serializer = DirectRoomCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        detail = self.get_chat_service().find_or_create_dm_chat_room(
            request.user.id, serializer.validated_data["user_id"]
        )
        return Response(ChatRoomDetailSerializer(detail).data)

    @extend_schema(
        operation_id="mark_chat_room_read",
        summary="Mark chat room as read",
        request=None,
        responses={200: OpenApiResponse(description="Read cursor updated")},
        tags=["Chat - Rooms"],
    )
    @action(detail=True, methods=["post"])
    def read(self, request, pk=None):
        last_read_at = self.get_chat_service().update_last_read(pk, request.user.id)
        return Response({"status": "read", "last_read_at": last_read_at})

    @extend_schema(
        operation_id="leave_chat_room",
        summary="Leave chat room",
        request=None,
        responses={200: OpenApiResponse(description="Left the room")},
        tags=["Chat - Rooms"],
    )
    @action(detail=True, methods=["post"])
    def leave(self, request, pk=None):
        self.get_chat_service().leave_chat_room(pk, request.user.id)
        return Response({"status": "left"})

    @extend_schema(
        operation_id="get_chat_room_unread_count",
        summary="Get unread count",
        responses={200: UnreadCountSerializer, **ERROR_RESPONSES},
        tags=["Chat - Rooms"],
    )
    @action(detail=True, methods=["get"], url_path="unread-count")
    def unread_count(self, request, pk=None):
        count = self.get_chat_service().get_unread_count(pk, request.user.id)
        return Response(
            UnreadCountSerializer({"room_id": pk, "unread_count": count}).data
        )


# =============================================================================
# Members
# =============================================================================


@extend_schema_view(
    list=extend_schema(
        operation_id="list_chat_room_members",
        summary="List members",
        responses={200: ChatRoomMemberSerializer(many=True), **ERROR_RESPONSES},
        tags=["Chat - Members"],
    ),
    create=extend_schema(
        operation_id="add_chat_room_member",
        summary="Add member",
        description="Add a user to a group. The user must mutually follow every member.",
        request=MemberCreateSerializer,
        responses={
            201: ChatRoomMemberSerializer,
            409: OpenApiResponse(description="Already a member"),
            **ERROR_RESPONSES,
        },
        tags=["Chat - Members"],
    ),
    destroy=extend_schema(
        operation_id="remove_chat_room_member",
        summary="Remove member",
        description="Members can only remove themselves.",
        responses={204: None, **ERROR_RESPONSES},
        tags=["Chat - Members"],
    ),
)
class ChatRoomMemberViewSet(ChatServiceViewMixin, viewsets.ViewSet):
    """ViewSet for memberships of one room."""

    def list(self, request, room_pk=None):
        members = self.get_chat_service().get_chat_room_members(room_pk, request.user.id)
        return Response(ChatRoomMemberSerializer(members, many=True).data)

    def create(self, request, room_pk=None):
        serializer = MemberCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        member = self.get_chat_service().add_member(
            room_pk, serializer.validated_data["user_id"], request.user.id
        )
        return Response(
            ChatRoomMemberSerializer(member).data, status=status.HTTP_201_CREATED
        )

    def destroy(self, request, room_pk=None, user_id=None):
        self.get_chat_service().remove_member(room_pk, user_id, request.user.id)
        return Response(status=status.HTTP_204_NO_CONTENT)


# =============================================================================
# Messages
# =============================================================================


def _message_not_in_room(message_id) -> MessageNotFoundError:
    return MessageNotFoundError(
        "Message not found",
        details={"message_id": str(message_id)},
    )


@extend_schema_view(
    list=extend_schema(
        operation_id="list_chat_room_messages",
        summary="List messages",
        description=(
            "Messages newest first. Pass the id of the oldest message received "
            "as cursor to get the next page. Also marks the room as read."
        ),
        parameters=[
            OpenApiParameter(
                name="limit",
                type=OpenApiTypes.INT,
                location=OpenApiParameter.QUERY,
                required=False,
            ),
            OpenApiParameter(
                name="cursor",
                type=OpenApiTypes.UUID,
                location=OpenApiParameter.QUERY,
                required=False,
            ),
        ],
        responses={200: MessageSerializer(many=True), **ERROR_RESPONSES},
        tags=["Chat - Messages"],
    ),
    create=extend_schema(
        operation_id="send_chat_message",
        summary="Send message",
        request=MessageCreateSerializer,
        responses={201: MessageSerializer, **ERROR_RESPONSES},
        tags=["Chat - Messages"],
    ),
    retrieve=extend_schema(
        operation_id="get_chat_message",
        summary="Get message",
        responses={200: MessageSerializer, **ERROR_RESPONSES},
        tags=["Chat - Messages"],
    ),
    partial_update=extend_schema(
        operation_id="edit_chat_message",
        summary="Edit message",
        description="Only the author can edit a message.",
        request=MessageUpdateSerializer,
        responses={200: MessageSerializer, **ERROR_RESPONSES},
        tags=["Chat - Messages"],
    ),
)
class MessageViewSet(ChatServiceViewMixin, viewsets.ViewSet):
    """ViewSet for messages of one room."""

    def list(self, request, room_pk=None):
        query = MessageListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        messages = self.get_chat_service().get_chat_room_messages(
            room_pk,
            request.user.id,
            limit=query.validated_data.get("limit"),
            cursor=query.validated_data.get("cursor"),
        )
        return Response(MessageSerializer(messages, many=True).data)

    def create(self, request, room_pk=None):
        serializer = MessageCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        message = self.get_chat_service().send_message(
            SendMessageData(
                room_id=room_pk,
                author_id=request.user.id,
                **serializer.validated_data,
            )
        )
        return Response(MessageSerializer(message).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, room_pk=None, pk=None):
        message = self.get_chat_service().get_message(pk, request.user.id)
        if message.room_id != room_pk:
            raise _message_not_in_room(pk)
        return Response(MessageSerializer(message).data)

    def partial_update(self, request, room_pk=None, pk=None):
        serializer = MessageUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        chat = self.get_chat_service()
        if chat.get_message(pk, request.user.id).room_id != room_pk:
            raise _message_not_in_room(pk)

        message = chat.update_message(
            pk, serializer.validated_data["content"], request.user.id
        )
        return Response(MessageSerializer(message).data)
