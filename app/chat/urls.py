"""
URL configuration for chat API.

URL Structure:
    Rooms:
        /rooms/                               GET, POST
        /rooms/dm/                            POST
        /rooms/{id}/                          GET, PATCH, DELETE
        /rooms/{id}/read/                     POST
        /rooms/{id}/leave/                    POST
        /rooms/{id}/unread-count/             GET

    Members:
        /rooms/{id}/members/                  GET, POST
        /rooms/{id}/members/{user_id}/        DELETE

    Messages:
        /rooms/{id}/messages/                 GET, POST
        /rooms/{id}/messages/{message_id}/    GET, PATCH

All URLs are prefixed with /api/v1/chat/ in the main URL configuration.
"""

from django.urls import path

from chat.views import ChatRoomMemberViewSet, ChatRoomViewSet, MessageViewSet

app_name = "chat"

urlpatterns = [
    # Rooms
    path(
        "rooms/",
        ChatRoomViewSet.as_view({"get": "list", "post": "create"}),
        name="room-list",
    ),
    path(
        "rooms/dm/",
        ChatRoomViewSet.as_view({"post": "dm"}),
        name="room-dm",
    ),
    path(
        "rooms/<uuid:pk>/",
        ChatRoomViewSet.as_view(
            {"get": "retrieve", "patch": "partial_update", "delete": "destroy"}
        ),
        name="room-detail",
    ),
    path(
        "rooms/<uuid:pk>/read/",
        ChatRoomViewSet.as_view({"post": "read"}),
        name="room-read",
    ),
    path(
        "rooms/<uuid:pk>/leave/",
        ChatRoomViewSet.as_view({"post": "leave"}),
        name="room-leave",
    ),
    path(
        "rooms/<uuid:pk>/unread-count/",
        ChatRoomViewSet.as_view({"get": "unread_count"}),
        name="room-unread-count",
    ),
    # Nested routes for members
    path(
        "rooms/<uuid:room_pk>/members/",
        ChatRoomMemberViewSet.as_view({"get": "list", "post": "create"}),
        name="room-member-list",
    ),
    path(
        "rooms/<uuid:room_pk>/members/<int:user_id>/",
        ChatRoomMemberViewSet.as_view({"delete": "destroy"}),
        name="room-member-detail",
    ),
    # Nested routes for messages
    path(
        "rooms/<uuid:room_pk>/messages/",
        MessageViewSet.as_view({"get": "list", "post": "create"}),
        name="room-message-list",
    ),
    path(
        "rooms/<uuid:room_pk>/messages/<uuid:pk>/",
        MessageViewSet.as_view({"get": "retrieve", "patch": "partial_update"}),
        name="room-message-detail",
    ),
]
