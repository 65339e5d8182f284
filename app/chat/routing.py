"""
WebSocket URL routing for the chat application.

URL Patterns:
    ws/chat/<room_id>/ - Connect to a specific chat room

Authentication:
    JWT token should be passed as query parameter: ?token=<jwt_access_token>
    JWTAuthMiddleware validates the token and attaches the user to the
    consumer's scope.
"""

from django.urls import path

from chat import consumers

websocket_urlpatterns = [
    path(
        "ws/chat/<uuid:room_id>/",
        consumers.ChatConsumer.as_asgi(),
    ),
]
