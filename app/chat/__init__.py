"""
Chat app for real-time messaging.

This app handles:
- DM and group chat rooms
- Message sending, editing and history
- At-rest message encryption
- WebSocket real-time updates
- Read cursors, unread counts and typing indicators

Related apps:
    - authentication: User model and public profiles of members
    - social: Follow relationships that gate room membership

WebSocket Support:
    Uses Django Channels for real-time communication.
    See consumers.py for WebSocket handlers.
    See routing.py for WebSocket URL patterns.

Usage:
    from chat.services import ChatService
    from chat.types import SendMessageData

    chat = ChatService.default()

    room = chat.find_or_create_dm_chat_room(user.id, friend.id)
    chat.send_message(
        SendMessageData(room_id=room.id, author_id=user.id, content="Hello!")
    )
"""
