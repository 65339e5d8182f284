"""
Tests for chat app.

This package contains test modules for:
- test_models.py: ChatRoom, DirectRoomPair, ChatRoomMember, Message constraints
- test_encryption.py: MessageCipher tests
- test_sanitizers.py: Message content cleaning
- test_follow_gate.py: Mutual-follow gate tests
- test_services.py: RoomService, MembershipService, MessageService, ChatService
- test_consumers.py: WebSocket consumer tests
- test_views.py: REST API endpoint tests

Usage:
    pytest chat/tests/
    pytest chat/tests/test_consumers.py
"""
