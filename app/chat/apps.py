"""
Chat application configuration.

This app provides the chat system with:
- DM rooms (one per user pair) and group rooms
- Mutual-follow requirement for sharing a room
- Encrypted message storage
- Read tracking and unread counts
"""

from django.apps import AppConfig


class ChatConfig(AppConfig):
    """Configuration for the chat application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "chat"
    verbose_name = "Chat"
