"""
Base service layer patterns for business logic encapsulation.

Service Layer Philosophy:
    Services encapsulate business logic separate from views and models.
    Views and consumers handle transport concerns, models handle data,
    services handle logic.

Error Handling:
    Services raise typed exceptions from core.exceptions (or an app's
    own subclasses). Transports catch BaseApplicationError and map it
    to a protocol-specific response.

Usage:
    from core.services import BaseService

    class RoomService(BaseService):
        @classmethod
        def create_group(cls, name: str, member_ids: list[int]) -> ChatRoom:
            with cls.atomic():
                room = ChatRoom.objects.create(name=name)
                ...

            cls.get_logger().info(f"Created group room {room.id}")
            return room

Related:
    - core.exceptions: Error hierarchy raised by services
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

from django.db import transaction

if TYPE_CHECKING:
    from collections.abc import Generator


class BaseService:
    """
    Base class for service layer classes.

    Provides common utilities for services:
    - Logging setup per service
    - Database transaction management

    Design Notes:
        - Stateless services use @classmethod
        - Services with injected collaborators are instantiated once per
          use site and keep no per-request state
        - Raise exceptions from core.exceptions for expected failures
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """
        Get logger for this service.

        Returns a logger named after the service class for
        easy filtering in logs.

        Example:
            class MessageService(BaseService):
                def create_message(self, ...):
                    self.get_logger().info(f"Message sent to room {room_id}")
        """
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls) -> Generator[None, None, None]:
        """
        Execute operations in a database transaction.

        All database operations within this context manager are
        wrapped in a transaction. If any operation fails, all
        changes are rolled back. Nested use creates a savepoint.

        Example:
            with cls.atomic():
                room = ChatRoom.objects.create(room_type=RoomType.GROUP)
                ChatRoomMember.objects.bulk_create(members)
                # If member creation fails, the room is also rolled back
        """
        with transaction.atomic():
            yield
