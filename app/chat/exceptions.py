"""
Chat-specific exceptions.

Every class extends one of the core.exceptions categories, so views and
consumers map them to a status through the category alone.

Exception Hierarchy:
    NotFoundError
    ├── ChatRoomNotFoundError
    ├── MessageNotFoundError
    └── UserNotFoundError
    PermissionDeniedError
    ├── NotChatRoomMemberError
    ├── NotMessageAuthorError
    └── MutualFollowRequiredError
    ValidationError
    └── InvalidMessageContentError
    ServerConfigurationError
    └── EncryptionNotConfiguredError
    ExternalServiceError
    └── FollowServiceUnavailableError

    MessageDecryptionError - one stored message could not be decrypted.
        Callers listing messages contain it and show a placeholder.

Usage:
    from chat.exceptions import ChatRoomNotFoundError

    raise ChatRoomNotFoundError(
        "Chat room not found",
        details={"room_id": str(room_id)},
    )
"""

from __future__ import annotations

from core.exceptions import (
    BaseApplicationError,
    ExternalServiceError,
    NotFoundError,
    PermissionDeniedError,
    ServerConfigurationError,
    ValidationError,
)


# =============================================================================
# Not Found
# =============================================================================


class ChatRoomNotFoundError(NotFoundError):
    """Raised when a chat room does not exist."""

    default_error_code: str = "CHAT_ROOM_NOT_FOUND"


class MessageNotFoundError(NotFoundError):
    """Raised when a message does not exist."""

    default_error_code: str = "MESSAGE_NOT_FOUND"


class UserNotFoundError(NotFoundError):
    """Raised when a user id does not resolve to an active user."""

    default_error_code: str = "USER_NOT_FOUND"


# =============================================================================
# Authorization
# =============================================================================


class NotChatRoomMemberError(PermissionDeniedError):
    """Raised when the caller is not a member of the room they act on."""

    default_error_code: str = "NOT_CHAT_ROOM_MEMBER"


class NotMessageAuthorError(PermissionDeniedError):
    """Raised when someone other than the author edits a message."""

    default_error_code: str = "NOT_MESSAGE_AUTHOR"


class MutualFollowRequiredError(PermissionDeniedError):
    """
    Raised when two users who would share a room do not follow each other.

    Details carry the offending pair as ``{"user_ids": [a, b]}``.
    """

    default_error_code: str = "MUTUAL_FOLLOW_REQUIRED"


# =============================================================================
# Validation
# =============================================================================


class InvalidMessageContentError(ValidationError):
    """Raised when message content is empty or too long after sanitizing."""

    default_error_code: str = "INVALID_MESSAGE_CONTENT"


# =============================================================================
# Infrastructure
# =============================================================================


class EncryptionNotConfiguredError(ServerConfigurationError):
    """Raised when encryption is required but no master key is configured."""

    default_error_code: str = "ENCRYPTION_NOT_CONFIGURED"


class FollowServiceUnavailableError(ExternalServiceError):
    """
    Raised when follow relationships cannot be checked.

    The mutual-follow check fails closed: an unavailable oracle means the
    operation is refused, never allowed.
    """

    default_error_code: str = "FOLLOW_SERVICE_UNAVAILABLE"


class MessageDecryptionError(BaseApplicationError):
    """
    Raised when one stored message fails to decrypt.

    Covers a wrong key, tampered ciphertext, or malformed hex fields.
    """

    default_error_code: str = "MESSAGE_DECRYPTION_FAILED"
    http_status: int = 500
