"""
Constants and configuration for the chat module.

This module centralizes configuration values for:
- Message operations (content limits, page sizes, allowed markup)
- Message encryption (key derivation parameters)
- Mutual-follow checks and socket rate limits

Import example:
    from chat.constants import MESSAGE_CONFIG, ENCRYPTION_CONFIG
"""

from typing import Final


# =============================================================================
# Message Configuration
# =============================================================================


class MESSAGE_CONFIG:
    """Configuration for message operations."""

    # Content limits (measured after sanitizing)
    MAX_CONTENT_LENGTH: Final[int] = 1000  # Characters

    # Pagination
    DEFAULT_PAGE_SIZE: Final[int] = 50
    MAX_PAGE_SIZE: Final[int] = 100

    # Markup that survives sanitizing; no attributes are allowed on any tag
    ALLOWED_TAGS: Final[frozenset] = frozenset({"b", "i", "u", "em", "strong", "br"})

    # Tags whose text content is dropped, not just the tag itself
    CLEAN_CONTENT_TAGS: Final[frozenset] = frozenset({"script", "style"})

    # Shown in place of content that fails to decrypt
    DECRYPTION_PLACEHOLDER: Final[str] = "[Message could not be decrypted]"


# =============================================================================
# Encryption Configuration
# =============================================================================


class ENCRYPTION_CONFIG:
    """
    AES-256-GCM parameters for message content.

    Keys are derived per room with PBKDF2-HMAC-SHA256 from the master key
    and a salt built from the room id.
    """

    KDF_ITERATIONS: Final[int] = 100_000
    KEY_LENGTH: Final[int] = 32  # Bytes (AES-256)
    IV_LENGTH: Final[int] = 12  # Bytes (GCM standard nonce)
    TAG_LENGTH: Final[int] = 16  # Bytes
    SALT_SUFFIX: Final[str] = "chat_encryption_salt"


# =============================================================================
# Follow Gate Configuration
# =============================================================================


class FOLLOW_GATE_CONFIG:
    """Configuration for mutual-follow checks."""

    CIRCUIT_NAME: Final[str] = "follow-oracle"

    # Attempts per is_following lookup before giving up
    MAX_ATTEMPTS: Final[int] = 2


# =============================================================================
# WebSocket Configuration
# =============================================================================


class SOCKET_CONFIG:
    """Rate limits for WebSocket events, per user."""

    RATE_LIMIT_PERIOD_SECONDS: Final[int] = 60

    MESSAGE_LIMIT: Final[int] = 10
    TYPING_LIMIT: Final[int] = 30
    ROOM_OPERATION_LIMIT: Final[int] = 20

    # Close codes sent on a rejected connection
    CLOSE_UNAUTHENTICATED: Final[int] = 4001
    CLOSE_FORBIDDEN: Final[int] = 4003
    CLOSE_NOT_FOUND: Final[int] = 4004
