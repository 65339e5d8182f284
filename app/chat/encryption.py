"""
At-rest encryption for chat message content.

Each room gets its own AES-256 key, derived from the master key with
PBKDF2-HMAC-SHA256 and a salt built from the room id. Every message gets
a fresh random nonce, and the room id is bound in as associated data, so
ciphertext copied into another room fails authentication.

Usage:
    from chat.encryption import EncryptionConfig, MessageCipher

    cipher = MessageCipher(EncryptionConfig.from_settings())

    if cipher.is_enabled:
        payload = cipher.encrypt("hello", room_id)
        cipher.decrypt(payload.ciphertext, payload.iv, payload.tag, room_id)

Storage format:
    ciphertext, iv and tag are stored as separate lowercase hex strings.
    The AESGCM primitive appends the tag to the ciphertext; it is split
    off on encrypt and re-joined on decrypt.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import TYPE_CHECKING

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from django.conf import settings

from chat.constants import ENCRYPTION_CONFIG
from chat.exceptions import EncryptionNotConfiguredError, MessageDecryptionError

if TYPE_CHECKING:
    from uuid import UUID

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EncryptionConfig:
    """
    Encryption settings handed to MessageCipher.

    Attributes:
        master_key: Secret the room keys are derived from. None or empty
            disables encryption.
        required: When True, a missing master key is a deployment error
            instead of a signal to store plaintext.
    """

    master_key: str | None = None
    required: bool = False

    @classmethod
    def from_settings(cls) -> EncryptionConfig:
        """Build config from MESSAGE_ENCRYPTION_KEY / MESSAGE_ENCRYPTION_REQUIRED."""
        return cls(
            master_key=getattr(settings, "MESSAGE_ENCRYPTION_KEY", None) or None,
            required=bool(getattr(settings, "MESSAGE_ENCRYPTION_REQUIRED", False)),
        )

    @property
    def has_key(self) -> bool:
        return bool(self.master_key)


@dataclass(frozen=True)
class EncryptedPayload:
    """Hex-encoded output of one encryption."""

    ciphertext: str
    iv: str
    tag: str


class MessageCipher:
    """
    Encrypts and decrypts message content with per-room keys.

    Derived keys are cached per instance because PBKDF2 is deliberately
    slow; a cipher lives as long as the service that owns it.
    """

    def __init__(self, config: EncryptionConfig):
        self.config = config
        self._room_keys: dict[str, bytes] = {}

    @property
    def is_enabled(self) -> bool:
        """True when a master key is configured."""
        return self.config.has_key

    def ensure_usable(self) -> None:
        """
        Refuse to run without a key when encryption is required.

        Raises:
            EncryptionNotConfiguredError: Required but no master key
        """
        if self.config.required and not self.config.has_key:
            logger.error("Message encryption is required but no key is configured")
            raise EncryptionNotConfiguredError("Message encryption not configured")

    def derive_room_key(self, room_id: UUID | str) -> bytes:
        """Derive (or fetch the cached) 32-byte key for a room."""
        if not self.config.has_key:
            raise EncryptionNotConfiguredError("Message encryption not configured")

        room_key = str(room_id)
        key = self._room_keys.get(room_key)
        if key is None:
            kdf = PBKDF2HMAC(
                algorithm=hashes.SHA256(),
                length=ENCRYPTION_CONFIG.KEY_LENGTH,
                salt=f"{room_key}{ENCRYPTION_CONFIG.SALT_SUFFIX}".encode(),
                iterations=ENCRYPTION_CONFIG.KDF_ITERATIONS,
            )
            key = kdf.derive(self.config.master_key.encode())
            self._room_keys[room_key] = key
        return key

    def encrypt(self, plaintext: str, room_id: UUID | str) -> EncryptedPayload:
        """
        Encrypt content for a room with a fresh nonce.

        Raises:
            EncryptionNotConfiguredError: No master key configured
        """
        key = self.derive_room_key(room_id)
        iv = os.urandom(ENCRYPTION_CONFIG.IV_LENGTH)
        sealed = AESGCM(key).encrypt(iv, plaintext.encode("utf-8"), _aad(room_id))
        ciphertext = sealed[: -ENCRYPTION_CONFIG.TAG_LENGTH]
        tag = sealed[-ENCRYPTION_CONFIG.TAG_LENGTH :]
        return EncryptedPayload(
            ciphertext=ciphertext.hex(),
            iv=iv.hex(),
            tag=tag.hex(),
        )

    def decrypt(
        self, ciphertext: str, iv: str, tag: str, room_id: UUID | str
    ) -> str:
        """
        Decrypt stored hex fields back to plaintext.

        Raises:
            EncryptionNotConfiguredError: No master key configured
            MessageDecryptionError: Wrong key, wrong room, tampering, or
                malformed stored fields
        """
        key = self.derive_room_key(room_id)
        try:
            sealed = bytes.fromhex(ciphertext) + bytes.fromhex(tag)
            plaintext = AESGCM(key).decrypt(bytes.fromhex(iv), sealed, _aad(room_id))
            return plaintext.decode("utf-8")
        except (InvalidTag, ValueError, TypeError) as e:
            raise MessageDecryptionError(
                "Failed to decrypt message",
                details={"room_id": str(room_id)},
            ) from e


def _aad(room_id: UUID | str) -> bytes:
    return str(room_id).encode("utf-8")
