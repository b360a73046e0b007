"""Cryptographic utilities for secret storage.

Uses AES-256-GCM for authenticated symmetric encryption of wallet secrets
(mnemonics, private keys) before they are written to the database.

Envelope format:
    base64(nonce) . base64(tag) . base64(ciphertext)
"""

import base64
import binascii
import logging
import os
import re
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from vaultgate.errors import ConfigurationError, EncryptionError

logger = logging.getLogger(__name__)

KEY_SIZE = 32
NONCE_SIZE = 12
TAG_SIZE = 16
ENVELOPE_DELIMITER = "."

_HEX_KEY_RE = re.compile(r"^[0-9a-fA-F]{64}$")


def generate_key() -> str:
    """Generate a new encryption key.

    Returns:
        Base64-encoded 32-byte key suitable for SecretEnvelope
    """
    return base64.b64encode(os.urandom(KEY_SIZE)).decode()


def parse_key(raw: str) -> bytes:
    """Decode a configured encryption key into raw bytes.

    Accepts 64 hexadecimal characters or base64 text, standard or URL-safe,
    with or without padding.

    Raises:
        ConfigurationError: If the key is missing, undecodable, or not 32 bytes
    """
    if not raw or not raw.strip():
        raise ConfigurationError("Encryption key is not set")

    raw = raw.strip()
    if _HEX_KEY_RE.match(raw):
        key = bytes.fromhex(raw)
    else:
        key = _decode_base64_key(raw)

    if len(key) != KEY_SIZE:
        raise ConfigurationError(
            f"Encryption key must be {KEY_SIZE} bytes (got {len(key)}). "
            f"Use 32-byte base64 or 64 hex chars."
        )
    return key


def _decode_base64_key(raw: str) -> bytes:
    normalized = raw.replace("-", "+").replace("_", "/").rstrip("=")
    normalized += "=" * (-len(normalized) % 4)
    try:
        return base64.b64decode(normalized, validate=True)
    except (binascii.Error, ValueError):
        raise ConfigurationError(
            "Encryption key must be 64 hex chars or base64 text"
        ) from None


def _b64decode_segment(segment: str) -> bytes:
    try:
        return base64.b64decode(segment, validate=True)
    except (binascii.Error, ValueError):
        raise EncryptionError("Malformed envelope segment") from None


class SecretEnvelope:
    """Encrypts and decrypts secrets using AES-256-GCM.

    Usage:
        envelope = SecretEnvelope(key)
        encrypted = envelope.encrypt("word1 word2 ...")
        plaintext = envelope.decrypt(encrypted)
    """

    def __init__(self, key: str):
        """Initialize with the process-wide encryption key.

        Args:
            key: 64 hex chars or base64 text decoding to exactly 32 bytes

        Raises:
            ConfigurationError: If the key does not decode to 32 bytes
        """
        self._aesgcm = AESGCM(parse_key(key))

    def encrypt(self, plaintext: str) -> str:
        """Encrypt a secret string.

        A fresh 96-bit nonce is drawn for every call, so encrypting the same
        plaintext twice never yields the same envelope.

        Args:
            plaintext: Secret to protect (may be empty)

        Returns:
            Envelope string nonce.tag.ciphertext, each segment base64
        """
        nonce = os.urandom(NONCE_SIZE)
        sealed = self._aesgcm.encrypt(nonce, plaintext.encode("utf-8"), None)
        ciphertext, tag = sealed[:-TAG_SIZE], sealed[-TAG_SIZE:]
        return ENVELOPE_DELIMITER.join(
            base64.b64encode(part).decode() for part in (nonce, tag, ciphertext)
        )

    def decrypt(self, envelope: str) -> str:
        """Decrypt an envelope produced by encrypt().

        Args:
            envelope: Envelope string

        Returns:
            Decrypted plaintext

        Raises:
            EncryptionError: If the envelope is malformed or fails authentication
        """
        parts = envelope.split(ENVELOPE_DELIMITER)
        if len(parts) != 3:
            raise EncryptionError(
                f"Malformed envelope: expected 3 segments, got {len(parts)}"
            )

        nonce, tag, ciphertext = (_b64decode_segment(p) for p in parts)
        if len(nonce) != NONCE_SIZE or len(tag) != TAG_SIZE:
            raise EncryptionError("Malformed envelope: bad nonce or tag length")

        try:
            plaintext = self._aesgcm.decrypt(nonce, ciphertext + tag, None)
        except InvalidTag:
            raise EncryptionError("Envelope authentication failed") from None

        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError:
            raise EncryptionError("Decrypted secret is not valid UTF-8") from None


def get_envelope(key: Optional[str] = None) -> SecretEnvelope:
    """Build the envelope from MNEMONIC_ENC_KEY in settings.

    Called once at startup so a bad key fails before any allocation.

    Raises:
        ConfigurationError: If the key is unset or has the wrong length
    """
    if key is None:
        from vaultgate.config import get_settings

        key = get_settings().mnemonic_enc_key

    if not key:
        raise ConfigurationError("MNEMONIC_ENC_KEY is not set")

    envelope = SecretEnvelope(key)
    logger.debug("Secret envelope initialised")
    return envelope
