"""Tests for the secret envelope."""

import base64
import os

import pytest

from vaultgate.crypto import (
    ENVELOPE_DELIMITER,
    SecretEnvelope,
    generate_key,
    get_envelope,
    parse_key,
)
from vaultgate.errors import ConfigurationError, EncryptionError


def _flip_first_byte(segment: str) -> str:
    raw = bytearray(base64.b64decode(segment))
    raw[0] ^= 0x01
    return base64.b64encode(bytes(raw)).decode()


class TestKeyParsing:
    """Tests for encryption key validation."""

    def test_hex_key(self):
        key = parse_key("ab" * 32)
        assert key == bytes.fromhex("ab" * 32)

    def test_base64_key(self):
        raw = os.urandom(32)
        assert parse_key(base64.b64encode(raw).decode()) == raw

    @pytest.mark.parametrize(
        "encode",
        [
            base64.urlsafe_b64encode,
            lambda raw: base64.b64encode(raw).rstrip(b"="),
            lambda raw: base64.urlsafe_b64encode(raw).rstrip(b"="),
        ],
        ids=["urlsafe", "unpadded", "urlsafe-unpadded"],
    )
    def test_base64_variants_accepted(self, encode):
        raw = bytes([0xFB, 0xFF] * 16)
        assert parse_key(encode(raw).decode()) == raw
        SecretEnvelope(encode(raw).decode())

    def test_unpadded_wrong_length_rejected(self):
        with pytest.raises(ConfigurationError, match="32 bytes"):
            parse_key(base64.urlsafe_b64encode(bytes(31)).decode().rstrip("="))

    def test_surrounding_whitespace_ignored(self):
        assert len(parse_key(f"  {'0f' * 32}\n")) == 32

    @pytest.mark.parametrize("size", [31, 33])
    def test_wrong_length_base64_rejected(self, size):
        with pytest.raises(ConfigurationError, match="32 bytes"):
            SecretEnvelope(base64.b64encode(os.urandom(size)).decode())

    @pytest.mark.parametrize("size", [31, 33])
    def test_wrong_length_hex_rejected(self, size):
        with pytest.raises(ConfigurationError):
            SecretEnvelope(os.urandom(size).hex())

    def test_garbage_rejected(self):
        with pytest.raises(ConfigurationError):
            SecretEnvelope("not a key!")

    def test_empty_rejected(self):
        with pytest.raises(ConfigurationError):
            SecretEnvelope("")

    def test_get_envelope_requires_key(self):
        with pytest.raises(ConfigurationError, match="MNEMONIC_ENC_KEY"):
            get_envelope("")

    def test_generated_key_is_usable(self):
        envelope = SecretEnvelope(generate_key())
        assert envelope.decrypt(envelope.encrypt("x")) == "x"


class TestEnvelope:
    """Tests for encrypt/decrypt."""

    @pytest.mark.parametrize(
        "plaintext",
        [
            "",
            "a",
            "abandon ability able about above absent absorb abstract absurd abuse access accident",
            "ключ 秘密 🔐",
            os.urandom(10 * 1024).decode("latin-1"),
        ],
    )
    def test_roundtrip(self, envelope, plaintext):
        assert envelope.decrypt(envelope.encrypt(plaintext)) == plaintext

    def test_envelope_format(self, envelope):
        parts = envelope.encrypt("secret").split(ENVELOPE_DELIMITER)

        assert len(parts) == 3
        nonce, tag, ciphertext = (base64.b64decode(p) for p in parts)
        assert len(nonce) == 12
        assert len(tag) == 16
        assert len(ciphertext) == len(b"secret")

    def test_same_plaintext_never_repeats(self, envelope):
        envelopes = {envelope.encrypt("same mnemonic") for _ in range(50)}
        assert len(envelopes) == 50

    def test_plaintext_not_in_envelope(self, envelope):
        assert "hunter2" not in envelope.encrypt("hunter2")

    def test_tampered_ciphertext_fails(self, envelope):
        nonce, tag, ciphertext = envelope.encrypt("word " * 12).split(ENVELOPE_DELIMITER)
        tampered = ENVELOPE_DELIMITER.join([nonce, tag, _flip_first_byte(ciphertext)])

        with pytest.raises(EncryptionError):
            envelope.decrypt(tampered)

    def test_tampered_tag_fails(self, envelope):
        nonce, tag, ciphertext = envelope.encrypt("secret").split(ENVELOPE_DELIMITER)
        tampered = ENVELOPE_DELIMITER.join([nonce, _flip_first_byte(tag), ciphertext])

        with pytest.raises(EncryptionError):
            envelope.decrypt(tampered)

    def test_wrong_key_fails(self, envelope):
        other = SecretEnvelope(generate_key())
        with pytest.raises(EncryptionError):
            other.decrypt(envelope.encrypt("secret"))

    @pytest.mark.parametrize(
        "malformed",
        [
            "",
            "onlyone",
            "a.b",
            "a.b.c.d",
            "!!!.???.***",
            # valid base64 but 4-byte nonce
            f"{base64.b64encode(b'abcd').decode()}.{base64.b64encode(bytes(16)).decode()}.",
        ],
    )
    def test_malformed_envelope_fails(self, envelope, malformed):
        with pytest.raises(EncryptionError):
            envelope.decrypt(malformed)
