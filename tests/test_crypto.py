"""
Tests for cryptographic primitives and base64 helpers.
"""

from __future__ import annotations

import pytest

from credential_envelope.crypto import (
    AES_256_KEY_SIZE,
    NONCE_SIZE,
    TAG_SIZE,
    DefaultCryptoProvider,
    SecureKey,
    b64decode,
    b64encode,
)
from credential_envelope.errors import (
    AuthenticationError,
    InputValidationError,
    ProviderError,
)


class TestSecureKey:
    def test_repr_is_redacted(self):
        key = SecureKey(b"\x01" * AES_256_KEY_SIZE)
        assert repr(key) == "SecureKey([REDACTED])"
        assert "01" not in repr(key)

    def test_wipe_zeroes_material(self):
        key = SecureKey(b"\xff" * AES_256_KEY_SIZE)
        key.wipe()
        assert key.as_bytes() == b"\x00" * AES_256_KEY_SIZE
        assert len(key) == AES_256_KEY_SIZE

    def test_rejects_non_bytes(self):
        with pytest.raises(ProviderError):
            SecureKey("not bytes")  # type: ignore[arg-type]


class TestDefaultCryptoProvider:
    def test_random_bytes_length_and_freshness(self):
        provider = DefaultCryptoProvider()
        a = provider.random_bytes(16)
        b = provider.random_bytes(16)
        assert len(a) == 16
        assert a != b

    def test_pbkdf2_sha256_known_answer(self):
        # RFC 7914 section 11: P="passwd", S="salt", c=1 (first 32 bytes)
        provider = DefaultCryptoProvider()
        derived = provider.pbkdf2_sha256(b"passwd", b"salt", 1, 32)
        assert derived.hex() == (
            "55ac046e56e3089fec1691c22544b605f94185216dde0465e68b9d57c20dacbc"
        )

    def test_pbkdf2_sha256_bad_iterations_is_provider_error(self):
        with pytest.raises(ProviderError):
            DefaultCryptoProvider().pbkdf2_sha256(b"passwd", b"salt", 0, 32)

    def test_aes_gcm_appends_tag(self):
        provider = DefaultCryptoProvider()
        key = provider.random_bytes(AES_256_KEY_SIZE)
        nonce = provider.random_bytes(NONCE_SIZE)
        ciphertext = provider.aes_gcm_encrypt(key, nonce, b"hello")
        assert len(ciphertext) == len(b"hello") + TAG_SIZE
        assert provider.aes_gcm_decrypt(key, nonce, ciphertext) == b"hello"

    def test_aes_gcm_wrong_key_is_authentication_error(self):
        provider = DefaultCryptoProvider()
        nonce = provider.random_bytes(NONCE_SIZE)
        ciphertext = provider.aes_gcm_encrypt(b"\x01" * 32, nonce, b"hello")

        with pytest.raises(AuthenticationError, match="Decryption failed"):
            provider.aes_gcm_decrypt(b"\x02" * 32, nonce, ciphertext)

    def test_aes_gcm_bad_key_size_is_provider_error(self):
        provider = DefaultCryptoProvider()
        with pytest.raises(ProviderError):
            provider.aes_gcm_encrypt(b"short", b"\x00" * NONCE_SIZE, b"hello")


class TestBase64:
    def test_standard_alphabet_without_newlines(self):
        data = bytes(range(256)) * 2
        encoded = b64encode(data)
        assert "\n" not in encoded
        assert "-" not in encoded and "_" not in encoded
        assert b64decode(encoded) == data

    @pytest.mark.parametrize(
        "value",
        [
            "not base64!",
            "abc",  # bad padding
            "ab-_",  # URL-safe alphabet
            "QUJD\nREVG",  # embedded newline
            "ñ",
        ],
    )
    def test_rejects_malformed(self, value):
        with pytest.raises(InputValidationError, match="salt"):
            b64decode(value, "salt")

    def test_rejects_non_string(self):
        with pytest.raises(InputValidationError):
            b64decode(b"QUJD", "iv")  # type: ignore[arg-type]
