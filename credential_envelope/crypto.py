"""
Cryptographic primitives for the credential envelope.

This module provides:
- SecureKey: Key wrapper with best-effort zeroization
- CryptoProvider: Injectable capability (CSPRNG, PBKDF2, AES-GCM)
- DefaultCryptoProvider: Provider backed by `secrets` and `cryptography`
- b64encode / b64decode: Standard base64 helpers for the wire format
"""

from __future__ import annotations

import base64
import secrets
from abc import ABC, abstractmethod

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .errors import AuthenticationError, InputValidationError, ProviderError

# Cryptographic constants
AES_256_KEY_SIZE: int = 32  # 256 bits
NONCE_SIZE: int = 12  # 96 bits (standard for AES-GCM)
TAG_SIZE: int = 16  # 128 bits (authentication tag)
SALT_SIZE: int = 16  # PBKDF2 salt
DEFAULT_PBKDF2_ITERATIONS: int = 100_000


class SecureKey:
    """
    Key wrapper with memory cleanup on wipe() or deletion.

    Uses bytearray internally for mutable zeroing. Python may still hold
    copies (immutable bytes handed to the cipher, swapped pages), so this is
    best-effort only and not a security boundary.
    """

    __slots__ = ("_bytes",)

    def __init__(self, key_bytes: bytes | bytearray) -> None:
        if not isinstance(key_bytes, (bytes, bytearray)):
            raise ProviderError("Key must be bytes or bytearray")
        self._bytes = bytearray(key_bytes)

    def as_bytes(self) -> bytes:
        """Return key as immutable bytes."""
        return bytes(self._bytes)

    def wipe(self) -> None:
        """Overwrite the key material with zeros."""
        for i in range(len(self._bytes)):
            self._bytes[i] = 0

    def __len__(self) -> int:
        return len(self._bytes)

    def __repr__(self) -> str:
        """Redacted representation to prevent accidental key disclosure."""
        return "SecureKey([REDACTED])"

    def __del__(self) -> None:
        if hasattr(self, "_bytes"):
            self.wipe()


class CryptoProvider(ABC):
    """
    Cryptographic capability injected into the codec.

    Implementations must use a cryptographically secure random source.
    Tests substitute a deterministic random source to get reproducible
    bundles without touching global state.
    """

    @abstractmethod
    def random_bytes(self, length: int) -> bytes:
        """Return `length` cryptographically secure random bytes."""
        ...

    @abstractmethod
    def pbkdf2_sha256(
        self, password: bytes, salt: bytes, iterations: int, length: int
    ) -> bytes:
        """Derive `length` bytes with PBKDF2-HMAC-SHA256."""
        ...

    @abstractmethod
    def aes_gcm_encrypt(self, key: bytes, nonce: bytes, plaintext: bytes) -> bytes:
        """Encrypt with AES-GCM, returning ciphertext || tag."""
        ...

    @abstractmethod
    def aes_gcm_decrypt(self, key: bytes, nonce: bytes, ciphertext: bytes) -> bytes:
        """
        Decrypt AES-GCM ciphertext || tag.

        Raises:
            AuthenticationError: If the tag does not verify
        """
        ...


class DefaultCryptoProvider(CryptoProvider):
    """Provider backed by the `secrets` module and `cryptography`."""

    def random_bytes(self, length: int) -> bytes:
        try:
            return secrets.token_bytes(length)
        except Exception as e:
            raise ProviderError(f"Secure random source failed: {e}") from e

    def pbkdf2_sha256(
        self, password: bytes, salt: bytes, iterations: int, length: int
    ) -> bytes:
        try:
            kdf = PBKDF2HMAC(
                algorithm=hashes.SHA256(),
                length=length,
                salt=salt,
                iterations=iterations,
            )
            return kdf.derive(password)
        except Exception as e:
            raise ProviderError(f"Key derivation error: {e}") from e

    def aes_gcm_encrypt(self, key: bytes, nonce: bytes, plaintext: bytes) -> bytes:
        try:
            return AESGCM(key).encrypt(nonce, plaintext, None)
        except Exception as e:
            raise ProviderError(f"Encryption error: {e}") from e

    def aes_gcm_decrypt(self, key: bytes, nonce: bytes, ciphertext: bytes) -> bytes:
        try:
            aesgcm = AESGCM(key)
        except Exception as e:
            raise ProviderError(f"Cipher setup error: {e}") from e

        try:
            return aesgcm.decrypt(nonce, ciphertext, None)
        except InvalidTag:
            # Generic error to prevent oracle attacks
            raise AuthenticationError() from None


def b64encode(data: bytes) -> str:
    """Encode bytes as standard base64 text (no newlines)."""
    return base64.standard_b64encode(data).decode("ascii")


def b64decode(encoded: str, field: str = "value") -> bytes:
    """
    Decode standard base64 text, rejecting anything not strictly well-formed.

    Args:
        encoded: Base64 text
        field: Field name used in the error message

    Raises:
        InputValidationError: If the text is not valid standard base64
    """
    if not isinstance(encoded, str):
        raise InputValidationError(f"{field} must be a base64 string")
    try:
        return base64.b64decode(encoded, validate=True)
    except ValueError as e:
        raise InputValidationError(f"{field} is not valid base64: {e}") from None
