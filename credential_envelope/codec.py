"""
Credential envelope codec.

Key hierarchy:
- Passphrase + random salt -> KEK (PBKDF2-HMAC-SHA256, 100,000 iterations)
- KEK -> wrapped DEK (AES-256-GCM, IV prepended)
- DEK -> encrypted credentials (AES-256-GCM)

Wire format (all standard base64):
    encryptedCredentials  AES-GCM(DEK, iv, JSON) || tag
    wrappedDek            wrap_iv(12) || AES-GCM(KEK, wrap_iv, raw DEK) || tag
    salt                  16 random bytes
    iv                    12 random bytes

The codec holds no mutable state; one instance may serve concurrent calls.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Tuple, Union

from .crypto import (
    AES_256_KEY_SIZE,
    DEFAULT_PBKDF2_ITERATIONS,
    NONCE_SIZE,
    SALT_SIZE,
    TAG_SIZE,
    CryptoProvider,
    DefaultCryptoProvider,
    SecureKey,
    b64encode,
)
from .errors import AuthenticationError, InputValidationError, ParseError
from .models import CredentialBundle, EncryptionResult


class CredentialEnvelopeCodec:
    """
    Envelope encryption for credential bundles.

    Args:
        provider: Cryptographic capability (defaults to DefaultCryptoProvider)
        iterations: PBKDF2 iteration count used for every KEK derivation
    """

    def __init__(
        self,
        provider: Optional[CryptoProvider] = None,
        iterations: int = DEFAULT_PBKDF2_ITERATIONS,
    ) -> None:
        if not isinstance(iterations, int) or iterations < 1:
            raise InputValidationError("PBKDF2 iterations must be a positive integer")
        self._provider = provider if provider is not None else DefaultCryptoProvider()
        self._iterations = iterations

    @property
    def provider(self) -> CryptoProvider:
        return self._provider

    @property
    def iterations(self) -> int:
        return self._iterations

    # =========================================================================
    # Key derivation and generation
    # =========================================================================

    def derive_key(
        self, passphrase: str, salt: bytes, iterations: Optional[int] = None
    ) -> SecureKey:
        """
        Derive a 256-bit KEK from a passphrase.

        Pure function of (passphrase, salt, iterations). Passphrase policy is
        the caller's concern.
        """
        if not isinstance(passphrase, str):
            raise InputValidationError("Passphrase must be a string")
        rounds = self._iterations if iterations is None else iterations
        if not isinstance(rounds, int) or rounds < 1:
            raise InputValidationError("PBKDF2 iterations must be a positive integer")
        derived = self._provider.pbkdf2_sha256(
            passphrase.encode("utf-8"), bytes(salt), rounds, AES_256_KEY_SIZE
        )
        return SecureKey(derived)

    def generate_dek(self) -> SecureKey:
        """Generate a fresh random 256-bit DEK for a single record."""
        return SecureKey(self._provider.random_bytes(AES_256_KEY_SIZE))

    # =========================================================================
    # Data path
    # =========================================================================

    def encrypt_data(
        self, key: SecureKey, plaintext: str, iv: Optional[bytes] = None
    ) -> Tuple[bytes, bytes]:
        """
        Encrypt text with AES-256-GCM.

        Returns:
            (ciphertext including tag, iv); the IV is freshly random unless given
        """
        nonce = iv if iv is not None else self._provider.random_bytes(NONCE_SIZE)
        if len(nonce) != NONCE_SIZE:
            raise InputValidationError(
                f"Invalid IV size: expected {NONCE_SIZE}, got {len(nonce)}"
            )
        ciphertext = self._provider.aes_gcm_encrypt(
            key.as_bytes(), nonce, plaintext.encode("utf-8")
        )
        return ciphertext, nonce

    def decrypt_data(self, key: SecureKey, ciphertext: bytes, iv: bytes) -> str:
        """
        Decrypt AES-256-GCM ciphertext to text.

        Raises:
            AuthenticationError: On tag mismatch or malformed IV/ciphertext
            ParseError: If the authenticated bytes are not UTF-8
        """
        if len(iv) != NONCE_SIZE or len(ciphertext) < TAG_SIZE:
            raise AuthenticationError()

        plaintext = self._provider.aes_gcm_decrypt(key.as_bytes(), iv, ciphertext)
        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError:
            raise ParseError("Decrypted credentials are not valid UTF-8") from None

    # =========================================================================
    # Key wrapping
    # =========================================================================

    def wrap_dek(self, kek: SecureKey, dek: SecureKey) -> bytes:
        """Encrypt the raw DEK under the KEK, returning wrap_iv || ciphertext || tag."""
        wrap_iv = self._provider.random_bytes(NONCE_SIZE)
        wrapped = self._provider.aes_gcm_encrypt(kek.as_bytes(), wrap_iv, dek.as_bytes())
        return wrap_iv + wrapped

    def unwrap_dek(self, kek: SecureKey, wrapped: bytes) -> SecureKey:
        """
        Recover the DEK from wrap_iv || ciphertext || tag.

        Raises:
            AuthenticationError: Wrong KEK, truncated or tampered blob
        """
        if len(wrapped) < NONCE_SIZE + TAG_SIZE:
            raise AuthenticationError()

        raw = self._provider.aes_gcm_decrypt(
            kek.as_bytes(), wrapped[:NONCE_SIZE], wrapped[NONCE_SIZE:]
        )
        if len(raw) != AES_256_KEY_SIZE:
            raise AuthenticationError()
        return SecureKey(raw)

    # =========================================================================
    # Envelope
    # =========================================================================

    def encrypt_credentials(
        self, credentials: CredentialBundle, passphrase: str
    ) -> EncryptionResult:
        """
        Encrypt a credential bundle under a passphrase.

        Every call draws a new salt, IV, wrap IV and DEK.

        Raises:
            InputValidationError: If a credential field is not a string
        """
        credentials.check_types()
        salt = self._provider.random_bytes(SALT_SIZE)
        kek = self.derive_key(passphrase, salt)
        dek = self.generate_dek()
        try:
            ciphertext, iv = self.encrypt_data(dek, credentials.to_json())
            wrapped_dek = self.wrap_dek(kek, dek)
        finally:
            dek.wipe()
            kek.wipe()

        return EncryptionResult(
            encrypted_credentials=b64encode(ciphertext),
            wrapped_dek=b64encode(wrapped_dek),
            salt=b64encode(salt),
            iv=b64encode(iv),
        )

    def decrypt_credentials(
        self,
        bundle: Union[EncryptionResult, Mapping[str, Any]],
        passphrase: str,
    ) -> CredentialBundle:
        """
        Decrypt an envelope produced by encrypt_credentials.

        All fields are validated before any cryptographic work.

        Raises:
            InputValidationError: Malformed bundle or base64
            AuthenticationError: Wrong passphrase or corrupted data
            ParseError: Authenticated payload is not a credential bundle
        """
        decoded = EncryptionResult.coerce(bundle).decode()

        kek = self.derive_key(passphrase, decoded.salt)
        try:
            dek = self.unwrap_dek(kek, decoded.wrapped_dek)
        finally:
            kek.wipe()

        try:
            credentials_json = self.decrypt_data(
                dek, decoded.encrypted_credentials, decoded.iv
            )
        finally:
            dek.wipe()

        return CredentialBundle.from_json(credentials_json)


# =============================================================================
# Shared default codec
# =============================================================================

_default_codec: Optional[CredentialEnvelopeCodec] = None


def default_codec() -> CredentialEnvelopeCodec:
    """Return the process-wide codec backed by DefaultCryptoProvider."""
    global _default_codec
    if _default_codec is None:
        _default_codec = CredentialEnvelopeCodec()
    return _default_codec


def derive_key(
    passphrase: str, salt: bytes, iterations: int = DEFAULT_PBKDF2_ITERATIONS
) -> SecureKey:
    return default_codec().derive_key(passphrase, salt, iterations)


def generate_dek() -> SecureKey:
    return default_codec().generate_dek()


def encrypt_data(
    key: SecureKey, plaintext: str, iv: Optional[bytes] = None
) -> Tuple[bytes, bytes]:
    return default_codec().encrypt_data(key, plaintext, iv)


def decrypt_data(key: SecureKey, ciphertext: bytes, iv: bytes) -> str:
    return default_codec().decrypt_data(key, ciphertext, iv)


def wrap_dek(kek: SecureKey, dek: SecureKey) -> bytes:
    return default_codec().wrap_dek(kek, dek)


def unwrap_dek(kek: SecureKey, wrapped: bytes) -> SecureKey:
    return default_codec().unwrap_dek(kek, wrapped)


def encrypt_credentials(credentials: CredentialBundle, passphrase: str) -> EncryptionResult:
    return default_codec().encrypt_credentials(credentials, passphrase)


def decrypt_credentials(
    bundle: Union[EncryptionResult, Mapping[str, Any]], passphrase: str
) -> CredentialBundle:
    return default_codec().decrypt_credentials(bundle, passphrase)
