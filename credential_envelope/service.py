"""
Per-user encrypted configuration service.

Ties the codec to a ConfigStorage backend. Two save paths exist:
- save_encrypted_config: the client encrypted the credentials and sends the
  envelope; it is validated and stored verbatim
- save_credentials: plaintext credentials and passphrase are encrypted here

Codec work is CPU-bound (PBKDF2) and runs in a worker thread so it does not
block the event loop.
"""

from __future__ import annotations

import asyncio
from typing import Any, Mapping, Optional, Union

from structlog import get_logger

from .codec import CredentialEnvelopeCodec
from .errors import (
    AuthenticationError,
    ConfigNotFoundError,
    InputValidationError,
    ParseError,
)
from .models import CredentialBundle, EncryptionResult
from .passphrase import PassphraseStrength, assess_passphrase, suggest_passphrase
from .storage import ConfigStorage, StoredConfig

logger = get_logger(__name__)

MIN_PASSPHRASE_LENGTH = 6


class CredentialConfigService:
    """
    Store and recover one encrypted credential config per user.

    Args:
        storage: ConfigStorage backend
        codec: Envelope codec (a default codec is created if omitted)
        min_passphrase_length: Minimum passphrase length after trimming
    """

    def __init__(
        self,
        storage: ConfigStorage,
        codec: Optional[CredentialEnvelopeCodec] = None,
        min_passphrase_length: int = MIN_PASSPHRASE_LENGTH,
    ) -> None:
        self._storage = storage
        self._codec = codec if codec is not None else CredentialEnvelopeCodec()
        self._min_passphrase_length = min_passphrase_length

    @property
    def codec(self) -> CredentialEnvelopeCodec:
        return self._codec

    def check_passphrase(self, passphrase: str) -> None:
        """
        Enforce the passphrase policy.

        Raises:
            InputValidationError: If the passphrase is not a string or too short
        """
        if not isinstance(passphrase, str) or not passphrase.strip():
            raise InputValidationError("Passphrase is required")
        if len(passphrase.strip()) < self._min_passphrase_length:
            raise InputValidationError(
                f"Passphrase must be at least {self._min_passphrase_length} characters"
            )

    def assess_passphrase(self, passphrase: str) -> PassphraseStrength:
        """Strength feedback for a passphrase. Does not affect check_passphrase."""
        return assess_passphrase(passphrase)

    def suggest_passphrase(self) -> str:
        return suggest_passphrase()

    async def has_config(self, user_id: str) -> bool:
        """Whether the user has saved an encrypted config."""
        return await self._storage.exists(user_id)

    async def save_encrypted_config(
        self,
        user_id: str,
        bundle: Union[EncryptionResult, Mapping[str, Any]],
    ) -> StoredConfig:
        """
        Store a client-encrypted envelope, replacing any previous one.

        Raises:
            InputValidationError: If the envelope is malformed
        """
        result = EncryptionResult.coerce(bundle)
        result.decode()

        stored = await self._storage.save(user_id, result)
        logger.info("encrypted_config_saved", user_id=user_id)
        return stored

    async def save_credentials(
        self,
        user_id: str,
        credentials: CredentialBundle,
        passphrase: str,
    ) -> EncryptionResult:
        """
        Encrypt credentials under the passphrase and store the envelope.

        Raises:
            InputValidationError: Empty credential field or weak passphrase
        """
        credentials.validate()
        self.check_passphrase(passphrase)

        result = await asyncio.to_thread(
            self._codec.encrypt_credentials, credentials, passphrase
        )
        await self._storage.save(user_id, result)
        logger.info("credentials_encrypted_and_saved", user_id=user_id)
        return result

    async def get_credentials(self, user_id: str, passphrase: str) -> CredentialBundle:
        """
        Load and decrypt the user's credentials.

        Raises:
            ConfigNotFoundError: If the user has no config
            AuthenticationError: Wrong passphrase or corrupted envelope
            ParseError: Envelope authenticated but payload unusable
        """
        stored = await self._storage.load(user_id)
        if stored is None:
            raise ConfigNotFoundError(
                "Configuration not found. Please save your configuration first."
            )

        try:
            credentials = await asyncio.to_thread(
                self._codec.decrypt_credentials, stored.bundle, passphrase
            )
        except (AuthenticationError, ParseError) as e:
            logger.warning(
                "credential_decryption_failed",
                user_id=user_id,
                error_type=type(e).__name__,
            )
            raise

        logger.info("credentials_decrypted", user_id=user_id)
        return credentials

    async def delete_config(self, user_id: str) -> bool:
        """Delete the user's config. Returns False if there was none."""
        deleted = await self._storage.delete(user_id)
        logger.info("encrypted_config_deleted", user_id=user_id, deleted=deleted)
        return deleted
