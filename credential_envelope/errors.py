"""
Exception classes for credential envelope operations.

Cryptographic verification failures all collapse into AuthenticationError with
a fixed message so callers cannot tell a wrong passphrase from tampered data.
"""

from __future__ import annotations


class EnvelopeError(Exception):
    """Base exception for all credential envelope operations."""

    pass


class InputValidationError(EnvelopeError):
    """Malformed input (bad base64, missing or mistyped bundle fields)."""

    pass


class AuthenticationError(EnvelopeError):
    """AES-GCM tag verification failed (wrong passphrase or corrupted data)."""

    def __init__(self, message: str = "Decryption failed") -> None:
        super().__init__(message)


class ParseError(EnvelopeError):
    """Decrypted payload is not a valid credential bundle."""

    pass


class ProviderError(EnvelopeError):
    """Underlying cryptographic primitive unavailable or failed internally."""

    pass


class StorageError(EnvelopeError):
    """Storage backend error (database, in-memory, etc.)."""

    pass


class ConfigNotFoundError(EnvelopeError):
    """No encrypted configuration stored for the user."""

    pass


class SettingsError(EnvelopeError):
    """Invalid runtime settings."""

    pass
