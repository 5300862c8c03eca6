"""
Credential bundle and encrypted envelope data structures.

- CredentialBundle: Plaintext R2 credentials (in memory only)
- EncryptionResult: Persisted envelope of four base64 fields
- DecodedEnvelope: Raw bytes of an EncryptionResult after validation
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Dict, Union

from .crypto import b64decode
from .errors import InputValidationError, ParseError

# Attribute name -> JSON key used by the web client
_CREDENTIAL_KEYS: Dict[str, str] = {
    "account_id": "cloudflareAccountId",
    "api_token": "cloudflareApiToken",
    "r2_access_key": "cloudflareR2AccessKey",
    "r2_secret_key": "cloudflareR2SecretKey",
}

_ENVELOPE_KEYS: Dict[str, str] = {
    "encrypted_credentials": "encryptedCredentials",
    "wrapped_dek": "wrappedDek",
    "salt": "salt",
    "iv": "iv",
}


@dataclass(frozen=True)
class CredentialBundle:
    """Cloudflare account and R2 credentials for one user."""

    account_id: str
    api_token: str
    r2_access_key: str
    r2_secret_key: str

    def check_types(self) -> None:
        """
        Check every field is a string. Empty strings are allowed.

        Raises:
            InputValidationError: If a field is not a string
        """
        for attr, key in _CREDENTIAL_KEYS.items():
            if not isinstance(getattr(self, attr), str):
                raise InputValidationError(f"{key} must be a string")

    def validate(self) -> None:
        """
        Check every field is a non-empty string.

        Raises:
            InputValidationError: If a field is not a string or is empty
        """
        self.check_types()
        for attr, key in _CREDENTIAL_KEYS.items():
            if not getattr(self, attr):
                raise InputValidationError(f"{key} is required")

    def to_dict(self) -> Dict[str, str]:
        return {key: getattr(self, attr) for attr, key in _CREDENTIAL_KEYS.items()}

    def to_json(self) -> str:
        """Serialize using the web client's field names."""
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CredentialBundle:
        """
        Build from a mapping keyed by the web client's field names.

        Unknown keys are ignored.

        Raises:
            ParseError: If a key is missing or its value is not a string
        """
        values = {}
        for attr, key in _CREDENTIAL_KEYS.items():
            value = data.get(key)
            if not isinstance(value, str):
                raise ParseError(f"Credential field {key} missing or not a string")
            values[attr] = value
        return cls(**values)

    @classmethod
    def from_json(cls, json_str: str) -> CredentialBundle:
        """
        Parse a serialized bundle by field name.

        Raises:
            ParseError: If the text is not a JSON object of the expected shape
        """
        try:
            data = json.loads(json_str)
        except ValueError as e:
            raise ParseError(f"Credentials are not valid JSON: {e}") from None
        if not isinstance(data, dict):
            raise ParseError("Credentials must be a JSON object")
        return cls.from_dict(data)

    def __repr__(self) -> str:
        return (
            f"CredentialBundle(account_id={self.account_id!r}, "
            "api_token=[REDACTED], r2_access_key=[REDACTED], r2_secret_key=[REDACTED])"
        )


@dataclass(frozen=True)
class DecodedEnvelope:
    """Raw bytes of the four envelope fields."""

    encrypted_credentials: bytes
    wrapped_dek: bytes
    salt: bytes
    iv: bytes


@dataclass(frozen=True)
class EncryptionResult:
    """
    Encrypted credential envelope.

    All four fields are standard base64 text and are stored verbatim:
    - encrypted_credentials: AES-GCM(DEK, iv, credentials JSON) including tag
    - wrapped_dek: wrap IV (12 bytes) || AES-GCM(KEK, wrap IV, raw DEK) including tag
    - salt: 16-byte PBKDF2 salt for the KEK
    - iv: 12-byte AES-GCM IV for encrypted_credentials
    """

    encrypted_credentials: str
    wrapped_dek: str
    salt: str
    iv: str

    def to_dict(self) -> Dict[str, str]:
        """Wire representation using the web client's field names."""
        return {key: getattr(self, attr) for attr, key in _ENVELOPE_KEYS.items()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> EncryptionResult:
        """
        Build from the wire representation.

        Raises:
            InputValidationError: If the mapping lacks a field or a field is
                not a non-empty string
        """
        if not isinstance(data, Mapping):
            raise InputValidationError("Encrypted config must be an object")

        values = {}
        for attr, key in _ENVELOPE_KEYS.items():
            value = data.get(key)
            if not isinstance(value, str):
                raise InputValidationError(f"{key} must be a string")
            if not value:
                raise InputValidationError(f"{key} is required")
            values[attr] = value
        return cls(**values)

    @classmethod
    def coerce(cls, bundle: Union[EncryptionResult, Mapping[str, Any]]) -> EncryptionResult:
        """Accept either an EncryptionResult or its wire mapping."""
        if isinstance(bundle, EncryptionResult):
            return bundle
        return cls.from_dict(bundle)

    def decode(self) -> DecodedEnvelope:
        """
        Validate and decode every field.

        Raises:
            InputValidationError: If any field is empty or not valid base64
        """
        raw = {}
        for attr, key in _ENVELOPE_KEYS.items():
            value = getattr(self, attr)
            if isinstance(value, str) and not value:
                raise InputValidationError(f"{key} is required")
            raw[attr] = b64decode(value, key)
        return DecodedEnvelope(**raw)
