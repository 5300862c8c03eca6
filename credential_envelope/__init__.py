"""
Credential Envelope Library

Passphrase-protected envelope encryption for per-user cloud storage
credentials, with pluggable storage for the encrypted envelopes.

Quick Start
-----------
```python
from credential_envelope import (
    CredentialBundle,
    decrypt_credentials,
    encrypt_credentials,
)

credentials = CredentialBundle(
    account_id="acct123",
    api_token="tok_abc",
    r2_access_key="ak_1",
    r2_secret_key="sk_1",
)

# Encrypt (four base64 fields, safe to persist)
bundle = encrypt_credentials(credentials, "correct horse battery staple")
stored = bundle.to_dict()

# Decrypt
recovered = decrypt_credentials(stored, "correct horse battery staple")
assert recovered == credentials
```

Key Features
------------
- **PBKDF2-HMAC-SHA256 KEK**: 100,000 iterations over a random 16-byte salt
- **Per-record DEK**: Fresh AES-256 key wrapped under the KEK
- **AES-256-GCM**: Authenticated encryption for both the DEK and the payload
- **Fail Closed**: One opaque error for wrong passphrase or tampered data
- **Injectable Provider**: Substitute the crypto provider in tests
- **PostgreSQL Storage**: One encrypted config per user via asyncpg
"""

__version__ = "0.1.0"

# =============================================================================
# Crypto Exports
# =============================================================================

from .crypto import (
    AES_256_KEY_SIZE,
    DEFAULT_PBKDF2_ITERATIONS,
    NONCE_SIZE,
    SALT_SIZE,
    TAG_SIZE,
    CryptoProvider,
    DefaultCryptoProvider,
    SecureKey,
)

# =============================================================================
# Error Exports
# =============================================================================

from .errors import (
    AuthenticationError,
    ConfigNotFoundError,
    EnvelopeError,
    InputValidationError,
    ParseError,
    ProviderError,
    SettingsError,
    StorageError,
)

# =============================================================================
# Codec Exports (Primary API)
# =============================================================================

from .models import CredentialBundle, EncryptionResult
from .codec import (
    CredentialEnvelopeCodec,
    decrypt_credentials,
    decrypt_data,
    derive_key,
    encrypt_credentials,
    encrypt_data,
    generate_dek,
    unwrap_dek,
    wrap_dek,
)

# =============================================================================
# Storage and Service Exports
# =============================================================================

from .storage import ConfigStorage, InMemoryConfigStorage, StoredConfig
from .postgres import PostgresConfigStorage
from .passphrase import PassphraseStrength, assess_passphrase, suggest_passphrase
from .service import CredentialConfigService
from .settings import Settings
from .logging_config import configure_logging

# =============================================================================
# Public API
# =============================================================================

__all__ = [
    # Version
    "__version__",
    # Crypto
    "AES_256_KEY_SIZE",
    "DEFAULT_PBKDF2_ITERATIONS",
    "NONCE_SIZE",
    "SALT_SIZE",
    "TAG_SIZE",
    "CryptoProvider",
    "DefaultCryptoProvider",
    "SecureKey",
    # Errors
    "EnvelopeError",
    "InputValidationError",
    "AuthenticationError",
    "ParseError",
    "ProviderError",
    "StorageError",
    "ConfigNotFoundError",
    "SettingsError",
    # Codec
    "CredentialBundle",
    "EncryptionResult",
    "CredentialEnvelopeCodec",
    "derive_key",
    "generate_dek",
    "encrypt_data",
    "decrypt_data",
    "wrap_dek",
    "unwrap_dek",
    "encrypt_credentials",
    "decrypt_credentials",
    # Storage and service
    "ConfigStorage",
    "InMemoryConfigStorage",
    "StoredConfig",
    "PostgresConfigStorage",
    "CredentialConfigService",
    "PassphraseStrength",
    "assess_passphrase",
    "suggest_passphrase",
    "Settings",
    "configure_logging",
]
