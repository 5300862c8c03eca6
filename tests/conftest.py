"""
Pytest configuration and fixtures for credential envelope tests.
"""

from __future__ import annotations

import hashlib
import os
from collections import Counter
from pathlib import Path
from typing import AsyncGenerator, Callable, Optional

import asyncpg
import pytest
from dotenv import load_dotenv

from credential_envelope import (
    CredentialBundle,
    CredentialConfigService,
    CredentialEnvelopeCodec,
    CryptoProvider,
    DefaultCryptoProvider,
    InMemoryConfigStorage,
    PostgresConfigStorage,
)

# Low iteration count keeps the suite fast; tests of the default use their own codec.
FAST_ITERATIONS = 1_000


class DeterministicCryptoProvider(DefaultCryptoProvider):
    """Provider whose random stream is a SHA-256 counter over a seed."""

    def __init__(self, seed: bytes = b"seed") -> None:
        self._seed = seed
        self._counter = 0

    def random_bytes(self, length: int) -> bytes:
        out = b""
        while len(out) < length:
            self._counter += 1
            out += hashlib.sha256(self._seed + self._counter.to_bytes(8, "big")).digest()
        return out[:length]


class CountingCryptoProvider(DefaultCryptoProvider):
    """Provider that records which primitives were invoked."""

    def __init__(self) -> None:
        self.calls: Counter = Counter()

    def random_bytes(self, length: int) -> bytes:
        self.calls["random_bytes"] += 1
        return super().random_bytes(length)

    def pbkdf2_sha256(self, password, salt, iterations, length):
        self.calls["pbkdf2_sha256"] += 1
        return super().pbkdf2_sha256(password, salt, iterations, length)

    def aes_gcm_encrypt(self, key, nonce, plaintext):
        self.calls["aes_gcm_encrypt"] += 1
        return super().aes_gcm_encrypt(key, nonce, plaintext)

    def aes_gcm_decrypt(self, key, nonce, ciphertext):
        self.calls["aes_gcm_decrypt"] += 1
        return super().aes_gcm_decrypt(key, nonce, ciphertext)


@pytest.fixture
def credentials() -> CredentialBundle:
    return CredentialBundle(
        account_id="acct123",
        api_token="tok_abc",
        r2_access_key="ak_1",
        r2_secret_key="sk_1",
    )


@pytest.fixture
def passphrase() -> str:
    return "correct horse battery staple"


@pytest.fixture
def codec() -> CredentialEnvelopeCodec:
    """Codec with the real provider and a reduced iteration count."""
    return CredentialEnvelopeCodec(iterations=FAST_ITERATIONS)


@pytest.fixture
def fast_iterations() -> int:
    return FAST_ITERATIONS


@pytest.fixture
def make_codec() -> Callable[..., CredentialEnvelopeCodec]:
    """Factory for codecs with an optional provider and the fast iteration count."""

    def _make(
        provider: Optional[CryptoProvider] = None, iterations: int = FAST_ITERATIONS
    ) -> CredentialEnvelopeCodec:
        return CredentialEnvelopeCodec(provider, iterations=iterations)

    return _make


@pytest.fixture
def seeded_provider() -> Callable[[bytes], DeterministicCryptoProvider]:
    """Factory for providers with a reproducible random stream."""
    return DeterministicCryptoProvider


@pytest.fixture
def counting_provider() -> CountingCryptoProvider:
    return CountingCryptoProvider()


@pytest.fixture
def memory_storage() -> InMemoryConfigStorage:
    """Create an in-memory storage instance for testing."""
    return InMemoryConfigStorage()


@pytest.fixture
def service(
    memory_storage: InMemoryConfigStorage, codec: CredentialEnvelopeCodec
) -> CredentialConfigService:
    return CredentialConfigService(memory_storage, codec)


@pytest.fixture
async def pg_pool() -> AsyncGenerator[asyncpg.Pool, None]:
    """Create a PostgreSQL connection pool for testing."""
    env_path = Path(__file__).parent.parent / ".env"
    load_dotenv(env_path)

    database_url = os.environ.get("DATABASE_URL")
    if not database_url:
        pytest.skip("DATABASE_URL not set, skipping PostgreSQL tests")

    pool = await asyncpg.create_pool(database_url)
    if pool is None:
        pytest.skip("Failed to create PostgreSQL connection pool")

    yield pool

    await pool.close()


@pytest.fixture
async def postgres_storage(pg_pool: asyncpg.Pool) -> PostgresConfigStorage:
    """Create a PostgreSQL storage instance on a clean table."""
    storage = PostgresConfigStorage(pg_pool)
    await storage.create_schema()
    await pg_pool.execute("TRUNCATE TABLE credential_configs")
    return storage
