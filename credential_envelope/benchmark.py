"""
Credential Envelope Benchmark CLI.

Usage:
    credential-envelope-benchmark [ROUNDS]

Or run directly:
    python -m credential_envelope.benchmark [ROUNDS]

PostgreSQL round-trip (optional):
    Set DATABASE_URL in the environment or a .env file; the
    credential_configs table is created if missing.
"""

from __future__ import annotations

import asyncio
import statistics
import sys
import time
from typing import Callable, List, Optional, Sequence
from uuid import uuid4

import asyncpg

from credential_envelope.codec import CredentialEnvelopeCodec
from credential_envelope.crypto import SALT_SIZE, DefaultCryptoProvider
from credential_envelope.errors import SettingsError
from credential_envelope.logging_config import configure_logging
from credential_envelope.models import CredentialBundle
from credential_envelope.postgres import PostgresConfigStorage
from credential_envelope.service import CredentialConfigService
from credential_envelope.settings import Settings

DEFAULT_ROUNDS = 10
SAMPLE_PASSPHRASE = "correct horse battery staple"
SAMPLE_CREDENTIALS = CredentialBundle(
    account_id="acct123",
    api_token="tok_abc",
    r2_access_key="ak_1",
    r2_secret_key="sk_1",
)


def _time_rounds(rounds: int, operation: Callable[[], object]) -> List[float]:
    """Run `operation` `rounds` times and return per-call durations in ms."""
    durations = []
    for _ in range(rounds):
        start = time.perf_counter()
        operation()
        durations.append((time.perf_counter() - start) * 1000)
    return durations


def _report(label: str, durations: Sequence[float]) -> float:
    mean = statistics.mean(durations)
    print(
        f"[PERF] {label:<18} mean {mean:8.3f}ms | min {min(durations):8.3f}ms | "
        f"max {max(durations):8.3f}ms | {1000.0 / mean:.2f} ops/sec"
    )
    return mean


def _read_rounds(argv: Sequence[str]) -> int:
    raw: Optional[str] = argv[0] if argv else None
    if raw is None:
        try:
            raw = input(f"Enter number of rounds (default: {DEFAULT_ROUNDS}): ").strip()
        except EOFError:
            raw = ""
    try:
        rounds = int(raw) if raw else DEFAULT_ROUNDS
    except ValueError:
        rounds = DEFAULT_ROUNDS
    return max(rounds, 1)


async def run_benchmark(argv: Sequence[str] = ()) -> None:
    """Run the credential envelope benchmark."""
    print("=== Credential Envelope Benchmark ===\n")

    try:
        settings = Settings.from_env()
    except SettingsError as e:
        print(f"ERROR: {e}")
        sys.exit(1)
    configure_logging(settings.log_level, settings.log_json)
    rounds = _read_rounds(argv)
    codec = settings.build_codec()
    provider = DefaultCryptoProvider()

    print(f"Rounds: {rounds} | PBKDF2 iterations: {codec.iterations}\n")

    # ========================================================================
    # Demo 1: KEK derivation
    # ========================================================================
    print("+" + "-" * 68 + "+")
    print("|  Demo 1: KEK Derivation (PBKDF2-HMAC-SHA256)                      |")
    print("+" + "-" * 68 + "+")

    salt = provider.random_bytes(SALT_SIZE)
    derive_mean = _report(
        "Derive KEK:",
        _time_rounds(rounds, lambda: codec.derive_key(SAMPLE_PASSPHRASE, salt)),
    )
    print()

    # ========================================================================
    # Demo 2: Envelope encrypt/decrypt
    # ========================================================================
    print("+" + "-" * 68 + "+")
    print("|  Demo 2: Envelope Encryption/Decryption                           |")
    print("+" + "-" * 68 + "+")

    bundle = codec.encrypt_credentials(SAMPLE_CREDENTIALS, SAMPLE_PASSPHRASE)
    encrypt_mean = _report(
        "Encrypt:",
        _time_rounds(
            rounds,
            lambda: codec.encrypt_credentials(SAMPLE_CREDENTIALS, SAMPLE_PASSPHRASE),
        ),
    )
    decrypt_mean = _report(
        "Decrypt:",
        _time_rounds(rounds, lambda: codec.decrypt_credentials(bundle, SAMPLE_PASSPHRASE)),
    )

    recovered = codec.decrypt_credentials(bundle, SAMPLE_PASSPHRASE)
    if recovered != SAMPLE_CREDENTIALS:
        print("[ERROR] Round-trip mismatch")
        sys.exit(1)
    print("[OK] Round-trip verified\n")

    # ========================================================================
    # Demo 3: PostgreSQL save/load round-trip
    # ========================================================================
    print("+" + "-" * 68 + "+")
    print("|  Demo 3: PostgreSQL Save/Load                                     |")
    print("+" + "-" * 68 + "+")

    if not settings.database_url:
        print("[SKIP] DATABASE_URL not set\n")
    else:
        await _run_postgres_demo(settings.database_url, codec, rounds)

    # ========================================================================
    # Summary
    # ========================================================================
    print("=" * 70)
    print("                    BENCHMARK SUMMARY")
    print("=" * 70)
    print(f"  - KEK derivation: {derive_mean:.3f}ms")
    print(f"  - Encrypt:        {encrypt_mean:.3f}ms")
    print(f"  - Decrypt:        {decrypt_mean:.3f}ms")
    print("  - Crypto: PBKDF2-HMAC-SHA256 KEK, AES-256-GCM DEK and payload")
    print("=" * 70 + "\n")


async def _run_postgres_demo(
    database_url: str, codec: CredentialEnvelopeCodec, rounds: int
) -> None:
    pool = await asyncpg.create_pool(database_url)
    if pool is None:
        print("[ERROR] Failed to create connection pool\n")
        return

    storage = PostgresConfigStorage(pool)
    service = CredentialConfigService(storage, codec)
    user_id = f"benchmark-{uuid4()}"

    try:
        await storage.create_schema()

        durations = []
        for _ in range(rounds):
            start = time.perf_counter()
            await service.save_credentials(user_id, SAMPLE_CREDENTIALS, SAMPLE_PASSPHRASE)
            await service.get_credentials(user_id, SAMPLE_PASSPHRASE)
            durations.append((time.perf_counter() - start) * 1000)

        _report("Save + load:", durations)
        print("[OK] PostgreSQL round-trip verified\n")
    finally:
        try:
            await service.delete_config(user_id)
        finally:
            await pool.close()


def main() -> None:
    """CLI entry point for credential-envelope-benchmark command."""
    asyncio.run(run_benchmark(sys.argv[1:]))


if __name__ == "__main__":
    main()
