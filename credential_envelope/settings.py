"""
Runtime settings loaded from the environment.

Variables (a `.env` file is read when present):
    DATABASE_URL                   PostgreSQL DSN for PostgresConfigStorage
    CREDENTIAL_PBKDF2_ITERATIONS   KEK derivation rounds (default 100000)
    LOG_LEVEL                      Logging level name (default INFO)
    LOG_JSON                       Render logs as JSON when true
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Union

from dotenv import load_dotenv

from .codec import CredentialEnvelopeCodec
from .crypto import DEFAULT_PBKDF2_ITERATIONS, CryptoProvider
from .errors import SettingsError

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_TRUE = ("1", "true", "yes", "on")
_FALSE = ("0", "false", "no", "off", "")


@dataclass(frozen=True)
class Settings:
    """Validated runtime settings."""

    database_url: Optional[str] = None
    pbkdf2_iterations: int = DEFAULT_PBKDF2_ITERATIONS
    log_level: str = "INFO"
    log_json: bool = False

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        dotenv_path: Optional[Union[str, Path]] = None,
    ) -> Settings:
        """
        Build settings from environment variables.

        Args:
            environ: Mapping to read instead of os.environ (no .env loading)
            dotenv_path: Explicit .env file to load into os.environ first

        Raises:
            SettingsError: If a variable has an invalid value
        """
        if environ is None:
            load_dotenv(dotenv_path)
            environ = os.environ

        iterations_raw = environ.get("CREDENTIAL_PBKDF2_ITERATIONS", "").strip()
        if iterations_raw:
            try:
                iterations = int(iterations_raw)
            except ValueError:
                raise SettingsError(
                    f"CREDENTIAL_PBKDF2_ITERATIONS must be an integer, got {iterations_raw!r}"
                ) from None
        else:
            iterations = DEFAULT_PBKDF2_ITERATIONS
        # Existing envelopes carry no iteration count, so lowering it breaks them.
        if iterations < DEFAULT_PBKDF2_ITERATIONS:
            raise SettingsError(
                f"CREDENTIAL_PBKDF2_ITERATIONS must be at least {DEFAULT_PBKDF2_ITERATIONS}"
            )

        log_level = environ.get("LOG_LEVEL", "INFO").strip().upper() or "INFO"
        if log_level not in _LOG_LEVELS:
            raise SettingsError(f"LOG_LEVEL must be one of {', '.join(_LOG_LEVELS)}")

        log_json_raw = environ.get("LOG_JSON", "").strip().lower()
        if log_json_raw in _TRUE:
            log_json = True
        elif log_json_raw in _FALSE:
            log_json = False
        else:
            raise SettingsError(f"LOG_JSON must be a boolean, got {log_json_raw!r}")

        database_url = environ.get("DATABASE_URL") or None

        return cls(
            database_url=database_url,
            pbkdf2_iterations=iterations,
            log_level=log_level,
            log_json=log_json,
        )

    def build_codec(self, provider: Optional[CryptoProvider] = None) -> CredentialEnvelopeCodec:
        """Create a codec using the configured iteration count."""
        return CredentialEnvelopeCodec(provider=provider, iterations=self.pbkdf2_iterations)
