"""
PostgreSQL storage for encrypted credential configs.

Stores the four base64 envelope fields verbatim, one row per user. The
database never sees plaintext credentials, keys or passphrases.
"""

from __future__ import annotations

from typing import Optional

import asyncpg
from structlog import get_logger

from .errors import StorageError
from .models import EncryptionResult
from .storage import ConfigStorage, StoredConfig

logger = get_logger(__name__)


SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS credential_configs (
    user_id                TEXT PRIMARY KEY,
    encrypted_credentials  TEXT NOT NULL,
    wrapped_dek            TEXT NOT NULL,
    salt                   TEXT NOT NULL,
    iv                     TEXT NOT NULL,
    created_at             TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at             TIMESTAMPTZ NOT NULL DEFAULT now()
)
"""

_SELECT_COLUMNS = """
    user_id, encrypted_credentials, wrapped_dek, salt, iv, created_at, updated_at
"""


class PostgresConfigStorage(ConfigStorage):
    """PostgreSQL storage backend for encrypted configs."""

    def __init__(self, pool: asyncpg.Pool) -> None:
        """
        Initialize PostgreSQL storage.

        Args:
            pool: asyncpg connection pool
        """
        self._pool = pool

    @property
    def pool(self) -> asyncpg.Pool:
        """Get the connection pool."""
        return self._pool

    async def create_schema(self) -> None:
        """Create the credential_configs table if it does not exist."""
        try:
            await self._pool.execute(SCHEMA_SQL)
        except Exception as e:
            raise StorageError(f"Failed to create schema: {e}") from e
        logger.info("credential_configs_schema_ready")

    async def save(self, user_id: str, bundle: EncryptionResult) -> StoredConfig:
        """
        Insert or replace the user's config.

        created_at is kept on replacement, updated_at is refreshed.
        """
        query = f"""
            INSERT INTO credential_configs
                (user_id, encrypted_credentials, wrapped_dek, salt, iv)
            VALUES ($1, $2, $3, $4, $5)
            ON CONFLICT (user_id) DO UPDATE SET
                encrypted_credentials = EXCLUDED.encrypted_credentials,
                wrapped_dek = EXCLUDED.wrapped_dek,
                salt = EXCLUDED.salt,
                iv = EXCLUDED.iv,
                updated_at = now()
            RETURNING {_SELECT_COLUMNS}
        """
        try:
            row = await self._pool.fetchrow(
                query,
                user_id,
                bundle.encrypted_credentials,
                bundle.wrapped_dek,
                bundle.salt,
                bundle.iv,
            )
        except Exception as e:
            raise StorageError(f"Failed to save config: {e}") from e
        return self._row_to_stored_config(row)

    async def load(self, user_id: str) -> Optional[StoredConfig]:
        query = f"SELECT {_SELECT_COLUMNS} FROM credential_configs WHERE user_id = $1"
        try:
            row = await self._pool.fetchrow(query, user_id)
        except Exception as e:
            raise StorageError(f"Failed to load config: {e}") from e
        if row is None:
            return None
        return self._row_to_stored_config(row)

    async def exists(self, user_id: str) -> bool:
        query = "SELECT EXISTS(SELECT 1 FROM credential_configs WHERE user_id = $1)"
        try:
            return bool(await self._pool.fetchval(query, user_id))
        except Exception as e:
            raise StorageError(f"Failed to check config: {e}") from e

    async def delete(self, user_id: str) -> bool:
        query = "DELETE FROM credential_configs WHERE user_id = $1 RETURNING user_id"
        try:
            row = await self._pool.fetchrow(query, user_id)
        except Exception as e:
            raise StorageError(f"Failed to delete config: {e}") from e
        return row is not None

    @staticmethod
    def _row_to_stored_config(row: asyncpg.Record) -> StoredConfig:
        return StoredConfig(
            user_id=row["user_id"],
            bundle=EncryptionResult(
                encrypted_credentials=row["encrypted_credentials"],
                wrapped_dek=row["wrapped_dek"],
                salt=row["salt"],
                iv=row["iv"],
            ),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
