"""
Storage abstractions for encrypted credential configs.

This module provides:
- StoredConfig: One user's encrypted envelope with timestamps
- ConfigStorage: Abstract interface for config storage backends
- InMemoryConfigStorage: In-memory implementation for testing

Each user holds at most one config. Saving replaces it wholesale, deleting
removes it wholesale; there are no partial updates.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Dict, Optional

from .models import EncryptionResult


@dataclass
class StoredConfig:
    """Encrypted config record for one user."""

    user_id: str
    bundle: EncryptionResult
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class ConfigStorage(ABC):
    """
    Abstract storage interface keyed by user ID.

    All methods are async to support both in-memory and database backends.
    """

    @abstractmethod
    async def save(self, user_id: str, bundle: EncryptionResult) -> StoredConfig:
        """Insert or replace the user's config."""
        ...

    @abstractmethod
    async def load(self, user_id: str) -> Optional[StoredConfig]:
        """Get the user's config, or None."""
        ...

    @abstractmethod
    async def exists(self, user_id: str) -> bool:
        """Whether the user has a config."""
        ...

    @abstractmethod
    async def delete(self, user_id: str) -> bool:
        """Delete the user's config. Returns False if there was none."""
        ...


class InMemoryConfigStorage(ConfigStorage):
    """
    In-memory storage implementation for testing.

    Uses asyncio.Lock for safe concurrent access.
    """

    def __init__(self) -> None:
        self._configs: Dict[str, StoredConfig] = {}
        self._lock = asyncio.Lock()

    async def save(self, user_id: str, bundle: EncryptionResult) -> StoredConfig:
        now = datetime.now(timezone.utc)
        async with self._lock:
            existing = self._configs.get(user_id)
            if existing is None:
                stored = StoredConfig(
                    user_id=user_id, bundle=bundle, created_at=now, updated_at=now
                )
            else:
                stored = replace(existing, bundle=bundle, updated_at=now)
            self._configs[user_id] = stored
            return stored

    async def load(self, user_id: str) -> Optional[StoredConfig]:
        async with self._lock:
            return self._configs.get(user_id)

    async def exists(self, user_id: str) -> bool:
        async with self._lock:
            return user_id in self._configs

    async def delete(self, user_id: str) -> bool:
        async with self._lock:
            return self._configs.pop(user_id, None) is not None

    def __len__(self) -> int:
        return len(self._configs)
