"""
Storage Module - Black Box Interface

Purpose: Persist session records as Redis hashes
Interface: StorageModule.connect()/disconnect(), RedisHashStore
           (read_all_fields, write_batch, delete, set_expiry)
Hidden: Redis specifics, connection pooling, transactions

Can be replaced with any store implementing HashStore.
"""

import os
from typing import Optional

import redis.asyncio as redis

from .hash_store import RedisHashStore
from .interfaces import HashStore


def create_client(url: Optional[str] = None, password: Optional[str] = None) -> redis.Redis:
    """Create a connection-pooled async Redis client returning str values."""
    url = url or os.getenv("REDIS_URL", "redis://localhost:6379/0")
    return redis.from_url(url, password=password, encoding="utf-8", decode_responses=True)


class StorageModule:
    """Black box storage abstraction."""

    def __init__(self, connection_url: str = None, password: str = None):
        """Initialize storage with connection URL."""
        self.url = connection_url or os.getenv("REDIS_URL", "redis://localhost:6379/0")
        self.password = password
        self._client = None

    async def connect(self) -> redis.Redis:
        """Get storage connection."""
        if not self._client:
            self._client = create_client(self.url, self.password)
        return self._client

    def hash_store(self) -> RedisHashStore:
        """Hash store over the current connection; call connect() first."""
        if not self._client:
            raise RuntimeError("StorageModule.connect() must be awaited first")
        return RedisHashStore(self._client)

    async def disconnect(self):
        """Close storage connection."""
        if self._client:
            await self._client.aclose()
            self._client = None


__all__ = ["StorageModule", "RedisHashStore", "HashStore", "create_client"]
