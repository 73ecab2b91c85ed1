import logging
from typing import Dict, Mapping, Optional, Set

from redis.exceptions import RedisError

from ...errors import StoreError

logger = logging.getLogger(__name__)


def _text(value) -> str:
    return value.decode("utf-8") if isinstance(value, bytes) else value


class RedisHashStore:
    def __init__(self, redis_client):
        """
        Initialize hash store.

        Args:
            redis_client: Async Redis client (shared, connection pooled)
        """
        self.redis = redis_client

    async def read_all_fields(self, key: str) -> Optional[Dict[str, str]]:
        """
        Read a session record.

        Args:
            key: Store key (prefix + token)

        Returns:
            Field mapping, or None if the hash does not exist
        """
        try:
            record = await self.redis.hgetall(key)
        except RedisError as e:
            raise StoreError(f"HGETALL failed: {e}", key=key) from e

        if not record:
            return None
        return {_text(name): _text(value) for name, value in record.items()}

    async def write_batch(
        self,
        key: str,
        removals: Set[str],
        sets: Mapping[str, str],
        ttl_millis: int,
    ) -> None:
        """
        Apply one flush as a MULTI/EXEC transaction.

        Logic:
        1. HDEL removed fields
        2. HSET assigned fields
        3. PEXPIRE the hash to the session lifetime
        """
        pipe = self.redis.pipeline(transaction=True)
        if removals:
            pipe.hdel(key, *sorted(removals))
        if sets:
            pipe.hset(key, mapping=dict(sets))
        pipe.pexpire(key, ttl_millis)

        try:
            await pipe.execute()
        except RedisError as e:
            raise StoreError(f"Session write failed: {e}", key=key) from e

    async def delete(self, key: str) -> None:
        try:
            await self.redis.delete(key)
        except RedisError as e:
            raise StoreError(f"DEL failed: {e}", key=key) from e

    async def set_expiry(self, key: str, ttl_millis: int) -> None:
        try:
            await self.redis.pexpire(key, ttl_millis)
        except RedisError as e:
            raise StoreError(f"PEXPIRE failed: {e}", key=key) from e
