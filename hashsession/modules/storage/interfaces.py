"""Hash record store interface."""
from typing import Dict, Mapping, Optional, Protocol, Set


class HashStore(Protocol):
    """
    Protocol for session record stores.

    Implementations must be safe for concurrent use by many units of work
    and raise StoreError for any backend failure.
    """

    async def read_all_fields(self, key: str) -> Optional[Dict[str, str]]:
        """Return every field of the record, or None if it does not exist."""
        ...

    async def write_batch(
        self,
        key: str,
        removals: Set[str],
        sets: Mapping[str, str],
        ttl_millis: int,
    ) -> None:
        """Atomically remove fields, set fields and reset the record TTL."""
        ...

    async def delete(self, key: str) -> None:
        """Delete the record."""
        ...

    async def set_expiry(self, key: str, ttl_millis: int) -> None:
        """Reset the record TTL."""
        ...
