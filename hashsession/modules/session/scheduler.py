"""
Flush scheduling.

Coalesces every change made to a session during one unit of work into a
single batched write. The first change registers a deferred flush with the
unit of work; later changes only extend the pending diff.
"""

import logging
from typing import TYPE_CHECKING, Dict, Set

from ...errors import StoreError
from .tracker import ChangeTracker

if TYPE_CHECKING:
    from ..carrier import TokenCarrier
    from ..storage.interfaces import HashStore
    from .context import UnitOfWork
    from .session import Session

logger = logging.getLogger(__name__)

# Hash field holding the record lifetime in milliseconds.
RESERVED_FIELD = "maxAge"


class FlushScheduler:
    def __init__(
        self,
        session: "Session",
        tracker: ChangeTracker,
        store: "HashStore",
        carrier: "TokenCarrier",
        context: "UnitOfWork",
    ):
        self.session = session
        self.tracker = tracker
        self.store = store
        self.carrier = carrier
        self.context = context
        self._pending = False
        self._closed = False
        self.write_count = 0

    @property
    def pending(self) -> bool:
        return self._pending

    def schedule(self) -> None:
        """Mark a flush as due and defer it to the end of the unit of work."""
        if self._pending or self._closed:
            return
        self._pending = True
        self.context.defer(self._run_deferred)

    async def _run_deferred(self) -> None:
        # An explicit flush() may already have written this diff.
        if self._pending:
            await self.flush()

    async def flush(self) -> bool:
        """
        Write the pending diff now.

        Returns:
            True if the write succeeded, False if it failed or was skipped
        """
        self._pending = False
        if self._closed:
            return False
        diff = self.tracker.take()
        return await self._write(diff.removals, diff.sets)

    async def touch(self) -> bool:
        """Refresh the record lifetime and the carried token without field changes."""
        if self._closed:
            return False
        return await self._write(set(), {})

    def close(self) -> None:
        """Stop flushing; staged changes are discarded."""
        self._closed = True
        self._pending = False
        self.tracker.discard()

    async def _write(self, removals: Set[str], sets: Dict[str, str]) -> bool:
        session = self.session
        ttl = session.max_age
        mapping = dict(sets)
        # Reserved lifetime field always wins over a user field of the same name.
        mapping[RESERVED_FIELD] = str(ttl)

        logger.debug(
            f"Flushing session {session.key[-6:]}: "
            f"set={sorted(sets)} remove={sorted(removals)} ttl={ttl}ms"
        )
        try:
            await self.store.write_batch(session.key, removals, mapping, ttl)
        except StoreError as e:
            logger.error(f"Session flush failed: {e}")
            self.context.report_error(e)
            return False

        self.write_count += 1
        self.carrier.set_token(self.context, session.id, ttl)
        return True
