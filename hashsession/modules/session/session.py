"""
Session object.

A live, mutable mapping of session fields. Every write through the mapping
interface is staged by a ChangeTracker and flushed once per unit of work.
"""

import logging
from collections.abc import MutableMapping
from typing import TYPE_CHECKING, Any, Dict, Iterator, Optional

from .scheduler import FlushScheduler
from .tracker import ChangeTracker

if TYPE_CHECKING:
    from .context import UnitOfWork
    from .manager import SessionManager

logger = logging.getLogger(__name__)


class Session(MutableMapping):
    """
    Store-backed session for one unit of work.

    Assigning ``None`` to a field removes it. Nested values are not observed:
    after mutating a list or dict in place, call ``changed(name)``.
    """

    def __init__(
        self,
        manager: "SessionManager",
        context: "UnitOfWork",
        token: str,
        fields: Optional[Dict[str, Any]] = None,
        max_age: Optional[int] = None,
        is_new: bool = False,
    ):
        self._manager = manager
        self._context = context
        self._id = token
        self._key = manager.key_for(token)
        self._data: Dict[str, Any] = dict(fields or {})
        self._max_age = max_age or manager.options.max_age
        self.is_new = is_new
        self.destroyed = False
        self._tracker = ChangeTracker(on_dirty=self._schedule_flush, on_error=context.report_error)
        self._scheduler = FlushScheduler(
            self, self._tracker, manager.store, manager.carrier, context
        )

    def __repr__(self) -> str:
        return f"<Session {self._id[:4]}... fields={sorted(self._data)}>"

    @property
    def id(self) -> str:
        return self._id

    @property
    def key(self) -> str:
        return self._key

    @property
    def max_age(self) -> int:
        """Record lifetime in milliseconds."""
        return self._max_age

    @max_age.setter
    def max_age(self, value: int) -> None:
        if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
            raise ValueError(f"max_age must be a positive number of milliseconds, got {value!r}")
        self._max_age = value
        self._tracker.mark_dirty()

    @property
    def pending(self):
        """Changes staged since the last flush."""
        return self._tracker.pending

    @property
    def write_count(self) -> int:
        """Number of successful writes issued for this session."""
        return self._scheduler.write_count

    # Mapping interface

    def __getitem__(self, name: str) -> Any:
        return self._data[name]

    def __setitem__(self, name: str, value: Any) -> None:
        if not isinstance(name, str):
            raise TypeError(f"Session field names must be str, got {type(name).__name__}")
        if value is None:
            self._data.pop(name, None)
            self._tracker.record_removal(name)
            return
        self._data[name] = value
        self._tracker.record_set(name, value)

    def __delitem__(self, name: str) -> None:
        del self._data[name]
        self._tracker.record_removal(name)

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def discard(self, name: str) -> None:
        """Remove a field, staging the removal even if it is not loaded."""
        self._data.pop(name, None)
        self._tracker.record_removal(name)

    def changed(self, name: str) -> None:
        """Restage a field whose value was mutated in place."""
        self._tracker.record_set(name, self._data[name])

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._data)

    # Lifecycle

    async def flush(self) -> bool:
        """Write staged changes now instead of at the end of the unit of work."""
        return await self._scheduler.flush()

    async def touch(self) -> bool:
        """Extend the record lifetime without changing any field."""
        return await self._scheduler.touch()

    def destroy(self) -> None:
        """Delete the record and clear the token. Does not wait for the store."""
        self._manager.destroy(self)

    async def regenerate(self) -> "Session":
        """Destroy this session and return a new one under a fresh token."""
        return await self._manager.regenerate(self._context)

    def _schedule_flush(self) -> None:
        self._scheduler.schedule()

    def _close(self) -> None:
        self.destroyed = True
        self._scheduler.close()
