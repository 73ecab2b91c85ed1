"""
Change tracking for session fields.

Every mutation of a live session is staged here as a pending diff of
serialized sets and removals. The tracker never touches the store; it only
tells its owner that a flush is due on the first change since the last flush.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Set

from .codec import encode
from ...errors import SerializationError

logger = logging.getLogger(__name__)


@dataclass
class PendingDiff:
    """Staged changes for one session. A field is never in both collections."""

    sets: Dict[str, str] = field(default_factory=dict)
    removals: Set[str] = field(default_factory=set)

    def stage_set(self, name: str, raw: str) -> None:
        self.sets[name] = raw
        self.removals.discard(name)

    def stage_removal(self, name: str) -> None:
        self.removals.add(name)
        self.sets.pop(name, None)

    def is_empty(self) -> bool:
        return not self.sets and not self.removals


class ChangeTracker:
    def __init__(
        self,
        on_dirty: Callable[[], None],
        on_error: Optional[Callable[[Exception], None]] = None,
    ):
        """
        Initialize change tracker.

        Args:
            on_dirty: Called once on the first change after a flush
            on_error: Receives SerializationError for values that cannot be stored
        """
        self.on_dirty = on_dirty
        self.on_error = on_error
        self._diff = PendingDiff()
        self._dirty = False

    @property
    def dirty(self) -> bool:
        return self._dirty

    @property
    def pending(self) -> PendingDiff:
        """Current pending diff (live view, do not mutate)."""
        return self._diff

    def record_set(self, name: str, value: Any) -> None:
        """
        Stage an addition or replacement.

        A value that encodes to nothing is staged as a removal. A value that
        cannot be encoded is dropped from the diff and reported.
        """
        try:
            raw = encode(value, field=name)
        except SerializationError as e:
            # Drop any earlier staged value so a stale write cannot go out.
            self._diff.sets.pop(name, None)
            logger.warning(f"Dropping session field {name!r}: {e}")
            if self.on_error:
                self.on_error(e)
            return

        if raw is None:
            self.record_removal(name)
            return

        logger.debug(f"Staging set of field {name!r}")
        self._diff.stage_set(name, raw)
        self.mark_dirty()

    def record_removal(self, name: str) -> None:
        logger.debug(f"Staging removal of field {name!r}")
        self._diff.stage_removal(name)
        self.mark_dirty()

    def mark_dirty(self) -> None:
        """Request a flush even when no field changed (new record, lifetime change)."""
        if self._dirty:
            return
        self._dirty = True
        self.on_dirty()

    def take(self) -> PendingDiff:
        """Hand over the pending diff and start a fresh one."""
        diff = self._diff
        self._diff = PendingDiff()
        self._dirty = False
        return diff

    def discard(self) -> None:
        """Drop staged changes without writing them."""
        self.take()
