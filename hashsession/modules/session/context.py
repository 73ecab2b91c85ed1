"""
Unit of work.

One UnitOfWork exists per inbound request. It holds the request-scoped
session slot, the queue of deferred flushes, background store calls that
must finish before the request completes, and the error channel.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set

logger = logging.getLogger(__name__)


def log_session_error(exc: Exception) -> None:
    """Default error channel: log and continue."""
    logger.error(f"Session error: {type(exc).__name__}: {exc}")


class UnitOfWork:
    def __init__(
        self,
        request: Any,
        on_error: Optional[Callable[[Exception], None]] = None,
    ):
        """
        Initialize unit of work.

        Args:
            request: Framework request (anything with a ``cookies`` mapping)
            on_error: Error channel for asynchronous session failures
        """
        self.request = request
        self.on_error = on_error or log_session_error
        self.session = None
        self.errors: List[Exception] = []
        # Outgoing token state staged by the token carrier.
        self.carrier_state: Dict[str, Any] = {}
        self.lock = asyncio.Lock()
        self._deferred: List[Callable[[], Awaitable[None]]] = []
        self._background: Set[asyncio.Task] = set()
        self._finished = False

    @property
    def finished(self) -> bool:
        return self._finished

    def defer(self, callback: Callable[[], Awaitable[None]]) -> None:
        """Queue a coroutine function to run when the unit of work completes."""
        if self._finished:
            logger.warning("Deferred callback registered after unit of work finished; ignoring")
            return
        self._deferred.append(callback)

    def spawn(self, coro: Awaitable[Any]) -> asyncio.Task:
        """Start a store call now without waiting for it; failures go to the error channel."""
        task = asyncio.ensure_future(self._guard(coro))
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    def report_error(self, exc: Exception) -> None:
        self.errors.append(exc)
        self.on_error(exc)

    async def complete(self) -> None:
        """Run every deferred flush, then wait for background store calls."""
        while self._deferred:
            callback = self._deferred.pop(0)
            try:
                await callback()
            except Exception as e:
                self.report_error(e)
        self._finished = True
        await self._drain_background()

    async def abort(self) -> None:
        """Discard deferred flushes; nothing staged is written."""
        if self._deferred:
            logger.debug(f"Discarding {len(self._deferred)} deferred session flush(es)")
        self._deferred.clear()
        self._finished = True
        await self._drain_background()

    async def _drain_background(self) -> None:
        if self._background:
            await asyncio.gather(*list(self._background))

    async def _guard(self, coro: Awaitable[Any]) -> Any:
        try:
            return await coro
        except Exception as e:
            self.report_error(e)
            return None
