"""Single-flight request queue.

At most one request handler runs at a time. Requests arriving while one is
in flight are parked in FIFO order and drained by a single worker task, so
a long backlog never grows the call stack. A failing or aborted handler is
isolated: the worker always moves on to the next entry.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Generic, TypeVar

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

RequestT = TypeVar("RequestT")


class EnqueueOutcome(StrEnum):
    """What happened to a request handed to ``RequestQueue.enqueue``."""

    STARTED = "started"
    DEFERRED = "deferred"


@dataclass
class QueueEntry(Generic[RequestT]):
    """A parked request and the handler that will process it."""

    request: RequestT
    handler: Callable[[RequestT], Awaitable[Any]]
    enqueued_at: float = field(default_factory=time.monotonic)


class RequestQueue(Generic[RequestT]):
    """FIFO single-flight scheduler for one session."""

    def __init__(self) -> None:
        self._pending: deque[QueueEntry[RequestT]] = deque()
        self._worker: asyncio.Task[None] | None = None
        self._current: asyncio.Task[Any] | None = None
        self.completed = 0
        self.failed = 0

    @property
    def busy(self) -> bool:
        return self._worker is not None and not self._worker.done()

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def enqueue(
        self,
        request: RequestT,
        handler: Callable[[RequestT], Awaitable[Any]],
    ) -> EnqueueOutcome:
        """Admit a request.

        Starts it right away when idle; otherwise parks it behind the
        in-flight and already-parked entries and returns ``DEFERRED``
        without waiting for anything.
        """
        self._pending.append(QueueEntry(request=request, handler=handler))
        if self.busy:
            logger.info("Request deferred (%d waiting)", len(self._pending))
            return EnqueueOutcome.DEFERRED

        self._worker = asyncio.create_task(self._drain(), name="relay-request-queue")
        return EnqueueOutcome.STARTED

    async def _drain(self) -> None:
        while self._pending:
            entry = self._pending.popleft()
            self._current = asyncio.ensure_future(entry.handler(entry.request))
            try:
                await self._current
                self.completed += 1
            except asyncio.CancelledError:
                task = asyncio.current_task()
                if task is not None and task.cancelling():
                    # The worker itself is shutting down, not just the entry.
                    raise
                logger.info("In-flight request aborted")
            except Exception:
                self.failed += 1
                logger.exception("Request handler failed; continuing with next entry")
            finally:
                self._current = None

    def abort(self) -> bool:
        """Cancel the in-flight handler; the next entry then proceeds.

        Returns:
            True if something was running.
        """
        if self._current is None or self._current.done():
            return False
        self._current.cancel()
        return True

    async def join(self) -> None:
        """Wait until every admitted request has been handled."""
        while self._worker is not None and not self._worker.done():
            await asyncio.wait({self._worker})

    async def shutdown(self) -> None:
        """Drop parked entries and stop the worker."""
        self._pending.clear()
        if self._worker is not None and not self._worker.done():
            self._worker.cancel()
            await asyncio.wait({self._worker})
        if self._current is not None and not self._current.done():
            self._current.cancel()
