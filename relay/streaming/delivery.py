"""Delivery sink interface and best-effort emission.

The channel (chat client, console) implements ``DeliverySink``. The pipeline
never talks to it directly: every call goes through ``SafeSink``, which
splits oversized chunks and swallows delivery failures so a flaky channel
can never abort a run.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_LIMIT = 4_000


@runtime_checkable
class DeliverySink(Protocol):
    """Outbound side of a channel."""

    async def emit_chunk(self, text: str) -> None: ...

    async def emit_warning(self, text: str) -> None: ...

    async def emit_error(self, text: str) -> None: ...

    async def notify_queued(self) -> None: ...

    async def notify_working(self) -> None: ...


def split_for_delivery(text: str, limit: int = DEFAULT_CHUNK_LIMIT) -> list[str]:
    """Split ``text`` into pieces no longer than ``limit``.

    Prefers paragraph breaks, then line breaks, then spaces; hard-cuts at
    ``limit`` only when a piece has none of them.
    """
    if limit <= 0:
        raise ValueError("limit must be positive")

    pieces: list[str] = []
    remaining = text
    while len(remaining) > limit:
        window = remaining[: limit + 1]
        split_at = window.rfind("\n\n", 0, limit)
        if split_at <= 0:
            split_at = window.rfind("\n", 0, limit)
        if split_at <= 0:
            split_at = window.rfind(" ", 0, limit + 1)
        if split_at <= 0:
            split_at = limit
        pieces.append(remaining[:split_at].rstrip())
        remaining = remaining[split_at:].strip()
    if remaining:
        pieces.append(remaining)
    return [p for p in pieces if p]


class SafeSink:
    """Best-effort wrapper around a DeliverySink.

    Failures are logged and swallowed; they are invisible to the user.
    """

    def __init__(self, sink: DeliverySink, *, chunk_limit: int = DEFAULT_CHUNK_LIMIT):
        self.sink = sink
        self.chunk_limit = chunk_limit
        self.delivered: list[str] = []

    async def _call(self, name: str, *args: str) -> bool:
        try:
            await getattr(self.sink, name)(*args)
        except Exception:
            logger.warning("Delivery sink %s failed", name, exc_info=True)
            return False
        return True

    async def chunk(self, text: str) -> None:
        for piece in split_for_delivery(text, self.chunk_limit):
            if await self._call("emit_chunk", piece):
                self.delivered.append(piece)

    async def warning(self, text: str) -> None:
        await self._call("emit_warning", text)

    async def error(self, text: str) -> None:
        await self._call("emit_error", text)

    async def queued(self) -> None:
        await self._call("notify_queued")

    async def working(self) -> None:
        await self._call("notify_working")
