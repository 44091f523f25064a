"""Test doubles for relay collaborators."""

from __future__ import annotations

import asyncio
from collections.abc import Callable


class RecordingSink:
    """DeliverySink that keeps everything it is given."""

    def __init__(self) -> None:
        self.chunks: list[str] = []
        self.warnings: list[str] = []
        self.errors: list[str] = []
        self.queued = 0
        self.working = 0

    async def emit_chunk(self, text: str) -> None:
        self.chunks.append(text)

    async def emit_warning(self, text: str) -> None:
        self.warnings.append(text)

    async def emit_error(self, text: str) -> None:
        self.errors.append(text)

    async def notify_queued(self) -> None:
        self.queued += 1

    async def notify_working(self) -> None:
        self.working += 1


class AutoNotifier:
    """ApprovalNotifier that decides every prompt right after it is shown.

    Assign ``resolve`` (usually ``runtime.resolve_approval``) before use;
    without it prompts are recorded and left pending.
    """

    def __init__(self, approve: bool = True) -> None:
        self.approve = approve
        self.prompts: list[tuple[str, str]] = []
        self.resolve: Callable[[str, bool], object] | None = None

    async def notify_approval(self, approval_id: str, description: str) -> None:
        self.prompts.append((approval_id, description))
        if self.resolve is not None:
            asyncio.get_running_loop().call_soon(self.resolve, approval_id, self.approve)


class FakeClock:
    """Manually advanced monotonic clock for time_func injection."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds
