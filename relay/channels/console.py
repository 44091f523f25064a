"""Console channel: rich terminal output and y/N approval prompts."""

from __future__ import annotations

import asyncio
import logging
from enum import StrEnum
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Confirm

from relay.hitl.approval_gate import ResolveOutcome

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


class ConsoleSink:
    """DeliverySink that prints to a rich console."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console()
        self.working_ticks = 0

    async def emit_chunk(self, text: str) -> None:
        self.console.print(text, markup=False, highlight=False)

    async def emit_warning(self, text: str) -> None:
        self.console.print(f"[yellow]⚠ {escape(text)}[/yellow]")

    async def emit_error(self, text: str) -> None:
        self.console.print(f"[red]{escape(text)}[/red]")

    async def notify_queued(self) -> None:
        self.console.print("[dim]Queued, will process after current request.[/dim]")

    async def notify_working(self) -> None:
        # The terminal has no typing indicator; keep a count for the summary.
        self.working_ticks += 1


class ApprovalMode(StrEnum):
    ASK = "ask"
    APPROVE = "approve"
    REJECT = "reject"


class ConsoleApprovalNotifier:
    """ApprovalNotifier that asks on the terminal or answers automatically.

    Decisions are delivered through the resolver bound with ``bind`` once
    the session runtime exists.
    """

    def __init__(self, console: Console | None = None, *, mode: ApprovalMode = ApprovalMode.ASK):
        self.console = console or Console()
        self.mode = mode
        self._resolve: Callable[[str, bool], ResolveOutcome] | None = None
        self._tasks: set[asyncio.Task[None]] = set()

    def bind(self, resolve: Callable[[str, bool], ResolveOutcome]) -> None:
        self._resolve = resolve

    async def notify_approval(self, approval_id: str, description: str) -> None:
        if self._resolve is None:
            raise RuntimeError("ConsoleApprovalNotifier used before bind()")

        self.console.print(
            Panel(
                f"{description}\n\n[dim]Approval id: {approval_id}[/dim]",
                title="Approval required",
                border_style="yellow",
            )
        )
        if self.mode == ApprovalMode.ASK:
            task = asyncio.create_task(self._ask(approval_id))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
            return

        approved = self.mode == ApprovalMode.APPROVE
        self.console.print(f"[dim]Auto-{'approved' if approved else 'rejected'}[/dim]")
        asyncio.get_running_loop().call_soon(self._resolve, approval_id, approved)

    async def _ask(self, approval_id: str) -> None:
        assert self._resolve is not None
        approved = await asyncio.to_thread(Confirm.ask, "Allow this action?", default=False)
        outcome = self._resolve(approval_id, approved)
        logger.debug("Console decision for %s: %s", approval_id, outcome)
        if outcome == ResolveOutcome.EXPIRED:
            self.console.print("[dim]Too late, that approval already expired.[/dim]")
