"""Approval gate: suspend a flagged action until a human decides.

Each request creates a ``PendingApproval`` keyed by an opaque id and backed
by an ``asyncio.Future``. Exactly two writers exist for that future: an
external decision (``resolve``) and the timeout timer. Whichever settles
first wins; the other becomes a no-op. An unanswered approval is rejected
when its timeout elapses, and one that cannot be shown to anyone (no
notifier, or the notifier fails) is rejected at once.

Only the awaiting tool call is suspended. The event loop keeps serving
decisions, keepalives and new submissions meanwhile. Cancelling the waiter
(e.g. a user abort) leaves the approval pending until its own timeout.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from relay.exceptions import ApprovalError

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

DEFAULT_APPROVAL_TIMEOUT = 600.0


class ApprovalStatus(StrEnum):
    """Lifecycle of a pending approval."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    TIMED_OUT = "timed_out"  # Terminal, treated as rejected downstream


class ApprovalDecision(StrEnum):
    """What the suspended action is told."""

    APPROVED = "approved"
    REJECTED = "rejected"


class ResolveOutcome(StrEnum):
    """Result of delivering an external decision."""

    APPROVED = "approved"
    REJECTED = "rejected"
    EXPIRED = "expired"  # Unknown id, already resolved, or timed out


@runtime_checkable
class ApprovalNotifier(Protocol):
    """Human-decision collaborator: shows the prompt, later calls ``resolve``."""

    async def notify_approval(self, approval_id: str, description: str) -> None: ...


@dataclass
class PendingApproval:
    """A suspended action awaiting a decision."""

    id: str
    description: str
    future: asyncio.Future[ApprovalDecision]
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    timeout_handle: asyncio.TimerHandle | None = None
    status: ApprovalStatus = ApprovalStatus.PENDING
    resolved_at: datetime | None = None

    @property
    def resolved(self) -> bool:
        return self.status != ApprovalStatus.PENDING

    def settle(self, status: ApprovalStatus) -> bool:
        """Move out of PENDING exactly once.

        Returns:
            True if this call performed the transition, False if the
            approval had already been settled.
        """
        if status == ApprovalStatus.PENDING:
            raise ValueError("Cannot settle an approval back to pending")
        if self.resolved:
            return False
        self.status = status
        self.resolved_at = datetime.now(UTC)
        if self.timeout_handle is not None:
            self.timeout_handle.cancel()
            self.timeout_handle = None
        decision = (
            ApprovalDecision.APPROVED if status == ApprovalStatus.APPROVED else ApprovalDecision.REJECTED
        )
        if not self.future.done():
            self.future.set_result(decision)
        return True


class ApprovalGate:
    """Registry of pending approvals for one session."""

    def __init__(
        self,
        notifier: ApprovalNotifier | None = None,
        *,
        timeout_seconds: float = DEFAULT_APPROVAL_TIMEOUT,
        on_resolved: Callable[[PendingApproval], None] | None = None,
        id_factory: Callable[[], str] | None = None,
    ):
        """Initialize the gate.

        Args:
            notifier: Collaborator that presents approval prompts.
            timeout_seconds: Lifetime of an unanswered approval.
            on_resolved: Called once per approval after it settles (used for
                the action log and feedback signals). Errors are logged.
            id_factory: Produces opaque approval ids (default: 8 hex chars).
        """
        self.notifier = notifier
        self.timeout_seconds = timeout_seconds
        self.on_resolved = on_resolved
        self._id_factory = id_factory or (lambda: uuid.uuid4().hex[:8])
        self._pending: dict[str, PendingApproval] = {}

    def pending(self) -> list[PendingApproval]:
        return list(self._pending.values())

    def get(self, approval_id: str) -> PendingApproval | None:
        return self._pending.get(approval_id)

    def open(self, description: str, *, timeout: float | None = None) -> PendingApproval:
        """Register a new pending approval and arm its timeout."""
        loop = asyncio.get_running_loop()
        approval_id = self._id_factory()
        if approval_id in self._pending:
            raise ApprovalError(f"Duplicate approval id {approval_id!r}")

        approval = PendingApproval(
            id=approval_id,
            description=description,
            future=loop.create_future(),
        )
        delay = self.timeout_seconds if timeout is None else timeout
        approval.timeout_handle = loop.call_later(delay, self._expire, approval_id)
        self._pending[approval_id] = approval
        logger.info("Approval %s pending: %s", approval_id, description)
        return approval

    async def request_approval(
        self,
        description: str,
        *,
        timeout: float | None = None,
    ) -> ApprovalDecision:
        """Ask for a decision and wait for it (or the timeout).

        Returns:
            ``APPROVED`` only on an explicit approval; rejection and timeout
            both yield ``REJECTED``.
        """
        approval = self.open(description, timeout=timeout)

        if self.notifier is None:
            # Nobody to ask: reject.
            logger.warning("No approval notifier, rejecting %s: %s", approval.id, description)
            self._finish(approval, ApprovalStatus.REJECTED)
        else:
            try:
                await self.notifier.notify_approval(approval.id, description)
            except Exception:
                # Undeliverable prompt: reject.
                logger.warning("Approval prompt %s could not be delivered", approval.id, exc_info=True)
                self._finish(approval, ApprovalStatus.REJECTED)

        # Shielded: cancelling the waiter must not settle the approval.
        return await asyncio.shield(approval.future)

    def resolve(self, approval_id: str, approved: bool) -> ResolveOutcome:
        """Deliver an external decision.

        Late decisions (after a timeout or an earlier decision) and unknown
        ids are no-ops reported as ``EXPIRED``.
        """
        approval = self._pending.get(approval_id)
        if approval is None:
            logger.info("Decision for unknown or expired approval %s ignored", approval_id)
            return ResolveOutcome.EXPIRED

        status = ApprovalStatus.APPROVED if approved else ApprovalStatus.REJECTED
        if not self._finish(approval, status):
            return ResolveOutcome.EXPIRED
        return ResolveOutcome.APPROVED if approved else ResolveOutcome.REJECTED

    def cancel_all(self) -> int:
        """Reject every pending approval (shutdown). Returns how many."""
        count = 0
        for approval in list(self._pending.values()):
            if self._finish(approval, ApprovalStatus.REJECTED):
                count += 1
        return count

    def _expire(self, approval_id: str) -> None:
        approval = self._pending.get(approval_id)
        if approval is None:
            return
        if self._finish(approval, ApprovalStatus.TIMED_OUT):
            logger.info("Approval %s timed out, treating as rejected", approval_id)

    def _finish(self, approval: PendingApproval, status: ApprovalStatus) -> bool:
        if not approval.settle(status):
            return False
        self._pending.pop(approval.id, None)
        logger.info("Approval %s resolved: %s", approval.id, status)
        if self.on_resolved is not None:
            try:
                self.on_resolved(approval)
            except Exception:
                logger.warning("on_resolved hook failed for %s", approval.id, exc_info=True)
        return True
