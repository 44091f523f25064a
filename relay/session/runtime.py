"""Per-session wiring of the relay components.

A ``SessionRuntime`` owns everything one conversation needs: the backend
handle, the delivery sink, the context budget, the approval gate and the
single-flight request queue. Channels talk to the runtime only: they
submit prompts, forward approval decisions and request aborts.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from relay.hitl.action_log import ActionLog
from relay.hitl.approval_gate import ApprovalGate, ApprovalStatus, PendingApproval
from relay.hitl.permission import ToolPermissionGate
from relay.hitl.risk_rules import RuleTableClassifier
from relay.hitl.signals import (
    SignalRecorder,
    action_approved_signal,
    action_rejected_signal,
    detect_signals,
)
from relay.pipeline import run_request
from relay.rate_limit import SlidingWindowRateLimiter
from relay.sanitize import with_forward_context, with_reply_context
from relay.session.budget import ContextBudgetTracker
from relay.session.queue import EnqueueOutcome, RequestQueue
from relay.session.store import SessionStore
from relay.settings import Settings
from relay.streaming.delivery import SafeSink

if TYPE_CHECKING:
    from collections.abc import Callable

    from relay.backends.base import AgentBackend
    from relay.hitl.approval_gate import ApprovalNotifier, ResolveOutcome
    from relay.hitl.risk_rules import RiskClassifier
    from relay.streaming.delivery import DeliverySink

logger = logging.getLogger(__name__)

RATE_LIMIT_NOTICE = "Slow down, too many messages. Try again in a minute."

_OUTCOME_LABELS = {
    ApprovalStatus.APPROVED: "approved",
    ApprovalStatus.REJECTED: "rejected",
    ApprovalStatus.TIMED_OUT: "rejected (timed out)",
}


def format_approval_outcome(approval: PendingApproval) -> str:
    """One line telling the user what happened to an approval prompt."""
    label = _OUTCOME_LABELS.get(approval.status, str(approval.status))
    return f"Approval {approval.id}: {label}, {approval.description}"


class SessionRuntime:
    """One relay session: backend, sink, budget, approvals and queue."""

    def __init__(
        self,
        backend: AgentBackend,
        sink: DeliverySink,
        *,
        settings: Settings | None = None,
        notifier: ApprovalNotifier | None = None,
        classifier: RiskClassifier | None = None,
        store: SessionStore | None = None,
        time_func: Callable[[], float] | None = None,
    ):
        if settings is None:
            from relay.settings import get_settings

            settings = get_settings()
        self.settings = settings
        self.backend = backend
        self.sink = SafeSink(sink, chunk_limit=self.settings.chunk_size_limit)
        self.store = store if store is not None else SessionStore(self.settings.state_dir)
        self.time_func = time_func
        self.model = self.settings.default_model
        self.session_id: str | None = self.store.load()
        if self.session_id:
            logger.info("Resuming session %s", self.session_id)

        self.tracker = ContextBudgetTracker(
            window=self.settings.context_window,
            baseline=self.settings.system_prompt_estimate,
            tool_overhead=self.settings.tool_overhead_per_call,
            chars_per_token=self.settings.chars_per_token,
            warn_remaining_pct=self.settings.warn_remaining_pct,
            critical_remaining_pct=self.settings.critical_remaining_pct,
        )
        self.signals = SignalRecorder()
        self.actions = ActionLog()
        self._notices: set[asyncio.Task[None]] = set()
        self.classifier: RiskClassifier = classifier or RuleTableClassifier()
        self.approvals = ApprovalGate(
            notifier,
            timeout_seconds=self.settings.approval_timeout_seconds,
            on_resolved=self._on_approval_resolved,
        )
        self.permissions = ToolPermissionGate(self.classifier, self.approvals)
        self.queue: RequestQueue[str] = RequestQueue()
        self.rate_limiter = SlidingWindowRateLimiter(
            self.settings.rate_limit_max,
            self.settings.rate_limit_window_seconds,
            time_func=time_func,
        )

    def _on_approval_resolved(self, approval: PendingApproval) -> None:
        self.actions.record(approval)
        if approval.status == ApprovalStatus.APPROVED:
            signal = action_approved_signal()
        else:
            signal = action_rejected_signal()
        self.signals.record([signal], session_id=self.session_id, model=self.model)
        self._announce(format_approval_outcome(approval))

    def _announce(self, text: str) -> None:
        # Called from synchronous gate callbacks; delivery runs as a task.
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running loop, outcome not delivered: %s", text)
            return
        task = loop.create_task(self.sink.warning(text))
        self._notices.add(task)
        task.add_done_callback(self._notices.discard)

    async def _handle(self, prompt: str) -> None:
        await run_request(self, prompt)

    async def submit(
        self,
        prompt: str,
        *,
        quoted: str | None = None,
        forwarded_from: str | None = None,
    ) -> EnqueueOutcome | None:
        """Admit a user prompt.

        Args:
            prompt: What the user typed.
            quoted: Text of the message the user is replying to.
            forwarded_from: Sender of a forwarded message; ``prompt`` is then
                third-party text and is sanitized as a whole.

        Returns the queue outcome, or None when the prompt was rate limited
        and dropped.
        """
        if self.rate_limiter.is_limited():
            await self.sink.warning(RATE_LIMIT_NOTICE)
            return None

        if forwarded_from is not None:
            prompt = with_forward_context(prompt, forwarded_from)
        else:
            self.signals.record(
                detect_signals(prompt), session_id=self.session_id, model=self.model
            )
        if quoted:
            prompt = with_reply_context(prompt, quoted)

        outcome = self.queue.enqueue(prompt, self._handle)
        if outcome == EnqueueOutcome.DEFERRED:
            await self.sink.queued()
        return outcome

    def abort(self) -> bool:
        """Stop the in-flight request. Queued requests still run."""
        aborted = self.queue.abort()
        if aborted:
            logger.info("Abort requested for session %s", self.session_id)
        return aborted

    def set_session_id(self, session_id: str | None) -> None:
        if session_id == self.session_id:
            return
        self.session_id = session_id
        self.store.save(session_id)
        logger.info("Session id is now %s", session_id)

    def new_session(self) -> None:
        """Forget the backend session and start with a fresh budget."""
        self.session_id = None
        self.store.clear()
        self.tracker.reset()
        logger.info("Started new session")

    def resolve_approval(self, approval_id: str, approved: bool) -> ResolveOutcome:
        return self.approvals.resolve(approval_id, approved)

    def status(self) -> dict[str, Any]:
        used = self.tracker.used_pct()
        return {
            "session_id": self.session_id,
            "short_session_id": self.session_id[:8] if self.session_id else None,
            "model": self.model,
            "context_used_pct": used,
            "context_bar": self.tracker.progress_bar(used),
            "tokens_used": self.tracker.tokens_used,
            "busy": self.queue.busy,
            "queued": self.queue.pending_count,
            "pending_approvals": len(self.approvals.pending()),
            "recent_actions": self.actions.recent(limit=5),
            "rate_limit_remaining": self.rate_limiter.remaining,
        }

    async def join(self) -> None:
        await self.queue.join()

    async def shutdown(self) -> None:
        """Reject pending approvals and stop the queue."""
        rejected = self.approvals.cancel_all()
        if rejected:
            logger.info("Rejected %d pending approval(s) on shutdown", rejected)
        await self.queue.shutdown()
        if self._notices:
            await asyncio.gather(*self._notices, return_exceptions=True)
