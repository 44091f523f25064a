"""Recent approval outcomes for one session.

``SessionRuntime`` owns an ``ActionLog`` and feeds it from the approval
gate's ``on_resolved`` hook. ``SessionRuntime.status()`` and the replay
summary read it back. Bounded and not persisted.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from relay.hitl.approval_gate import PendingApproval

DEFAULT_MAX_ENTRIES = 50


@dataclass(frozen=True)
class ActionEntry:
    approval_id: str
    description: str
    status: str  # approved | rejected | timed_out
    decided_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        return {
            "approval_id": self.approval_id,
            "description": self.description,
            "status": self.status,
            "decided_at": self.decided_at.isoformat(),
        }


class ActionLog:
    """Bounded history of settled approvals, newest last."""

    def __init__(self, max_entries: int = DEFAULT_MAX_ENTRIES):
        self._entries: deque[ActionEntry] = deque(maxlen=max_entries)

    def __len__(self) -> int:
        return len(self._entries)

    def record(self, approval: PendingApproval) -> ActionEntry:
        entry = ActionEntry(
            approval_id=approval.id,
            description=approval.description,
            status=str(approval.status),
            decided_at=approval.resolved_at or datetime.now(UTC),
        )
        self._entries.append(entry)
        return entry

    def recent(self, limit: int = 10) -> list[dict[str, Any]]:
        """Return up to ``limit`` outcomes, newest first."""
        return [entry.to_dict() for entry in list(reversed(self._entries))[:limit]]
