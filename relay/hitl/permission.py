"""Tool permission callback handed to the agent backend.

The backend asks before running each tool. Invocations the risk classifier
flags are routed through the approval gate; everything else is allowed
immediately.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from relay.hitl.approval_gate import ApprovalDecision, ApprovalGate
from relay.hitl.risk_rules import SHELL_TOOLS, ActionDescriptor, RiskClassifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PermissionResult:
    """Answer to the backend's ``can_use_tool`` question."""

    allow: bool
    updated_input: dict[str, Any] = field(default_factory=dict)
    message: str | None = None


class ToolPermissionGate:
    """Callable ``can_use_tool(tool_name, tool_input)`` for one session."""

    def __init__(self, classifier: RiskClassifier, gate: ApprovalGate):
        self.classifier = classifier
        self.gate = gate

    async def __call__(self, tool_name: str, tool_input: dict[str, Any]) -> PermissionResult:
        action = ActionDescriptor(tool_name=tool_name, tool_input=dict(tool_input))
        if not self.classifier.is_flagged(action):
            return PermissionResult(allow=True, updated_input=action.tool_input)

        decision = await self.gate.request_approval(action.describe())
        if decision == ApprovalDecision.APPROVED:
            return PermissionResult(allow=True, updated_input=action.tool_input)

        what = "command" if tool_name in SHELL_TOOLS else "file operation"
        logger.info("Denied %s after approval gate", tool_name)
        return PermissionResult(allow=False, message=f"User rejected this {what}.")
