"""Human-in-the-loop safety: risk rules, the approval gate, outcome logs."""

from relay.hitl.action_log import ActionEntry, ActionLog
from relay.hitl.approval_gate import (
    ApprovalDecision,
    ApprovalGate,
    ApprovalNotifier,
    ApprovalStatus,
    PendingApproval,
    ResolveOutcome,
)
from relay.hitl.permission import PermissionResult, ToolPermissionGate
from relay.hitl.risk_rules import ActionDescriptor, RiskClassifier, RuleTableClassifier

__all__ = [
    "ActionDescriptor",
    "ActionEntry",
    "ActionLog",
    "ApprovalDecision",
    "ApprovalGate",
    "ApprovalNotifier",
    "ApprovalStatus",
    "PendingApproval",
    "PermissionResult",
    "ResolveOutcome",
    "RiskClassifier",
    "RuleTableClassifier",
    "ToolPermissionGate",
]
