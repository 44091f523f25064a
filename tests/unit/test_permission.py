"""Unit tests for ToolPermissionGate."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from relay.hitl.approval_gate import ApprovalDecision, ApprovalGate
from relay.hitl.permission import ToolPermissionGate
from relay.hitl.risk_rules import RuleTableClassifier
from tests.mocks import AutoNotifier


def _gate_with(decision: ApprovalDecision) -> MagicMock:
    gate = MagicMock(spec=ApprovalGate)
    gate.request_approval = AsyncMock(return_value=decision)
    return gate


class TestToolPermissionGate:
    """Routing of tool invocations through the approval gate."""

    @pytest.mark.asyncio
    async def test_unflagged_tool_allowed_without_prompt(self):
        gate = _gate_with(ApprovalDecision.REJECTED)
        permissions = ToolPermissionGate(RuleTableClassifier(), gate)

        result = await permissions("Bash", {"command": "ls -la"})

        assert result.allow is True
        assert result.updated_input == {"command": "ls -la"}
        gate.request_approval.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_flagged_command_approved(self):
        gate = _gate_with(ApprovalDecision.APPROVED)
        permissions = ToolPermissionGate(RuleTableClassifier(), gate)

        result = await permissions("Bash", {"command": "rm -rf dist"})

        assert result.allow is True
        gate.request_approval.assert_awaited_once_with("$ rm -rf dist")

    @pytest.mark.asyncio
    async def test_flagged_command_rejected(self):
        permissions = ToolPermissionGate(
            RuleTableClassifier(), _gate_with(ApprovalDecision.REJECTED)
        )
        result = await permissions("Bash", {"command": "sudo reboot"})
        assert result.allow is False
        assert result.message == "User rejected this command."

    @pytest.mark.asyncio
    async def test_sensitive_write_rejected(self):
        permissions = ToolPermissionGate(
            RuleTableClassifier(), _gate_with(ApprovalDecision.REJECTED)
        )
        result = await permissions("Write", {"file_path": "/etc/hosts", "content": "x"})
        assert result.allow is False
        assert result.message == "User rejected this file operation."

    @pytest.mark.asyncio
    async def test_timeout_is_denial(self):
        """A real gate with a tiny timeout denies the tool."""
        gate = ApprovalGate(AutoNotifier(), timeout_seconds=0.01)
        permissions = ToolPermissionGate(RuleTableClassifier(), gate)

        result = await permissions("Bash", {"command": "rm -rf /"})

        assert result.allow is False
        assert gate.pending() == []
