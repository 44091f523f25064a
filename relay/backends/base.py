"""Agent backend interface.

The backend is an opaque producer of raw message dicts. Before running a
tool it awaits the relay's ``can_use_tool`` callback, so its stream pauses
until the permission question is settled; a denial is reported back as a
regular message. The relay keeps accepting decisions and submissions while
the stream is paused.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any, Protocol, runtime_checkable

from relay.hitl.permission import PermissionResult

CanUseTool = Callable[[str, dict[str, Any]], Awaitable[PermissionResult]]


@runtime_checkable
class AgentBackend(Protocol):
    """Opens one streamed run of the agent."""

    def stream(
        self,
        prompt: str,
        *,
        session_id: str | None,
        model: str,
        can_use_tool: CanUseTool,
    ) -> AsyncIterator[dict[str, Any]]: ...
