"""Replay backend: plays recorded backend messages through the relay.

Reads a JSON-lines recording (one raw backend message per line) and yields
the messages in order. Tool invocations go through ``can_use_tool`` exactly
as a live backend would: the replay waits for the answer before producing
further output and reports denials as a ``tool_denied`` system notice.

Used by the ``relay replay`` command and by the tests.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from relay.exceptions import BackendError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterable

    from relay.backends.base import CanUseTool

logger = logging.getLogger(__name__)


def load_recording(path: Path) -> list[Any]:
    """Load a JSON-lines recording.

    Blank lines are ignored. Lines that are not valid JSON are kept as raw
    strings so the decoder can drop them like any other malformed message.
    """
    messages: list[Any] = []
    for line_no, line in enumerate(path.read_text(encoding="utf-8").splitlines(), start=1):
        if not line.strip():
            continue
        try:
            messages.append(json.loads(line))
        except json.JSONDecodeError:
            logger.debug("Line %d of %s is not JSON", line_no, path)
            messages.append(line)
    return messages


def _tool_calls(message: Any) -> list[tuple[str, dict[str, Any]]]:
    if not isinstance(message, dict):
        return []
    if message.get("type") == "tool_use":
        name = message.get("toolName") or message.get("name")
        tool_input = message.get("toolInput") or message.get("input") or {}
        return [(name, tool_input)] if name else []
    if message.get("type") == "assistant":
        content = (message.get("message") or {}).get("content") or []
        return [
            (block["name"], block.get("input") or {})
            for block in content
            if isinstance(block, dict) and block.get("type") == "tool_use" and block.get("name")
        ]
    return []


class ReplayBackend:
    """AgentBackend that replays a fixed message sequence per run."""

    def __init__(
        self,
        messages: Iterable[Any],
        *,
        delay_seconds: float = 0.0,
        fail_after: int | None = None,
    ):
        """Initialize the replay.

        Args:
            messages: Raw backend messages, yielded in order on every run.
            delay_seconds: Pause between messages to mimic a live stream.
            fail_after: Raise BackendError after this many messages.
        """
        self.messages = list(messages)
        self.delay_seconds = delay_seconds
        self.fail_after = fail_after
        self.prompts: list[str] = []
        self.decisions: list[tuple[str, bool]] = []

    @classmethod
    def from_file(cls, path: Path, **kwargs: Any) -> ReplayBackend:
        return cls(load_recording(path), **kwargs)

    async def stream(
        self,
        prompt: str,
        *,
        session_id: str | None,
        model: str,
        can_use_tool: CanUseTool,
    ) -> AsyncIterator[dict[str, Any]]:
        self.prompts.append(prompt)
        logger.debug("Replaying %d messages (model=%s, resume=%s)", len(self.messages), model, session_id)

        for index, message in enumerate(self.messages):
            if self.fail_after is not None and index >= self.fail_after:
                raise BackendError("Replay stream failed", model=model)
            if self.delay_seconds:
                await asyncio.sleep(self.delay_seconds)
            yield message

            for name, tool_input in _tool_calls(message):
                permission = await can_use_tool(name, tool_input)
                self.decisions.append((name, permission.allow))
                if not permission.allow:
                    yield {
                        "type": "system",
                        "subtype": "tool_denied",
                        "message": permission.message or f"{name} denied",
                    }
