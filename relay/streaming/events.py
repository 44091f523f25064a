"""Canonical event types produced by the stream decoder.

Every raw backend message that survives decoding becomes exactly one of
these frozen models. Downstream components (segmenter, budget tracker,
pipeline) only ever see this tagged union.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class _Event(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class Init(_Event):
    """Backend session started; carries the resumable session id."""

    type: Literal["init"] = "init"
    session_id: str = Field(min_length=1)


class TextDelta(_Event):
    """Assistant text for the current utterance.

    Attributes:
        text: The entire accumulated text of the utterance so far, not an
            increment.
        turn_key: Stable per-message identifier when the backend supplies
            one. Authoritative turn-boundary signal.
        input_tokens: Authoritative context usage reported alongside the
            message, if any.
    """

    type: Literal["text"] = "text"
    text: str
    turn_key: str | None = None
    input_tokens: int | None = Field(default=None, ge=0)


class ToolInvocation(_Event):
    """The agent invoked a tool."""

    type: Literal["tool_use"] = "tool_use"
    name: str = Field(min_length=1)
    input: dict[str, Any] = Field(default_factory=dict)


class SystemNotice(_Event):
    """Out-of-band notice from the backend (compaction, status, ...)."""

    type: Literal["system"] = "system"
    kind: str = ""
    message: str | None = None

    @property
    def is_compaction(self) -> bool:
        if self.kind in ("compaction", "compact"):
            return True
        return bool(self.message) and "compact" in self.message.lower()


class Result(_Event):
    """Terminal event of a run."""

    type: Literal["result"] = "result"
    text: str | None = None
    usage: dict[str, Any] = Field(default_factory=dict)
    cost_usd: float | None = None
    num_turns: int | None = None


Event = Annotated[
    Init | TextDelta | ToolInvocation | SystemNotice | Result,
    Field(discriminator="type"),
]
