"""Stream decoder: normalize raw backend messages into canonical events.

Pure-function decoding of the backend's message dicts. Two raw shapes are
understood: the relay's canonical schema (``{"type": "text", "text": ...,
"turnKey": ...}``) and agent-SDK style messages (``{"type": "assistant",
"message": {"content": [...]}}``). Anything else is skipped; a malformed
message is never fatal and never reaches the user.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import TypeAdapter, ValidationError

from relay.exceptions import DecodeError
from relay.streaming.events import Event

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, AsyncIterator

logger = logging.getLogger(__name__)

_event_adapter: TypeAdapter[Event] = TypeAdapter(Event)


def _first(raw: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def _normalize_system(raw: dict[str, Any]) -> list[dict[str, Any]]:
    kind = _first(raw, "kind", "subtype") or ""
    session_id = _first(raw, "sessionId", "session_id")
    if kind == "init":
        if not session_id:
            raise DecodeError("init notice without a session id", raw_type="system")
        return [{"type": "init", "session_id": session_id}]
    message = raw.get("message")
    return [
        {
            "type": "system",
            "kind": kind,
            "message": str(message) if message is not None else None,
        }
    ]


def _normalize_assistant(raw: dict[str, Any]) -> list[dict[str, Any]]:
    message = raw.get("message")
    if not isinstance(message, dict) or not isinstance(message.get("content"), list):
        raise DecodeError("assistant message without content blocks", raw_type="assistant")

    blocks = [b for b in message["content"] if isinstance(b, dict)]
    text = "".join(str(b.get("text", "")) for b in blocks if b.get("type") == "text")
    usage = message.get("usage") or {}
    input_tokens = usage.get("input_tokens") if isinstance(usage, dict) else None

    normalized: list[dict[str, Any]] = []
    if text or input_tokens:
        normalized.append(
            {
                "type": "text",
                "text": text,
                "turn_key": _first(raw, "uuid") or message.get("id"),
                "input_tokens": input_tokens or None,
            }
        )
    for block in blocks:
        if block.get("type") == "tool_use":
            normalized.append(
                {"type": "tool_use", "name": block.get("name"), "input": block.get("input") or {}}
            )
    return normalized


def _normalize(raw: dict[str, Any]) -> list[dict[str, Any]]:
    """Map one raw message onto zero or more canonical event dicts."""
    msg_type = raw.get("type")

    if msg_type == "init":
        return [{"type": "init", "session_id": _first(raw, "sessionId", "session_id")}]
    if msg_type == "system":
        return _normalize_system(raw)
    if msg_type == "text":
        return [
            {
                "type": "text",
                "text": raw.get("text"),
                "turn_key": _first(raw, "turnKey", "turn_key"),
                "input_tokens": _first(raw, "inputTokens", "input_tokens"),
            }
        ]
    if msg_type == "assistant":
        return _normalize_assistant(raw)
    if msg_type == "tool_use":
        return [
            {
                "type": "tool_use",
                "name": _first(raw, "toolName", "name"),
                "input": _first(raw, "toolInput", "input") or {},
            }
        ]
    if msg_type == "result":
        return [
            {
                "type": "result",
                "text": _first(raw, "resultText", "result"),
                "usage": _first(raw, "modelUsage", "usage") or {},
                "cost_usd": _first(raw, "costUsd", "total_cost_usd"),
                "num_turns": _first(raw, "numTurns", "num_turns"),
            }
        ]

    raise DecodeError(f"unknown message type {msg_type!r}", raw_type=str(msg_type))


def decode_message(raw: Any) -> list[Event]:
    """Decode a single raw backend message.

    Returns:
        The canonical events carried by the message, in order. An empty
        list means the message was dropped (unknown or malformed).
    """
    if not isinstance(raw, dict):
        logger.debug("Skipping non-dict backend message: %r", type(raw).__name__)
        return []

    try:
        return [_event_adapter.validate_python(item) for item in _normalize(raw)]
    except (DecodeError, ValidationError) as e:
        logger.debug("Skipping undecodable backend message (%s): %s", raw.get("type"), e)
        return []


async def decode_stream(
    messages: AsyncIterator[Any],
) -> AsyncGenerator[Event, None]:
    """Decode an ordered stream of raw messages, preserving order.

    Holds at most one raw message at a time; undecodable messages are
    dropped without interrupting the stream.
    """
    async for raw in messages:
        for event in decode_message(raw):
            yield event
