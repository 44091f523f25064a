"""Pipeline run: one request from prompt to final chunk.

Opens a backend stream, decodes it, and fans each event out to the context
budget tracker and the turn segmenter. Text is flushed to the channel in
word-safe chunks as it arrives; the final Result forces out whatever is
left. Tool permission questions from the backend are answered by the
session's ToolPermissionGate, concurrently with stream consumption.

Failures of the backend stream end the run with one generic notice. An
abort (task cancellation) ends it silently.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from relay.hitl.risk_rules import ActionDescriptor
from relay.streaming.decoder import decode_stream
from relay.streaming.events import Init, Result, SystemNotice, TextDelta, ToolInvocation
from relay.streaming.flush import FlushScheduler
from relay.streaming.segmenter import Turn, TurnSegmenter

if TYPE_CHECKING:
    from relay.session.runtime import SessionRuntime
    from relay.streaming.delivery import SafeSink
    from relay.streaming.events import Event

logger = logging.getLogger(__name__)

GENERIC_FAILURE_NOTICE = "Something went wrong. Try again or start a new session."


@dataclass
class RunSummary:
    """What happened during one pipeline run."""

    prompt: str
    session_id: str | None = None
    turns: list[str] = field(default_factory=list)
    chunks: int = 0
    tool_calls: int = 0
    completed: bool = False
    failed: bool = False
    cost_usd: float | None = None
    num_turns: int | None = None

    @property
    def response(self) -> str:
        return "\n\n".join(self.turns)


def format_usage_line(result: Result, context_pct: int) -> str:
    """One-line cost / turns / context / cache summary for the logs."""
    usage: dict[str, Any] = result.usage or {}
    cache_read = usage.get("cacheReadInputTokens") or usage.get("cache_read_input_tokens") or 0
    cache_create = (
        usage.get("cacheCreationInputTokens") or usage.get("cache_creation_input_tokens") or 0
    )
    input_tokens = usage.get("inputTokens") or usage.get("input_tokens") or 0
    output_tokens = usage.get("outputTokens") or usage.get("output_tokens") or 0

    cost = f"${result.cost_usd:.4f}" if result.cost_usd else "n/a"
    turns = result.num_turns if result.num_turns is not None else "?"
    cache = f"Cache: {cache_read} read, {cache_create} created" if cache_read else "Cache: none"
    line = f"Query: {cost} | Turns: {turns} | Context: ~{context_pct}% | {cache}"
    if input_tokens:
        line += f" | In: {input_tokens} Out: {output_tokens}"
    return line


async def _keepalive(sink: SafeSink, interval: float) -> None:
    """Periodic 'still working' indicator while a run is active."""
    while True:
        await sink.working()
        await asyncio.sleep(interval)


class PipelineRun:
    """Event handlers for a single run. Created fresh per request."""

    def __init__(self, runtime: SessionRuntime, prompt: str):
        self.runtime = runtime
        self.sink = runtime.sink
        self.tracker = runtime.tracker
        self.segmenter = TurnSegmenter()
        self.flusher = FlushScheduler(
            stale_seconds=runtime.settings.flush_stale_seconds,
            time_func=runtime.time_func,
        )
        self.summary = RunSummary(prompt=prompt, session_id=runtime.session_id)

    async def deliver(self, chunk: str | None) -> None:
        if chunk:
            await self.sink.chunk(chunk)
            self.summary.chunks += 1

    async def handle(self, event: Event) -> None:
        if isinstance(event, Init):
            self.runtime.set_session_id(event.session_id)
            self.summary.session_id = event.session_id
        elif isinstance(event, SystemNotice):
            await self.on_system(event)
        elif isinstance(event, TextDelta):
            await self.on_text(event)
        elif isinstance(event, ToolInvocation):
            self.on_tool(event)
        elif isinstance(event, Result):
            await self.on_result(event)

    async def on_system(self, notice: SystemNotice) -> None:
        if not notice.is_compaction:
            logger.debug("System notice: %s %s", notice.kind, notice.message or "")
            return
        prev_used = self.tracker.used_pct()
        self.tracker.reset()
        logger.info("Context compacted at ~%d%%", prev_used)
        await self.sink.warning(
            f"Context was compacted (was ~{prev_used}% full). Summary generated.\n"
            "Session files preserved, reading back last exchanges."
        )

    async def on_text(self, delta: TextDelta) -> None:
        if delta.input_tokens:
            self.tracker.set_tokens(delta.input_tokens)
        if not delta.text:
            return
        turn, finished = self.segmenter.feed(delta)
        if finished is not None:
            await self.deliver(self.flusher.force(finished))
        await self.deliver(self.flusher.take(turn))

    def on_tool(self, invocation: ToolInvocation) -> None:
        self.tracker.add_tool_call()
        self.summary.tool_calls += 1
        action = ActionDescriptor(tool_name=invocation.name, tool_input=invocation.input)
        if self.runtime.classifier.is_flagged(action):
            logger.info("Flagged tool invocation: %s", action.describe())

    async def finish_turns(self) -> None:
        current: Turn | None = self.segmenter.current
        if current is not None:
            await self.deliver(self.flusher.force(current))
        self.summary.turns = self.segmenter.finish()

    async def on_result(self, result: Result) -> None:
        await self.finish_turns()
        if not self.summary.turns and result.text:
            await self.deliver(result.text)
            self.summary.turns = [result.text]

        self.tracker.add_text(self.summary.response)
        warning = self.tracker.check_warnings()
        if warning:
            await self.sink.warning(warning)

        self.summary.completed = True
        self.summary.cost_usd = result.cost_usd
        self.summary.num_turns = result.num_turns
        logger.info(format_usage_line(result, self.tracker.used_pct()))


async def run_request(runtime: SessionRuntime, prompt: str) -> RunSummary:
    """Run one request through the backend and deliver its output."""
    settings = runtime.settings
    run = PipelineRun(runtime, prompt)
    runtime.tracker.add_text(prompt)

    keepalive = asyncio.create_task(_keepalive(runtime.sink, settings.keepalive_interval_seconds))
    stream = runtime.backend.stream(
        f"[{settings.channel_tag}] {prompt}",
        session_id=runtime.session_id,
        model=runtime.model,
        can_use_tool=runtime.permissions,
    )
    try:
        async for event in decode_stream(stream):
            await run.handle(event)
        if not run.summary.completed:
            logger.warning("Backend stream ended without a result")
            await run.finish_turns()
    except asyncio.CancelledError:
        logger.info("Run aborted by user")
        raise
    except Exception:
        logger.exception("Backend stream failed")
        run.summary.failed = True
        await runtime.sink.error(GENERIC_FAILURE_NOTICE)
    finally:
        keepalive.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await keepalive
        aclose = getattr(stream, "aclose", None)
        if aclose is not None:
            with contextlib.suppress(Exception):
                await aclose()

    return run.summary
