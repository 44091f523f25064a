"""Replay command: run a recorded backend stream through the pipeline."""

import asyncio
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.markup import escape
from rich.panel import Panel

from relay.channels.console import ApprovalMode
from relay.cli.utils import console


def replay(
    recording: Annotated[
        Path,
        typer.Argument(help="JSON-lines file of raw backend messages"),
    ],
    prompt: Annotated[
        Optional[list[str]],  # noqa: UP007
        typer.Option("--prompt", "-m", help="Prompt to submit (repeat to queue several)"),
    ] = None,
    auto_approve: Annotated[
        bool,
        typer.Option("--auto-approve", help="Approve every flagged action"),
    ] = False,
    auto_reject: Annotated[
        bool,
        typer.Option("--auto-reject", help="Reject every flagged action"),
    ] = False,
    state_dir: Annotated[
        Optional[Path],  # noqa: UP007
        typer.Option("--state-dir", help="Override the state directory"),
    ] = None,
    delay: Annotated[
        float,
        typer.Option("--delay", help="Seconds between replayed messages"),
    ] = 0.0,
) -> None:
    """Replay a recorded session through the full relay pipeline.

    Examples:
        relay replay session.jsonl
        relay replay session.jsonl -m "first" -m "second" --auto-reject
    """
    if auto_approve and auto_reject:
        console.print("[red]--auto-approve and --auto-reject are mutually exclusive[/red]")
        raise typer.Exit(code=2)
    if not recording.is_file():
        console.print(f"[red]Recording not found: {recording}[/red]")
        raise typer.Exit(code=1)

    mode = ApprovalMode.ASK
    if auto_approve:
        mode = ApprovalMode.APPROVE
    elif auto_reject:
        mode = ApprovalMode.REJECT

    asyncio.run(_run_replay(recording, prompt or ["Replay"], mode, state_dir, delay))


async def _run_replay(
    recording: Path,
    prompts: list[str],
    mode: ApprovalMode,
    state_dir: Path | None,
    delay: float,
) -> None:
    """Submit each prompt and wait for the queue to drain."""
    from relay.backends.replay import ReplayBackend
    from relay.channels.console import ConsoleApprovalNotifier, ConsoleSink
    from relay.session.runtime import SessionRuntime
    from relay.settings import get_settings

    settings = get_settings()
    if state_dir is not None:
        settings = settings.model_copy(update={"state_dir": state_dir})

    backend = ReplayBackend.from_file(recording, delay_seconds=delay)
    notifier = ConsoleApprovalNotifier(console, mode=mode)
    runtime = SessionRuntime(
        backend,
        ConsoleSink(console),
        settings=settings,
        notifier=notifier,
    )
    notifier.bind(runtime.resolve_approval)

    try:
        for text in prompts:
            await runtime.submit(text)
        await runtime.join()
    finally:
        await runtime.shutdown()

    info = runtime.status()
    decisions = "".join(
        f"\n  {entry['status']}: {escape(entry['description'])}"
        for entry in info["recent_actions"]
    )
    console.print(
        Panel(
            f"[bold]Session:[/bold] {info['short_session_id'] or 'none'}\n"
            f"[bold]Context:[/bold] {info['context_bar']} ~{info['context_used_pct']}%\n"
            f"[bold]Completed:[/bold] {runtime.queue.completed}  "
            f"[bold]Failed:[/bold] {runtime.queue.failed}\n"
            f"[bold]Approvals:[/bold] {len(info['recent_actions']) or 'none'}{decisions}",
            title="Replay finished",
            border_style="green",
        )
    )
