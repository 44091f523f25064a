"""Status and info commands."""

from rich.panel import Panel
from rich.table import Table

from relay.cli.utils import console


def status() -> None:
    """Show effective settings and the persisted session.

    Reads the session file from the state directory; does not contact the
    backend.
    """
    from relay.session.budget import ContextBudgetTracker
    from relay.session.store import SessionStore
    from relay.settings import get_settings

    settings = get_settings()
    session_id = SessionStore(settings.state_dir).load()
    tracker = ContextBudgetTracker(
        window=settings.context_window,
        baseline=settings.system_prompt_estimate,
        chars_per_token=settings.chars_per_token,
    )

    console.print(
        Panel(
            f"[bold]Session:[/bold] {session_id[:8] if session_id else '[dim]none[/dim]'}\n"
            f"[bold]Model:[/bold] {settings.default_model}\n"
            f"[bold]Context baseline:[/bold] {tracker.progress_bar()} ~{tracker.used_pct()}%",
            title="Relay Status",
            border_style="blue",
        )
    )

    table = Table(title="Settings")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    for name in (
        "environment",
        "state_dir",
        "channel_tag",
        "context_window",
        "chunk_size_limit",
        "approval_timeout_seconds",
        "rate_limit_max",
        "rate_limit_window_seconds",
    ):
        table.add_row(name, str(getattr(settings, name)))
    console.print(table)
