"""CLI entry point.

Provides the main CLI application with commands for:
- replay: Run a recorded backend stream through the relay pipeline
- classify: Check a shell command or file path against the risk rules
- status: Show effective settings and the persisted session
"""

from typing import Annotated, Optional

import typer

from relay.cli.commands.classify import classify
from relay.cli.commands.replay import replay
from relay.cli.commands.status import status
from relay.logging_config import configure_logging

app = typer.Typer(
    name="relay",
    help="Session relay between a human and an AI agent backend",
    add_completion=False,
    no_args_is_help=True,
)


@app.callback()
def main(
    log_level: Annotated[
        Optional[str],  # noqa: UP007
        typer.Option("--log-level", "-l", help="Override the configured log level"),
    ] = None,
) -> None:
    """Configure logging before any command runs."""
    configure_logging(log_level.upper() if log_level else None)


app.command()(replay)
app.command()(classify)
app.command()(status)


# Entry point for: python -m relay.cli.main
if __name__ == "__main__":
    app()
