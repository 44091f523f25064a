"""CLI application setup using Typer.

Provides the command-line interface for relay operations.
"""

from relay.cli.main import app

__all__ = ["app"]
