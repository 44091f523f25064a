"""Risk classification command."""

from typing import Annotated

import typer
from rich.table import Table

from relay.cli.utils import console
from relay.hitl.risk_rules import RuleTableClassifier


def classify(
    target: Annotated[
        str,
        typer.Argument(help="Shell command (or file path with --path) to check"),
    ],
    path: Annotated[
        bool,
        typer.Option("--path", "-p", help="Treat TARGET as a file path for Write/Edit"),
    ] = False,
) -> None:
    """Check whether an action would need human approval.

    Examples:
        relay classify "rm -rf build/"
        relay classify --path ~/.ssh/config
    """
    classifier = RuleTableClassifier()

    if path:
        flagged = classifier.is_sensitive_path(target)
        verdict = "[red]SENSITIVE[/red]" if flagged else "[green]ok[/green]"
        console.print(f"[bold]Path:[/bold] {target}  {verdict}")
        return

    matches = classifier.matching_rules(target)
    if not matches:
        console.print(f"[bold]Command:[/bold] {target}  [green]ok[/green]")
        return

    console.print(f"[bold]Command:[/bold] {target}  [red]FLAGGED[/red]")
    table = Table(title="Matching rules")
    table.add_column("Category", style="cyan")
    table.add_column("Pattern")
    table.add_column("Weight", justify="right")
    for rule in matches:
        table.add_row(str(rule.category), rule.pattern.pattern, f"{rule.weight:g}")
    console.print(table)
