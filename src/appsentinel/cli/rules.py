"""CLI command for inspecting the active rule table."""

import json
from pathlib import Path

import typer
from rich.markup import escape
from rich.table import Table

from appsentinel.core.rules import load_rules
from appsentinel.exceptions import SentinelError
from appsentinel.utils.output import console


def show_rules(
    rules_file: Path | None = typer.Option(
        None,
        "--rules",
        "-r",
        help="JSON rule table to show instead of the configured one.",
        exists=True,
        dir_okay=False,
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output as JSON.",
    ),
) -> None:
    """Show the detector categories, weights and keywords in use."""
    console.set_json_mode(json_output)

    try:
        rule_set = load_rules(rules_file)
    except SentinelError as e:
        console.print_error(str(e))
        raise typer.Exit(1) from None

    if json_output:
        typer.echo(json.dumps(rule_set.model_dump(mode="json"), indent=2))
        return

    table = Table(title=f"Rule table v{rule_set.version}")
    table.add_column("#", justify="right")
    table.add_column("Category", style="cyan")
    table.add_column("Severity")
    table.add_column("Weight", justify="right")
    table.add_column("Possible", justify="right")
    table.add_column("Keywords")

    for index, rule in enumerate(rule_set.categories, start=1):
        table.add_row(
            str(index),
            rule.category,
            rule.severity.value,
            str(rule.weight),
            str(rule.possible),
            escape(", ".join(rule.keywords)),
        )

    console.print(table)
    levels = ", ".join(
        f"> {t.above} {t.level.value}" for t in rule_set.thresholds
    )
    console.print_info(f"Levels: {levels}, otherwise LOW")
