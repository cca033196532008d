"""Root CLI application for appsentinel."""

import typer

from appsentinel import __version__
from appsentinel.cli import rules, scan

app = typer.Typer(
    name="appsentinel",
    help="Offline security triage for Android (.apk) and iOS (.ipa) packages.",
    no_args_is_help=True,
)

# Register commands
app.command("scan")(scan.scan_package)
app.command("rules")(rules.show_rules)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"appsentinel {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """appsentinel - package inspection and risk scoring."""
    pass


if __name__ == "__main__":
    app()
