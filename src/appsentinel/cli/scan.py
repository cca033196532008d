"""CLI command for scanning a package."""

import json
from pathlib import Path

import typer
from rich.markup import escape
from rich.table import Table

from appsentinel.core.analyzer import PackageAnalyzer
from appsentinel.core.rules import load_rules
from appsentinel.exceptions import SentinelError
from appsentinel.models.report import AnalysisResult
from appsentinel.utils.output import (
    LEVEL_STYLES,
    SEVERITY_STYLES,
    configure_logging,
    console,
)


def _print_result(result: AnalysisResult) -> None:
    facts = result.facts
    ids = facts.identifiers

    name = escape(ids.display_name)
    console.print(f"\n[bold]{name}[/bold] ({escape(ids.bundle_or_package_id)})")
    console.print(f"  Platform: {facts.platform.value}")
    console.print(f"  Version:  {escape(ids.version)}")
    console.print(f"  Size:     {facts.size_bytes:,} bytes")
    if facts.permissions:
        console.print(f"  Permissions: {len(facts.permissions)}")
    if facts.components.total:
        console.print(f"  Components:  {facts.components.total}")
    if facts.native_code_entries:
        console.print(f"  Native code: {len(facts.native_code_entries)} entries")
    if facts.uses_cleartext_traffic:
        console.print_warning('Manifest sets android:usesCleartextTraffic="true"')

    style = LEVEL_STYLES[result.level]
    console.print(
        f"\n[bold]Risk:[/bold] [{style}]{result.level.value}[/{style}] "
        f"(score {result.score}/100, {result.earned}/{result.possible} points)"
    )

    if not result.findings:
        console.print_info("No findings.")
        console.print()
        return

    table = Table(title="Findings")
    table.add_column("Severity")
    table.add_column("Category", style="cyan")
    table.add_column("Message")

    for finding in result.findings:
        sev_style = SEVERITY_STYLES[finding.severity]
        table.add_row(
            f"[{sev_style}]{finding.severity.value}[/{sev_style}]",
            finding.category,
            escape(finding.message),
        )

    console.print(table)
    summary = result.summary
    console.print_info(
        f"{summary.total} finding(s): {summary.high} high, {summary.medium} medium"
    )
    console.print()


def scan_package(
    package_path: Path = typer.Argument(
        ...,
        help="Path to the .apk or .ipa file to analyze.",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    rules_file: Path | None = typer.Option(
        None,
        "--rules",
        "-r",
        help="JSON rule table to use instead of the built-in one.",
        exists=True,
        dir_okay=False,
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output as JSON.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        help="Show debug logging.",
    ),
) -> None:
    """Scan an APK or IPA and report its security risk.

    Inspects permissions, localized strings, form fields, native code and
    network security settings, then scores them against the rule table.
    """
    configure_logging(verbose)
    console.set_json_mode(json_output)

    try:
        analyzer = PackageAnalyzer(load_rules(rules_file))
        result = analyzer.analyze_path(package_path, require_zip_header=True)
    except SentinelError as e:
        console.print_error(str(e))
        raise typer.Exit(1) from None

    if json_output:
        output = result.model_dump(mode="json")
        typer.echo(json.dumps(output, indent=2))
        return

    _print_result(result)
