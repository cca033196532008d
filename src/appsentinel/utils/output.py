"""Rich console helpers for terminal output and logging."""

import logging
from typing import Any

from rich.console import Console as RichConsole
from rich.logging import RichHandler

from appsentinel.models.report import RiskLevel, Severity

LEVEL_STYLES: dict[RiskLevel, str] = {
    RiskLevel.CRITICAL: "bold white on red",
    RiskLevel.HIGH: "bold red",
    RiskLevel.MEDIUM: "yellow",
    RiskLevel.LOW: "green",
}

SEVERITY_STYLES: dict[Severity, str] = {
    Severity.HIGH: "red",
    Severity.MEDIUM: "yellow",
}


class Console:
    """Wrapper around rich.Console with convenience methods."""

    def __init__(self) -> None:
        self._console = RichConsole()
        self._err_console = RichConsole(stderr=True)
        self._json_mode = False

    def set_json_mode(self, enabled: bool) -> None:
        """Enable or disable JSON mode (suppresses rich output)."""
        self._json_mode = enabled

    @property
    def json_mode(self) -> bool:
        """Check if JSON mode is enabled."""
        return self._json_mode

    def print(self, *args: Any, **kwargs: Any) -> None:
        """Print to console (suppressed in JSON mode)."""
        if not self._json_mode:
            self._console.print(*args, **kwargs)

    def print_error(self, message: str) -> None:
        """Print an error message in red to stderr."""
        self._err_console.print(f"[red]✗[/red] {message}")

    def print_info(self, message: str) -> None:
        """Print an info message in blue."""
        if not self._json_mode:
            self._console.print(f"[blue]ℹ[/blue] {message}")

    def print_warning(self, message: str) -> None:
        """Print a warning message in yellow."""
        if not self._json_mode:
            self._console.print(f"[yellow]⚠[/yellow] {message}")

    def log_handler(self) -> logging.Handler:
        """Create a rich logging handler writing to stderr."""
        return RichHandler(console=self._err_console, show_path=False)


def configure_logging(verbose: bool = False) -> None:
    """Route library logging through rich (WARNING by default, DEBUG if verbose)."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[console.log_handler()],
        force=True,
    )


# Global console instance
console = Console()
