"""Rich terminal formatter for ReviewPilot."""

from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..models import Severity, severity_counts
from ..pipeline import ReviewResult
from .base import BaseFormatter, sort_for_display

_STYLES = {
    Severity.CRITICAL: "red bold",
    Severity.ERROR: "red",
    Severity.WARNING: "yellow",
    Severity.INFO: "cyan",
    Severity.SUGGESTION: "dim",
}


def _severity_label(severity: Severity) -> str:
    style = _STYLES[severity]
    return f"[{style}]{severity.value}[/{style}]"


class RichFormatter(BaseFormatter):
    """Summary panel followed by a findings table."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def render(self, result: ReviewResult) -> None:
        self._print_summary(result)
        if result.findings:
            self._print_table(result)

    def format(self, result: ReviewResult) -> str:
        with self.console.capture() as capture:
            self.render(result)
        return capture.get()

    def _print_summary(self, result: ReviewResult) -> None:
        counts = severity_counts(result.findings)
        parts = [
            f"{_severity_label(Severity(name))}: {count}" for name, count in counts.items() if count
        ]
        body = "  ".join(parts) if parts else "[green]No issues found[/green]"
        footer = f"{result.files_analyzed} files analyzed"
        if result.suppressed:
            footer += f", {len(result.suppressed)} likely false positives hidden"
        stats = result.external_stats
        if stats is not None and stats.get("breaker_open"):
            footer += ", AI review disabled after repeated failures"
        elif stats is not None and stats.get("available") is False:
            footer += ", AI review unavailable"

        self.console.print(
            Panel(
                f"{body}\n[dim]{footer}[/dim]",
                title="[bold cyan]ReviewPilot[/bold cyan]",
                expand=False,
            )
        )

    def _print_table(self, result: ReviewResult) -> None:
        table = Table(show_header=True, header_style="bold", expand=False)
        table.add_column("Severity", no_wrap=True)
        table.add_column("Location", style="cyan", no_wrap=True)
        table.add_column("Source", style="dim", no_wrap=True)
        table.add_column("Message")

        for finding in sort_for_display(result.findings):
            location = finding.file if finding.line is None else f"{finding.file}:{finding.line}"
            table.add_row(
                _severity_label(finding.severity),
                escape(location),
                finding.source.value,
                escape(finding.message),
            )
        self.console.print(table)
