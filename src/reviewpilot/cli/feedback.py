"""``reviewpilot feedback`` — teach the false-positive filter."""

from pathlib import Path
from typing import Optional

import typer

from ..exceptions import ReviewPilotError
from ..logging_config import setup_logging
from ..ml import FalsePositiveFilter
from ..models import Finding, FindingSource, Severity
from . import app
from ._common import console, resolve_config


@app.command()
def feedback(
    message: str = typer.Option(..., "--message", "-m", help="Finding message as reported"),
    file: str = typer.Option(..., "--file", help="File the finding was reported on"),
    real: Optional[bool] = typer.Option(
        None,
        "--real/--false-positive",
        help="Whether the finding is a real issue",
    ),
    context: Optional[str] = typer.Option(None, "--context", help="Code the finding points at"),
    line: Optional[int] = typer.Option(None, "--line", min=1, help="Line number"),
    config: Optional[Path] = typer.Option(
        None,
        "-c",
        "--config",
        help="Configuration file (TOML)",
        exists=True,
        dir_okay=False,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """Record whether a finding was a real issue; future runs learn from it."""
    setup_logging(verbose=verbose)

    if real is None:
        console.print("[red]Error:[/red] pass either --real or --false-positive")
        raise typer.Exit(2)

    try:
        settings = resolve_config(config=config, verbose=verbose)
    except ReviewPilotError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    fp_filter = FalsePositiveFilter(settings.classifier_file)
    finding = Finding(
        file=file,
        line=line,
        severity=Severity.WARNING,
        message=message,
        source=FindingSource.HEURISTIC,
        context=context,
    )
    fp_filter.learn(finding, real)

    verdict = "[green]real issue[/green]" if real else "[yellow]false positive[/yellow]"
    console.print(f"Recorded {verdict}; now classified as [bold]{fp_filter.classify(finding)}[/bold]")
