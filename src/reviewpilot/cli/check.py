"""``reviewpilot check`` — analyze the current change set."""

import sys
from pathlib import Path
from typing import Optional

import click
import typer

from ..diff import GitRepository, filter_files, parse_unified_diff
from ..exceptions import InvalidPathError, ReviewPilotError
from ..formatters import FORMATTERS, get_formatter
from ..logging_config import setup_logging
from ..models import AnalyzeOptions, Finding, Severity
from ..pipeline import ReviewPipeline
from . import app
from ._common import console, repo_root, resolve_config

_FAIL_ON_CHOICES = [s.value for s in Severity] + ["none"]


def _read_diff(diff_file: Optional[Path], root: Path, base_branch: str) -> str:
    if diff_file is not None:
        if str(diff_file) == "-":
            return sys.stdin.read()
        if not diff_file.is_file():
            raise InvalidPathError(diff_file, "diff file does not exist")
        return diff_file.read_text(encoding="utf-8", errors="replace")
    return GitRepository(str(root)).get_diff(base_branch)


def _should_fail(findings: list[Finding], fail_on: str) -> bool:
    if fail_on == "none":
        return False
    threshold = Severity(fail_on)
    return any(f.severity.at_least(threshold) for f in findings)


@app.command()
def check(
    path: Optional[Path] = typer.Option(
        None,
        "-C",
        "--path",
        help="Repository root (default: current directory)",
        exists=True,
        file_okay=False,
        dir_okay=True,
    ),
    base: Optional[str] = typer.Option(
        None,
        "--base",
        "-b",
        help="Base branch to diff against (default: main)",
    ),
    diff_file: Optional[Path] = typer.Option(
        None,
        "--diff-file",
        help="Read a unified diff from this file ('-' for stdin) instead of git",
    ),
    no_external: bool = typer.Option(
        False,
        "--no-external",
        help="Skip the AI review layer",
    ),
    no_ml: bool = typer.Option(
        False,
        "--no-ml",
        help="Report everything, without the false-positive filter",
    ),
    plugin_dir: Optional[str] = typer.Option(
        None,
        "--plugin-dir",
        help="Directory with custom rule files (default: .reviewpilot-rules)",
    ),
    output_format: str = typer.Option(
        "rich",
        "--format",
        "-f",
        help="Output format",
        click_type=click.Choice(sorted(FORMATTERS), case_sensitive=False),
    ),
    fail_on: str = typer.Option(
        "critical",
        "--fail-on",
        help="Exit 1 when a finding is at least this severe",
        click_type=click.Choice(_FAIL_ON_CHOICES, case_sensitive=False),
    ),
    config: Optional[Path] = typer.Option(
        None,
        "-c",
        "--config",
        help="Configuration file (TOML)",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Errors only"),
):
    """
    Review the changes on this branch.

    [bold cyan]Examples:[/bold cyan]

      reviewpilot check

      reviewpilot check --base develop --no-external

      git diff HEAD~1 | reviewpilot check --diff-file - --format json
    """
    logger = setup_logging(verbose=verbose, quiet=quiet)

    try:
        settings = resolve_config(
            config=config,
            verbose=verbose,
            quiet=quiet,
            base_branch=base,
            plugin_dir=plugin_dir,
            enable_external=False if no_external else None,
            enable_ml_filter=False if no_ml else None,
        )
        root = repo_root(path)

        raw_diff = _read_diff(diff_file, root, settings.base_branch)
        files = filter_files(
            parse_unified_diff(raw_diff),
            settings.exclude_patterns,
            settings.max_file_size_bytes,
        )
        if not files:
            console.print("[yellow]No changes to review.[/yellow]")
            raise typer.Exit(0)

        pipeline = ReviewPipeline.from_config(settings, repo_root=root)
        if pipeline.client is not None and not pipeline.client.is_available():
            logger.info("AI review unavailable; running local layers only")

        result = pipeline.run(files, AnalyzeOptions.from_config(settings))
        get_formatter(output_format.lower()).render(result)

        if _should_fail(result.findings, fail_on.lower()):
            raise typer.Exit(1)

    except typer.Exit:
        raise

    except ReviewPilotError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    except KeyboardInterrupt:
        console.print("\n[yellow]Review interrupted[/yellow]")
        raise typer.Exit(130)

    except Exception as e:
        logger.exception("Unexpected error during review")
        console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)
