"""CLI entry point — registers all subcommands."""

import typer

from .. import __version__
from ._common import console

app = typer.Typer(
    name="reviewpilot",
    help="ReviewPilot - layered review of the changes on your branch",
    add_completion=False,
    rich_markup_mode="rich",
)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit",
    ),
):
    """ReviewPilot - heuristics, secrets, syntax, AI review and custom rules on your diff."""
    if version:
        console.print(f"[bold cyan]ReviewPilot[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit(0)
    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
        raise typer.Exit(0)


# Import subcommands to register them
from .check import check as _check  # noqa: F401, E402
from .feedback import feedback as _feedback  # noqa: F401, E402
from .plugins import plugins as _plugins  # noqa: F401, E402

__all__ = ["app", "main"]
