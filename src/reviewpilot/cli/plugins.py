"""``reviewpilot plugins`` — list the custom rules a run would load."""

from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from ..exceptions import ReviewPilotError
from ..plugins import load_plugins
from . import app
from ._common import console, repo_root, resolve_config


@app.command()
def plugins(
    path: Optional[Path] = typer.Option(
        None,
        "-C",
        "--path",
        help="Repository root (default: current directory)",
        exists=True,
        file_okay=False,
    ),
    plugin_dir: Optional[str] = typer.Option(None, "--plugin-dir", help="Rule directory"),
    config: Optional[Path] = typer.Option(
        None,
        "-c",
        "--config",
        help="Configuration file (TOML)",
        exists=True,
        dir_okay=False,
    ),
):
    """Show the rule plugins found in the plugin directory."""
    try:
        settings = resolve_config(config=config, plugin_dir=plugin_dir)
    except ReviewPilotError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    directory = settings.plugin_path(repo_root(path))
    loaded = load_plugins(directory)
    if not loaded:
        console.print(f"[yellow]No plugins found in[/yellow] [blue]{directory}[/blue]")
        raise typer.Exit(0)

    table = Table(title=f"Plugins in {directory}", show_header=True, header_style="bold")
    table.add_column("Name", style="cyan")
    table.add_column("Severity")
    table.add_column("File", style="dim")
    table.add_column("Description")
    for plugin in loaded:
        table.add_row(
            plugin.name,
            plugin.severity.value,
            plugin.path.name if plugin.path else "",
            plugin.description,
        )
    console.print(table)
