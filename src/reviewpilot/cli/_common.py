"""Shared CLI helpers."""

from pathlib import Path
from typing import Any, Optional

from rich.console import Console

from ..config import ReviewConfig, load_config

console = Console()


def resolve_config(
    config: Optional[Path] = None,
    verbose: bool = False,
    quiet: bool = False,
    **overrides: Any,
) -> ReviewConfig:
    """Build configuration from CLI options. ``None`` options keep file values."""
    return load_config(config_file=config, verbose=verbose, quiet=quiet, **overrides)


def repo_root(path: Optional[Path]) -> Path:
    return (path or Path.cwd()).resolve()
