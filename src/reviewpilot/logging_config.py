"""
Logging configuration for ReviewPilot.

Findings are written to stdout by the formatters; diagnostics go through
these loggers to stderr so that ``--format json`` output stays parseable.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "reviewpilot"

# ReviewConfig.verbosity -> level
VERBOSITY_LEVELS = {
    "quiet": logging.ERROR,
    "normal": logging.WARNING,
    "verbose": logging.DEBUG,
}


def verbosity_name(verbose: bool = False, quiet: bool = False) -> str:
    """Map the CLI flags to a verbosity name; ``quiet`` wins over ``verbose``."""
    if quiet:
        return "quiet"
    if verbose:
        return "verbose"
    return "normal"


def setup_logging(verbose: bool = False, quiet: bool = False) -> logging.Logger:
    """
    Route ReviewPilot diagnostics to a rich stderr handler.

    Args:
        verbose: DEBUG level, with timestamps and source locations
        quiet: ERROR level only

    Returns:
        The ``reviewpilot`` root logger
    """
    level = VERBOSITY_LEVELS[verbosity_name(verbose, quiet)]

    handler = RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        tracebacks_show_locals=verbose,
        markup=False,
        show_time=verbose,
        show_path=verbose,
    )
    logging.basicConfig(level=level, format="%(message)s", datefmt="[%X]", handlers=[handler])

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Logger under the ``reviewpilot`` namespace; ``name`` is usually ``__name__``."""
    if not name:
        return logging.getLogger(ROOT_LOGGER)
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
