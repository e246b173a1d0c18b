"""Output formatters for ReviewPilot."""

from .base import BaseFormatter, sort_for_display
from .github_formatter import GithubFormatter
from .json_formatter import JsonFormatter
from .rich_formatter import RichFormatter

FORMATTERS = {
    "rich": RichFormatter,
    "json": JsonFormatter,
    "github": GithubFormatter,
}


def get_formatter(name: str) -> BaseFormatter:
    """Get a formatter instance by name.

    Raises:
        ValueError: If name is not recognized
    """
    cls = FORMATTERS.get(name)
    if cls is None:
        raise ValueError(f"Unknown formatter: {name!r}. Choose from: {', '.join(sorted(FORMATTERS))}")
    return cls()


__all__ = [
    "BaseFormatter",
    "FORMATTERS",
    "GithubFormatter",
    "JsonFormatter",
    "RichFormatter",
    "get_formatter",
    "sort_for_display",
]
