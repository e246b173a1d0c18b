"""Base formatter interface for ReviewPilot output rendering."""

from abc import ABC, abstractmethod
from typing import List

from ..models import Finding
from ..pipeline import ReviewResult


def sort_for_display(findings: List[Finding]) -> List[Finding]:
    """Most severe first, then by file and line. The pipeline order is untouched."""
    return sorted(findings, key=lambda f: (f.severity.rank, f.file, f.line or 0))


class BaseFormatter(ABC):
    """Abstract base class for output formatters."""

    @abstractmethod
    def render(self, result: ReviewResult) -> None:
        """Write the formatted result to stdout."""

    @abstractmethod
    def format(self, result: ReviewResult) -> str:
        """Return formatted string representation of the result."""
