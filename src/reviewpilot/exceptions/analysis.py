"""Analysis-related exceptions: input shape, diff parsing, persistence."""

from pathlib import Path
from typing import Any, Optional

from .base import ReviewPilotError


class AnalysisError(ReviewPilotError):
    """Base class for analysis-related errors."""
    pass


class InvalidInputError(AnalysisError):
    """Raised when the pipeline receives input of the wrong shape."""

    def __init__(self, reason: str, value: Any = None):
        details = {"reason": reason}
        if value is not None:
            details["type"] = type(value).__name__
        super().__init__(f"Invalid analysis input: {reason}", details=details)
        self.reason = reason
        self.value = value


class ParsingError(AnalysisError):
    """Raised when diff text cannot be parsed."""

    def __init__(self, reason: str, line_number: Optional[int] = None):
        details = {"reason": reason}
        if line_number is not None:
            details["line"] = str(line_number)
        super().__init__(f"Failed to parse diff: {reason}", details=details)
        self.reason = reason
        self.line_number = line_number


class PersistenceError(AnalysisError):
    """Raised when the classifier model cannot be loaded or saved."""

    def __init__(self, filepath: Path, reason: str):
        super().__init__(
            f"Cannot persist classifier model: {filepath}",
            details={"filepath": str(filepath), "reason": reason},
        )
        self.filepath = filepath
        self.reason = reason
