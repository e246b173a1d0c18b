"""Base exception for ReviewPilot."""

from typing import Any, Dict, Mapping, Optional


class ReviewPilotError(Exception):
    """Base exception for all ReviewPilot errors.

    ``details`` are rendered after the message, e.g.
    ``git merge-base main HEAD failed (reason=not a git repository)``.
    Entries whose value is ``None`` or empty are left out.
    """

    def __init__(self, message: str, details: Optional[Mapping[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, str] = {
            key: str(value) for key, value in (details or {}).items() if value not in (None, "")
        }

    def __str__(self) -> str:
        if not self.details:
            return self.message
        rendered = ", ".join(f"{key}={value}" for key, value in self.details.items())
        return f"{self.message} ({rendered})"
