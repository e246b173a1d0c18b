"""GitHub Actions formatter: workflow annotations, one per finding."""

from typing import List

from ..models import Finding, Severity
from ..pipeline import ReviewResult
from .base import BaseFormatter, sort_for_display

_LEVELS = {
    Severity.CRITICAL: "error",
    Severity.ERROR: "error",
    Severity.WARNING: "warning",
    Severity.INFO: "notice",
    Severity.SUGGESTION: "notice",
}


def _escape(value: str) -> str:
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def _escape_property(value: str) -> str:
    return _escape(value).replace(":", "%3A").replace(",", "%2C")


class GithubFormatter(BaseFormatter):
    """Output ``::error`` / ``::warning`` / ``::notice`` workflow commands."""

    def render(self, result: ReviewResult) -> None:
        print(self.format(result))

    def format(self, result: ReviewResult) -> str:
        return "\n".join(self._annotation(f) for f in sort_for_display(result.findings))

    def _annotation(self, finding: Finding) -> str:
        props: List[str] = [f"file={_escape_property(finding.file)}"]
        if finding.line is not None:
            props.append(f"line={finding.line}")
        props.append(f"title={_escape_property(f'{finding.severity.value} ({finding.source.value})')}")
        return f"::{_LEVELS[finding.severity]} {','.join(props)}::{_escape(finding.message)}"
