"""JSON formatter for ReviewPilot."""

import json

from ..models import severity_counts
from ..pipeline import ReviewResult
from .base import BaseFormatter


class JsonFormatter(BaseFormatter):
    """Render findings, suppressed findings and counts as one JSON document."""

    def render(self, result: ReviewResult) -> None:
        print(self.format(result))

    def format(self, result: ReviewResult) -> str:
        data = {
            "summary": {
                "files_analyzed": result.files_analyzed,
                "total": len(result.findings),
                "suppressed": len(result.suppressed),
                "by_severity": severity_counts(result.findings),
            },
            "findings": [f.to_dict() for f in result.findings],
            "suppressed": [f.to_dict() for f in result.suppressed],
            "external": result.external_stats,
        }
        return json.dumps(data, indent=2)
