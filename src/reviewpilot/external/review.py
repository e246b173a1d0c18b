"""Semantic review of a hunk via the external analysis tool.

The tool answers in free text. ``parse_review_response`` turns that text
into findings by keyword sniffing: it is a best-effort adapter with no
formal grammar behind it, and unusual phrasing will be misclassified.
"""

import re
from typing import List, Optional

from ..models import Finding, FindingSource, Severity

REVIEW_PROMPT = (
    "Review this code change for potential issues. Check for logic errors, "
    "race conditions, null/undefined risks, error handling gaps, and edge cases. "
    "Be concise — list only real issues, not style preferences:\n\n"
)

# Preamble / summary lines the tool wraps around the actual issue list
META_PREFIXES = ("Here", "The code", "Overall")

ERROR_KEYWORDS = ("error", "bug", "crash")
WARNING_KEYWORDS = ("warn", "risk", "issue")

MIN_MESSAGE_CHARS = 10

_BULLET_RE = re.compile(r"^[-*•\d.)\s]+")


def build_review_prompt(snippet: str, max_chars: int = 2000) -> str:
    """Prompt for one hunk; the code is truncated to ``max_chars``."""
    return REVIEW_PROMPT + snippet[:max_chars]


def classify_line(text: str) -> Severity:
    lower = text.lower()
    if any(word in lower for word in ERROR_KEYWORDS):
        return Severity.ERROR
    if any(word in lower for word in WARNING_KEYWORDS):
        return Severity.WARNING
    return Severity.SUGGESTION


def parse_review_response(
    response: Optional[str], path: str, line: int, context: Optional[str] = None
) -> List[Finding]:
    """One finding per meaningful response line, all anchored at ``line``."""
    if not response:
        return []

    findings: List[Finding] = []
    for raw in response.splitlines():
        text = raw.strip()
        if not text or text.startswith(META_PREFIXES):
            continue

        message = _BULLET_RE.sub("", text).strip()
        if len(message) <= MIN_MESSAGE_CHARS:
            continue

        findings.append(
            Finding(
                file=path,
                line=line,
                severity=classify_line(text),
                message=message,
                source=FindingSource.EXTERNAL,
                context=context,
            )
        )
    return findings
