"""Example ReviewPilot rule: no-requests-without-timeout

Flags ``requests`` calls that do not pass a ``timeout``; without one a
hung server blocks the caller forever. Copy this file into
``.reviewpilot-rules/`` to enable it.
"""

import re

from reviewpilot.plugins import LinterPlugin

_CALL_RE = re.compile(r"\brequests\.(get|post|put|patch|delete|head|request)\s*\(")


class Plugin(LinterPlugin):
    description = "HTTP calls through requests must set a timeout"

    def __init__(self):
        super().__init__("no-requests-without-timeout", "warning")

    def analyze(self, path, content):
        if not path.endswith(".py"):
            return []

        findings = []
        for number, line in enumerate(content.splitlines(), start=1):
            match = _CALL_RE.search(line)
            if match and "timeout" not in line:
                findings.append(
                    {
                        "line": number,
                        "message": f"requests.{match.group(1)}() without a timeout",
                    }
                )
        return findings
