"""Base class for rule plugins.

A rule file in the plugin directory exports a ``LinterPlugin`` subclass (or
an instance, or module-level ``name``/``analyze``). Example:

    # .reviewpilot-rules/no_moment.py
    from reviewpilot.plugins import LinterPlugin

    class Plugin(LinterPlugin):
        def __init__(self):
            super().__init__("no-moment", "warning")

        def analyze(self, path, content):
            return [
                {"line": i, "message": "moment.js is deprecated; use date-fns"}
                for i, line in enumerate(content.splitlines(), 1)
                if "require('moment')" in line
            ]
"""

from typing import Any, Dict, List

from ..models import Severity


class LinterPlugin:
    """A named rule with a default severity.

    ``analyze(path, content)`` returns a list of dicts (or objects) with a
    ``message``, an optional 1-based ``line`` relative to ``content`` and an
    optional ``severity`` overriding the plugin default.
    """

    description: str = ""

    def __init__(self, name: str, severity: str = "warning"):
        self.name = name
        self.severity = Severity.parse(severity, Severity.WARNING)

    def analyze(self, path: str, content: str) -> List[Dict[str, Any]]:
        raise NotImplementedError(f'Plugin "{self.name}" must implement analyze()')

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, severity={self.severity.value!r})"
