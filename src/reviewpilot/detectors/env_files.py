"""Secret detection for environment and secrets files.

Only ``KEY=VALUE`` lines are considered. A line is reported when the key
names a credential and the value is not an obvious placeholder.
"""

from __future__ import annotations

import re
from pathlib import PurePosixPath
from typing import Iterable, List, Optional, Tuple

from ..models import Finding, FindingSource, LineChange, Severity
from .secrets import is_safe_value

_ENV_NAME_RE = re.compile(r"^\.env(\..+)?$|\.env$|^\.envrc$")
_SECRETS_NAME_RE = re.compile(r"^secrets?\.(ya?ml|json|toml|ini|properties|env)$", re.IGNORECASE)

SECRET_KEY_RE = re.compile(
    r"pass(word)?|pwd|secret|token|api[_-]?key|access[_-]?key|private[_-]?key"
    r"|auth|credential|client[_-]?secret|dsn|conn(ection)?[_-]?str",
    re.IGNORECASE,
)

_LINE_RE = re.compile(r"^\s*(?:export\s+)?([A-Za-z_][A-Za-z0-9_.\-]*)\s*[=:]\s*(.*)$")

_PLACEHOLDER_RE = re.compile(
    r"^(|changeme|change[_-]?me|replace[_-]?me|todo|tbd|none|null|example|sample|dummy|test"
    r"|placeholder|secret|password|x+|\*+|\.{3,}|your[_-].*|<.*>|\$\{.*\}|\$[A-Z_]+|%\(.*\)s)$",
    re.IGNORECASE,
)


def is_env_file(path: str) -> bool:
    """True for ``.env``, ``.env.*``, ``*.env``, ``.envrc`` and ``secrets.*`` files."""
    name = PurePosixPath(path.replace("\\", "/")).name
    return bool(_ENV_NAME_RE.search(name) or _SECRETS_NAME_RE.match(name))


def parse_env_line(content: str) -> Optional[Tuple[str, str]]:
    """Split an env line into ``(key, value)``; quotes and inline comments removed."""
    stripped = content.strip()
    if not stripped or stripped.startswith("#"):
        return None

    match = _LINE_RE.match(stripped)
    if not match:
        return None

    key, value = match.group(1), match.group(2).strip()
    if value[:1] in ("'", '"'):
        quote = value[0]
        end = value.find(quote, 1)
        value = value[1:end] if end != -1 else value[1:]
    else:
        value = re.split(r"\s+#", value, maxsplit=1)[0].strip()

    return key, value


def is_placeholder(value: str) -> bool:
    return bool(_PLACEHOLDER_RE.match(value.strip())) or is_safe_value(value)


def is_secret_entry(content: str) -> bool:
    """True for a ``KEY=VALUE`` line whose key names a credential, placeholder or not.

    These lines belong to ``scan_env_lines``; the generic secret rules leave
    them alone.
    """
    parsed = parse_env_line(content)
    return parsed is not None and bool(SECRET_KEY_RE.search(parsed[0]))


def scan_env_lines(path: str, lines: Iterable[LineChange]) -> List[Finding]:
    findings: List[Finding] = []
    for change in lines:
        if not is_secret_entry(change.content):
            continue
        key, value = parse_env_line(change.content)
        if is_placeholder(value):
            continue
        findings.append(
            Finding(
                file=path,
                line=change.line,
                severity=Severity.CRITICAL,
                message=f'Secret "{key}" committed in environment file',
                source=FindingSource.HEURISTIC,
                context=f"{key}=<redacted>",
            )
        )
    return findings
