"""Line-level heuristic rules and quoted-literal secret scanners.

Adding a new heuristic:
  1. Add a HeuristicRule entry to HEURISTIC_RULES below.
  2. That's it. The pipeline runs every rule against every added line.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Container, Dict, Iterable, List, Optional, Tuple

from ..models import Finding, FindingSource, LineChange, Severity
from .secrets import SECURITY_NAME_RE, detect_base64_secret, detect_secret, is_hex_secret


@dataclass(frozen=True)
class HeuristicRule:
    name: str
    pattern: re.Pattern
    severity: Severity
    message: str


HARDCODED_SECRET_RULE = HeuristicRule(
    name="hardcoded-secret",
    pattern=re.compile(
        r"""(password|passwd|secret|api_?key|token)\s*[:=]\s*['"][^'"]+['"]""", re.IGNORECASE
    ),
    severity=Severity.CRITICAL,
    message="Potential hardcoded secret or credential",
)

HEURISTIC_RULES: Tuple[HeuristicRule, ...] = (
    HeuristicRule(
        "console-statement",
        re.compile(r"console\.(log|debug|info)\("),
        Severity.WARNING,
        "Leftover console statement",
    ),
    HeuristicRule(
        "todo-comment",
        re.compile(r"\b(TODO|FIXME|HACK|XXX)\b"),
        Severity.INFO,
        "Contains TODO/FIXME comment",
    ),
    HeuristicRule(
        "debugger-statement",
        re.compile(r"\bdebugger\s*;|\bbreakpoint\(\)|\bpdb\.set_trace\(\)"),
        Severity.ERROR,
        "Debugger statement left in code",
    ),
    HARDCODED_SECRET_RULE,
    HeuristicRule(
        "empty-catch",
        re.compile(r"\.catch\(\s*\)|\bcatch\s*(?:\([^)]*\))?\s*\{\s*\}"),
        Severity.WARNING,
        "Empty catch block — errors are silently swallowed",
    ),
    HeuristicRule(
        "empty-except",
        re.compile(r"\bexcept\b[^:]*:\s*pass\b"),
        Severity.WARNING,
        "Empty except block — errors are silently swallowed",
    ),
    HeuristicRule(
        "eval-call",
        re.compile(r"(?<![\w.])eval\s*\("),
        Severity.ERROR,
        "Use of eval() — security risk",
    ),
    HeuristicRule(
        "any-type",
        re.compile(r":\s*any\b|<any>|\bas\s+any\b"),
        Severity.INFO,
        'TypeScript "any" type usage — consider a stricter type',
    ),
    HeuristicRule(
        "long-sleep",
        re.compile(r"sleep\s*\(\s*\d{4,}"),
        Severity.WARNING,
        "Long sleep/delay — potential performance issue",
    ),
    HeuristicRule(
        "ts-ignore",
        re.compile(r"//\s*@ts-ignore"),
        Severity.WARNING,
        "@ts-ignore suppresses type checking",
    ),
    HeuristicRule(
        "process-exit",
        re.compile(r"process\.exit"),
        Severity.WARNING,
        "process.exit() call — may cause abrupt termination",
    ),
)

RULES_BY_NAME: Dict[str, HeuristicRule] = {rule.name: rule for rule in HEURISTIC_RULES}

# name = "literal" / name: 'literal' / self.name = `literal`
_ASSIGNED_LITERAL_RE = re.compile(
    r"""([A-Za-z_$][\w$]*(?:\.[A-Za-z_$][\w$]*)*)['"]?\s*(?::=|[:=])\s*(['"`])([^'"`\n]+)\2"""
)

# Long quoted token that could hold an encoded secret
_QUOTED_TOKEN_RE = re.compile(r"""(['"`])([A-Za-z0-9+/=_\-]{32,})\1""")

# Function header: `function foo(`, `const foo =`, `foo(...) {`
_FUNCTION_START_RE = re.compile(
    r"(?:function|const|let|var)\s+(\w+)|(\w+)\s*(?:=\s*)?\(.*\)\s*(?:=>)?\s*\{"
)

_CONFIDENCE_SEVERITY = {
    "high": Severity.CRITICAL,
    "medium": Severity.ERROR,
    "low": Severity.WARNING,
}

_SNIPPET_CHARS = 80


def _snippet(content: str) -> str:
    return content.strip()[:_SNIPPET_CHARS]


def matches_rule(name: str, content: str) -> bool:
    """True if the heuristic rule called ``name`` fires on ``content``."""
    rule = RULES_BY_NAME.get(name)
    return rule is not None and bool(rule.pattern.search(content))


def scan_heuristics(
    path: str,
    lines: Iterable[LineChange],
    rules: Tuple[HeuristicRule, ...] = HEURISTIC_RULES,
    secret_handled: Container[Optional[int]] = (),
) -> List[Finding]:
    """Run every rule against every line, in line order then rule order.

    The hardcoded-secret rule is not applied to lines in ``secret_handled``.
    """
    findings: List[Finding] = []
    for change in lines:
        for rule in rules:
            if rule is HARDCODED_SECRET_RULE and change.line in secret_handled:
                continue
            if rule.pattern.search(change.content):
                findings.append(
                    Finding(
                        file=path,
                        line=change.line,
                        severity=rule.severity,
                        message=f"{rule.message}: {_snippet(change.content)}",
                        source=FindingSource.HEURISTIC,
                        context=change.content.strip(),
                    )
                )
    return findings


def has_hardcoded_secret(content: str) -> bool:
    return bool(HARDCODED_SECRET_RULE.pattern.search(content))


def scan_assigned_secrets(path: str, change: LineChange) -> List[Finding]:
    """Entropy/prefix detection on literals assigned to security-named identifiers."""
    findings: List[Finding] = []
    for match in _ASSIGNED_LITERAL_RE.finditer(change.content):
        name, value = match.group(1), match.group(3)
        if not SECURITY_NAME_RE.search(name.rsplit(".", 1)[-1]):
            continue
        result = detect_secret(value, name)
        if not result.is_secret:
            continue
        findings.append(
            Finding(
                file=path,
                line=change.line,
                severity=_CONFIDENCE_SEVERITY.get(result.confidence or "", Severity.WARNING),
                message=f'{result.reason} in "{name}"',
                source=FindingSource.ENTROPY,
                context=change.content.strip(),
            )
        )
    return findings


def scan_encoded_tokens(path: str, change: LineChange) -> List[Finding]:
    """Base64/hex detection on long quoted tokens anywhere on the line."""
    findings: List[Finding] = []
    for match in _QUOTED_TOKEN_RE.finditer(change.content):
        token = match.group(2)
        if detect_base64_secret(token).is_secret:
            severity, reason = Severity.ERROR, "Base64-encoded credential in string literal"
        elif is_hex_secret(token):
            severity, reason = Severity.WARNING, "Hex-encoded secret in string literal"
        else:
            continue
        findings.append(
            Finding(
                file=path,
                line=change.line,
                severity=severity,
                message=f"{reason}: {token[:12]}…",
                source=FindingSource.ENTROPY,
                context=change.content.strip(),
            )
        )
    return findings


def scan_secrets(
    path: str, lines: Iterable[LineChange], secret_handled: Container[Optional[int]] = ()
) -> List[Finding]:
    """Entropy layer for a hunk.

    Lines the heuristic hardcoded-secret rule already flagged, and lines in
    ``secret_handled``, are skipped so a single literal produces a single
    critical finding.
    """
    findings: List[Finding] = []
    for change in lines:
        if change.line in secret_handled or has_hardcoded_secret(change.content):
            continue
        assigned = scan_assigned_secrets(path, change)
        findings.extend(assigned)
        if not assigned:
            findings.extend(scan_encoded_tokens(path, change))
    return findings


def check_function_length(
    content: str, path: str, start_line: int, max_lines: int = 50
) -> List[Finding]:
    """Flag brace-delimited functions longer than ``max_lines``.

    A brace-depth scan, not a parser: good enough for hunks that contain a
    whole function body.
    """
    findings: List[Finding] = []
    lines = content.split("\n")
    func_start = -1
    func_name: Optional[str] = None
    depth = 0

    for i, line in enumerate(lines):
        header = _FUNCTION_START_RE.search(line)
        if header and depth == 0:
            func_start = i
            func_name = header.group(1) or header.group(2) or "anonymous"

        depth += line.count("{") - line.count("}")

        if func_start != -1 and depth <= 0:
            length = i - func_start + 1
            if length > max_lines:
                findings.append(
                    Finding(
                        file=path,
                        line=start_line + func_start,
                        severity=Severity.WARNING,
                        message=(
                            f'Function "{func_name}" is {length} lines long '
                            f"(max recommended: {max_lines})"
                        ),
                        source=FindingSource.HEURISTIC,
                    )
                )
            func_start = -1
            depth = 0

    return findings
