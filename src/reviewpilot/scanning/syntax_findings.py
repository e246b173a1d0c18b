"""Structural findings from a tree-sitter walk.

Turns a parsed syntax tree into ``SyntaxFinding`` records plus a cyclomatic
complexity count. Rules are keyed by grammar: JavaScript, TypeScript and TSX
share one rule set, Python has its own.

Usage:
    analyzer = SyntaxAnalyzer()
    report = analyzer.analyze(code, "src/app.js")
    if report is not None:
        for finding in report.findings:
            ...
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator, List, Optional, Tuple

from ..logging_config import get_logger
from ..math.entropy import calculate_entropy
from ..models import Severity
from .languages import detect_language
from .treesitter_parser import TreeSitterParser

if TYPE_CHECKING:
    from .treesitter_parser import Node

logger = get_logger(__name__)

SECURITY_VAR_RE = re.compile(r"password|secret|token|key|auth|cred|api.?key", re.IGNORECASE)

SECRET_ENTROPY_THRESHOLD = 3.5
SECRET_MIN_LENGTH = 4

_JS_CONSOLE_METHODS = frozenset({"log", "debug", "info"})
_JS_GUARD_TYPES = frozenset({"if_statement", "ternary_expression", "switch_case", "catch_clause"})

_JS_BRANCH_TYPES = frozenset(
    {
        "if_statement",
        "ternary_expression",
        "switch_case",
        "for_statement",
        "for_in_statement",
        "while_statement",
        "do_statement",
        "catch_clause",
    }
)
_PY_BRANCH_TYPES = frozenset(
    {
        "if_statement",
        "elif_clause",
        "conditional_expression",
        "for_statement",
        "while_statement",
        "except_clause",
        "boolean_operator",
        "if_clause",
        "case_clause",
    }
)

_JS_LANGUAGES = frozenset({"javascript", "typescript", "tsx"})


@dataclass(frozen=True)
class SyntaxFinding:
    """A structural issue. ``line`` is 1-based within the analyzed text."""

    line: int
    message: str
    severity: Severity
    rule: str


@dataclass(frozen=True)
class SyntaxReport:
    language: str
    findings: Tuple[SyntaxFinding, ...]
    complexity: int


def walk(node: Node) -> Iterator[Node]:
    """Pre-order traversal without recursion."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def _text(node: Optional[Node]) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


def _line(node: Node) -> int:
    return node.start_point[0] + 1


def _has_ancestor(node: Node, types: frozenset) -> bool:
    parent = node.parent
    while parent is not None:
        if parent.type in types:
            return True
        parent = parent.parent
    return False


def _string_value(node: Optional[Node]) -> Optional[str]:
    """Literal value of a plain string node, None for anything else."""
    if node is None or node.type != "string":
        return None
    if any(child.type == "interpolation" for child in node.children):
        return None
    parts = [_text(c) for c in node.children if c.type in ("string_fragment", "string_content")]
    return "".join(parts)


def _identifier_name(node: Optional[Node]) -> str:
    """Rightmost name of an identifier or member/attribute access."""
    if node is None:
        return ""
    if node.type in ("member_expression", "attribute"):
        prop = node.child_by_field_name("property") or node.child_by_field_name("attribute")
        return _text(prop)
    if node.type in ("identifier", "property_identifier"):
        return _text(node)
    return ""


def _secret_finding(node: Node, name: str, value: Optional[str], declared: bool) -> Optional[SyntaxFinding]:
    if not name or value is None or not SECURITY_VAR_RE.search(name):
        return None
    if len(value) <= SECRET_MIN_LENGTH:
        return None
    entropy = calculate_entropy(value)
    if entropy <= SECRET_ENTROPY_THRESHOLD:
        return None
    where = "in security variable" if declared else "assigned to security variable"
    return SyntaxFinding(
        line=_line(node),
        message=f'High-entropy string {where} "{name}" (entropy: {entropy:.1f})',
        severity=Severity.CRITICAL,
        rule="secret-assignment",
    )


# ---------------------------------------------------------------------------
# JavaScript / TypeScript
# ---------------------------------------------------------------------------


def _js_call(node: Node) -> Optional[SyntaxFinding]:
    callee = node.child_by_field_name("function")
    if callee is None:
        return None

    if callee.type == "identifier" and _text(callee) == "eval":
        return SyntaxFinding(
            line=_line(node),
            message="Use of eval() — security risk; consider safer alternatives",
            severity=Severity.ERROR,
            rule="eval-call",
        )

    if callee.type == "member_expression":
        obj = callee.child_by_field_name("object")
        method = _text(callee.child_by_field_name("property"))
        if (
            _text(obj) == "console"
            and method in _JS_CONSOLE_METHODS
            and not _has_ancestor(node, _JS_GUARD_TYPES)
        ):
            return SyntaxFinding(
                line=_line(node),
                message=f"Console.{method}() statement outside conditional/catch block",
                severity=Severity.WARNING,
                rule="unguarded-console",
            )
    return None


def _js_assignment(node: Node) -> List[SyntaxFinding]:
    findings: List[SyntaxFinding] = []
    left = node.child_by_field_name("left")
    right = node.child_by_field_name("right")

    if left is not None and left.type == "member_expression":
        prop = _text(left.child_by_field_name("property"))
        if prop in ("innerHTML", "outerHTML"):
            findings.append(
                SyntaxFinding(
                    line=_line(node),
                    message=f"Direct {prop} assignment — XSS risk; use textContent or sanitize",
                    severity=Severity.WARNING,
                    rule="html-assignment",
                )
            )

    secret = _secret_finding(node, _identifier_name(left), _string_value(right), declared=False)
    if secret is not None:
        findings.append(secret)
    return findings


def _js_empty_catch(node: Node) -> Optional[SyntaxFinding]:
    body = node.child_by_field_name("body")
    if body is None:
        return None
    statements = [c for c in body.named_children if c.type not in ("comment", "empty_statement")]
    if statements:
        return None
    return SyntaxFinding(
        line=_line(node),
        message="Empty catch block — errors are silently swallowed",
        severity=Severity.WARNING,
        rule="empty-catch",
    )


def _analyze_js(root: Node) -> Tuple[List[SyntaxFinding], int]:
    findings: List[SyntaxFinding] = []
    complexity = 1

    for node in walk(root):
        kind = node.type
        if kind in _JS_BRANCH_TYPES:
            complexity += 1
        elif kind == "binary_expression":
            operator = _text(node.child_by_field_name("operator"))
            if operator in ("&&", "||"):
                complexity += 1

        if kind == "call_expression":
            finding = _js_call(node)
            if finding is not None:
                findings.append(finding)
        elif kind == "assignment_expression":
            findings.extend(_js_assignment(node))
        elif kind == "variable_declarator":
            name_node = node.child_by_field_name("name")
            if name_node is not None and name_node.type == "identifier":
                secret = _secret_finding(
                    node, _text(name_node), _string_value(node.child_by_field_name("value")), declared=True
                )
                if secret is not None:
                    findings.append(secret)
        elif kind == "catch_clause":
            finding = _js_empty_catch(node)
            if finding is not None:
                findings.append(finding)

    return findings, complexity


# ---------------------------------------------------------------------------
# Python
# ---------------------------------------------------------------------------


def _is_noop_statement(node: Node) -> bool:
    if node.type in ("pass_statement", "comment"):
        return True
    if node.type == "expression_statement":
        return all(c.type == "ellipsis" for c in node.named_children)
    return False


def _py_empty_except(node: Node) -> Optional[SyntaxFinding]:
    block = next((c for c in node.children if c.type == "block"), None)
    if block is None:
        return None
    if not all(_is_noop_statement(c) for c in block.named_children):
        return None
    return SyntaxFinding(
        line=_line(node),
        message="Empty except block — errors are silently swallowed",
        severity=Severity.WARNING,
        rule="empty-except",
    )


def _analyze_python(root: Node) -> Tuple[List[SyntaxFinding], int]:
    findings: List[SyntaxFinding] = []
    complexity = 1

    for node in walk(root):
        kind = node.type
        if kind in _PY_BRANCH_TYPES:
            complexity += 1

        if kind == "call":
            callee = node.child_by_field_name("function")
            if callee is not None and callee.type == "identifier" and _text(callee) in ("eval", "exec"):
                name = _text(callee)
                findings.append(
                    SyntaxFinding(
                        line=_line(node),
                        message=f"Use of {name}() — security risk; consider safer alternatives",
                        severity=Severity.ERROR,
                        rule="eval-call",
                    )
                )
        elif kind == "except_clause":
            finding = _py_empty_except(node)
            if finding is not None:
                findings.append(finding)
        elif kind == "assignment":
            secret = _secret_finding(
                node,
                _identifier_name(node.child_by_field_name("left")),
                _string_value(node.child_by_field_name("right")),
                declared=True,
            )
            if secret is not None:
                findings.append(secret)

    return findings, complexity


class SyntaxAnalyzer:
    """Syntax findings adapter.

    The tree-sitter parser is built on first use so that constructing a
    pipeline does not pay for grammar loading when no supported file is in
    the change set.
    """

    def __init__(self, parser: Optional[TreeSitterParser] = None):
        self._parser = parser

    @property
    def parser(self) -> TreeSitterParser:
        if self._parser is None:
            self._parser = TreeSitterParser()
        return self._parser

    def can_analyze(self, path: str) -> bool:
        return detect_language(path) is not None

    def analyze(self, code: str, path: str) -> Optional[SyntaxReport]:
        """Walk ``code`` as the language of ``path``.

        Returns None when the language is unsupported or parsing failed.
        """
        language = detect_language(path)
        if not code or language is None:
            return None

        tree = self.parser.parse(code.encode("utf-8"), language)
        if tree is None:
            logger.debug("No syntax tree for %s", path)
            return None

        if language in _JS_LANGUAGES:
            findings, complexity = _analyze_js(tree.root_node)
        else:
            findings, complexity = _analyze_python(tree.root_node)

        findings.sort(key=lambda f: f.line)
        return SyntaxReport(language=language, findings=tuple(findings), complexity=complexity)

    def complexity(self, code: str, path: str) -> int:
        """Cyclomatic complexity of ``code``; 0 when it cannot be parsed."""
        report = self.analyze(code, path)
        return report.complexity if report is not None else 0
