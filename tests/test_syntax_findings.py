"""Tests for tree-sitter based syntax findings and complexity."""

import pytest

from reviewpilot.models import Severity
from reviewpilot.scanning import (
    SyntaxAnalyzer,
    TreeSitterParser,
    detect_language,
    get_supported_languages,
)


@pytest.fixture(scope="module")
def analyzer():
    return SyntaxAnalyzer(TreeSitterParser())


def rules(report):
    return [f.rule for f in report.findings]


class TestLanguages:
    """Tests for extension-based language detection."""

    @pytest.mark.parametrize(
        "path,language",
        [
            ("src/app.js", "javascript"),
            ("src/App.JSX", "javascript"),
            ("lib/util.ts", "typescript"),
            ("ui/View.tsx", "tsx"),
            ("tool/main.py", "python"),
            ("README.md", None),
            ("Makefile", None),
        ],
    )
    def test_detect_language(self, path, language):
        """Extensions map to grammar names, case-insensitively."""
        assert detect_language(path) == language

    def test_bundled_grammars(self):
        """Every detected language has a bundled grammar."""
        assert set(get_supported_languages()) >= {"javascript", "typescript", "tsx", "python"}


class TestTreeSitterParser:
    """Tests for the parser wrapper."""

    def test_parse_returns_tree(self):
        """parse() returns a tree for valid JavaScript."""
        tree = TreeSitterParser().parse(b"const a = 1;", "javascript")
        assert tree is not None
        assert tree.root_node.type == "program"

    def test_unknown_language(self):
        """parse() returns None for an unsupported language."""
        assert TreeSitterParser().parse(b"puts 1", "ruby") is None


class TestJavaScriptRules:
    """Tests for JavaScript/TypeScript structural rules."""

    def test_empty_catch(self, analyzer):
        """A catch block with no statements is flagged as swallowing errors."""
        report = analyzer.analyze("try {\n  run();\n} catch (e) {\n  // ignore\n}", "a.js")
        assert rules(report) == ["empty-catch"]
        finding = report.findings[0]
        assert finding.line == 3
        assert finding.severity is Severity.WARNING
        assert "swallowed" in finding.message

    def test_handled_catch(self, analyzer):
        """A catch block that does something is fine."""
        report = analyzer.analyze("try {\n  run();\n} catch (e) {\n  report(e);\n}", "a.js")
        assert rules(report) == []

    def test_eval(self, analyzer):
        """eval() calls are errors."""
        report = analyzer.analyze("const x = 1;\neval(userInput);", "a.js")
        assert rules(report) == ["eval-call"]
        assert report.findings[0].line == 2
        assert report.findings[0].severity is Severity.ERROR

    def test_console_outside_guard(self, analyzer):
        """Unguarded console calls are flagged, guarded ones are not."""
        code = "console.log(user);\nif (debug) {\n  console.log(state);\n}"
        report = analyzer.analyze(code, "a.js")
        assert rules(report) == ["unguarded-console"]
        assert report.findings[0].line == 1
        assert report.findings[0].message == "Console.log() statement outside conditional/catch block"

    def test_inner_html(self, analyzer):
        """innerHTML assignment is an XSS warning."""
        report = analyzer.analyze("el.innerHTML = html;", "a.ts")
        assert rules(report) == ["html-assignment"]
        assert "innerHTML" in report.findings[0].message

    def test_secret_in_security_variable(self, analyzer):
        """A high-entropy literal in a key-like variable is critical."""
        report = analyzer.analyze('const apiKey = "aB3dE5gH7jK9mN1p";', "a.js")
        assert rules(report) == ["secret-assignment"]
        assert report.findings[0].severity is Severity.CRITICAL
        assert '"apiKey"' in report.findings[0].message

    def test_low_entropy_literal_ignored(self, analyzer):
        """Plain words in key-like variables are not secrets."""
        report = analyzer.analyze('const tokenType = "bearer";', "a.js")
        assert rules(report) == []

    def test_complexity(self, analyzer):
        """if, && and while each add one to the base complexity."""
        code = (
            "function f(a, b) {\n"
            "  if (a && b) {\n"
            "    return 1;\n"
            "  }\n"
            "  while (b) {\n"
            "    b--;\n"
            "  }\n"
            "  return 0;\n"
            "}"
        )
        assert analyzer.complexity(code, "a.js") == 4

    def test_straight_line_code(self, analyzer):
        """Code without branches has complexity 1."""
        assert analyzer.complexity("const a = 1;\nconst b = a + 2;", "a.js") == 1


class TestPythonRules:
    """Tests for Python structural rules."""

    def test_empty_except(self, analyzer):
        """except ...: pass is flagged."""
        code = "try:\n    run()\nexcept ValueError:\n    pass\n"
        report = analyzer.analyze(code, "a.py")
        assert rules(report) == ["empty-except"]
        assert report.findings[0].line == 3

    def test_eval(self, analyzer):
        """eval() calls are errors."""
        report = analyzer.analyze("result = eval(expr)\n", "a.py")
        assert rules(report) == ["eval-call"]
        assert report.findings[0].message.startswith("Use of eval()")

    def test_secret_assignment(self, analyzer):
        """A high-entropy literal assigned to a token name is critical."""
        report = analyzer.analyze('api_token = "aB3dE5gH7jK9mN1p"\n', "a.py")
        assert rules(report) == ["secret-assignment"]

    def test_complexity(self, analyzer):
        """if, boolean operators and elif each count."""
        code = (
            "def f(x, y):\n"
            "    if x and y:\n"
            "        return 1\n"
            "    elif x:\n"
            "        return 2\n"
            "    return 0\n"
        )
        assert analyzer.complexity(code, "a.py") == 4


class TestSyntaxAnalyzer:
    """Tests for the adapter surface."""

    def test_unsupported_file(self, analyzer):
        """Unsupported files produce no report."""
        assert not analyzer.can_analyze("main.go")
        assert analyzer.analyze("package main", "main.go") is None
        assert analyzer.complexity("package main", "main.go") == 0

    def test_empty_code(self, analyzer):
        """Empty input produces no report."""
        assert analyzer.analyze("", "a.js") is None

    def test_findings_sorted_by_line(self, analyzer):
        """Findings come out in line order."""
        code = "eval(a);\nconsole.log(b);\neval(c);"
        report = analyzer.analyze(code, "a.js")
        assert [f.line for f in report.findings] == [1, 2, 3]

    def test_parser_built_lazily(self):
        """No grammar is loaded until the first analysis."""
        lazy = SyntaxAnalyzer()
        assert lazy._parser is None
        assert lazy.can_analyze("a.js")
        assert lazy._parser is None
