"""Tests for output formatters."""

import json

import pytest
from rich.console import Console

from reviewpilot.formatters import (
    GithubFormatter,
    JsonFormatter,
    RichFormatter,
    get_formatter,
    sort_for_display,
)
from reviewpilot.models import Finding, FindingSource, Severity
from reviewpilot.pipeline import ReviewResult


@pytest.fixture
def result():
    return ReviewResult(
        findings=[
            Finding("src/b.js", 9, Severity.WARNING, "Leftover console statement", FindingSource.HEURISTIC),
            Finding("src/a.js", 3, Severity.CRITICAL, "Potential hardcoded secret", FindingSource.HEURISTIC),
            Finding("src/a.js", None, Severity.SUGGESTION, "Line one\nline two", FindingSource.EXTERNAL),
        ],
        suppressed=[
            Finding("src/c.js", 1, Severity.INFO, "TODO comment", FindingSource.ML_FILTERED),
        ],
        files_analyzed=3,
        external_stats={"available": True, "breaker_open": False},
    )


class TestSortForDisplay:
    """Tests for display ordering."""

    def test_most_severe_first(self, result):
        """Critical findings come first, then by file and line."""
        ordered = sort_for_display(result.findings)
        assert [f.severity for f in ordered] == [
            Severity.CRITICAL,
            Severity.WARNING,
            Severity.SUGGESTION,
        ]


class TestJsonFormatter:
    """Tests for JSON output."""

    def test_document_shape(self, result):
        """Summary, findings, suppressed and external stats are included."""
        data = json.loads(JsonFormatter().format(result))

        assert data["summary"]["files_analyzed"] == 3
        assert data["summary"]["total"] == 3
        assert data["summary"]["suppressed"] == 1
        assert data["summary"]["by_severity"]["critical"] == 1
        assert data["findings"][0]["file"] == "src/b.js"
        assert data["suppressed"][0]["source"] == "ml-filtered"
        assert data["external"]["available"] is True


class TestGithubFormatter:
    """Tests for workflow annotations."""

    def test_annotations(self, result):
        """One annotation per finding, mapped to GitHub levels."""
        lines = GithubFormatter().format(result).splitlines()

        assert lines[0] == "::error file=src/a.js,line=3,title=critical (heuristic)::Potential hardcoded secret"
        assert lines[1].startswith("::warning file=src/b.js,line=9,")
        assert lines[2].startswith("::notice file=src/a.js,title=")

    def test_message_newlines_escaped(self, result):
        """Multi-line messages stay on one annotation line."""
        output = GithubFormatter().format(result)
        assert "Line one%0Aline two" in output

    def test_property_escaping(self):
        """Commas and colons in paths are escaped."""
        finding = Finding("dir,with:odd.js", 1, Severity.ERROR, "m", FindingSource.SYNTAX)
        output = GithubFormatter().format(ReviewResult(findings=[finding]))
        assert "file=dir%2Cwith%3Aodd.js" in output


class TestRichFormatter:
    """Tests for terminal output."""

    def test_summary_and_table(self, result):
        """The panel counts findings and the table lists them."""
        console = Console(width=200, color_system=None)
        output = RichFormatter(console=console).format(result)

        assert "ReviewPilot" in output
        assert "3 files analyzed" in output
        assert "1 likely false positives hidden" in output
        assert "src/a.js:3" in output
        assert "Potential hardcoded secret" in output

    def test_no_findings(self):
        """A clean run says so."""
        console = Console(width=200, color_system=None)
        output = RichFormatter(console=console).format(ReviewResult(findings=[], files_analyzed=1))
        assert "No issues found" in output

    def test_breaker_notice(self):
        """An open breaker is mentioned in the summary."""
        console = Console(width=200, color_system=None)
        result = ReviewResult(findings=[], external_stats={"breaker_open": True, "available": True})
        assert "disabled after repeated failures" in RichFormatter(console=console).format(result)


class TestGetFormatter:
    """Tests for formatter lookup."""

    def test_known_names(self):
        """Every registered name resolves."""
        assert isinstance(get_formatter("json"), JsonFormatter)
        assert isinstance(get_formatter("github"), GithubFormatter)
        assert isinstance(get_formatter("rich"), RichFormatter)

    def test_unknown_name(self):
        """Unknown names are rejected."""
        with pytest.raises(ValueError):
            get_formatter("xml")
