"""Tests for reviewpilot.models."""

import pytest

from conftest import make_hunk
from reviewpilot.config import ReviewConfig
from reviewpilot.models import (
    AnalyzeOptions,
    FileChange,
    Finding,
    FindingSource,
    Hunk,
    LineChange,
    LineKind,
    Severity,
    severity_counts,
)


class TestSeverity:
    """Tests for severity ordering and parsing."""

    def test_rank_follows_declaration_order(self):
        """Critical ranks highest, suggestion lowest."""
        ranks = [s.rank for s in Severity]
        assert ranks == sorted(ranks)
        assert Severity.CRITICAL.rank == 0
        assert Severity.SUGGESTION.rank == 4

    def test_at_least(self):
        """at_least compares by severity, not alphabetically."""
        assert Severity.CRITICAL.at_least(Severity.ERROR)
        assert Severity.ERROR.at_least(Severity.ERROR)
        assert not Severity.WARNING.at_least(Severity.ERROR)

    def test_parse_is_lenient(self):
        """Case and whitespace are ignored; unknown values use the default."""
        assert Severity.parse(" Warning ") is Severity.WARNING
        assert Severity.parse(Severity.INFO) is Severity.INFO
        assert Severity.parse("fatal", Severity.ERROR) is Severity.ERROR
        assert Severity.parse(3) is None


class TestFinding:
    """Tests for the Finding record."""

    def test_dedup_key_uses_message_prefix(self):
        """Messages that share their first 50 characters share a key."""
        prefix = "x" * 50
        a = Finding("a.js", 1, Severity.WARNING, prefix + " one", FindingSource.HEURISTIC)
        b = Finding("a.js", 1, Severity.ERROR, prefix + " two", FindingSource.SYNTAX)
        assert a.dedup_key() == b.dedup_key()
        assert a.dedup_key(60) != b.dedup_key(60)

    def test_context_does_not_affect_equality(self):
        """Two findings differing only in context compare equal."""
        a = Finding("a.js", 1, Severity.INFO, "msg", FindingSource.HEURISTIC, context="x")
        b = Finding("a.js", 1, Severity.INFO, "msg", FindingSource.HEURISTIC, context="y")
        assert a == b

    def test_with_source_keeps_everything_else(self):
        """with_source only swaps the source tag."""
        original = Finding("a.js", 3, Severity.ERROR, "msg", FindingSource.ENTROPY, "ctx")
        retagged = original.with_source(FindingSource.ML_FILTERED)
        assert retagged.source is FindingSource.ML_FILTERED
        assert (retagged.file, retagged.line, retagged.message, retagged.context) == (
            "a.js",
            3,
            "msg",
            "ctx",
        )

    def test_to_dict_uses_plain_values(self):
        """Enums are serialized by value."""
        data = Finding("a.js", None, Severity.CRITICAL, "m", FindingSource.ML_FILTERED).to_dict()
        assert data["severity"] == "critical"
        assert data["source"] == "ml-filtered"
        assert data["line"] is None


class TestChangeRecords:
    """Tests for Hunk and FileChange helpers."""

    def test_added_lines_skip_context_and_removals(self):
        """Only ADD lines are returned."""
        hunk = Hunk(
            new_start=5,
            content="a\nb",
            changes=(
                LineChange(LineKind.CONTEXT, "a", 5),
                LineChange(LineKind.REMOVE, "old", 6),
                LineChange(LineKind.ADD, "b", 6),
            ),
        )
        assert [c.content for c in hunk.added_lines] == ["b"]
        assert hunk.added_text == "b"

    def test_file_additions_and_deletions(self):
        """Counts span all hunks."""
        removal = Hunk(new_start=1, content="", changes=(LineChange(LineKind.REMOVE, "x", 1),))
        change = FileChange("a.py", hunks=(make_hunk(["a", "b"]), removal))
        assert change.additions == 2
        assert change.deletions == 1


class TestAnalyzeOptions:
    """Tests for per-run options."""

    def test_defaults(self):
        """Defaults match the documented thresholds."""
        options = AnalyzeOptions()
        assert options.dedup_prefix_length == 50
        assert options.min_lines_for_review == 3
        assert options.max_cyclomatic_complexity == 10

    @pytest.mark.parametrize(
        "field",
        ["dedup_prefix_length", "min_lines_for_review", "max_prompt_chars", "max_function_lines"],
    )
    def test_rejects_non_positive(self, field):
        """Thresholds must be at least 1."""
        with pytest.raises(ValueError):
            AnalyzeOptions(**{field: 0})

    def test_from_config_with_overrides(self):
        """Config values flow through; keyword overrides win."""
        config = ReviewConfig(enable_external=False, dedup_prefix_length=20)
        options = AnalyzeOptions.from_config(config, use_plugins=False)
        assert options.use_external is False
        assert options.use_plugins is False
        assert options.dedup_prefix_length == 20


class TestSeverityCounts:
    """Tests for severity_counts."""

    def test_counts_every_severity(self):
        """Every severity appears, zero when absent."""
        findings = [
            Finding("a", 1, Severity.WARNING, "m1", FindingSource.HEURISTIC),
            Finding("a", 2, Severity.WARNING, "m2", FindingSource.HEURISTIC),
            Finding("a", 3, Severity.CRITICAL, "m3", FindingSource.ENTROPY),
        ]
        counts = severity_counts(findings)
        assert counts == {"critical": 1, "error": 0, "warning": 2, "info": 0, "suggestion": 0}
        assert list(counts) == [s.value for s in Severity]
