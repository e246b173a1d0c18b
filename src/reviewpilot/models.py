"""Data models for ReviewPilot"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class Severity(str, Enum):
    """Finding severity. Declaration order is the sort order, most severe first."""

    CRITICAL = "critical"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    SUGGESTION = "suggestion"

    @property
    def rank(self) -> int:
        """0 for critical, 4 for suggestion."""
        return _SEVERITY_RANK[self]

    def at_least(self, other: Severity) -> bool:
        """True if this severity is as severe as ``other`` or more."""
        return self.rank <= other.rank

    @classmethod
    def parse(cls, value: Any, default: Optional[Severity] = None) -> Optional[Severity]:
        """Lenient conversion used for plugin and config input."""
        if isinstance(value, Severity):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                return default
        return default


_SEVERITY_RANK: Dict[Severity, int] = {sev: i for i, sev in enumerate(Severity)}


class ChangeType(str, Enum):
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"


class FileCategory(str, Enum):
    FEATURE = "feature"
    TEST = "test"
    DOCS = "docs"
    CONFIG = "config"


class LineKind(str, Enum):
    ADD = "add"
    REMOVE = "remove"
    CONTEXT = "context"


class FindingSource(str, Enum):
    """Which layer produced a finding."""

    HEURISTIC = "heuristic"
    ENTROPY = "entropy"
    SYNTAX = "syntax"
    PLUGIN = "plugin"
    ML_FILTERED = "ml-filtered"
    EXTERNAL = "external"


@dataclass(frozen=True)
class LineChange:
    """One line of a hunk. ``content`` carries no +/- prefix."""

    kind: LineKind
    content: str
    line: Optional[int] = None  # new-file line; old-file line for removals


@dataclass(frozen=True)
class Hunk:
    """A contiguous block of a diff.

    ``content`` is the hunk as it reads in the new file (context and added
    lines, starting at ``new_start``).
    """

    new_start: int
    content: str
    changes: Tuple[LineChange, ...] = ()
    old_start: int = 0

    @property
    def added_lines(self) -> List[LineChange]:
        return [c for c in self.changes if c.kind is LineKind.ADD]

    @property
    def added_text(self) -> str:
        return "\n".join(c.content for c in self.added_lines)


@dataclass(frozen=True)
class FileChange:
    """One changed file as produced by the diff processor."""

    path: str
    change_type: ChangeType = ChangeType.MODIFIED
    category: FileCategory = FileCategory.FEATURE
    hunks: Tuple[Hunk, ...] = ()
    old_path: Optional[str] = None

    @property
    def additions(self) -> int:
        return sum(len(h.added_lines) for h in self.hunks)

    @property
    def deletions(self) -> int:
        return sum(1 for h in self.hunks for c in h.changes if c.kind is LineKind.REMOVE)


DedupKey = Tuple[str, Optional[int], str]


@dataclass(frozen=True)
class Finding:
    """A single reported issue.

    ``context`` holds the code the finding was raised on. It feeds the
    false-positive filter and is not part of the dedup key.
    """

    file: str
    line: Optional[int]
    severity: Severity
    message: str
    source: FindingSource
    context: Optional[str] = field(default=None, compare=False)

    def dedup_key(self, prefix_length: int = 50) -> DedupKey:
        return (self.file, self.line, self.message[:prefix_length])

    def with_source(self, source: FindingSource) -> Finding:
        return Finding(self.file, self.line, self.severity, self.message, source, self.context)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["severity"] = self.severity.value
        data["source"] = self.source.value
        return data


@dataclass(frozen=True)
class AnalyzeOptions:
    """Per-run switches for ``ReviewPipeline.analyze``."""

    use_ml: bool = True
    use_external: bool = True
    use_plugins: bool = True
    dedup_prefix_length: int = 50
    min_lines_for_review: int = 3
    max_prompt_chars: int = 2000
    max_function_lines: int = 50
    max_cyclomatic_complexity: int = 10

    def __post_init__(self) -> None:
        if self.dedup_prefix_length < 1:
            raise ValueError("dedup_prefix_length must be at least 1")
        if self.min_lines_for_review < 1:
            raise ValueError("min_lines_for_review must be at least 1")
        if self.max_prompt_chars < 1:
            raise ValueError("max_prompt_chars must be at least 1")
        if self.max_function_lines < 1:
            raise ValueError("max_function_lines must be at least 1")
        if self.max_cyclomatic_complexity < 1:
            raise ValueError("max_cyclomatic_complexity must be at least 1")

    @classmethod
    def from_config(cls, config: Any, **overrides: Any) -> AnalyzeOptions:
        """Build options from a ``ReviewConfig``; keyword overrides win."""
        values = {
            "use_ml": config.enable_ml_filter,
            "use_external": config.enable_external,
            "dedup_prefix_length": config.dedup_prefix_length,
            "min_lines_for_review": config.min_lines_for_review,
            "max_prompt_chars": config.max_prompt_chars,
            "max_function_lines": config.max_function_lines,
            "max_cyclomatic_complexity": config.max_cyclomatic_complexity,
        }
        values.update(overrides)
        return cls(**values)


def severity_counts(findings: List[Finding]) -> Dict[str, int]:
    """Count findings per severity, in severity order."""
    counts = {sev.value: 0 for sev in Severity}
    for f in findings:
        counts[f.severity.value] += 1
    return counts
