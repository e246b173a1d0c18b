"""Unified diff → ``FileChange`` records.

Parsing is done by ``unidiff``; this module maps its patch objects onto the
pipeline models and tags each file with a category.
"""

from __future__ import annotations

import re
from fnmatch import fnmatch
from typing import Dict, List, Optional, Sequence, Tuple

from unidiff import Hunk as PatchHunk
from unidiff import PatchedFile, PatchSet
from unidiff.patch import Line
from unidiff.errors import UnidiffParseError

from ..exceptions import ParsingError
from ..logging_config import get_logger
from ..models import ChangeType, FileCategory, FileChange, Hunk, LineChange, LineKind

logger = get_logger(__name__)

_HUNK_RE = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")

DEV_NULL = "/dev/null"

# Priority order matters: test > docs > config > feature
CATEGORY_PATTERNS: Tuple[Tuple[FileCategory, Tuple[str, ...]], ...] = (
    (FileCategory.TEST, (".test.", ".spec.", "__tests__", "__mocks__", "tests/", "test_")),
    (FileCategory.DOCS, (".md", ".txt", ".rst", "docs/", "readme")),
    (
        FileCategory.CONFIG,
        (
            "package.json",
            "tsconfig.json",
            ".eslintrc",
            ".prettierrc",
            ".yaml",
            ".yml",
            ".toml",
            ".env",
            ".ini",
            ".cfg",
            ".config.js",
            ".config.ts",
            ".config.mjs",
            "webpack.config",
            "vite.config",
            "jest.config",
            "vitest.config",
            ".babelrc",
            ".editorconfig",
            ".gitignore",
            ".npmrc",
            "dockerfile",
            "docker-compose",
            "makefile",
        ),
    ),
)


def categorize_file(path: str) -> FileCategory:
    """Semantic category of a path; anything unrecognised is a feature."""
    lower = path.lower()
    for category, patterns in CATEGORY_PATTERNS:
        if any(p in lower for p in patterns):
            return category
    return FileCategory.FEATURE


def should_exclude(path: str, patterns: Sequence[str]) -> bool:
    """True if ``path`` matches any glob in ``patterns``.

    ``dir/**`` patterns match the directory at any depth.
    """
    for pattern in patterns:
        if fnmatch(path, pattern) or fnmatch(path, f"*/{pattern}"):
            return True
        if pattern.endswith("/**"):
            prefix = pattern[:-3]
            if path.startswith(prefix + "/") or f"/{prefix}/" in path:
                return True
    return False


def _strip_prefix(path: str) -> str:
    if path[:2] in ("a/", "b/"):
        return path[2:]
    return path


def _check_hunk_headers(lines: Sequence[str]) -> None:
    """Reject hunk headers that are malformed or precede any file header."""
    in_file = False
    for number, line in enumerate(lines, start=1):
        if line.startswith(("diff --git ", "--- ")):
            in_file = True
        elif line.startswith("@@"):
            if not in_file:
                raise ParsingError("hunk outside of a file section", number)
            if not _HUNK_RE.match(line):
                raise ParsingError(f"malformed hunk header {line.rstrip()!r}", number)


def _line_change(line: Line) -> Optional[LineChange]:
    text = line.value.rstrip("\r\n")
    if line.is_added:
        return LineChange(LineKind.ADD, text, line.target_line_no)
    if line.is_removed:
        return LineChange(LineKind.REMOVE, text, line.source_line_no)
    if line.is_context:
        return LineChange(LineKind.CONTEXT, text, line.target_line_no)
    return None  # "\ No newline at end of file"


def _build_hunk(hunk: PatchHunk) -> Hunk:
    changes = tuple(c for c in (_line_change(line) for line in hunk) if c is not None)
    content = "\n".join(c.content for c in changes if c.kind is not LineKind.REMOVE)
    return Hunk(
        new_start=hunk.target_start,
        content=content,
        changes=changes,
        old_start=hunk.source_start,
    )


def _build_file(patched: PatchedFile) -> FileChange:
    source = patched.source_file or DEV_NULL
    target = patched.target_file or DEV_NULL
    old_path = None if source == DEV_NULL else _strip_prefix(source)
    new_path = None if target == DEV_NULL else _strip_prefix(target)

    if old_path is None:
        change_type = ChangeType.ADDED
    elif new_path is None:
        change_type = ChangeType.DELETED
    elif old_path != new_path:
        change_type = ChangeType.RENAMED
    else:
        change_type = ChangeType.MODIFIED

    path = new_path or old_path or "unknown"
    return FileChange(
        path=path,
        change_type=change_type,
        category=categorize_file(path),
        hunks=tuple(_build_hunk(h) for h in patched),
        old_path=old_path if change_type is ChangeType.RENAMED else None,
    )


def parse_unified_diff(text: str) -> List[FileChange]:
    """Parse ``git diff`` output. Blank input yields an empty list.

    Line numbers follow the new file for added and context lines and the old
    file for removals. Binary files appear with no hunks.

    Raises:
        ParsingError: If a hunk appears outside a file section, a hunk
            header is malformed or the text is otherwise not a diff.
    """
    if not text or not text.strip():
        return []

    lines = text.splitlines(keepends=True)
    _check_hunk_headers(lines)
    try:
        patch = PatchSet(lines)
    except UnidiffParseError as e:
        raise ParsingError(str(e)) from e

    return [_build_file(patched) for patched in patch]


def filter_files(
    files: Sequence[FileChange],
    exclude_patterns: Sequence[str] = (),
    max_size_bytes: Optional[int] = None,
) -> List[FileChange]:
    """Drop excluded files and files whose added text exceeds ``max_size_bytes``."""
    kept: List[FileChange] = []
    for change in files:
        if should_exclude(change.path, exclude_patterns):
            logger.debug("Excluding %s", change.path)
            continue
        if max_size_bytes is not None:
            size = sum(len(h.added_text.encode("utf-8")) for h in change.hunks)
            if size > max_size_bytes:
                logger.info("Skipping %s: %d KB of changes", change.path, size // 1024)
                continue
        kept.append(change)
    return kept


def summarize(files: Sequence[FileChange]) -> Dict[str, int]:
    return {
        "files": len(files),
        "additions": sum(f.additions for f in files),
        "deletions": sum(f.deletions for f in files),
    }
