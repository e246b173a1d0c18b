"""Change-set retrieval and unified diff parsing."""

from .git import GitError, GitRepository
from .parser import categorize_file, filter_files, parse_unified_diff, should_exclude, summarize

__all__ = [
    "GitError",
    "GitRepository",
    "categorize_file",
    "filter_files",
    "parse_unified_diff",
    "should_exclude",
    "summarize",
]
