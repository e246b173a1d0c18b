"""
ReviewPilot - Layered review of changed code

Runs cheap local detectors (regex heuristics, entropy-based secret scanning,
syntax-tree rules), an optional AI review through an external CLI tool and
custom rule plugins over a diff, then deduplicates the results and filters
likely false positives with a classifier that learns from feedback.
"""

__version__ = "0.3.0"

from .config import ReviewConfig, load_config
from .models import AnalyzeOptions, FileChange, Finding, FindingSource, Hunk, Severity
from .pipeline import ReviewPipeline, ReviewResult, analyze, deduplicate_findings

__all__ = [
    "analyze",  # Main entry point
    "ReviewPipeline",
    "ReviewResult",
    "AnalyzeOptions",
    "FileChange",
    "Finding",
    "FindingSource",
    "Hunk",
    "Severity",
    "ReviewConfig",
    "load_config",
    "deduplicate_findings",
]
