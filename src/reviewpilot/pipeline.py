"""Finding aggregation pipeline.

Runs every detection layer over a change set and merges the results:

    per file   env/secrets file scan
    per hunk   heuristic rules → entropy secrets → syntax tree
               → external review → plugins
    then       stable dedup → false-positive filter

Emission order within a file is fixed, dedup keeps the first occurrence,
and external reviews are fetched up front and consumed in hunk order, so
the output is deterministic for a given input and set of external
responses.

A failing layer contributes no findings for that unit of work and never
aborts the run. The only error ``analyze`` raises is ``InvalidInputError``
for input that is not a sequence of ``FileChange``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Set

from .detectors import (
    check_function_length,
    is_env_file,
    is_secret_entry,
    scan_env_lines,
    scan_heuristics,
    scan_secrets,
)
from .detectors.heuristics import has_hardcoded_secret, matches_rule
from .exceptions import InvalidInputError
from .external import ExternalAnalysisClient, build_review_prompt, parse_review_response
from .logging_config import get_logger
from .ml import FalsePositiveFilter
from .models import (
    AnalyzeOptions,
    ChangeType,
    DedupKey,
    FileChange,
    Finding,
    FindingSource,
    Hunk,
    LineChange,
    Severity,
)
from .plugins import load_plugins, run_plugin
from .scanning import SyntaxAnalyzer

logger = get_logger(__name__)

COMPLEXITY_RULE_MESSAGE = "Cyclomatic complexity of added code is {value} (max recommended: {limit})"


def deduplicate_findings(findings: Sequence[Finding], prefix_length: int = 50) -> List[Finding]:
    """Drop findings whose (file, line, message prefix) was already seen."""
    seen: Set[DedupKey] = set()
    unique: List[Finding] = []
    for finding in findings:
        key = finding.dedup_key(prefix_length)
        if key in seen:
            continue
        seen.add(key)
        unique.append(finding)
    return unique


def _review_key(path: str, hunk: Hunk, index: int) -> str:
    return f"{path}:{hunk.new_start}:{index}"


@dataclass
class ReviewResult:
    """Outcome of one run: reported findings plus what the filter suppressed."""

    findings: List[Finding]
    suppressed: List[Finding] = field(default_factory=list)
    files_analyzed: int = 0
    external_stats: Optional[Dict[str, Any]] = None


class ReviewPipeline:
    """Holds the per-run collaborators and runs the layers.

    Args:
        client: External analysis client; None disables the external layer.
        plugins: Loaded rule plugins.
        fp_filter: False-positive filter; None disables ML filtering.
        syntax: Syntax findings adapter.
        plugin_timeout: Seconds allowed per plugin call.
        review_timeout: Seconds allowed per external review attempt.
    """

    def __init__(
        self,
        client: Optional[ExternalAnalysisClient] = None,
        plugins: Optional[Sequence[Any]] = None,
        fp_filter: Optional[FalsePositiveFilter] = None,
        syntax: Optional[SyntaxAnalyzer] = None,
        plugin_timeout: float = 10.0,
        review_timeout: float = 20.0,
    ):
        self.client = client
        self.plugins = list(plugins or [])
        self.fp_filter = fp_filter
        self.syntax = syntax or SyntaxAnalyzer()
        self.plugin_timeout = plugin_timeout
        self.review_timeout = review_timeout

    @classmethod
    def from_config(
        cls,
        config: Any,
        repo_root: Optional[Path] = None,
        client: Optional[ExternalAnalysisClient] = None,
        fp_filter: Optional[FalsePositiveFilter] = None,
    ) -> ReviewPipeline:
        """Build a pipeline from a ``ReviewConfig``.

        Plugins are loaded once here. The client and filter are only created
        when the config enables them.
        """
        if client is None and config.enable_external:
            client = ExternalAnalysisClient.from_config(config)
        if fp_filter is None and config.enable_ml_filter:
            fp_filter = FalsePositiveFilter(config.classifier_file)

        return cls(
            client=client if config.enable_external else None,
            plugins=load_plugins(config.plugin_path(repo_root)),
            fp_filter=fp_filter if config.enable_ml_filter else None,
            plugin_timeout=config.plugin_timeout_seconds,
            review_timeout=config.review_timeout_seconds,
        )

    # ── Entry points ──────────────────────────────────────────────

    def analyze(
        self, files: Sequence[FileChange], options: Optional[AnalyzeOptions] = None
    ) -> List[Finding]:
        return self.run(files, options).findings

    def run(
        self, files: Sequence[FileChange], options: Optional[AnalyzeOptions] = None
    ) -> ReviewResult:
        """Analyze ``files`` and return reported and suppressed findings.

        Raises:
            InvalidInputError: If ``files`` is not a sequence of ``FileChange``.
        """
        _validate_input(files)
        options = options or AnalyzeOptions()

        active = [f for f in files if f.change_type is not ChangeType.DELETED]
        if not active:
            return ReviewResult(findings=[], external_stats=self._client_stats())

        reviews = self._prefetch_reviews(active, options)

        collected: List[Finding] = []
        timed_out: Set[str] = set()
        for change in active:
            collected.extend(self._analyze_file(change, options, reviews, timed_out))

        unique = deduplicate_findings(collected, options.dedup_prefix_length)

        suppressed: List[Finding] = []
        if options.use_ml and self.fp_filter is not None:
            try:
                unique, suppressed = self.fp_filter.partition(unique)
            except Exception as e:
                logger.warning("False-positive filter failed, reporting everything: %s", e)

        logger.debug(
            "Analyzed %d files: %d findings, %d suppressed",
            len(active),
            len(unique),
            len(suppressed),
        )
        return ReviewResult(
            findings=unique,
            suppressed=suppressed,
            files_analyzed=len(active),
            external_stats=self._client_stats(),
        )

    # ── Layers ────────────────────────────────────────────────────

    def _guard(self, layer: str, path: str, func: Callable[[], List[Finding]]) -> List[Finding]:
        try:
            return list(func())
        except Exception as e:
            log = logger.debug if layer == "syntax" else logger.warning
            log("%s layer failed on %s: %s: %s", layer, path, type(e).__name__, e)
            return []

    def _analyze_file(
        self,
        change: FileChange,
        options: AnalyzeOptions,
        reviews: Dict[str, Optional[str]],
        timed_out: Set[str],
    ) -> List[Finding]:
        path = change.path
        findings: List[Finding] = []

        env_lines: Set[Optional[int]] = set()
        if is_env_file(path):
            added = [line for hunk in change.hunks for line in hunk.added_lines]
            findings.extend(self._guard("env-file", path, lambda: scan_env_lines(path, added)))
            env_lines = {c.line for c in added if is_secret_entry(c.content)}

        for index, hunk in enumerate(change.hunks):
            added = hunk.added_lines
            if not added:
                continue

            heuristic = self._guard(
                "heuristic", path, lambda: scan_heuristics(path, added, secret_handled=env_lines)
            )
            heuristic += self._guard(
                "heuristic",
                path,
                lambda: check_function_length(
                    hunk.content, path, hunk.new_start, options.max_function_lines
                ),
            )
            entropy = self._guard(
                "entropy", path, lambda: scan_secrets(path, added, secret_handled=env_lines)
            )

            secret_lines = {f.line for f in entropy} | env_lines
            secret_lines.update(c.line for c in added if has_hardcoded_secret(c.content))

            findings.extend(heuristic)
            findings.extend(entropy)

            if len(added) >= options.min_lines_for_review:
                findings.extend(
                    self._guard(
                        "syntax",
                        path,
                        lambda: self._syntax_findings(path, added, secret_lines, options),
                    )
                )

            key = _review_key(path, hunk, index)
            if key in reviews:
                findings.extend(
                    self._guard(
                        "external",
                        path,
                        lambda: parse_review_response(reviews[key], path, hunk.new_start),
                    )
                )

            if options.use_plugins:
                for plugin in self.plugins:
                    if getattr(plugin, "name", None) in timed_out:
                        continue
                    findings.extend(
                        run_plugin(
                            plugin,
                            path,
                            hunk.content,
                            timeout=self.plugin_timeout,
                            first_line=hunk.new_start,
                            timed_out=timed_out,
                        )
                    )

        return findings

    def _syntax_findings(
        self,
        path: str,
        added: List[LineChange],
        secret_lines: Set[Optional[int]],
        options: AnalyzeOptions,
    ) -> List[Finding]:
        if not self.syntax.can_analyze(path):
            return []

        report = self.syntax.analyze("\n".join(c.content for c in added), path)
        if report is None:
            return []

        findings: List[Finding] = []
        for item in report.findings:
            if not 1 <= item.line <= len(added):
                continue
            source_line = added[item.line - 1]
            # One finding per secret literal: earlier layers already own it
            if item.rule == "secret-assignment" and source_line.line in secret_lines:
                continue
            # Same rule already reported by the heuristic layer on this line
            if matches_rule(item.rule, source_line.content):
                continue
            findings.append(
                Finding(
                    file=path,
                    line=source_line.line,
                    severity=item.severity,
                    message=item.message,
                    source=FindingSource.SYNTAX,
                    context=source_line.content.strip(),
                )
            )

        if report.complexity > options.max_cyclomatic_complexity:
            findings.append(
                Finding(
                    file=path,
                    line=added[0].line,
                    severity=Severity.WARNING,
                    message=COMPLEXITY_RULE_MESSAGE.format(
                        value=report.complexity, limit=options.max_cyclomatic_complexity
                    ),
                    source=FindingSource.SYNTAX,
                )
            )
        return findings

    def _prefetch_reviews(
        self, files: Sequence[FileChange], options: AnalyzeOptions
    ) -> Dict[str, Optional[str]]:
        """Ask the external tool about every eligible hunk in one bounded batch."""
        if not options.use_external or self.client is None or self.client.disabled:
            return {}

        items = []
        for change in files:
            for index, hunk in enumerate(change.hunks):
                added = hunk.added_lines
                if len(added) < options.min_lines_for_review:
                    continue
                prompt = build_review_prompt(hunk.added_text, options.max_prompt_chars)
                items.append((_review_key(change.path, hunk, index), prompt))

        if not items:
            return {}

        try:
            return self.client.ask_batch(items, timeout=self.review_timeout)
        except Exception as e:
            logger.warning("External review batch failed: %s", e)
            return {}

    def _client_stats(self) -> Optional[Dict[str, Any]]:
        return self.client.stats() if self.client is not None else None


def _validate_input(files: Any) -> None:
    if isinstance(files, (str, bytes)) or not isinstance(files, Sequence):
        raise InvalidInputError("files must be a sequence of FileChange", files)
    for item in files:
        if not isinstance(item, FileChange):
            raise InvalidInputError("every item must be a FileChange", item)


def analyze(
    files: Sequence[FileChange],
    options: Optional[AnalyzeOptions] = None,
    pipeline: Optional[ReviewPipeline] = None,
) -> List[Finding]:
    """Run ``files`` through ``pipeline`` (a local-only pipeline by default)."""
    return (pipeline or ReviewPipeline()).analyze(files, options)
