"""Learned filter that suppresses findings users have marked as noise.

On construction the filter loads the persisted classifier; when there is
none, or it cannot be read, it trains a fresh one on a small seed set of
known real issues and known false positives. ``learn`` applies feedback and
saves immediately.

The filter fails open: a classifier error means "report", and persistence
errors are logged, never raised.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from ..exceptions import PersistenceError
from ..logging_config import get_logger
from ..models import Finding, FindingSource
from .classifier import REPORT, SKIP, Classifier, NaiveBayesClassifier

logger = get_logger(__name__)

DEFAULT_MODEL_PATH = Path.home() / ".reviewpilot" / "classifier.joblib"

SEED_REAL_ISSUES = (
    "console.log(secretKey)",
    "console.log(password)",
    "console.log(apiToken)",
    'const password = "admin123"',
    'const apiKey = "sk-live-abc123def456"',
    "eval(userInput)",
    "eval(requestBody)",
    "innerHTML = userData",
    "debugger; // left in production",
)

SEED_FALSE_POSITIVES = (
    'console.log("Server started on port", port)',
    'console.log("Starting migration...")',
    "console.log(JSON.stringify(config, null, 2))",
    'console.log("Test passed")',
    'const password = "test_password" // test fixture',
    'const mockApiKey = "test-key-for-unit-tests"',
    "password: process.env.DB_PASSWORD",
    'apiKey: config.get("apiKey")',
    "if (DEBUG) console.log(data)",
    "// TODO: refactor this module",
    "// FIXME: known issue #123",
)


def build_feature_text(finding: Finding) -> str:
    """Message, code context and file path joined by spaces."""
    parts = [finding.message, finding.context or "", finding.file]
    return " ".join(part for part in parts if part)


class FalsePositiveFilter:
    """Report/skip decision per finding, trainable from feedback.

    Args:
        model_path: Where the classifier is persisted. None keeps it in memory.
        classifier_factory: Builds an untrained classifier.
        loader: Rebuilds a classifier from persisted bytes.
    """

    def __init__(
        self,
        model_path: Optional[Path] = DEFAULT_MODEL_PATH,
        classifier_factory: Callable[[], Classifier] = NaiveBayesClassifier,
        loader: Callable[[bytes], Classifier] = NaiveBayesClassifier.deserialize,
    ):
        self.model_path = Path(model_path).expanduser() if model_path is not None else None
        self._factory = classifier_factory
        self._loader = loader
        self.loaded_from_disk = False
        self.classifier: Classifier = self._factory()

        try:
            self.classifier = self._load()
            self.loaded_from_disk = True
        except FileNotFoundError:
            self.seed()
        except PersistenceError as e:
            logger.warning("Ignoring saved false-positive model: %s", e.reason)
            self.seed()

    # ── Persistence ───────────────────────────────────────────────

    def _load(self) -> Classifier:
        if self.model_path is None or not self.model_path.is_file():
            raise FileNotFoundError(str(self.model_path))
        try:
            data = self.model_path.read_bytes()
        except OSError as e:
            raise PersistenceError(self.model_path, str(e)) from e
        try:
            return self._loader(data)
        except Exception as e:
            raise PersistenceError(self.model_path, str(e)) from e

    def save(self) -> bool:
        """Write the classifier to ``model_path``. Returns False on failure."""
        if self.model_path is None:
            return False
        try:
            data = self.classifier.serialize()
            self.model_path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.model_path.parent, prefix=".classifier-", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "wb") as handle:
                    handle.write(data)
                os.replace(tmp_name, self.model_path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except Exception as e:
            logger.warning("Could not save false-positive model to %s: %s", self.model_path, e)
            return False
        return True

    def seed(self) -> None:
        """Replace the classifier with one trained on the built-in examples."""
        classifier = self._factory()
        for text in SEED_REAL_ISSUES:
            classifier.learn(text, REPORT)
        for text in SEED_FALSE_POSITIVES:
            classifier.learn(text, SKIP)
        self.classifier = classifier
        self.loaded_from_disk = False

    # ── Decisions ─────────────────────────────────────────────────

    def classify(self, finding: Finding) -> str:
        """``"report"`` or ``"skip"``; ``"report"`` whenever the classifier fails."""
        try:
            label = self.classifier.predict(build_feature_text(finding))
        except Exception as e:
            logger.debug("False-positive classifier failed, reporting: %s", e)
            return REPORT
        return SKIP if label == SKIP else REPORT

    def should_report(self, finding: Finding) -> bool:
        return self.classify(finding) == REPORT

    def partition(self, findings: List[Finding]) -> Tuple[List[Finding], List[Finding]]:
        """Split into (reported, suppressed); suppressed are retagged ``ml-filtered``."""
        reported: List[Finding] = []
        suppressed: List[Finding] = []
        for finding in findings:
            if self.should_report(finding):
                reported.append(finding)
            else:
                suppressed.append(finding.with_source(FindingSource.ML_FILTERED))
        return reported, suppressed

    def learn(self, finding: Finding, is_real_issue: bool) -> None:
        """Apply feedback and persist. Persistence failures are logged only."""
        label = REPORT if is_real_issue else SKIP
        self.classifier.learn(build_feature_text(finding), label)
        self.save()
