"""Learned false-positive filtering."""

from .classifier import LABELS, REPORT, SKIP, Classifier, NaiveBayesClassifier
from .false_positive_filter import (
    DEFAULT_MODEL_PATH,
    SEED_FALSE_POSITIVES,
    SEED_REAL_ISSUES,
    FalsePositiveFilter,
    build_feature_text,
)

__all__ = [
    "DEFAULT_MODEL_PATH",
    "LABELS",
    "REPORT",
    "SEED_FALSE_POSITIVES",
    "SEED_REAL_ISSUES",
    "SKIP",
    "Classifier",
    "FalsePositiveFilter",
    "NaiveBayesClassifier",
    "build_feature_text",
]
