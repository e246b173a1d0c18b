"""Bag-of-words report/skip classifier.

``Classifier`` is the small interface the false-positive filter needs; any
model with online updates and a byte round-trip can stand behind it.
``NaiveBayesClassifier`` is the default: a multinomial Naive Bayes over
hashed token counts, trained incrementally with ``partial_fit`` so that a
single piece of feedback updates the model without retraining from scratch.
"""

from __future__ import annotations

import io
from threading import Lock
from typing import Any, Dict, Protocol, Tuple

import joblib
import numpy as np
from sklearn.feature_extraction.text import HashingVectorizer
from sklearn.naive_bayes import MultinomialNB

REPORT = "report"
SKIP = "skip"
LABELS: Tuple[str, str] = (REPORT, SKIP)

FORMAT_VERSION = 1

# 2**16 buckets keeps the persisted model around 1 MB
DEFAULT_N_FEATURES = 2**16


class Classifier(Protocol):
    def predict(self, text: str) -> str: ...

    def learn(self, text: str, label: str) -> None: ...

    def serialize(self) -> bytes: ...

    @classmethod
    def deserialize(cls, data: bytes) -> Classifier: ...


class NaiveBayesClassifier:
    """Multinomial Naive Bayes over hashed unigram/bigram counts.

    The vectorizer is stateless, so only the fitted ``MultinomialNB`` and the
    vectorizer settings need to be persisted.
    """

    def __init__(self, alpha: float = 1.0, n_features: int = DEFAULT_N_FEATURES):
        self.alpha = alpha
        self.n_features = n_features
        self._vectorizer = self._make_vectorizer(n_features)
        self._model = MultinomialNB(alpha=alpha)
        self._samples = 0
        self._lock = Lock()

    @staticmethod
    def _make_vectorizer(n_features: int) -> HashingVectorizer:
        return HashingVectorizer(
            n_features=n_features,
            alternate_sign=False,
            norm=None,
            ngram_range=(1, 2),
        )

    @property
    def trained(self) -> bool:
        return self._samples > 0

    @property
    def samples(self) -> int:
        return self._samples

    def learn(self, text: str, label: str) -> None:
        if label not in LABELS:
            raise ValueError(f"label must be one of {LABELS}, got {label!r}")
        features = self._vectorizer.transform([text])
        with self._lock:
            self._model.partial_fit(features, np.array([label]), classes=np.array(LABELS))
            self._samples += 1

    def learn_many(self, texts: list, label: str) -> None:
        for text in texts:
            self.learn(text, label)

    def predict_proba(self, text: str) -> Dict[str, float]:
        """Label → probability. Raises ``RuntimeError`` before any training."""
        if not self.trained:
            raise RuntimeError("classifier has not been trained")
        features = self._vectorizer.transform([text])
        with self._lock:
            probabilities = self._model.predict_proba(features)[0]
            classes = list(self._model.classes_)
        return {str(label): float(p) for label, p in zip(classes, probabilities)}

    def predict(self, text: str) -> str:
        probabilities = self.predict_proba(text)
        return max(LABELS, key=lambda label: probabilities.get(label, 0.0))

    def serialize(self) -> bytes:
        with self._lock:
            model_data: Dict[str, Any] = {
                "format": FORMAT_VERSION,
                "alpha": self.alpha,
                "n_features": self.n_features,
                "samples": self._samples,
                "model": self._model,
            }
            buffer = io.BytesIO()
            joblib.dump(model_data, buffer)
        return buffer.getvalue()

    @classmethod
    def deserialize(cls, data: bytes) -> NaiveBayesClassifier:
        """Rebuild from ``serialize()`` output. Raises ``ValueError`` on bad data."""
        try:
            model_data = joblib.load(io.BytesIO(data))
        except Exception as e:
            raise ValueError(f"unreadable classifier data: {e}") from e

        if not isinstance(model_data, dict) or model_data.get("format") != FORMAT_VERSION:
            raise ValueError("unsupported classifier format")
        model = model_data.get("model")
        if not isinstance(model, MultinomialNB):
            raise ValueError("classifier data holds no Naive Bayes model")
        if set(getattr(model, "classes_", ())) != set(LABELS):
            raise ValueError("classifier was trained on unexpected labels")

        instance = cls(alpha=model_data["alpha"], n_features=model_data["n_features"])
        instance._model = model
        instance._samples = int(model_data.get("samples", 0))
        return instance
