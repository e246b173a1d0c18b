"""Shannon entropy of strings, used to tell random tokens from prose."""

import math
from collections import Counter
from collections.abc import Iterable


class Entropy:
    """Character entropy of candidate secret values."""

    @staticmethod
    def shannon(counts: Iterable[int]) -> float:
        """
        Entropy in bits of a frequency table, H = -Σ p log₂ p.

        Args:
            counts: Occurrence count of each symbol; zeros are ignored

        Returns:
            0.0 for an empty table or a single symbol
        """
        observed = [c for c in counts if c > 0]
        total = sum(observed)
        if total == 0:
            return 0.0
        return -sum((c / total) * math.log2(c / total) for c in observed)

    @staticmethod
    def of_text(text: str) -> float:
        """
        Bits per character of ``text``.

        Random tokens (keys, passwords) score high; words and repeated
        characters score low. For ASCII input the value lies in [0, 8].
        """
        if not text:
            return 0.0
        return Entropy.shannon(Counter(text).values())


def calculate_entropy(text: str) -> float:
    """Pure ``entropy(text) -> float`` used by the secret detectors."""
    return Entropy.of_text(text)
