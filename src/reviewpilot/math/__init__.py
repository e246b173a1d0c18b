"""Mathematical primitives."""

from .entropy import Entropy, calculate_entropy

__all__ = ["Entropy", "calculate_entropy"]
