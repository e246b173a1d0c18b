"""Client for the external natural-language analysis tool."""

from .client import (
    CircuitBreaker,
    ClientStats,
    ExternalAnalysisClient,
    RetryPolicy,
    SessionCache,
)
from .review import build_review_prompt, parse_review_response
from .transport import SubprocessTransport, Transport

__all__ = [
    "CircuitBreaker",
    "ClientStats",
    "ExternalAnalysisClient",
    "RetryPolicy",
    "SessionCache",
    "SubprocessTransport",
    "Transport",
    "build_review_prompt",
    "parse_review_response",
]
