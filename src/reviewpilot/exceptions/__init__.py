"""Exception hierarchy for ReviewPilot."""

from .analysis import (
    AnalysisError,
    InvalidInputError,
    ParsingError,
    PersistenceError,
)
from .base import ReviewPilotError
from .config import (
    ConfigurationError,
    InvalidConfigError,
    InvalidPathError,
)
from .external import (
    ExternalToolError,
    ExternalToolFailedError,
    ExternalToolNotFoundError,
    ExternalToolTimeoutError,
    PluginError,
    PluginExecutionError,
    PluginLoadError,
    PluginTimeoutError,
)

__all__ = [
    "ReviewPilotError",
    "AnalysisError",
    "InvalidInputError",
    "ParsingError",
    "PersistenceError",
    "ConfigurationError",
    "InvalidPathError",
    "InvalidConfigError",
    "ExternalToolError",
    "ExternalToolNotFoundError",
    "ExternalToolTimeoutError",
    "ExternalToolFailedError",
    "PluginError",
    "PluginLoadError",
    "PluginExecutionError",
    "PluginTimeoutError",
]
