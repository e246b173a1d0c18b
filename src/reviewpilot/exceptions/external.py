"""External analysis tool and plugin exceptions.

These are raised by transports and plugin wrappers and consumed by the
client state machine and the plugin sandbox. None of them escape
``ExternalAnalysisClient.ask`` or ``run_plugin``.
"""

from pathlib import Path
from typing import Optional

from .base import ReviewPilotError


class ExternalToolError(ReviewPilotError):
    """Base class for external analysis tool failures."""

    def __init__(self, command: str, reason: str):
        super().__init__(
            f"External tool '{command}' failed",
            details={"command": command, "reason": reason},
        )
        self.command = command
        self.reason = reason


class ExternalToolNotFoundError(ExternalToolError):
    """The external binary is not installed. Permanent for the run."""

    pass


class ExternalToolTimeoutError(ExternalToolError):
    """The external call exceeded its timeout. Transient."""

    def __init__(self, command: str, timeout: float):
        super().__init__(command, f"timed out after {timeout:g}s")
        self.timeout = timeout


class ExternalToolFailedError(ExternalToolError):
    """The external call exited abnormally. Transient."""

    def __init__(self, command: str, reason: str, returncode: Optional[int] = None):
        super().__init__(command, reason)
        self.returncode = returncode


class PluginError(ReviewPilotError):
    """Base class for plugin errors."""

    pass


class PluginLoadError(PluginError):
    """Raised when a rule file cannot be turned into a plugin."""

    def __init__(self, filepath: Path, reason: str):
        super().__init__(
            f"Cannot load plugin: {filepath.name}",
            details={"filepath": str(filepath), "reason": reason},
        )
        self.filepath = filepath
        self.reason = reason


class PluginExecutionError(PluginError):
    """Raised when a plugin misbehaves while analyzing a file."""

    def __init__(self, plugin_name: str, filepath: str, reason: str):
        super().__init__(
            f"Plugin '{plugin_name}' failed on {filepath}",
            details={"plugin": plugin_name, "filepath": filepath, "reason": reason},
        )
        self.plugin_name = plugin_name
        self.filepath = filepath
        self.reason = reason


class PluginTimeoutError(PluginExecutionError):
    """Raised when a plugin does not return within its timeout."""

    def __init__(self, plugin_name: str, filepath: str, timeout: float):
        super().__init__(plugin_name, filepath, f"exceeded {timeout:g}s timeout")
        self.timeout = timeout
