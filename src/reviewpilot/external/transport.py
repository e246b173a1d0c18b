"""Subprocess transport for the external analysis tool.

A transport is any callable ``(prompt, timeout) -> str`` that either returns
the tool's raw stdout or raises one of the ``ExternalToolError`` subclasses.
The client's retry and breaker logic only ever sees those three failure
classes, so tests substitute a plain function for the subprocess.
"""

import subprocess
from typing import Callable, List, Optional

from ..exceptions import (
    ExternalToolFailedError,
    ExternalToolNotFoundError,
    ExternalToolTimeoutError,
)
from ..logging_config import get_logger

logger = get_logger(__name__)

Transport = Callable[[str, float], str]

# Exit statuses shells use for "command not found" / "not executable"
_NOT_FOUND_RETURNCODES = (126, 127)

_MAX_STDERR_CHARS = 200


class SubprocessTransport:
    """Runs ``<command> -p <prompt>`` and returns stdout.

    ``subprocess.run`` kills the child when the timeout expires, so a timed
    out call never leaves a process behind.
    """

    def __init__(self, command: str = "copilot", extra_args: Optional[List[str]] = None):
        self.command = command
        self.extra_args = list(extra_args or [])

    def _argv(self, *args: str) -> List[str]:
        return [self.command, *self.extra_args, *args]

    def __call__(self, prompt: str, timeout: float) -> str:
        return self._run(self._argv("-p", prompt), timeout)

    def version(self, timeout: float = 5.0) -> str:
        """Run ``<command> --version``. Raises like ``__call__``."""
        return self._run([self.command, "--version"], timeout)

    def _run(self, argv: List[str], timeout: float) -> str:
        try:
            result = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except FileNotFoundError as e:
            raise ExternalToolNotFoundError(self.command, str(e)) from e
        except PermissionError as e:
            raise ExternalToolNotFoundError(self.command, str(e)) from e
        except subprocess.TimeoutExpired as e:
            raise ExternalToolTimeoutError(self.command, timeout) from e
        except OSError as e:
            raise ExternalToolFailedError(self.command, str(e)) from e

        if result.returncode in _NOT_FOUND_RETURNCODES:
            raise ExternalToolNotFoundError(
                self.command, f"exit status {result.returncode}"
            )
        if result.returncode != 0:
            stderr = (result.stderr or "").strip()[:_MAX_STDERR_CHARS]
            raise ExternalToolFailedError(
                self.command,
                stderr or f"exit status {result.returncode}",
                returncode=result.returncode,
            )

        logger.debug("%s returned %d chars", self.command, len(result.stdout))
        return result.stdout
