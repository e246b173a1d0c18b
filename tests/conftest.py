"""Shared test fixtures for ReviewPilot tests."""

import threading
from typing import Callable, List, Optional, Sequence

import pytest

from reviewpilot.exceptions import ExternalToolFailedError
from reviewpilot.models import (
    ChangeType,
    FileChange,
    Hunk,
    LineChange,
    LineKind,
)


def pytest_addoption(parser):
    """Add --run-slow option for slow tests."""
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="run slow tests",
    )


def pytest_configure(config):
    """Configure slow marker."""
    config.addinivalue_line("markers", "slow: mark test as slow to run")


def pytest_collection_modifyitems(config, items):
    """Skip slow tests unless --run-slow is given."""
    if config.getoption("--run-slow"):
        return
    skip_slow = pytest.mark.skip(reason="need --run-slow option to run")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


def make_hunk(lines: Sequence[str], new_start: int = 1, context: Sequence[str] = ()) -> Hunk:
    """Hunk of leading context lines followed by added lines."""
    changes: List[LineChange] = []
    number = new_start
    for text in context:
        changes.append(LineChange(LineKind.CONTEXT, text, number))
        number += 1
    for text in lines:
        changes.append(LineChange(LineKind.ADD, text, number))
        number += 1
    content = "\n".join(c.content for c in changes)
    return Hunk(new_start=new_start, content=content, changes=tuple(changes), old_start=new_start)


def make_file(
    path: str,
    lines: Sequence[str],
    new_start: int = 1,
    change_type: ChangeType = ChangeType.MODIFIED,
) -> FileChange:
    return FileChange(path=path, change_type=change_type, hunks=(make_hunk(lines, new_start),))


class FakeTransport:
    """Scripted stand-in for the external tool.

    ``responses`` are consumed in order; an exception instance is raised
    instead of returned. Once exhausted, ``default`` is used.
    """

    def __init__(self, responses: Optional[list] = None, default="ok"):
        self.responses = list(responses or [])
        self.default = default
        self.calls: List[str] = []
        self._lock = threading.Lock()

    def __call__(self, prompt: str, timeout: float) -> str:
        with self._lock:
            self.calls.append(prompt)
            result = self.responses.pop(0) if self.responses else self.default
        if isinstance(result, BaseException):
            raise result
        return result


def failing(reason: str = "boom") -> ExternalToolFailedError:
    return ExternalToolFailedError("copilot", reason, returncode=1)


@pytest.fixture
def fake_transport() -> Callable[..., FakeTransport]:
    """Factory for scripted transports."""
    return FakeTransport


@pytest.fixture
def no_sleep():
    """Records backoff delays instead of sleeping."""
    delays: List[float] = []

    def sleep(seconds: float) -> None:
        delays.append(seconds)

    sleep.delays = delays
    return sleep


@pytest.fixture
def js_file():
    """A small JavaScript change with three added lines."""
    return make_file(
        "src/app.js",
        [
            "function load() {",
            "  return fetch('/api');",
            "}",
        ],
        new_start=10,
    )
