"""Retrieve the change set from git via subprocess."""

import subprocess
from pathlib import Path
from typing import Callable, List, Optional

from ..exceptions import ReviewPilotError
from ..logging_config import get_logger

logger = get_logger(__name__)

GIT_TIMEOUT_SECONDS = 30

# argv -> completed process; replaced in tests
Runner = Callable[[List[str]], "subprocess.CompletedProcess[str]"]


class GitError(ReviewPilotError):
    """A git command could not be run or exited non-zero."""

    def __init__(self, args: List[str], reason: str):
        super().__init__(f"git {' '.join(args)} failed", details={"reason": reason})
        self.command = args
        self.reason = reason


class GitRepository:
    """Thin wrapper over the git CLI for one working tree."""

    def __init__(self, repo_path: str = ".", runner: Optional[Runner] = None):
        self.repo_path = str(Path(repo_path).resolve())
        self._runner = runner or self._default_runner

    def _default_runner(self, argv: List[str]) -> "subprocess.CompletedProcess[str]":
        return subprocess.run(
            argv,
            capture_output=True,
            text=True,
            timeout=GIT_TIMEOUT_SECONDS,
        )

    def _git(self, *args: str) -> str:
        argv = ["git", "-C", self.repo_path, *args]
        try:
            result = self._runner(argv)
        except (FileNotFoundError, subprocess.TimeoutExpired) as e:
            raise GitError(list(args), str(e)) from e
        if result.returncode != 0:
            raise GitError(list(args), (result.stderr or "").strip() or f"exit {result.returncode}")
        return result.stdout

    def is_repository(self) -> bool:
        try:
            self._git("rev-parse", "--git-dir")
        except GitError:
            return False
        return True

    def root(self) -> Path:
        return Path(self._git("rev-parse", "--show-toplevel").strip())

    def current_branch(self) -> str:
        return self._git("rev-parse", "--abbrev-ref", "HEAD").strip()

    def merge_base(self, base_branch: str) -> str:
        return self._git("merge-base", base_branch, "HEAD").strip()

    def branch_diff(self, base_branch: str) -> str:
        """Diff of HEAD against its merge base with ``base_branch``."""
        return self._git("diff", "--no-color", self.merge_base(base_branch), "HEAD")

    def uncommitted_diff(self) -> str:
        """Staged and unstaged changes against HEAD."""
        return self._git("diff", "--no-color", "HEAD")

    def get_diff(self, base_branch: str = "main") -> str:
        """Branch diff, or the uncommitted changes when it is unavailable or empty."""
        try:
            diff = self.branch_diff(base_branch)
        except GitError as e:
            logger.info("No diff against %s (%s); using uncommitted changes", base_branch, e.reason)
            return self.uncommitted_diff()

        if diff.strip():
            return diff
        logger.info("No commits ahead of %s; using uncommitted changes", base_branch)
        return self.uncommitted_diff()
