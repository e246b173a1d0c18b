"""Cheap, local detection layers: heuristics, secrets, env files."""

from .env_files import is_env_file, is_secret_entry, scan_env_lines
from .heuristics import (
    HEURISTIC_RULES,
    HeuristicRule,
    check_function_length,
    scan_heuristics,
    scan_secrets,
)
from .secrets import SecretMatch, detect_secret

__all__ = [
    "HEURISTIC_RULES",
    "HeuristicRule",
    "SecretMatch",
    "check_function_length",
    "detect_secret",
    "is_env_file",
    "is_secret_entry",
    "scan_env_lines",
    "scan_heuristics",
    "scan_secrets",
]
