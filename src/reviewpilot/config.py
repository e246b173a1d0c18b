"""Configuration loading and management for ReviewPilot.

Configuration sources are merged in priority order (lowest to highest):
    1. Defaults (defined in ReviewConfig)
    2. Global config (~/.reviewpilot.toml)
    3. Project config (./.reviewpilot.toml)
    4. Explicit config file
    5. Environment variables (REVIEWPILOT_* prefix)
    6. CLI overrides (passed as kwargs)

Example:
    >>> config = load_config(enable_external=False, retry_attempts=1)
    >>> config.enable_external
    False
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Optional, get_type_hints

from .exceptions import ConfigurationError, InvalidConfigError

Verbosity = Literal["quiet", "normal", "verbose"]

ENV_PREFIX = "REVIEWPILOT_"
CONFIG_FILENAME = ".reviewpilot.toml"


@dataclass(frozen=True)
class ReviewConfig:
    """Settings for a review run.

    Attributes:
        Diff selection:
            base_branch: Branch the change set is compared against
            exclude_patterns: Files matching these patterns are never analyzed
            max_file_size_kb: Files whose diff is larger than this are skipped

        External analysis tool:
            external_command: Binary invoked as ``<command> -p <prompt>``
            external_timeout_seconds: Default per-attempt timeout
            review_timeout_seconds: Per-attempt timeout for hunk reviews
            retry_attempts: Retries after the first attempt
            retry_base_delay_seconds: First backoff delay, doubled per retry
            retry_multiplier: Backoff growth factor
            batch_concurrency: Maximum in-flight external calls
            breaker_threshold: Consecutive failed calls before giving up for the run
            enable_external: Disable to run local layers only

        Plugins:
            plugin_dir: Directory rule files are loaded from
            plugin_timeout_seconds: Per-call limit for a rule's analyze()

        False-positive filter:
            enable_ml_filter: Drop findings the classifier predicts as noise
            classifier_path: Persisted classifier location

        Analysis thresholds:
            dedup_prefix_length: Message characters that take part in dedup
            min_lines_for_review: Added lines needed for syntax and external layers
            max_prompt_chars: Code characters sent per review prompt
            max_function_lines: Function length warning threshold
            max_cyclomatic_complexity: Complexity warning threshold per hunk

        Output control:
            verbosity: Logging verbosity level
    """

    # Diff selection
    base_branch: str = "main"
    exclude_patterns: list[str] = field(
        default_factory=lambda: [
            "*.lock",
            "package-lock.json",
            "*.min.js",
            "*.min.css",
            "*.map",
            "node_modules/**",
            "dist/**",
            "build/**",
            "vendor/**",
        ]
    )
    max_file_size_kb: int = 500

    # External analysis tool
    external_command: str = "copilot"
    external_timeout_seconds: float = 30.0
    review_timeout_seconds: float = 20.0
    retry_attempts: int = 3
    retry_base_delay_seconds: float = 1.0
    retry_multiplier: float = 2.0
    batch_concurrency: int = 3
    breaker_threshold: int = 3
    enable_external: bool = True

    # Plugins
    plugin_dir: str = ".reviewpilot-rules"
    plugin_timeout_seconds: float = 10.0

    # False-positive filter
    enable_ml_filter: bool = True
    classifier_path: str = "~/.reviewpilot/classifier.joblib"

    # Analysis thresholds
    dedup_prefix_length: int = 50
    min_lines_for_review: int = 3
    max_prompt_chars: int = 2000
    max_function_lines: int = 50
    max_cyclomatic_complexity: int = 10

    # Output control
    verbosity: Verbosity = "normal"

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.base_branch.strip():
            raise ValueError("base_branch must not be empty")
        if not self.external_command.strip():
            raise ValueError("external_command must not be empty")

        for name in ("external_timeout_seconds", "review_timeout_seconds", "plugin_timeout_seconds"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")

        if self.retry_attempts < 0:
            raise ValueError("retry_attempts must be non-negative")
        if self.retry_base_delay_seconds < 0:
            raise ValueError("retry_base_delay_seconds must be non-negative")
        if self.retry_multiplier < 1:
            raise ValueError("retry_multiplier must be at least 1")

        for name in (
            "batch_concurrency",
            "breaker_threshold",
            "max_file_size_kb",
            "dedup_prefix_length",
            "min_lines_for_review",
            "max_prompt_chars",
            "max_function_lines",
            "max_cyclomatic_complexity",
        ):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be at least 1")

        if self.verbosity not in ("quiet", "normal", "verbose"):
            raise ValueError("verbosity must be one of quiet, normal, verbose")

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_kb * 1024

    @property
    def classifier_file(self) -> Path:
        return Path(self.classifier_path).expanduser()

    def plugin_path(self, repo_root: Optional[Path] = None) -> Path:
        """Plugin directory, resolved against ``repo_root`` when relative."""
        path = Path(self.plugin_dir).expanduser()
        if path.is_absolute() or repo_root is None:
            return path
        return repo_root / path


def load_config(config_file: Optional[Path] = None, **overrides: Any) -> ReviewConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from CLI flags). ``None``
            values are ignored so unset CLI options do not mask file values.

    Returns:
        Validated ReviewConfig instance

    Raises:
        ConfigurationError: If a config file is missing or invalid
        InvalidConfigError: If a value fails validation
    """
    merged: dict[str, Any] = {}

    global_config = Path.home() / CONFIG_FILENAME
    if global_config.exists():
        merged.update(_load_toml_file(global_config))

    project_config = Path.cwd() / CONFIG_FILENAME
    if project_config.exists() and project_config != global_config:
        merged.update(_load_toml_file(project_config))

    if config_file is not None:
        if not config_file.exists():
            raise ConfigurationError(f"Config file not found: {config_file}")
        merged.update(_load_toml_file(config_file))

    merged.update(_load_env_vars())

    if overrides.pop("verbose", False):
        overrides["verbosity"] = "verbose"
    if overrides.pop("quiet", False):
        overrides["verbosity"] = "quiet"

    merged.update({k: v for k, v in overrides.items() if v is not None})

    unknown = sorted(set(merged) - set(ReviewConfig.__dataclass_fields__))
    if unknown:
        raise InvalidConfigError(unknown[0], merged[unknown[0]], "unknown setting")

    try:
        return ReviewConfig(**merged)
    except (TypeError, ValueError, AttributeError) as e:
        raise ConfigurationError(f"Invalid configuration: {e}")


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from REVIEWPILOT_* environment variables.

    Every scalar field is supported, e.g. ``REVIEWPILOT_RETRY_ATTEMPTS=1``
    or ``REVIEWPILOT_ENABLE_EXTERNAL=false``. List fields are file-only.
    """
    type_hints = get_type_hints(ReviewConfig)
    result: dict[str, Any] = {}

    for field_name in ReviewConfig.__dataclass_fields__:
        env_key = f"{ENV_PREFIX}{field_name.upper()}"
        env_value = os.environ.get(env_key)
        if env_value is None:
            continue

        type_hint = type_hints.get(field_name)
        if type_hint is None:
            continue

        try:
            parsed = _parse_env_value(env_value, type_hint)
        except ValueError as e:
            raise InvalidConfigError(env_key, env_value, str(e))
        if parsed is not None:
            result[field_name] = parsed

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse an environment variable string to the field's type.

    Returns None for types that cannot come from the environment.

    Raises:
        ValueError: If value can't be parsed to expected type
    """
    origin = getattr(type_hint, "__origin__", None)

    if origin is list or type_hint is list:
        return None

    if type_hint is bool:
        lower = value.strip().lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        if lower in ("false", "0", "no", "off"):
            return False
        raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    if type_hint is float:
        return float(value)

    if type_hint is str or origin is Literal:
        return value

    return None


def _load_toml_file(path: Path) -> dict[str, Any]:
    """Load a TOML config file.

    Settings may sit at the top level or under a ``[reviewpilot]`` table.
    """
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigurationError(f"Invalid config file '{path}': {e}")

    section = data.get("reviewpilot")
    if isinstance(section, dict):
        return section
    return data
