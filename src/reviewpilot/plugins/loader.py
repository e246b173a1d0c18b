"""Discovery, validation and error isolation for rule plugins.

Rule files are untrusted. Nothing a rule file does at import time or inside
``analyze`` may propagate out of this module: a broken file is skipped when
loading, a broken ``analyze`` call yields no findings for that file.

Isolation is at the error level only. A rule that blocks past its timeout is
abandoned on a daemon worker thread; it is not killed,
but it does not keep the process alive and the pipeline stops calling it.
"""

import importlib.util
import inspect
import sys
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Set, Union

from ..exceptions import PluginExecutionError, PluginLoadError, PluginTimeoutError
from ..logging_config import get_logger
from ..models import Finding, FindingSource, Severity

logger = get_logger(__name__)

DEFAULT_PLUGIN_TIMEOUT = 10.0

_MODULE_PREFIX = "reviewpilot_rules"


@dataclass
class LoadedPlugin:
    """A validated rule together with where it came from."""

    name: str
    severity: Severity
    impl: Any
    path: Optional[Path] = None
    description: str = ""

    def analyze(self, path: str, content: str) -> Any:
        return self.impl.analyze(path, content)


def validate_plugin(candidate: Any) -> bool:
    """A plugin needs a non-empty string ``name`` and a callable ``analyze``."""
    if candidate is None:
        return False
    name = getattr(candidate, "name", None)
    if not isinstance(name, str) or not name.strip():
        return False
    return callable(getattr(candidate, "analyze", None))


def _import_rule_file(filepath: Path) -> Any:
    module_name = f"{_MODULE_PREFIX}.{filepath.stem}"
    spec = importlib.util.spec_from_file_location(module_name, filepath)
    if spec is None or spec.loader is None:
        raise PluginLoadError(filepath, "not an importable Python file")

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        sys.modules.pop(module_name, None)
        raise PluginLoadError(filepath, f"{type(e).__name__}: {e}") from e
    return module


def _instantiate(filepath: Path, module: Any) -> Any:
    """Resolve the plugin object a module exports."""
    for attr in ("PLUGIN", "Plugin"):
        if not hasattr(module, attr):
            continue
        exported = getattr(module, attr)
        if inspect.isclass(exported):
            try:
                return exported()
            except Exception as e:
                raise PluginLoadError(filepath, f"constructor failed: {e}") from e
        return exported

    if hasattr(module, "name") and hasattr(module, "analyze"):
        return module

    raise PluginLoadError(filepath, "exports neither PLUGIN, Plugin nor name/analyze")


def load_plugin(filepath: Path) -> LoadedPlugin:
    """Load one rule file. Raises ``PluginLoadError`` when it is unusable."""
    module = _import_rule_file(filepath)
    candidate = _instantiate(filepath, module)
    if not validate_plugin(candidate):
        raise PluginLoadError(filepath, "plugin needs a non-empty name and a callable analyze()")

    return LoadedPlugin(
        name=candidate.name.strip(),
        severity=Severity.parse(getattr(candidate, "severity", None), Severity.WARNING),
        impl=candidate,
        path=filepath,
        description=str(getattr(candidate, "description", "") or ""),
    )


def load_plugins(directory: Union[str, Path]) -> List[LoadedPlugin]:
    """Load every ``*.py`` rule in ``directory``, sorted by file name.

    Files starting with ``_`` are ignored. Invalid files are skipped with a
    warning; a missing directory yields no plugins. When two files declare
    the same name the first one wins.
    """
    plugin_dir = Path(directory)
    if not plugin_dir.is_dir():
        logger.debug("Plugin directory %s not found", plugin_dir)
        return []

    try:
        files = sorted(p for p in plugin_dir.glob("*.py") if not p.name.startswith("_"))
    except OSError as e:
        logger.warning("Unable to read plugin directory %s: %s", plugin_dir, e)
        return []

    plugins: List[LoadedPlugin] = []
    seen = set()
    for filepath in files:
        try:
            plugin = load_plugin(filepath)
        except PluginLoadError as e:
            logger.warning("Skipping plugin %s: %s", filepath.name, e.reason)
            continue

        if plugin.name in seen:
            logger.warning("Skipping plugin %s: duplicate name %r", filepath.name, plugin.name)
            continue
        seen.add(plugin.name)
        plugins.append(plugin)
        logger.debug("Loaded plugin %s from %s", plugin.name, filepath.name)

    return plugins


def _field(item: Any, key: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(key)
    return getattr(item, key, None)


def _to_finding(name: str, default: Severity, path: str, item: Any, first_line: int) -> Finding:
    message = _field(item, "message")
    if not isinstance(message, str) or not message.strip():
        raise PluginExecutionError(name, path, f"finding without a message: {item!r}")

    line = _field(item, "line")
    context = _field(item, "context")
    if isinstance(line, bool) or (line is not None and not isinstance(line, int)):
        raise PluginExecutionError(name, path, f"line must be an integer, got {line!r}")

    return Finding(
        file=path,
        line=first_line + line - 1 if line else None,
        severity=Severity.parse(_field(item, "severity"), default),
        message=f"[{name}] {message.strip()}",
        source=FindingSource.PLUGIN,
        context=context if isinstance(context, str) else None,
    )


def _call_with_timeout(plugin: Any, name: str, path: str, content: str, timeout: float) -> Any:
    """Run ``plugin.analyze`` on a daemon thread and wait up to ``timeout``.

    A plugin that overruns is abandoned; being a daemon thread it never
    holds up interpreter exit.
    """
    outcome: Dict[str, Any] = {}

    def target() -> None:
        try:
            outcome["result"] = plugin.analyze(path, content)
        except Exception as e:
            outcome["error"] = e

    worker = threading.Thread(target=target, name=f"reviewpilot-plugin-{name}", daemon=True)
    worker.start()
    worker.join(timeout)
    if worker.is_alive():
        raise PluginTimeoutError(name, path, timeout)
    if "error" in outcome:
        raise outcome["error"]
    return outcome.get("result")


def run_plugin(
    plugin: Any,
    path: str,
    content: str,
    timeout: float = DEFAULT_PLUGIN_TIMEOUT,
    first_line: int = 1,
    timed_out: Optional[Set[str]] = None,
) -> List[Finding]:
    """Run one plugin on one file with error isolation.

    ``first_line`` is the file line that line 1 of ``content`` corresponds
    to. Any exception, timeout, non-list result or malformed item gives an
    empty list and a warning. On timeout the plugin name is added to
    ``timed_out`` so the caller can stop scheduling it.
    """
    name = getattr(plugin, "name", "<unnamed>")
    default = Severity.parse(getattr(plugin, "severity", None), Severity.WARNING) or Severity.WARNING

    try:
        results = _call_with_timeout(plugin, name, path, content, timeout)
        if not isinstance(results, (list, tuple)):
            raise PluginExecutionError(
                name, path, f"analyze() returned {type(results).__name__}, expected a list"
            )
        return [_to_finding(name, default, path, item, first_line) for item in results]
    except PluginTimeoutError as e:
        logger.warning("Plugin %r on %s: %s; skipping it for the rest of the run", name, path, e.reason)
        if timed_out is not None:
            timed_out.add(name)
    except PluginExecutionError as e:
        logger.warning("Plugin %r on %s: %s", name, path, e.reason)
    except Exception as e:
        logger.warning("Plugin %r error on %s: %s: %s", name, path, type(e).__name__, e)
    return []
