"""Rule plugins loaded from the plugin directory."""

from .base import LinterPlugin
from .loader import LoadedPlugin, load_plugin, load_plugins, run_plugin, validate_plugin

__all__ = [
    "LinterPlugin",
    "LoadedPlugin",
    "load_plugin",
    "load_plugins",
    "run_plugin",
    "validate_plugin",
]
