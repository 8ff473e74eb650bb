"""Plugin system for logpilot.

Plugins contribute container runtime clients. Built on pluggy.

Usage:
    from logpilot.plugin import get_plugin_manager

    pm = get_plugin_manager()
    runtimes = pm.hook.logpilot_container_runtime()
"""

from __future__ import annotations

import importlib

import pluggy

from logpilot.logger import logger
from logpilot.plugin.hookspecs import LogPilotSpec

__all__ = [
    "get_plugin_manager",
]

# Static registry of built-in plugins: (module_path, class_name, name)
_BUILTIN_PLUGIN_SPECS: list[tuple[str, str, str]] = [
    ("logpilot.runtime.plugins.docker_runtime", "DockerRuntimePlugin", "docker-runtime"),
]


def get_plugin_manager() -> pluggy.PluginManager:
    """Create and configure the plugin manager.

    Discovers plugins from the static registry and the "logpilot" entry
    point group.
    """
    pm = pluggy.PluginManager("logpilot")
    pm.add_hookspecs(LogPilotSpec)

    for module_path, class_name, name in _BUILTIN_PLUGIN_SPECS:
        try:
            mod = importlib.import_module(module_path)
            cls = getattr(mod, class_name)
            pm.register(cls(), name=f"builtin-{name}")
            logger.debug("Registered built-in plugin", name=name)
        except ImportError:
            logger.debug("Plugin skipped (optional dependency missing)", plugin=name)

    discovered = pm.load_setuptools_entrypoints("logpilot")
    if discovered:
        logger.info("Discovered third-party plugins", count=discovered)

    # Entry points sometimes resolve to the class rather than an instance
    for plugin in list(pm.get_plugins()):
        if isinstance(plugin, type):
            plugin_name = pm.get_name(plugin) or plugin.__name__
            pm.unregister(plugin=plugin)
            logger.warning("Unregistered invalid class-based plugin object", plugin=plugin_name)

    return pm
