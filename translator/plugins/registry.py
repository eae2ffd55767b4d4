"""
Plugin registry.
Holds named plugins in registration order and resolves template declarations.
"""
import importlib.util
import logging
import os
from types import MappingProxyType
from typing import Dict, Iterable, List, Optional

from ..errors import MisconfigurationError
from .base import Plugin

logger = logging.getLogger(__name__)


class PluginRegistry:
    """Registry of plugins keyed by name.

    Registration order is the order hooks run in, independent of the order a
    template declares plugin names.
    """

    def __init__(self, plugins: Iterable[Plugin] = ()):
        self._plugins: Dict[str, Plugin] = {}
        for plugin in plugins:
            self.register(plugin)

    def register(self, plugin: Plugin) -> None:
        if not getattr(plugin, "name", None):
            raise ValueError(f"Plugin {plugin!r} has no name")
        if plugin.name in self._plugins:
            logger.warning(f"⚠️ Plugin {plugin.name} registered twice, keeping the latest")
        self._plugins[plugin.name] = plugin
        logger.info(f"✅ Registered plugin: {plugin.name}")

    def get(self, name: str) -> Optional[Plugin]:
        return self._plugins.get(name)

    def list_plugins(self) -> List[Plugin]:
        return list(self._plugins.values())

    def snapshot(self) -> "MappingProxyType[str, Plugin]":
        return MappingProxyType(dict(self._plugins))

    def resolve(self, names: Iterable[str]) -> List[Plugin]:
        """Return the registered plugins for the declared names.

        Raises:
            MisconfigurationError: If any declared name is not registered
        """
        declared = list(dict.fromkeys(names or []))
        missing = [name for name in declared if name not in self._plugins]
        if missing:
            logger.error(f"❌ Missing required plugins: {', '.join(missing)}")
            raise MisconfigurationError("Missing required plugins.")
        return [p for p in self._plugins.values() if p.name in declared]

    def load_directory(self, plugin_dir: str) -> int:
        """Import every *.py module in plugin_dir and register its ``plugin``.

        Returns:
            Number of plugins registered
        """
        if not os.path.isdir(plugin_dir):
            logger.info(f"ℹ️ Plugin directory {plugin_dir} does not exist, skipping")
            return 0

        count = 0
        for filename in sorted(os.listdir(plugin_dir)):
            if not filename.endswith(".py") or filename.startswith("_"):
                continue
            path = os.path.join(plugin_dir, filename)
            module_name = f"translator_plugin_{filename[:-3].replace('-', '_')}"
            spec = importlib.util.spec_from_file_location(module_name, path)
            if spec is None or spec.loader is None:
                logger.error(f"❌ Could not load plugin module {path}")
                continue
            module = importlib.util.module_from_spec(spec)
            try:
                spec.loader.exec_module(module)
            except Exception as e:
                logger.exception(f"❌ Failed to load plugin module {path}: {e}")
                continue

            plugin = getattr(module, "plugin", None)
            if not isinstance(plugin, Plugin):
                logger.warning(f"⚠️ {path} does not expose a 'plugin' object, skipping")
                continue
            self.register(plugin)
            count += 1
        return count


def builtin_plugins() -> List[Plugin]:
    from .basic import BasicAuthPlugin
    from .iot_ticket import IotTicketPlugin
    from .schneider import SchneiderPlugin
    from .soap_basic import SoapBasicPlugin
    from .soap_ntlm import SoapNtlmPlugin

    return [
        BasicAuthPlugin(),
        IotTicketPlugin(),
        SchneiderPlugin(),
        SoapBasicPlugin(),
        SoapNtlmPlugin(),
    ]


def create_registry(plugin_dir: Optional[str] = None) -> PluginRegistry:
    """Registry with the built-in plugins plus any found in plugin_dir."""
    registry = PluginRegistry(builtin_plugins())
    if plugin_dir:
        registry.load_directory(plugin_dir)
    return registry
