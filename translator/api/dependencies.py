"""
Dependency injection for the translator FastAPI application.
"""
import logging
from fastapi import Depends
from typing import Annotated, Dict, Optional

from ..config import TranslatorSettings
from ..connector import Connector
from ..connectors import create_protocols
from ..mqtt_client import MeasurementCache, MQTTSubscriber
from ..plugins.registry import PluginRegistry, create_registry
from ..signing import Signer, load_signer
from ..store import ConfigStore

logger = logging.getLogger(__name__)

# Global singleton instances
_settings_instance: Optional[TranslatorSettings] = None
_store_instance: Optional[ConfigStore] = None
_registry_instance: Optional[PluginRegistry] = None
_cache_instance: Optional[MeasurementCache] = None
_connector_instance: Optional[Connector] = None
_signer_instance: Optional[Signer] = None
_subscribers: Dict[str, MQTTSubscriber] = {}


def get_settings() -> TranslatorSettings:
    """Get translator settings (singleton)."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = TranslatorSettings()
    return _settings_instance


def get_store() -> ConfigStore:
    """Get the config store (singleton). Empty and not ready until loaded."""
    global _store_instance
    if _store_instance is None:
        _store_instance = ConfigStore()
    return _store_instance


def get_plugin_registry(settings: Annotated[TranslatorSettings, Depends(get_settings)]) -> PluginRegistry:
    """Get the plugin registry (singleton)."""
    global _registry_instance
    if _registry_instance is None:
        _registry_instance = create_registry(settings.plugin_dir)
        names = ", ".join(p.name for p in _registry_instance.list_plugins())
        logger.info(f"🔌 Registered plugins: {names}")
    return _registry_instance


def get_measurement_cache() -> MeasurementCache:
    """Get the MQTT measurement cache (singleton)."""
    global _cache_instance
    if _cache_instance is None:
        _cache_instance = MeasurementCache()
    return _cache_instance


def get_connector(
    settings: Annotated[TranslatorSettings, Depends(get_settings)],
    store: Annotated[ConfigStore, Depends(get_store)],
    registry: Annotated[PluginRegistry, Depends(get_plugin_registry)],
    cache: Annotated[MeasurementCache, Depends(get_measurement_cache)],
) -> Connector:
    """Get the connector engine (singleton)."""
    global _connector_instance
    if _connector_instance is None:
        _connector_instance = Connector(store, registry, create_protocols(settings, cache))
    return _connector_instance


def get_signer(settings: Annotated[TranslatorSettings, Depends(get_settings)]) -> Signer:
    """Get the response signer (singleton)."""
    global _signer_instance
    if _signer_instance is None:
        _signer_instance = load_signer(settings)
    return _signer_instance


def get_subscribers() -> Dict[str, MQTTSubscriber]:
    """Running MQTT subscribers keyed by product code."""
    return _subscribers


# Type aliases for dependency injection
SettingsDep = Annotated[TranslatorSettings, Depends(get_settings)]
StoreDep = Annotated[ConfigStore, Depends(get_store)]
PluginRegistryDep = Annotated[PluginRegistry, Depends(get_plugin_registry)]
MeasurementCacheDep = Annotated[MeasurementCache, Depends(get_measurement_cache)]
ConnectorDep = Annotated[Connector, Depends(get_connector)]
SignerDep = Annotated[Signer, Depends(get_signer)]
SubscribersDep = Annotated[Dict[str, MQTTSubscriber], Depends(get_subscribers)]
