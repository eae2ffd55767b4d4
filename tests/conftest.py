"""
Shared fixtures for translator tests.
"""
from typing import Any, Dict, List

import pytest

from translator.config import TranslatorSettings
from translator.connector import Connector
from translator.connectors import create_protocols
from translator.connectors.base import BaseProtocolConnector
from translator.mqtt_client import MeasurementCache
from translator.plugins.registry import create_registry
from translator.signing import Signer
from translator.store import ConfigStore


LOCAL_TEMPLATE = {
    "protocol": "local",
    "plugins": [],
    "authConfig": {"url": "", "resourcePath": "${id}"},
    "generalConfig": {
        "hardwareId": {"dataObjectProperty": "id"},
        "timestamp": {"dataObjectProperty": "timestamp"},
        "query": {"properties": {"limit": {"limit": 1}}},
    },
    "dataObjects": [""],
    "dataPropertyMappings": {"value": "value"},
}

LOCAL_CONFIG = {
    "template": "local",
    "static": {},
    "dynamic": {"authConfig.resourcePath": "ids"},
}


class RecordingConnector(BaseProtocolConnector):
    """Captures the dispatched template and paths instead of fetching."""

    def __init__(self, protocol: str = "local", items: List[Dict[str, Any]] = None):
        super().__init__()
        self.protocol = protocol
        self.items = items or []
        self.calls = []

    async def get_data(self, template, paths):
        self.calls.append((template, paths))
        return list(self.items)


@pytest.fixture
def settings(tmp_path) -> TranslatorSettings:
    return TranslatorSettings(
        config_dir=str(tmp_path / "config"),
        template_dir=str(tmp_path / "templates"),
        plugin_dir=str(tmp_path / "plugins"),
        wsdl_dir=str(tmp_path / "wsdl"),
        request_timeout=5,
        domain="translator.test",
        private_key_path=None,
        public_key_path=None,
        log_file=None,
    )


@pytest.fixture
def store() -> ConfigStore:
    return ConfigStore(
        configs={"local-demo": dict(LOCAL_CONFIG)},
        templates={"local": LOCAL_TEMPLATE},
    )


@pytest.fixture
def registry():
    return create_registry()


@pytest.fixture
def connector(settings, store, registry) -> Connector:
    return Connector(store, registry, create_protocols(settings, MeasurementCache()))


@pytest.fixture(scope="session")
def signer() -> Signer:
    return Signer.generate("translator.test", key_size=2048)
