"""
Protocol connectors for the supported backend types.
"""
from typing import Dict

from .base import BaseProtocolConnector
from .local_connector import LocalConnector
from .mqtt_connector import MqttConnector
from .rest_connector import RestConnector
from .soap_connector import SoapConnector
from ..config import TranslatorSettings
from ..mqtt_client import MeasurementCache


def create_protocols(settings: TranslatorSettings, cache: MeasurementCache) -> Dict[str, BaseProtocolConnector]:
    """The closed set of connectors, keyed by template ``protocol``."""
    connectors = [
        LocalConnector(),
        RestConnector(timeout=settings.request_timeout),
        SoapConnector(wsdl_dir=settings.wsdl_dir, timeout=settings.request_timeout),
        MqttConnector(cache),
    ]
    return {connector.protocol: connector for connector in connectors}


__all__ = [
    'BaseProtocolConnector',
    'LocalConnector',
    'MqttConnector',
    'RestConnector',
    'SoapConnector',
    'create_protocols',
]
