"""
MQTT connector.
Serves the latest cached broker message instead of contacting a backend.
"""
from typing import Any, Dict, List, Optional

from .base import BaseProtocolConnector
from ..metrics import record_upstream
from ..mqtt_client import MeasurementCache
from ..response import handle_data
from ..utils.paths import get_path


class MqttConnector(BaseProtocolConnector):
    """Reads the per-product measurement cache filled by the background subscriber."""

    protocol = "mqtt"

    def __init__(self, cache: MeasurementCache):
        super().__init__()
        self.cache = cache

    def find_topic(self, template: Dict[str, Any], measurements: Dict[str, Any]) -> Optional[str]:
        needle = get_path(template, "generalConfig.hardwareId.dataObjectProperty")
        if not needle:
            return None
        return next((topic for topic in measurements if str(needle) in topic), None)

    async def get_data(self, template: Dict[str, Any], paths: List[Any]) -> List[Dict[str, Any]]:
        product_code = self.product_code(template)
        items: List[Dict[str, Any]] = []
        for path in paths:
            measurements = self.cache.get(product_code)
            topic = self.find_topic(template, measurements)
            if topic is None:
                record_upstream(self.protocol, "not_found")
                self.logger.info(f"ℹ️ {product_code}: no cached measurement for {path}")
                continue
            record_upstream(self.protocol, "ok")
            items.extend(await handle_data(template, path, measurements[topic]))
        return items
