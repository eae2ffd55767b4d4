import json
import threading
import logging
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import paho.mqtt.client as mqtt

from .metrics import record_mqtt_message

logger = logging.getLogger(__name__)

DEFAULT_PORTS = {"mqtt": 1883, "tcp": 1883, "mqtts": 8883, "ssl": 8883}


class MeasurementCache:
    """Latest message per topic, per data product.

    Written from the paho network thread, read from request handlers.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._docs: Dict[str, Dict[str, Any]] = {}

    def put(self, product_code: str, topic: str, payload: Any) -> int:
        """Overwrite the entry for topic. Returns the number of cached topics."""
        with self._lock:
            doc = self._docs.setdefault(product_code, {})
            doc[topic] = payload
            return len(doc)

    def get(self, product_code: str) -> Dict[str, Any]:
        with self._lock:
            return dict(self._docs.get(product_code) or {})

    def clear(self, product_code: Optional[str] = None) -> None:
        with self._lock:
            if product_code is None:
                self._docs.clear()
            else:
                self._docs.pop(product_code, None)


class MQTTSubscriber:
    """Background subscription feeding the measurement cache for one data product."""

    def __init__(self, product_code: str, url: str, topic: str, cache: MeasurementCache,
                 key: Optional[str] = None, cert: Optional[str] = None, ca: Optional[str] = None):
        self.product_code = product_code
        self.url = url
        self.topic = topic
        self.cache = cache
        self.key = key
        self.cert = cert
        self.ca = ca
        self.client: Optional[mqtt.Client] = None
        self.last_connection_error: Optional[str] = None

        parsed = urlparse(url)
        self.scheme = parsed.scheme or "mqtt"
        self.broker = parsed.hostname or url
        self.port = parsed.port or DEFAULT_PORTS.get(self.scheme, 1883)

    @classmethod
    def from_static(cls, product_code: str, static: Dict[str, Any], cache: MeasurementCache) -> "MQTTSubscriber":
        return cls(
            product_code,
            url=static["url"],
            topic=static["topic"],
            cache=cache,
            key=static.get("key"),
            cert=static.get("cert"),
            ca=static.get("ca"),
        )

    def on_connect(self, client, userdata, flags, reason_code, properties=None):
        if reason_code.is_failure:
            self.last_connection_error = str(reason_code)
            logger.error(f"❌ {self.product_code}: MQTT connection failed: {reason_code}")
            return
        self.last_connection_error = None
        client.subscribe(self.topic)
        logger.info(f"📩 {self.product_code} subscribed to topic {self.topic}")

    def on_message(self, client, userdata, msg):
        try:
            payload = json.loads(msg.payload.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning(f"⚠️ {self.product_code}: dropped non-JSON message on {msg.topic}: {e}")
            return
        topics = self.cache.put(self.product_code, msg.topic, payload)
        record_mqtt_message(self.product_code, topics)
        logger.debug(f"🔍 {self.product_code}: cached message from topic {msg.topic}")

    def on_disconnect(self, client, userdata, flags, reason_code, properties=None):
        if reason_code.is_failure:
            logger.warning(f"⚠️ {self.product_code}: MQTT disconnected unexpectedly: {reason_code}")
        else:
            logger.info(f"📡 {self.product_code}: MQTT disconnected cleanly")

    def start(self):
        """Connect in the background; paho reconnects on its own."""
        self.client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2)
        self.client.on_connect = self.on_connect
        self.client.on_message = self.on_message
        self.client.on_disconnect = self.on_disconnect
        self.client.reconnect_delay_set(min_delay=1, max_delay=30)
        if self.scheme in ("mqtts", "ssl") or self.cert:
            self.client.tls_set(ca_certs=self.ca, certfile=self.cert, keyfile=self.key)

        logger.info(f"🔌 {self.product_code}: connecting to MQTT broker {self.broker}:{self.port}")
        self.client.connect_async(self.broker, self.port, 60)
        self.client.loop_start()

    def stop(self):
        if self.client:
            self.client.loop_stop()
            self.client.disconnect()
            self.client = None
