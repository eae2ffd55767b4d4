"""
Prometheus metrics for the translator service.
Provides request, upstream and cache metrics labeled for per-product dashboards.
"""
import os
import logging
from prometheus_client import Counter, Histogram, Gauge, Info

logger = logging.getLogger(__name__)

# Get pod name from environment (set by Kubernetes)
POD_NAME = os.getenv("POD_NAME", os.getenv("HOSTNAME", "unknown"))

# ============================================================================
# REQUEST METRICS
# ============================================================================

FETCH_REQUESTS = Counter(
    "translator_fetch_requests_total",
    "Total number of fetch requests by outcome",
    ["pod", "product_code", "status"]
)

FETCH_LATENCY = Histogram(
    "translator_fetch_latency_seconds",
    "Time spent serving a fetch request end to end",
    ["pod", "protocol"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0]
)

ITEMS_RETURNED = Counter(
    "translator_items_returned_total",
    "Total number of canonical items returned",
    ["pod", "product_code"]
)

# ============================================================================
# UPSTREAM METRICS
# ============================================================================

UPSTREAM_REQUESTS = Counter(
    "translator_upstream_requests_total",
    "Total number of backend requests by protocol and outcome",
    ["pod", "protocol", "outcome"]  # outcome: ok, not_found, error, retry
)

# ============================================================================
# MQTT CACHE METRICS
# ============================================================================

MQTT_MESSAGES_CACHED = Counter(
    "translator_mqtt_messages_cached_total",
    "Total number of MQTT messages written to the measurement cache",
    ["pod", "product_code"]
)

MQTT_CACHED_TOPICS = Gauge(
    "translator_mqtt_cached_topics",
    "Number of topics currently held in the measurement cache",
    ["pod", "product_code"]
)


# Translator info metric
TRANSLATOR_INFO = Info(
    "translator",
    "Information about the translator instance"
)

# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def init_metrics(version: str):
    """Initialize metrics with pod information."""
    TRANSLATOR_INFO.info({
        "pod_name": POD_NAME,
        "version": version
    })
    logger.info(f"📊 Metrics initialized for pod: {POD_NAME}")


def record_fetch(product_code: str, status: int, items: int = 0):
    """Record a served fetch request and the items it returned."""
    FETCH_REQUESTS.labels(pod=POD_NAME, product_code=product_code, status=str(status)).inc()
    if items:
        ITEMS_RETURNED.labels(pod=POD_NAME, product_code=product_code).inc(items)


def observe_fetch_latency(protocol: str, seconds: float):
    """Record end-to-end fetch latency."""
    FETCH_LATENCY.labels(pod=POD_NAME, protocol=protocol).observe(seconds)


def record_upstream(protocol: str, outcome: str):
    """Record one backend request outcome."""
    UPSTREAM_REQUESTS.labels(pod=POD_NAME, protocol=protocol, outcome=outcome).inc()


def record_mqtt_message(product_code: str, topics: int):
    """Record a cached MQTT message and the cache size for its product."""
    MQTT_MESSAGES_CACHED.labels(pod=POD_NAME, product_code=product_code).inc()
    MQTT_CACHED_TOPICS.labels(pod=POD_NAME, product_code=product_code).set(topics)
