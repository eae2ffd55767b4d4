"""
Health and monitoring API endpoints.
"""
import logging
from fastapi import APIRouter
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from fastapi.responses import Response

from ..dependencies import ConnectorDep, PluginRegistryDep, StoreDep, SubscribersDep
from ..models import HealthStatus
from ... import __version__

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/translator/v1/health", response_model=HealthStatus)
async def get_health_status(
    store: StoreDep,
    registry: PluginRegistryDep,
    connector: ConnectorDep,
    subscribers: SubscribersDep,
):
    """Health check endpoint to monitor translator status."""
    mqtt = {
        product_code: "error" if subscriber.last_connection_error else "running"
        for product_code, subscriber in subscribers.items()
    }
    return {
        "status": "healthy" if store.ready else "starting",
        "components": {
            "store": "ready" if store.ready else "loading",
            "configs": sum(1 for _ in store.iter_configs()),
            "plugins": [plugin.name for plugin in registry.list_plugins()],
            "protocols": sorted(connector.protocols),
            "mqtt": mqtt,
        },
        "version": __version__,
    }


@router.get("/metrics")
async def get_metrics():
    """Prometheus metrics endpoint."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
