"""
FastAPI application with dependency injection for the translator service.
"""
import asyncio
import logging
import os
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .api.dependencies import (
    get_connector,
    get_measurement_cache,
    get_plugin_registry,
    get_settings,
    get_signer,
    get_store,
    get_subscribers,
)
from .api.routers import health, translator
from .errors import TranslatorError
from .logging_config import setup_logging
from .metrics import init_metrics
from .middleware import RequestIdMiddleware
from .mqtt_client import MeasurementCache, MQTTSubscriber
from .store import ConfigStore

# Configure structured logging once
setup_logging(service_name="translator", log_file=get_settings().log_file)

logger = logging.getLogger(__name__)

MQTT_PROTOCOL = "mqtt"


def start_subscribers(store: ConfigStore, cache: MeasurementCache) -> dict:
    """Start a background subscription for every data product served over MQTT."""
    subscribers = {}
    for product_code, config in store.iter_configs():
        template = store.get_template(config.template) if config.template else None
        if not template or template.get("protocol") != MQTT_PROTOCOL:
            continue
        if not config.static.get("url") or not config.static.get("topic"):
            logger.warning(f"⚠️ {product_code}: MQTT config lacks url or topic, not subscribing")
            continue
        subscriber = MQTTSubscriber.from_static(product_code, dict(config.static), cache)
        try:
            subscriber.start()
        except (OSError, ValueError) as e:
            logger.error(f"❌ {product_code}: failed to start MQTT subscriber: {e}")
            continue
        subscribers[product_code] = subscriber
    return subscribers


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager for startup and shutdown events.
    """
    # Startup
    logger.info("Starting translator...")

    try:
        settings = get_settings()
        registry = get_plugin_registry(settings)
        store = get_store()
        cache = get_measurement_cache()

        await asyncio.to_thread(store.load, settings.config_dir, settings.template_dir)
        await asyncio.to_thread(get_signer, settings)
        get_connector(settings, store, registry, cache)
        init_metrics(__version__)

        get_subscribers().update(start_subscribers(store, cache))
        logger.info("🚀 Translator started successfully")

    except Exception as e:
        logger.error(f"❌ Failed to initialize dependencies: {e}")
        raise

    yield

    # Shutdown
    logger.info("🛑 Shutting down translator...")
    subscribers = get_subscribers()
    for product_code, subscriber in list(subscribers.items()):
        subscriber.stop()
        logger.info(f"✅ MQTT subscriber {product_code} stopped")
    subscribers.clear()
    logger.info("🎯 Shutdown completed.")


async def translator_error_handler(request: Request, exc: TranslatorError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"❌ {request.url.path}: {exc.status_code} {exc.message}")
    else:
        logger.info(f"ℹ️ {request.url.path}: {exc.status_code} {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"❌ Unhandled error on {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content=TranslatorError().to_dict())


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """
    app = FastAPI(
        title="Translator",
        description="Data product translator between the broker API and backend systems",
        version=__version__,
        lifespan=lifespan
    )
    app.add_middleware(RequestIdMiddleware)

    # Enable CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(TranslatorError, translator_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # Include routers
    app.include_router(translator.router)
    app.include_router(health.router)

    return app


# Create the FastAPI app
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "8080")))
