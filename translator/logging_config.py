import logging
import os
import sys
from logging.handlers import TimedRotatingFileHandler
from contextvars import ContextVar
from typing import Optional

_request_id_var: ContextVar[str] = ContextVar("request_id", default="-")
_product_code_var: ContextVar[str] = ContextVar("product_code", default="-")

# Libraries that log every connection at INFO
NOISY_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "urllib3", "aiohttp", "paho", "zeep")


class RequestContextFilter(logging.Filter):
    """Stamps records with the request id and the data product being served."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _request_id_var.get()
        record.product_code = _product_code_var.get()
        return True


def set_request_id(req_id: Optional[str]) -> None:
    _request_id_var.set(req_id or "-")


def get_request_id() -> str:
    return _request_id_var.get()


def set_product_code(product_code: Optional[str]) -> None:
    _product_code_var.set(product_code or "-")


def setup_logging(service_name: str, log_file: Optional[str] = None, level: Optional[str] = None) -> None:
    if getattr(setup_logging, "_configured", False):
        return

    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    root = logging.getLogger()
    root.setLevel(getattr(logging, level_name, logging.INFO))

    for h in list(root.handlers):
        root.removeHandler(h)

    formatter = logging.Formatter(
        fmt=f"%(asctime)s %(levelname)s {service_name} %(name)s [%(request_id)s %(product_code)s] - %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )
    context_filter = RequestContextFilter()

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(TimedRotatingFileHandler(log_file, when="midnight", backupCount=7, encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(context_filter)
        root.addHandler(handler)

    noisy_level = os.getenv("NOISY_LOG_LEVEL", "WARNING").upper()
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(getattr(logging, noisy_level, logging.WARNING))

    setup_logging._configured = True  # type: ignore[attr-defined]
