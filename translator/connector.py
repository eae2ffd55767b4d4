"""
Connector engine.
Resolves the data product config and connection template for a broker
request, runs the parameter plugins, fills in placeholders and dispatches
the configured resource paths to a protocol connector.
"""
import json
import logging
import time
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .connectors.base import BaseProtocolConnector
from .definitions import DEFAULT_PRODUCT_CODE, FetchRequest, validate_request
from .errors import MisconfigurationError, NotFoundError, ServiceUnavailableError, TranslatorError, ValidationError
from .logging_config import set_product_code
from .metrics import observe_fetch_latency, record_fetch
from .mode import interpret_mode
from .placeholders import replace_placeholders
from .plugins.base import apply_chain
from .plugins.registry import PluginRegistry
from .store import ConfigStore, DataProductConfig
from .utils.timestamp_utils import parse_timestamp, utc_now

logger = logging.getLogger(__name__)

UNKNOWN_PRODUCT = "unknown"


def unique(values: List[Any]) -> List[Any]:
    """Drop duplicates, keeping first occurrences in order."""
    seen = set()
    result = []
    for value in values:
        key = json.dumps(value, sort_keys=True, default=str) if isinstance(value, (dict, list)) else value
        if key in seen:
            continue
        seen.add(key)
        result.append(value)
    return result


def _parse_time(name: str, value: Any):
    try:
        return parse_timestamp(value)
    except ValueError as e:
        raise ValidationError(f"Invalid parameter {name}.") from e


class Connector:
    """Serves broker fetch requests."""

    def __init__(self, store: ConfigStore, plugins: PluginRegistry,
                 protocols: Mapping[str, BaseProtocolConnector]):
        self.store = store
        self.plugins = plugins
        self.protocols = dict(protocols)

    async def fetch(self, body: Any) -> List[Dict[str, Any]]:
        """Fetch canonical items for a broker request body.

        Raises:
            TranslatorError: Tagged with the HTTP status to answer with
        """
        started = time.perf_counter()
        # Metrics are labeled by resolved config only; request codes are unbounded
        label = UNKNOWN_PRODUCT
        protocol = "unknown"
        try:
            request, parameters, config = self.resolve(body)
            label = config.product_code
            template = await self.prepare(request, parameters, config)
            product_code = template["productCode"]
            protocol = template["protocol"]
            paths = template["authConfig"]["resourcePath"]
            paths = unique(paths if isinstance(paths, list) else [paths])

            logger.info(f"📥 {product_code}: fetching {len(paths)} paths over {protocol}")
            items = await self.protocols[protocol].get_data(template, paths) or []
        except TranslatorError as e:
            record_fetch(label, e.status_code)
            raise
        finally:
            observe_fetch_latency(protocol, time.perf_counter() - started)

        record_fetch(label, 200, len(items))
        return items

    def resolve(self, body: Any) -> Tuple[FetchRequest, Dict[str, Any], DataProductConfig]:
        """Validate a request and find its data product config.

        Falls back to the default config for unknown product codes.
        """
        if not self.store.ready:
            raise ServiceUnavailableError()

        request = validate_request(body)
        parameters: Dict[str, Any] = request.parameters.model_dump(exclude_none=True)

        timestamp = _parse_time("timestamp", request.timestamp) or utc_now()
        parameters["ids"] = unique(list(request.parameters.ids))
        parameters["start"] = _parse_time("start", request.parameters.start)
        parameters["end"] = _parse_time("end", request.parameters.end) or timestamp

        set_product_code(request.productCode or DEFAULT_PRODUCT_CODE)
        config = self.store.get_config(request.productCode) or self.store.get_config(DEFAULT_PRODUCT_CODE)
        if config is None:
            raise NotFoundError("Data product config not found.")
        return request, parameters, config

    async def prepare(self, request: FetchRequest, parameters: Dict[str, Any],
                      config: DataProductConfig) -> Dict[str, Any]:
        """Resolve and configure the connection template for a request.

        Nothing reaches a backend from here; every configuration problem
        surfaces before dispatch.
        """
        if not config.template:
            raise NotFoundError("Data product config template not defined.")

        template = self.store.get_template(config.template)
        if template is None:
            raise NotFoundError("Data product config template not found.")

        if isinstance(template.get("authConfig"), dict):
            template["authConfig"]["template"] = config.template
        template["productCode"] = request.productCode or DEFAULT_PRODUCT_CODE

        # Resolve every declared plugin before any hook runs
        plugins = self.plugins.resolve(template.get("plugins") or [])

        parameters = await apply_chain(plugins, "parameters", parameters)
        template = replace_placeholders(config, template, parameters)
        template = interpret_mode(template, parameters)

        self.validate_template(template)
        template["plugins"] = plugins
        return template

    def validate_template(self, template: Dict[str, Any]) -> None:
        auth_config: Optional[Dict[str, Any]] = template.get("authConfig")
        if not isinstance(auth_config, dict):
            raise MisconfigurationError("Insufficient authentication configurations.")
        if "resourcePath" not in auth_config:
            raise MisconfigurationError("Insufficient resource configurations.")

        protocol = template.get("protocol")
        if not protocol:
            raise MisconfigurationError(f"Connection protocol {protocol} not found.")
        if protocol not in self.protocols:
            raise MisconfigurationError(f"Connection protocol {protocol} not supported.")
