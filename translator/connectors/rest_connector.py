"""
REST API connector.
Composes GET requests from the template, lets plugins authorize them and
recovers from backend errors through plugin onerror hooks.
"""
import asyncio
import aiohttp
import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from .base import BaseProtocolConnector
from ..errors import MisconfigurationError, TranslatorError, UpstreamError
from ..metrics import record_upstream
from ..plugins.base import apply_chain, call_hook, with_hook
from ..response import attached_plugins, handle_data
from ..utils.timestamp_utils import to_iso

# Statuses that fail the request immediately, without plugin recovery
NO_RETRY_STATUSES = (500, 502, 503, 504, 522)
TIMEOUT_STATUS = 522

logger = logging.getLogger(__name__)


def _query_value(value: Any) -> str:
    if isinstance(value, datetime):
        return to_iso(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def compose_query(query: List[Dict[str, Any]]) -> str:
    """Join query entries in order; values are appended verbatim."""
    pairs = []
    for entry in query:
        for name, value in entry.items():
            pairs.append(f"{name}={_query_value(value)}")
    return "&".join(pairs)


def parse_body(body: Optional[str]) -> Any:
    try:
        return json.loads(body) if body else {}
    except json.JSONDecodeError:
        logger.error("❌ Failed to parse response body")
        return {}


class RestConnector(BaseProtocolConnector):
    """REST API connector."""

    protocol = "rest"

    def __init__(self, timeout: float = 30):
        super().__init__()
        self.timeout = timeout

    async def get_data(self, template: Dict[str, Any], paths: List[Any]) -> List[Dict[str, Any]]:
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            return await self.gather_paths(
                self._request_data(session, template, path) for path in paths
            )

    def build_options(self, template: Dict[str, Any], resource_path: Any) -> Dict[str, Any]:
        """Initial request options before plugins run."""
        auth_config = template.get("authConfig") or {}
        path = str(resource_path)
        base_url = auth_config.get("url") or ""
        if not base_url and not path:
            raise MisconfigurationError("No url or resourcePath found in authConfig.")

        query: List[Dict[str, Any]] = []
        query_config = (template.get("generalConfig") or {}).get("query") or {}
        parameters = template.get("parameters") or {}
        if query_config.get("start"):
            query.append({query_config["start"]: parameters.get("start")})
        if query_config.get("end"):
            query.append({query_config["end"]: parameters.get("end")})
        for name, entry in (query_config.get("properties") or {}).items():
            query.append(entry if isinstance(entry, dict) else {name: entry})

        return {
            "method": "GET",
            "url": path if "://" in path else base_url + path,
            "headers": dict(auth_config.get("headers") or {}),
            "query": query,
        }

    async def prepare_request(self, template: Dict[str, Any], resource_path: Any) -> Dict[str, Any]:
        options = self.build_options(template, resource_path)
        options = await apply_chain(
            attached_plugins(template), "request", options, template.get("authConfig") or {}
        )
        query = options.pop("query", None) or []
        if query:
            options["url"] += "?" + compose_query(query)
        return options

    async def send(self, session: aiohttp.ClientSession, options: Dict[str, Any]) -> Tuple[int, str]:
        """Send one request.

        Returns:
            Status code and response body text

        Raises:
            UpstreamError: 522 when the transport times out
        """
        try:
            async with session.request(
                options.get("method", "GET"), options["url"], headers=options.get("headers") or None
            ) as response:
                return response.status, await response.text()
        except asyncio.TimeoutError as e:
            raise UpstreamError(TIMEOUT_STATUS, "Connection timed out.") from e

    async def _request_data(self, session: aiohttp.ClientSession, template: Dict[str, Any],
                            resource_path: Any) -> List[Dict[str, Any]]:
        label = (template.get("authConfig") or {}).get("template", self.product_code(template))
        retried = False
        while True:
            options = await self.prepare_request(template, resource_path)
            self.logger.debug(f"🔍 Fetching {options['method']} {options['url']}")

            status: Optional[int] = None
            body: Optional[str] = None
            try:
                status, body = await self.send(session, options)
            except UpstreamError:
                record_upstream(self.protocol, "timeout")
                raise
            except aiohttp.ClientError as e:
                self.logger.warning(f"⚠️ {label}: request failed: {e}")
                error = UpstreamError(None, "Internal Server Error.", reference=str(e))
            else:
                if status == 404:
                    record_upstream(self.protocol, "not_found")
                    self.logger.info(f"ℹ️ {label}: no data at {options['url']}")
                    return []
                if status < 400:
                    record_upstream(self.protocol, "ok")
                    return await handle_data(template, resource_path, parse_body(body))
                self.logger.info(f"ℹ️ {label}: response with status code {status}")
                error = UpstreamError(status, "Internal Server Error.", reference=body)

            record_upstream(self.protocol, "error")
            if retried or status in NO_RETRY_STATUSES:
                raise error
            if not await self._recover(template, error):
                raise error
            record_upstream(self.protocol, "retry")
            retried = True

    async def _recover(self, template: Dict[str, Any], error: UpstreamError) -> bool:
        """Let the first plugin with an onerror hook handle the error.

        Returns:
            True if a plugin resolved the error and the request may be retried
        """
        responders = with_hook(attached_plugins(template), "onerror")
        if not responders:
            return False
        plugin = responders[0]
        try:
            await call_hook(plugin.onerror, template.get("authConfig") or {}, error)
        except TranslatorError:
            raise
        except Exception as e:
            self.logger.warning(f"⚠️ Plugin {plugin.name} could not recover: {e}")
            raise UpstreamError(error.status_code, error.message) from e
        self.logger.info(f"🔄 Plugin {plugin.name} recovered from status {error.status_code}, retrying")
        return True
