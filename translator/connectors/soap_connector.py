"""
SOAP connector.
Downloads and caches the WSDL per data product, builds a zeep client and
calls the configured remote operation once per resource path.
"""
import asyncio
import logging
import os
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import backoff
import requests
from requests.auth import HTTPBasicAuth
from requests_ntlm import HttpNtlmAuth
from zeep import Client
from zeep.exceptions import Error as ZeepError
from zeep.helpers import serialize_object
from zeep.transports import Transport

from .base import BaseProtocolConnector
from ..errors import MisconfigurationError, UpstreamError
from ..metrics import record_upstream
from ..plugins.base import apply_chain, call_hook, with_hook
from ..response import attached_plugins, handle_data

logger = logging.getLogger(__name__)

NTLM_PLUGIN = "soap-ntlm"


def _is_client_error(e: Exception) -> bool:
    response = getattr(e, "response", None)
    return response is not None and 400 <= response.status_code < 500


@backoff.on_exception(
    backoff.expo,
    requests.RequestException,
    max_tries=3,
    max_time=60,
    jitter=backoff.random_jitter,
    giveup=_is_client_error,
)
def download_wsdl(url: str, auth: Any, timeout: float) -> str:
    """Download a WSDL document with retry logic."""
    response = requests.get(url, auth=auth, timeout=timeout)
    response.raise_for_status()
    return response.text


def has_content(result: Any) -> bool:
    """A result counts only if it is non-empty and its first entry is set."""
    if isinstance(result, dict) and result:
        return bool(result[next(iter(result))])
    if isinstance(result, list) and result:
        return bool(result[0])
    return False


class SoapConnector(BaseProtocolConnector):
    """SOAP web service connector."""

    protocol = "soap"

    def __init__(self, wsdl_dir: str = "./wsdl", timeout: float = 30):
        super().__init__()
        self.wsdl_dir = wsdl_dir
        self.timeout = timeout
        self._locks: Dict[str, asyncio.Lock] = {}

    def wsdl_file(self, product_code: str) -> str:
        return os.path.join(self.wsdl_dir, quote(product_code, safe="") + ".xml")

    async def get_data(self, template: Dict[str, Any], paths: List[Any]) -> List[Dict[str, Any]]:
        product_code = self.product_code(template)
        auth_config = template.get("authConfig") or {}
        operation = auth_config.get("soapPath")
        if not operation:
            raise MisconfigurationError("SOAP operation not configured.")

        wsdl_file = await self._ensure_wsdl(template)
        if wsdl_file is None:
            return []

        self.logger.info(f"🔌 Initiated SOAP connection {product_code}")
        client = await self._create_client(template, wsdl_file)
        if client is None:
            return []
        client = await apply_chain(attached_plugins(template), "request", client, auth_config)

        items: List[Dict[str, Any]] = []
        for path in paths:
            result = await asyncio.to_thread(self._execute, client, operation, path)
            if not has_content(result):
                record_upstream(self.protocol, "empty")
                continue
            record_upstream(self.protocol, "ok")
            items.extend(await handle_data(template, path, result))
        self.logger.info(f"🔌 Closed SOAP connection {product_code}")
        return items

    async def _ensure_wsdl(self, template: Dict[str, Any]) -> Optional[str]:
        """Return the cached WSDL file, downloading it on first use."""
        product_code = self.product_code(template)
        path = self.wsdl_file(product_code)
        lock = self._locks.setdefault(product_code, asyncio.Lock())
        async with lock:
            if os.path.exists(path):
                return path

            auth_config = template.get("authConfig") or {}
            username = auth_config.get("username", "")
            password = auth_config.get("password", "")
            uses_ntlm = any(p.name == NTLM_PLUGIN for p in attached_plugins(template))
            auth = HttpNtlmAuth(username, password) if uses_ntlm else HTTPBasicAuth(username, password)

            self.logger.info("📥 Started downloading WSDL file...")
            try:
                document = await asyncio.to_thread(download_wsdl, auth_config.get("url", ""), auth, self.timeout)
            except requests.RequestException as e:
                response = getattr(e, "response", None)
                status = response.status_code if response is not None else 500
                self.logger.error(f"❌ Failed to download WSDL for {product_code}: {e}")
                raise UpstreamError(status, "Failed to download WSDL.") from e

            if not document:
                self.logger.info(f"ℹ️ Failed to download {os.path.basename(path)}")
                return None

            os.makedirs(self.wsdl_dir, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                f.write(document)
            self.logger.info(f"✅ Downloaded {os.path.basename(path)}")
            return path

    async def _create_client(self, template: Dict[str, Any], wsdl_file: str) -> Optional[Client]:
        try:
            return await asyncio.to_thread(
                Client, wsdl=wsdl_file, transport=Transport(timeout=self.timeout)
            )
        except (ZeepError, requests.RequestException, OSError) as e:
            self.logger.error(f"❌ Failed to create SOAP client: {e}")
            auth_config = template.get("authConfig") or {}
            for plugin in with_hook(attached_plugins(template), "onerror"):
                try:
                    await call_hook(plugin.onerror, auth_config, e)
                except Exception as hook_error:
                    self.logger.warning(f"⚠️ Plugin {plugin.name} onerror failed: {hook_error}")
            return None

    def _execute(self, client: Client, operation: str, args: Any) -> Any:
        """Call the remote operation; failures yield None."""
        parts = operation.split(".")
        service = client.bind(parts[0], parts[1]) if len(parts) == 3 else client.service
        try:
            method = getattr(service, parts[-1])
            result = method(**args) if isinstance(args, dict) else method(args)
        except (ZeepError, requests.RequestException, AttributeError, TypeError, ValueError) as e:
            self.logger.warning(f"⚠️ SOAP call {operation} failed: {e}")
            return None
        return serialize_object(result, dict)
