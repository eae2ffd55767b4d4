"""
SOAP basic authentication plugin.
"""
import logging
from typing import Any, Dict

from requests.auth import HTTPBasicAuth

from .base import Plugin

logger = logging.getLogger(__name__)


class SoapBasicPlugin(Plugin):
    """Configures Basic security on a zeep client's transport session."""
    name = "soap-basic"

    async def request(self, auth_config: Dict[str, Any], client: Any) -> Any:
        try:
            client.transport.session.auth = HTTPBasicAuth(
                auth_config.get("username", ""), auth_config.get("password", "")
            )
        except AttributeError as e:
            logger.warning(f"⚠️ Could not configure SOAP basic security: {e}")
        return client
