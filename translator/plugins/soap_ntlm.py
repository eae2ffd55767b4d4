"""
SOAP NTLM authentication plugin.
"""
import logging
from typing import Any, Dict

from requests_ntlm import HttpNtlmAuth

from .base import Plugin

logger = logging.getLogger(__name__)


class SoapNtlmPlugin(Plugin):
    """Configures NTLM security on a zeep client's transport session."""
    name = "soap-ntlm"

    async def request(self, auth_config: Dict[str, Any], client: Any) -> Any:
        try:
            client.transport.session.auth = HttpNtlmAuth(
                auth_config.get("username", ""), auth_config.get("password", "")
            )
        except AttributeError as e:
            logger.warning(f"⚠️ Could not configure SOAP NTLM security: {e}")
        return client
