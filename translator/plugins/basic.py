"""
Basic authentication plugin.
"""
import base64
from typing import Any, Dict

from .base import Plugin


class BasicAuthPlugin(Plugin):
    """Adds an HTTP Basic Authorization header to REST requests."""
    name = "basic"

    async def request(self, auth_config: Dict[str, Any], options: Dict[str, Any]) -> Dict[str, Any]:
        credentials = f"{auth_config.get('username', '')}:{auth_config.get('password', '')}"
        token = base64.b64encode(credentials.encode("utf-8")).decode("ascii")
        options["headers"] = {**(options.get("headers") or {}), "Authorization": f"Basic {token}"}
        return options
