"""
IoT-Ticket path parameter encoding.
"""
from typing import Any, Dict
from urllib.parse import quote

from .base import Plugin

# Characters encodeURI leaves untouched besides alphanumerics and -_.~
URI_SAFE = ";,/?:@&=+$!*'()#"


class IotTicketPlugin(Plugin):
    """URI-encodes the ``path`` of every id object."""
    name = "iot-ticket"

    async def parameters(self, parameters: Dict[str, Any]) -> Dict[str, Any]:
        ids = parameters.get("ids")
        if isinstance(ids, list):
            for item in ids:
                if isinstance(item, dict) and isinstance(item.get("path"), str):
                    item["path"] = quote(item["path"], safe=URI_SAFE)
        return parameters
