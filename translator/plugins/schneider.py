"""
Schneider id double encoding.
"""
from typing import Any, Dict
from urllib.parse import quote

from .base import Plugin

# encodeURIComponent keeps these besides alphanumerics and -_.~
COMPONENT_SAFE = "!*'()"


def _encode_component(value: Any) -> str:
    return quote(str(value), safe=COMPONENT_SAFE)


class SchneiderPlugin(Plugin):
    """Double URI-component-encodes every scalar id."""
    name = "schneider"

    async def parameters(self, parameters: Dict[str, Any]) -> Dict[str, Any]:
        ids = parameters.get("ids")
        if isinstance(ids, list):
            parameters["ids"] = [
                item if isinstance(item, dict) else _encode_component(_encode_component(item))
                for item in ids
            ]
        return parameters
