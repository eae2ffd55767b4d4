"""
Placeholder substitution into connection templates.

Templates carry ``${name}`` placeholders. Static values come from the data
product config and are applied everywhere in the template; dynamic values come
from the request parameters and are applied only at the paths the config
declares. Substitution walks the parsed document, so values never leak into
JSON syntax.
"""
import copy
import json
import logging
import re
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from .store import DataProductConfig
from .utils.paths import get_path, set_path
from .utils.timestamp_utils import to_iso

logger = logging.getLogger(__name__)

PLACEHOLDER = re.compile(r"\$\{([^}]+)\}")
ID_PLACEHOLDER = "${id}"

_MISSING = object()


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, datetime):
        return to_iso(value)
    if isinstance(value, bool) or value is None or isinstance(value, (dict, list)):
        return json.dumps(value, default=str)
    return str(value)


def _substitute_text(text: str, values: Mapping[str, Any]) -> str:
    return PLACEHOLDER.sub(
        lambda m: _as_text(values[m.group(1)]) if m.group(1) in values else m.group(0),
        text,
    )


def _walk(node: Any, values: Mapping[str, Any]) -> Any:
    if isinstance(node, str):
        match = PLACEHOLDER.fullmatch(node)
        if match and match.group(1) in values:
            # A lone placeholder takes the value with its type
            value = values[match.group(1)]
            return to_iso(value) if isinstance(value, datetime) else copy.deepcopy(value)
        return _substitute_text(node, values)
    if isinstance(node, dict):
        return {
            (_substitute_text(k, values) if isinstance(k, str) else k): _walk(v, values)
            for k, v in node.items()
        }
    if isinstance(node, list):
        return [_walk(item, values) for item in node]
    return node


def substitute(template: Any, placeholder: Optional[str], value: Any) -> Any:
    """Substitute a parameter value into a template value.

    A mapping value substitutes each of its keys. If the template is still the
    bare ``${id}`` placeholder afterwards, the whole mapping is spliced in its
    place. Any other value substitutes ``${placeholder}``.

    Returns:
        A new document; the input is not modified
    """
    if isinstance(value, Mapping):
        result = _walk(template, value)
        if result == ID_PLACEHOLDER and len(value) > 0:
            return copy.deepcopy(dict(value))
        return result
    if placeholder is None:
        return copy.deepcopy(template)
    return _walk(template, {placeholder: value})


def normalize_ids(parameters: Dict[str, Any]) -> Dict[str, Any]:
    """Wrap every non-mapping element of ``ids`` as ``{"id": element}``."""
    ids = parameters.get("ids")
    if isinstance(ids, list):
        parameters["ids"] = [item if isinstance(item, dict) else {"id": item} for item in ids]
    return parameters


def replace_placeholders(config: DataProductConfig, template: Dict[str, Any],
                         parameters: Dict[str, Any]) -> Dict[str, Any]:
    """Configure a template with static config values and dynamic request values.

    ``parameters["ids"]`` is normalized in place.
    """
    normalize_ids(parameters)

    if config.static:
        template = substitute(template, None, config.static)

    for path, placeholder in config.dynamic.items():
        if placeholder not in parameters:
            continue
        template_value = get_path(template, path, _MISSING)
        if template_value is _MISSING:
            logger.debug(f"🔍 Dynamic path {path} not found in template, skipping")
            continue

        value = parameters[placeholder]
        if isinstance(value, list):
            # One clone of the templated value per element
            set_path(template, path, [substitute(template_value, placeholder, element) for element in value])
        else:
            set_path(template, path, substitute(template_value, placeholder, value))

    return template
