"""
Response normalization.
Maps arbitrary backend payloads into canonical items, one per hardware id,
with data points sorted by timestamp.
"""
import json
import logging
from typing import Any, Dict, List, Optional

from .definitions import DATA, ID, TIMESTAMP, TYPE, VALUE
from .plugins.base import Plugin, apply_chain
from .utils.paths import get_path
from .utils.timestamp_utils import parse_timestamp_or_now

logger = logging.getLogger(__name__)

SOAP_TYPES = ("soap", "soap-basic", "soap-ntlm")


def attached_plugins(template: Dict[str, Any]) -> List[Plugin]:
    return [p for p in template.get("plugins") or [] if isinstance(p, Plugin)]


def map_arrays(arrays: List[Any]) -> List[Dict[str, Any]]:
    """Combine a key array and a value array (or array of value rows) into objects."""
    if len(arrays) < 2:
        return []
    keys, values = arrays[0], arrays[1]
    if not isinstance(keys, list) or not isinstance(values, list):
        return []
    if values and isinstance(values[0], list):
        return [dict(zip(keys, row)) for row in values if isinstance(row, list)]
    return [dict(zip(keys, values))]


def value_from_response(general_config: Dict[str, Any], path: Any, row: Any, key: str) -> Any:
    """Pick a value by data object property path or by resource path index."""
    rule = general_config.get(key)
    if not isinstance(rule, dict):
        return None
    if rule.get("dataObjectProperty"):
        return get_path(row, rule["dataObjectProperty"])
    if rule.get("pathIndex") is not None and isinstance(path, str):
        parts = path.split("/")
        index = int(rule["pathIndex"])
        if -len(parts) <= index < len(parts):
            return parts[index]
    return None


def map_fields(mappings: Dict[str, Any], row: Any) -> Dict[str, Any]:
    """Copy mapped fields from a row, skipping missing and null values.

    When the first mapping has an empty source, fields are passed through
    under their own names.
    """
    fields: Dict[str, Any] = {}
    passthrough = mappings[next(iter(mappings))] == ""
    for key, source in mappings.items():
        if passthrough:
            source = source or key
        elif not source:
            continue
        value = get_path(row, source)
        if value is not None:
            fields[key] = value
    return fields


def _select(data: Any, selector: Any) -> List[Any]:
    if selector == "":
        selected = data
    elif isinstance(selector, list):
        selected = map_arrays([get_path(data, p) for p in selector])
    else:
        selected = get_path(data, selector)
    return selected if isinstance(selected, list) else [selected]


def _merge_key(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return json.dumps(value, sort_keys=True, default=str)


def merge_items(items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Merge items sharing an id and sort each data array by timestamp."""
    merged: Dict[Any, Dict[str, Any]] = {}
    for item in items:
        key = _merge_key(item[ID])
        if key not in merged:
            merged[key] = {ID: item[ID], DATA: list(item[DATA])}
        else:
            merged[key][DATA].extend(item[DATA])
    for item in merged.values():
        item[DATA].sort(key=lambda point: point[TIMESTAMP])
    return list(merged.values())


async def _to_item(template: Dict[str, Any], plugins: List[Plugin], path: Any,
                   row: Any) -> Optional[Dict[str, Any]]:
    general_config = template.get("generalConfig") or {}

    hardware_id = value_from_response(general_config, path, row, "hardwareId")
    timestamp = parse_timestamp_or_now(value_from_response(general_config, path, row, "timestamp"))

    fields = map_fields(template["dataPropertyMappings"], row)
    fields = await apply_chain(plugins, "data", fields, template.get("authConfig") or {}) or {}

    include = general_config.get("include")
    if isinstance(include, dict):
        fields.update(include)

    if not fields:
        return None

    return {
        ID: hardware_id,
        DATA: [{TYPE: key, VALUE: value, TIMESTAMP: timestamp} for key, value in fields.items()],
    }


async def handle_data(template: Dict[str, Any], path: Any, payload: Any) -> List[Dict[str, Any]]:
    """Normalize one backend payload into canonical items.

    Args:
        template: Resolved connection template with attached plugins
        path: Resource path the payload was fetched for (SOAP: argument object)
        payload: Decoded backend payload

    Returns:
        Merged canonical items; empty when the payload yields nothing
    """
    plugins = attached_plugins(template)
    data = await apply_chain(plugins, "response", payload, template)

    if not isinstance(data, (dict, list)) or len(data) == 0:
        return []

    if not template.get("dataPropertyMappings") or not template.get("dataObjects"):
        logger.error("❌ Configuration dataPropertyMappings or dataObjects missing")
        return []

    auth_config = template.get("authConfig") or {}
    if auth_config.get("type") in SOAP_TYPES:
        # The hardware id is the first argument of the remote call
        if isinstance(data, dict):
            data = dict(data)
            data["hardwareId"] = next(iter(path.values()), None) if isinstance(path, dict) and path else None
        path = ""

    measurements: List[Dict[str, Any]] = []
    for selector in template["dataObjects"]:
        for row in _select(data, selector):
            try:
                item = await _to_item(template, plugins, path, row)
            except Exception as e:
                logger.exception(f"❌ Failed to normalize data object, skipping: {e}")
                continue
            if item:
                measurements.append(item)

    try:
        merged = merge_items(measurements)
        for item in merged:
            item[ID] = await apply_chain(plugins, "id", item[ID], template)
    except Exception as e:
        logger.exception(f"❌ Failed to merge data: {e}")
        return []

    return merged
