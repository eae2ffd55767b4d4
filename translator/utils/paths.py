"""
Dotted path access into JSON-like documents.
Paths look like "generalConfig.query.properties.limit", "items.0.value"
or "rows[2].value".
"""
import re
from typing import Any, List, Union

_TOKEN = re.compile(r"[^.\[\]]+")

_MISSING = object()


def split_path(path: Union[str, List[Any]]) -> List[Union[str, int]]:
    if isinstance(path, (list, tuple)):
        return list(path)
    tokens: List[Union[str, int]] = []
    for token in _TOKEN.findall(str(path)):
        tokens.append(int(token) if token.isdigit() else token)
    return tokens


def _step(current: Any, token: Union[str, int]) -> Any:
    if isinstance(current, dict):
        if token in current:
            return current[token]
        if isinstance(token, int) and str(token) in current:
            return current[str(token)]
        return _MISSING
    if isinstance(current, (list, tuple)) and isinstance(token, int):
        if 0 <= token < len(current):
            return current[token]
    return _MISSING


def get_path(obj: Any, path: Union[str, List[Any]], default: Any = None) -> Any:
    """Return the value at path, or default when any step is missing."""
    tokens = split_path(path)
    if not tokens:
        return default
    current = obj
    for token in tokens:
        current = _step(current, token)
        if current is _MISSING:
            return default
    return current


def has_path(obj: Any, path: Union[str, List[Any]]) -> bool:
    return get_path(obj, path, _MISSING) is not _MISSING


def set_path(obj: Any, path: Union[str, List[Any]], value: Any) -> Any:
    """Install value at path, creating intermediate containers as needed."""
    tokens = split_path(path)
    if not tokens:
        raise ValueError("Empty path")
    current = obj
    for index, token in enumerate(tokens[:-1]):
        nxt = _step(current, token)
        if nxt is _MISSING or not isinstance(nxt, (dict, list)):
            nxt = [] if isinstance(tokens[index + 1], int) else {}
            _assign(current, token, nxt)
        current = nxt
    _assign(current, tokens[-1], value)
    return obj


def _assign(container: Any, token: Union[str, int], value: Any) -> None:
    if isinstance(container, list) and isinstance(token, int):
        while len(container) <= token:
            container.append(None)
        container[token] = value
    elif isinstance(container, dict):
        if isinstance(token, int) and token not in container:
            token = str(token)
        container[token] = value
    else:
        raise TypeError(f"Cannot assign {token!r} on {type(container).__name__}")


def delete_path(obj: Any, path: Union[str, List[Any]]) -> bool:
    """Remove the value at path. Returns True when something was removed."""
    tokens = split_path(path)
    if not tokens:
        return False
    parent = get_path(obj, tokens[:-1]) if len(tokens) > 1 else obj
    last = tokens[-1]
    if isinstance(parent, dict) and last in parent:
        del parent[last]
        return True
    if isinstance(parent, list) and isinstance(last, int) and 0 <= last < len(parent):
        del parent[last]
        return True
    return False
