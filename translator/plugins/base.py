"""
Plugin contract and hook helpers.
"""
import inspect
import logging
from typing import Any, Callable, Iterable, List

logger = logging.getLogger(__name__)

HOOKS = ("parameters", "request", "response", "data", "id", "onerror")


class Plugin:
    """Base class for translator plugins.

    A plugin implements any subset of these hooks, sync or async:

    - ``parameters(parameters) -> parameters``
    - ``request(auth_config, options) -> options``
    - ``response(config, data) -> data``
    - ``data(auth_config, fields) -> fields``
    - ``id(config, id) -> id``
    - ``onerror(auth_config, error) -> Any``

    Hooks are looked up by capability, so the base class defines none of them.
    """
    name: str = ""

    def implements(self, hook: str) -> bool:
        return hook in HOOKS and callable(getattr(self, hook, None))

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.name!r}>"


async def call_hook(fn: Callable[..., Any], *args: Any) -> Any:
    result = fn(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


def with_hook(plugins: Iterable[Plugin], hook: str) -> List[Plugin]:
    """Plugins implementing hook, in registration order."""
    return [p for p in plugins if p.implements(hook)]


async def apply_chain(plugins: Iterable[Plugin], hook: str, value: Any, *context: Any) -> Any:
    """Thread value through every plugin's hook, each seeing the prior output."""
    for plugin in with_hook(plugins, hook):
        logger.debug(f"🔌 Running {hook} hook of plugin {plugin.name}")
        value = await call_hook(getattr(plugin, hook), *context, value)
    return value
