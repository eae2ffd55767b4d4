"""
Translator plugins.
"""

from .base import Plugin, HOOKS, apply_chain, call_hook, with_hook
from .registry import PluginRegistry, builtin_plugins, create_registry

__all__ = [
    'Plugin',
    'HOOKS',
    'apply_chain',
    'call_hook',
    'with_hook',
    'PluginRegistry',
    'builtin_plugins',
    'create_registry'
]
