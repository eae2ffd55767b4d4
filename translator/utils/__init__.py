"""
Utility modules for the translator.
"""

from .timestamp_utils import parse_timestamp, to_iso, utc_now
from .paths import get_path, set_path, delete_path

__all__ = ['parse_timestamp', 'to_iso', 'utc_now', 'get_path', 'set_path', 'delete_path']
