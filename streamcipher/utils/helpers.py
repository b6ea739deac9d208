"""
General utility functions used across the service.
"""

from typing import Any


def traverse_obj(obj: Any, *paths: Any, default: Any = None) -> Any:
    """
    Traverse nested dicts/lists safely.

    Usage:
        traverse_obj(data, 'key1')
        traverse_obj(data, ('key1', 'key2'), ('alt_key1', 0))
    """
    for path in paths:
        if isinstance(path, (list, tuple)):
            result = obj
            for key in path:
                if result is None:
                    break
                if isinstance(result, dict):
                    result = result.get(key)
                elif isinstance(result, (list, tuple)):
                    try:
                        result = result[key]
                    except (IndexError, TypeError):
                        result = None
                else:
                    result = None
            if result is not None:
                return result
        else:
            if isinstance(obj, dict) and path in obj:
                return obj[path]
    return default


def int_or_none(v: Any) -> int | None:
    """Convert value to int or return None."""
    if v is None:
        return None
    try:
        return int(v)
    except (ValueError, TypeError):
        return None
