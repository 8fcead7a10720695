"""Deep merge for layered YAML configuration.

Override files are merged over the bundled defaults:
- Mappings merge recursively
- Arrays replace by default
- An array whose first element is "+" appends to the base array
- An array whose first element is "=" replaces explicitly
"""
from __future__ import annotations

from typing import Any, Dict, List


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge dictionaries without mutating inputs.

    Example:
        >>> base = {"prefixes": {"can_transition": ["Can"]}}
        >>> override = {"prefixes": {"on_transition": ["on_"]}}
        >>> deep_merge(base, override)
        {'prefixes': {'can_transition': ['Can'], 'on_transition': ['on_']}}
    """
    result: Dict[str, Any] = dict(base)
    for key, value in (override or {}).items():
        if key in result:
            if isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = deep_merge(result[key], value)
            elif isinstance(result[key], list) and isinstance(value, list):
                result[key] = merge_arrays(result[key], value)
            else:
                result[key] = value
        elif isinstance(value, list):
            # Strip "+"/"=" markers even when there is nothing to merge into.
            result[key] = merge_arrays([], value)
        else:
            result[key] = value
    return result


def merge_arrays(base: List[Any], override: List[Any]) -> List[Any]:
    """Merge a prefix list with override semantics.

    Example:
        >>> merge_arrays(["Can"], ["Allow"])
        ['Allow']
        >>> merge_arrays(["Can"], ["+", "Allow"])
        ['Can', 'Allow']
        >>> merge_arrays(["Can"], ["="])
        []
    """
    if not override:
        return list(base)
    first = override[0]
    if first == "+":
        return [*base, *override[1:]]
    if first == "=":
        return list(override[1:])
    return list(override)


__all__ = ["deep_merge", "merge_arrays"]
