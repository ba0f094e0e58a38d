"""
Path lookup for tree-shaped JSON values.

Used to locate the embedding vector inside provider responses without
hard-coding the response schema.

Example Usage:
    from src.utils.json_path import get_value_by_path

    vector = get_value_by_path(response_json, "data.0.embedding")
    vector = get_value_by_path(response_json, "data[0].embedding")
"""

import re
from typing import Any, Optional

_BRACKET_INDEX = re.compile(r"\[(\d+)\]")


def split_path(path: str) -> list[str]:
    """Split a dotted path into segments, expanding ``key[0]`` into ``key``, ``0``.

    Args:
        path: Dotted path such as ``data.0.embedding`` or ``data[0].embedding``

    Returns:
        List of path segments (empty segments dropped)
    """
    normalized = _BRACKET_INDEX.sub(r".\1", path)
    return [segment for segment in normalized.split(".") if segment]


def get_value_by_path(tree: Any, path: Optional[str]) -> Optional[Any]:
    """Fetch a nested value from dicts and lists by dotted path.

    Args:
        tree: Parsed JSON value (dict, list or scalar)
        path: Dotted path; list segments are integer indices

    Returns:
        The value found at the path, or None if any segment cannot be resolved
    """
    if tree is None or not path:
        return None

    current = tree
    for segment in split_path(path):
        if isinstance(current, dict):
            if segment not in current:
                return None
            current = current[segment]
        elif isinstance(current, list):
            if not segment.isdigit():
                return None
            index = int(segment)
            if index >= len(current):
                return None
            current = current[index]
        else:
            return None

    return current
