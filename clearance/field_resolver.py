"""
Dotted-path lookup into extracted document content.
"""

from collections.abc import Mapping
from typing import Any, Optional


def resolve_field(content: Any, path: Optional[str]) -> Any:
    """
    Resolve a dotted field path such as "invoice.total" against nested content.

    Mappings are indexed by key and lists/tuples by integer position
    ("items.0.sku"). Resolution stops with None as soon as a step lands on
    something that cannot be indexed, or the key/position does not exist.
    Never raises.

    Args:
        content: Extracted content record (usually a dict from JSON)
        path: Dotted field path

    Returns:
        The resolved value, or None when missing
    """
    if content is None or not path:
        return None

    value = content
    for key in path.split("."):
        if isinstance(value, Mapping):
            value = value.get(key)
        elif isinstance(value, (list, tuple)):
            if not key.isdigit():
                return None
            index = int(key)
            if index >= len(value):
                return None
            value = value[index]
        else:
            return None
    return value
