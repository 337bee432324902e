"""
Label and property value helpers shared by the indexer and the builder.
"""

import datetime
import json
from typing import Any

__all__ = [
    "LABEL_MARKER",
    "RESERVED_PROPERTIES",
    "is_under",
    "label_depth",
    "normalize_label",
    "prefix_chain",
    "stringify_value",
]

LABEL_MARKER = "#"

# Frontmatter keys the host uses for its own bookkeeping
RESERVED_PROPERTIES: frozenset[str] = frozenset({"tags", "position"})


def normalize_label(label: str) -> str:
    """Strip leading markers and surrounding slashes, lowercase.

    >>> normalize_label("#Project/Alpha")
    'project/alpha'
    """
    return label.strip().lstrip(LABEL_MARKER).strip("/").lower()


def prefix_chain(label: str) -> tuple[str, ...]:
    """Every prefix of a label, shortest first, ending with the label.

    >>> prefix_chain("project/alpha/feature")
    ('project', 'project/alpha', 'project/alpha/feature')
    """
    segments = label.split("/")
    return tuple("/".join(segments[: i + 1]) for i in range(len(segments)))


def label_depth(label: str) -> int:
    return label.count("/") + 1


def is_under(label: str, root: str) -> bool:
    """True if ``label`` equals ``root`` or is nested below it."""
    return label == root or label.startswith(root + "/")


def stringify_value(value: Any) -> str:
    """Render a property value as the string used for index keys and group names."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return ",".join(stringify_value(item) for item in value)
    if isinstance(value, dict):
        return json.dumps(value, sort_keys=True, default=str)
    return str(value)
