"""
Grouping rules for hierarchy levels.

Tag levels group by label segments below a base path; property levels
group by the stringified property value. A document that does not match
a level is returned as unmatched, never as an "undefined" group.
"""

from dataclasses import dataclass, field
from typing import Any, Iterable

from ..config.schema import PropertyLevel, TagLevel
from ..host.base import Document
from ..indexer.index import LabelIndexer
from ..indexer.labels import stringify_value

__all__ = [
    "Grouping",
    "group_by_level",
    "group_by_property",
    "group_by_tag",
    "property_group_keys",
    "resolve_base",
    "tag_group_keys",
]


@dataclass
class Grouping:
    """Result of grouping a document list by one level.

    Attributes:
        groups: Group key → member documents, both in first-seen order.
        unmatched: Documents that matched no group.
        terminal: Keys of groups formed by an exact match on the level key;
            they have no deeper segments to descend into.
    """

    groups: dict[str, list[Document]] = field(default_factory=dict)
    unmatched: list[Document] = field(default_factory=list)
    terminal: set[str] = field(default_factory=set)


def resolve_base(key: str, context: str | None) -> str:
    """Base path a tag level groups under.

    Inside an enclosing tag group (``context``) the group's own label is the
    base when the level key is empty or the group lies within the key's
    family. Otherwise the key itself is the base. An empty result matches
    any label.
    """
    if context and (not key or context == key or context.startswith(key + "/")):
        return context
    return key


def tag_group_keys(
    labels: Iterable[str],
    base: str,
    allow_exact: bool = False,
) -> tuple[list[str], bool]:
    """Group keys one segment below ``base`` for a document's labels.

    Args:
        labels: Exact labels of the document.
        base: Base path; empty matches the first segment of any label.
        allow_exact: Whether a label equal to ``base`` forms a group keyed
            by the base itself (used only when nothing deeper matched).

    Returns:
        (keys, exact) where ``exact`` is True when the only match was the
        base itself.
    """
    keys: list[str] = []
    bears_base = False
    for label in labels:
        if not base:
            key = label.split("/", 1)[0]
        elif label.startswith(base + "/"):
            key = base + "/" + label[len(base) + 1:].split("/", 1)[0]
        else:
            if label == base:
                bears_base = True
            continue
        if key not in keys:
            keys.append(key)

    if not keys and bears_base and allow_exact:
        return [base], True
    return keys, False


def property_group_keys(value: Any, level: PropertyLevel) -> list[str]:
    """Group keys for one property value; empty when the value cannot match."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        if not value:
            return []
        if level.separate_list_values:
            keys: list[str] = []
            for item in value:
                key = stringify_value(item)
                if key not in keys:
                    keys.append(key)
            return keys
        return ["[" + ", ".join(stringify_value(item) for item in value) + "]"]
    return [stringify_value(value)]


def group_by_tag(
    documents: Iterable[Document],
    indexer: LabelIndexer,
    level: TagLevel,
    base: str,
    first_depth: bool = True,
) -> Grouping:
    """Group documents by the label segment directly below ``base``.

    Args:
        documents: Documents to group.
        indexer: Source of each document's exact labels.
        level: Tag level being applied.
        base: Base path (see ``resolve_base``).
        first_depth: True for the first sub-depth of the level, where a
            document bearing the level key exactly forms its own group.
    """
    allow_exact = first_depth and bool(level.key) and base == level.key
    grouping = Grouping()
    for document in documents:
        keys, exact = tag_group_keys(
            indexer.get_labels_for_document(document), base, allow_exact
        )
        if not keys:
            grouping.unmatched.append(document)
            continue
        for key in keys:
            grouping.groups.setdefault(key, []).append(document)
            if exact:
                grouping.terminal.add(key)
    return grouping


def group_by_property(
    documents: Iterable[Document],
    indexer: LabelIndexer,
    level: PropertyLevel,
) -> Grouping:
    """Group documents by the value of ``level.key``."""
    grouping = Grouping()
    for document in documents:
        properties = indexer.get_properties_for_document(document)
        keys = property_group_keys(properties.get(level.key), level)
        if not keys:
            grouping.unmatched.append(document)
            continue
        for key in keys:
            grouping.groups.setdefault(key, []).append(document)
    return grouping


def group_by_level(
    documents: Iterable[Document],
    indexer: LabelIndexer,
    level: TagLevel | PropertyLevel,
    context: str | None,
) -> Grouping:
    """Group documents by any level, resolving tag bases against ``context``."""
    if isinstance(level, TagLevel):
        return group_by_tag(documents, indexer, level, resolve_base(level.key, context))
    return group_by_property(documents, indexer, level)
