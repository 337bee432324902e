"""
Tree node variants produced by the builder.

A tree is owned top-down through ``children``. The parent link is a weak
reference kept for traversal and context lookups only.
"""

import weakref
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator

from ..config.schema import PropertyLevel, TagLevel
from ..host.base import Document

__all__ = [
    "ROOT_ID",
    "FileNode",
    "NodeKind",
    "PropertyGroupNode",
    "TagNode",
    "TreeNode",
    "make_file_node",
    "make_property_node",
    "make_root",
    "make_tag_node",
]

ROOT_ID = "root"


class NodeKind(Enum):
    TAG = "tag"
    PROPERTY_GROUP = "property-group"
    FILE = "file"


@dataclass(eq=False)
class TreeNode:
    """Common node attributes.

    Attributes:
        id: Composite identifier, unique within the tree.
        name: Display name.
        depth: Distance from the root (root is 0).
        children: Owned child nodes.
        documents: Documents attached directly at this node (its file children).
        file_count: Aggregate number of file nodes in the subtree.
        level_index: Index of the configured level that produced the node.
    """

    id: str
    name: str
    depth: int = 0
    children: list["TreeNode"] = field(default_factory=list)
    documents: list[Document] = field(default_factory=list)
    file_count: int = 0
    level_index: int | None = None
    _parent: "weakref.ref[TreeNode] | None" = field(default=None, repr=False)

    kind = NodeKind.TAG

    @property
    def parent(self) -> "TreeNode | None":
        return self._parent() if self._parent is not None else None

    @property
    def is_file(self) -> bool:
        return self.kind is NodeKind.FILE

    def add_child(self, child: "TreeNode") -> "TreeNode":
        """Attach a child, linking it back to this node."""
        child._parent = weakref.ref(self)
        self.children.append(child)
        if isinstance(child, FileNode):
            self.documents.append(child.document)
        return child

    def walk(self) -> Iterator["TreeNode"]:
        """Pre-order traversal of the subtree, this node included."""
        yield self
        for child in self.children:
            yield from child.walk()

    def find_by_id(self, node_id: str) -> "TreeNode | None":
        for node in self.walk():
            if node.id == node_id:
                return node
        return None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.id!r} count={self.file_count}>"


@dataclass(eq=False, repr=False)
class TagNode(TreeNode):
    label_path: str = ""

    kind = NodeKind.TAG


@dataclass(eq=False, repr=False)
class PropertyGroupNode(TreeNode):
    property_key: str = ""
    property_value: str = ""

    kind = NodeKind.PROPERTY_GROUP


@dataclass(eq=False, repr=False)
class FileNode(TreeNode):
    document: Document | None = None

    kind = NodeKind.FILE


def make_root() -> TagNode:
    return TagNode(id=ROOT_ID, name="Root", depth=0)


def make_tag_node(
    parent: TreeNode,
    label_path: str,
    level: TagLevel | None = None,
    level_index: int | None = None,
) -> TagNode:
    """Create a tag node for ``label_path`` and attach it to ``parent``."""
    if level is not None and level.show_full_path:
        name = label_path
    else:
        name = label_path.rsplit("/", 1)[-1]
    if level is not None and level.label:
        name = f"{level.label}: {name}"
    node = TagNode(
        id=f"{parent.id}/tag:{label_path}",
        name=name,
        depth=parent.depth + 1,
        level_index=level_index,
        label_path=label_path,
    )
    parent.add_child(node)
    return node


def make_property_node(
    parent: TreeNode,
    level: PropertyLevel,
    value: str,
    level_index: int,
) -> PropertyGroupNode:
    """Create a property-group node for one value and attach it to ``parent``."""
    if level.show_property_name:
        name = f"{level.label or level.key} = {value}"
    else:
        name = value
    node = PropertyGroupNode(
        id=f"{parent.id}/prop:{level.key}:{value}",
        name=name,
        depth=parent.depth + 1,
        level_index=level_index,
        property_key=level.key,
        property_value=value,
    )
    parent.add_child(node)
    return node


def make_file_node(parent: TreeNode, document: Document) -> FileNode:
    node = FileNode(
        id=f"{parent.id}/file:{document.path}",
        name=document.basename,
        depth=parent.depth + 1,
        file_count=1,
        document=document,
    )
    parent.add_child(node)
    return node
