"""
Tree module - node types, grouping rules, sorting and the tree builder.
"""

from .builder import TreeBuilder, uses_fast_path
from .nodes import FileNode, NodeKind, PropertyGroupNode, TagNode, TreeNode
from .render import format_tree
from .sorting import natural_key

__all__ = [
    "FileNode",
    "NodeKind",
    "PropertyGroupNode",
    "TagNode",
    "TreeBuilder",
    "TreeNode",
    "format_tree",
    "natural_key",
    "uses_fast_path",
]
