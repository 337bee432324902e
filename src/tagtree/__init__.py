"""
tagtree - incremental label index and hierarchy tree builder for markdown vaults.
"""

from .config import AppConfig, HierarchyConfig, PropertyLevel, TagLevel, ViewState, load_config
from .host import Document, DocumentHost, InMemoryHost, MarkdownVaultHost
from .indexer import IndexEvent, IndexerNotReadyError, LabelIndexer
from .tree import TreeBuilder, TreeNode, format_tree

__version__ = "0.4.0"

__all__ = [
    "AppConfig",
    "Document",
    "DocumentHost",
    "HierarchyConfig",
    "IndexEvent",
    "IndexerNotReadyError",
    "InMemoryHost",
    "LabelIndexer",
    "MarkdownVaultHost",
    "PropertyLevel",
    "TagLevel",
    "TreeBuilder",
    "TreeNode",
    "ViewState",
    "format_tree",
    "load_config",
    "__version__",
]
