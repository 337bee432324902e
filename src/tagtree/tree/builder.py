"""
TreeBuilder - compiles the label index and a hierarchy view into a tree.

Two modes share the node, sorting and counting machinery:

- Fast path (``build_from_tags``): one tag node per indexed label, each
  document placed under its most specific labels. Used for the plain
  "every label, unlimited depth" view.
- General path (``build_from_hierarchy``): consumes the configured levels
  left to right. Tag levels spanning several segments are expanded into
  one grouping per segment; a virtual tag level interleaves the next
  configured level between its segments.

A build only reads the indexer. Every call returns a fresh tree owned by
the caller.
"""

import time

import structlog

from ..config.schema import HierarchyConfig, PropertyLevel, SortMode, TagLevel, ViewState
from ..host.base import Document
from ..indexer.index import LabelIndexer
from ..indexer.labels import is_under, label_depth, normalize_label
from .matching import group_by_level, group_by_property, group_by_tag, resolve_base
from .nodes import (
    TagNode,
    TreeNode,
    make_file_node,
    make_property_node,
    make_root,
    make_tag_node,
)
from .sorting import compute_counts, sort_modes_for, sort_tree

logger = structlog.get_logger()

__all__ = ["TreeBuilder", "uses_fast_path"]


def uses_fast_path(config: HierarchyConfig) -> bool:
    """True when a view is a single unconstrained tag level of unlimited depth."""
    if len(config.levels) != 1:
        return False
    level = config.levels[0]
    return (
        isinstance(level, TagLevel)
        and not level.key
        and level.is_unlimited
        and not level.virtual
    )


class TreeBuilder:
    """Builds display trees from a ready ``LabelIndexer``."""

    def __init__(self, indexer: LabelIndexer) -> None:
        self.indexer = indexer
        self.log = logger.bind(component="tree_builder")

    def build_from_tags(
        self,
        root_label: str | None = None,
        sort_mode: SortMode = "alpha-asc",
        config: HierarchyConfig | None = None,
        view_state: ViewState | None = None,
    ) -> TagNode:
        """Build the full label hierarchy, optionally limited to one family.

        Args:
            root_label: Only show this label and the labels nested under it.
            sort_mode: Node sort mode when no config is given.
            config: View whose level drives node names and sort modes.
            view_state: Runtime overrides (file sort mode).

        Returns:
            Root node (id ``"root"``).
        """
        start = time.monotonic()
        root = make_root()
        level = config.levels[0] if config is not None else None
        if level is not None and not isinstance(level, TagLevel):
            level = None

        if root_label:
            labels = self.indexer.get_labels_under(normalize_label(root_label))
        else:
            labels = self.indexer.get_all_labels()

        # Parents are always created before their children
        nodes: dict[str, TagNode] = {}
        for label in sorted(labels, key=label_depth):
            parent_label = label.rpartition("/")[0]
            parent = nodes.get(parent_label, root)
            nodes[label] = make_tag_node(parent, label, level, level_index=0)

        for document in self.indexer.get_all_documents():
            for label in self._most_specific_labels(document, nodes):
                make_file_node(nodes[label], document)

        compute_counts(root)
        node_mode, file_mode = sort_modes_for(config, view_state, sort_mode)
        sort_tree(root, node_mode, file_mode)

        self.log.debug(
            "tree.built",
            mode="tags",
            root_label=root_label,
            labels=len(nodes),
            files=root.file_count,
            duration_ms=round((time.monotonic() - start) * 1000, 1),
        )
        return root

    def _most_specific_labels(self, document: Document, scope: dict[str, TagNode]) -> list[str]:
        """In-scope labels of a document that have none of its other labels below them.

        A document bearing two distinct leaf labels is placed under both.
        """
        labels = [label for label in self.indexer.get_labels_for_document(document) if label in scope]
        return [
            label
            for label in labels
            if not any(other != label and is_under(other, label) for other in labels)
        ]

    def build_from_hierarchy(
        self,
        config: HierarchyConfig,
        view_state: ViewState | None = None,
    ) -> TagNode:
        """Build the tree for a hierarchy view.

        Args:
            config: Validated view configuration.
            view_state: Runtime overrides (file sort mode).

        Returns:
            Root node (id ``"root"``).
        """
        if uses_fast_path(config):
            return self.build_from_tags(
                config.root_tag,
                config.default_node_sort_mode,
                config,
                view_state,
            )

        return self.build_general(config, view_state)

    def build_general(
        self,
        config: HierarchyConfig,
        view_state: ViewState | None = None,
    ) -> TagNode:
        """Build a view level by level, without the fast path."""
        start = time.monotonic()
        documents = self.indexer.get_all_documents()
        if config.root_tag:
            scope = self.indexer.get_documents_for_label(config.root_tag)
            documents = [document for document in documents if document in scope]

        root = make_root()
        _HierarchyBuild(self.indexer, config).build_level(documents, 0, None, root)

        # Counts first so count-based sorting sees final values
        compute_counts(root)
        _prune_empty(root)
        node_mode, file_mode = sort_modes_for(config, view_state)
        sort_tree(root, node_mode, file_mode)

        self.log.debug(
            "tree.built",
            mode="hierarchy",
            view=config.name,
            documents=len(documents),
            files=root.file_count,
            duration_ms=round((time.monotonic() - start) * 1000, 1),
        )
        return root


class _HierarchyBuild:
    """State of one general-path build: the indexer and the view."""

    def __init__(self, indexer: LabelIndexer, config: HierarchyConfig) -> None:
        self.indexer = indexer
        self.config = config
        self.levels = config.levels

    def build_level(
        self,
        documents: list[Document],
        index: int,
        context: str | None,
        parent: TreeNode,
    ) -> None:
        """Group ``documents`` by level ``index`` and attach the result to ``parent``.

        Args:
            documents: Documents that reached this level.
            index: Level to apply.
            context: Label of the nearest enclosing tag group, if any.
            parent: Node receiving the groups (or the files, past the last level).
        """
        if not documents:
            return
        if index >= len(self.levels):
            for document in documents:
                make_file_node(parent, document)
            return

        level = self.levels[index]
        if isinstance(level, TagLevel):
            self.build_tag_depths(
                documents,
                index,
                resolve_base(level.key, context),
                sub_depth=0,
                parent=parent,
                resume_index=index + 1,
            )
            return

        grouping = group_by_property(documents, self.indexer, level)
        self._attach_partial(grouping.unmatched, index, parent)
        for value, members in grouping.groups.items():
            node = make_property_node(parent, level, value, index)
            self.build_level(members, index + 1, context, node)

    def build_tag_depths(
        self,
        documents: list[Document],
        index: int,
        base: str,
        sub_depth: int,
        parent: TreeNode,
        resume_index: int,
    ) -> None:
        """Apply one segment of the tag level ``index`` below ``base``.

        Args:
            documents: Documents to group.
            index: Tag level being expanded.
            base: Label path the new segment extends.
            sub_depth: Number of segments of this level already consumed.
            parent: Node receiving the groups.
            resume_index: Level that documents leaving this tag level continue with.
        """
        level: TagLevel = self.levels[index]
        grouping = group_by_tag(documents, self.indexer, level, base, first_depth=sub_depth == 0)

        if sub_depth == 0:
            self._attach_partial(grouping.unmatched, index, parent)
        else:
            # Stopped matching below an already-matched segment
            self.build_level(grouping.unmatched, resume_index, base, parent)

        for key, members in grouping.groups.items():
            node = make_tag_node(parent, key, level, index)
            descend = key not in grouping.terminal and (
                level.is_unlimited or sub_depth + 1 < level.depth
            )
            if not descend:
                self.build_level(members, resume_index, key, node)
            elif level.virtual and index + 1 < len(self.levels) and resume_index == index + 1:
                self._interleave(members, index, key, sub_depth + 1, node)
            else:
                self.build_tag_depths(members, index, key, sub_depth + 1, node, resume_index)

    def _interleave(
        self,
        documents: list[Document],
        index: int,
        base: str,
        sub_depth: int,
        parent: TreeNode,
    ) -> None:
        """Group by the next level between two segments of a virtual tag level."""
        next_index = index + 1
        next_level = self.levels[next_index]
        grouping = group_by_level(documents, self.indexer, next_level, base)

        self.build_tag_depths(grouping.unmatched, index, base, sub_depth, parent, next_index)
        for key, members in grouping.groups.items():
            if isinstance(next_level, PropertyLevel):
                node = make_property_node(parent, next_level, key, next_index)
            else:
                node = make_tag_node(parent, key, next_level, next_index)
            self.build_tag_depths(members, index, base, sub_depth, node, next_index + 1)

    def _attach_partial(self, documents: list[Document], index: int, parent: TreeNode) -> None:
        """Show documents that stopped matching, when the view asks for partial matches."""
        if index > 0 and self.config.show_partial_matches:
            for document in documents:
                make_file_node(parent, document)


def _prune_empty(node: TreeNode) -> None:
    """Drop group nodes whose documents were all excluded further down."""
    node.children = [c for c in node.children if c.file_count > 0]
    for c in node.children:
        _prune_empty(c)
