"""
Tree sorting and aggregate counts.

At every level file nodes come first. Each bucket is then ordered by its
own mode: nodes by the mode of the level that produced them, files by the
view's file sort mode.
"""

import re
import unicodedata
from typing import Callable

from ..config.schema import FileSortMode, HierarchyConfig, SortMode, ViewState
from .nodes import FileNode, TreeNode

__all__ = [
    "compute_counts",
    "natural_key",
    "sort_files",
    "sort_modes_for",
    "sort_nodes",
    "sort_tree",
]

_CHUNKS = re.compile(r"(\d+)")


def natural_key(text: str) -> tuple:
    """Case- and accent-insensitive key that orders digit runs numerically.

    >>> sorted(["item10", "Item2", "item1"], key=natural_key)
    ['item1', 'Item2', 'item10']
    """
    folded = unicodedata.normalize("NFKD", text.casefold())
    folded = "".join(ch for ch in folded if not unicodedata.combining(ch))
    key = []
    for chunk in _CHUNKS.split(folded):
        if not chunk:
            continue
        if chunk.isdecimal():
            key.append((0, int(chunk), ""))
        else:
            key.append((1, 0, chunk))
    return tuple(key)


def compute_counts(node: TreeNode) -> int:
    """Set ``file_count`` bottom-up; a file node counts 1."""
    if isinstance(node, FileNode):
        node.file_count = 1
        return 1
    node.file_count = sum(compute_counts(child) for child in node.children)
    return node.file_count


def sort_nodes(nodes: list[TreeNode], mode: SortMode) -> list[TreeNode]:
    if mode == "none":
        return list(nodes)
    by_name = sorted(nodes, key=lambda n: natural_key(n.name))
    if mode == "alpha-asc":
        return by_name
    if mode == "alpha-desc":
        return sorted(nodes, key=lambda n: natural_key(n.name), reverse=True)
    if mode == "count-desc":
        return sorted(by_name, key=lambda n: n.file_count, reverse=True)
    if mode == "count-asc":
        return sorted(by_name, key=lambda n: n.file_count)
    raise ValueError(f"Unknown sort mode: {mode}")


_FILE_ATTRS: dict[str, Callable[[FileNode], float]] = {
    "created": lambda n: n.document.ctime,
    "modified": lambda n: n.document.mtime,
    "size": lambda n: n.document.size,
}


def sort_files(files: list[FileNode], mode: FileSortMode) -> list[FileNode]:
    if mode == "none":
        return list(files)
    if mode in ("alpha-asc", "alpha-desc"):
        return sorted(
            files, key=lambda n: natural_key(n.name), reverse=mode == "alpha-desc"
        )
    attr, _, direction = mode.partition("-")
    if attr not in _FILE_ATTRS or direction not in ("asc", "desc"):
        raise ValueError(f"Unknown file sort mode: {mode}")
    by_name = sorted(files, key=lambda n: natural_key(n.name))
    return sorted(by_name, key=_FILE_ATTRS[attr], reverse=direction == "desc")


def sort_tree(
    node: TreeNode,
    node_mode: Callable[[int | None], SortMode],
    file_mode: FileSortMode,
) -> None:
    """Sort a subtree in place.

    Args:
        node: Subtree root.
        node_mode: Sort mode for nodes produced by a given level index.
        file_mode: Sort mode for file nodes.
    """
    files = [child for child in node.children if isinstance(child, FileNode)]
    others = [child for child in node.children if not isinstance(child, FileNode)]

    if others:
        others = sort_nodes(others, node_mode(others[0].level_index))
    node.children = sort_files(files, file_mode) + others
    node.documents = [f.document for f in node.children if isinstance(f, FileNode)]

    for child in others:
        sort_tree(child, node_mode, file_mode)


def sort_modes_for(
    config: HierarchyConfig | None,
    view_state: ViewState | None,
    default_mode: SortMode = "alpha-asc",
) -> tuple[Callable[[int | None], SortMode], FileSortMode]:
    """Resolve the node and file sort modes for a build."""
    if config is not None:
        node_mode = config.node_sort_mode
        file_mode: FileSortMode = config.default_file_sort_mode
    else:
        def node_mode(_level_index: int | None) -> SortMode:
            return default_mode

        file_mode = "alpha-asc"
    if view_state is not None and view_state.file_sort_mode is not None:
        file_mode = view_state.file_sort_mode
    return node_mode, file_mode
