"""
Plain-text rendering of a built tree, for the CLI.
"""

from .nodes import FileNode, TreeNode

__all__ = ["format_tree"]


def format_tree(
    root: TreeNode,
    max_depth: int | None = None,
    show_files: bool = True,
    show_counts: bool = True,
) -> str:
    """Render a tree with Unicode connectors.

    Args:
        root: Root node; rendered as the header line.
        max_depth: Deepest node depth to render (None = everything).
        show_files: Whether file nodes are listed.
        show_counts: Whether group nodes show their aggregate count.

    Returns:
        Multi-line string.
    """
    header = f"{root.name} ({root.file_count})" if show_counts else root.name
    lines = [header]
    _render_node(root, lines, "", max_depth, show_files, show_counts)
    return "\n".join(lines)


def _render_node(
    node: TreeNode,
    lines: list[str],
    prefix: str,
    max_depth: int | None,
    show_files: bool,
    show_counts: bool,
) -> None:
    """Render a node's children recursively."""
    items = [
        child
        for child in node.children
        if (show_files or not isinstance(child, FileNode))
        and (max_depth is None or child.depth <= max_depth)
    ]

    for i, child in enumerate(items):
        is_last = i == len(items) - 1
        connector = "└── " if is_last else "├── "
        child_prefix = prefix + ("    " if is_last else "│   ")

        if isinstance(child, FileNode):
            lines.append(f"{prefix}{connector}{child.name}")
        else:
            count = f" ({child.file_count})" if show_counts else ""
            lines.append(f"{prefix}{connector}{child.name}{count}")
            _render_node(child, lines, child_prefix, max_depth, show_files, show_counts)
