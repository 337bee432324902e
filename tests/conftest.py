"""
Fixtures compartidas: un vault en memoria y un indexer inicializado sobre él.
"""

import asyncio
from typing import Any

import pytest

from tagtree.host import Document, InMemoryHost
from tagtree.indexer import LabelIndexer
from tagtree.tree import TreeBuilder, TreeNode


class Vault:
    """Host en memoria con helpers para poblarlo e indexarlo."""

    def __init__(self) -> None:
        self.host = InMemoryHost()
        self.indexer = LabelIndexer(self.host)

    def add(
        self,
        path: str,
        tags: list[str] | None = None,
        size: int = 0,
        **properties: Any,
    ) -> Document:
        """Agrega una nota; ``tags`` son labels inline, los kwargs van al frontmatter."""
        return self.host.add(path, labels=tags, properties=properties or None, size=size)

    def index(self) -> LabelIndexer:
        asyncio.run(self.indexer.initialize())
        return self.indexer

    def builder(self) -> TreeBuilder:
        if not self.indexer.is_ready:
            self.index()
        return TreeBuilder(self.indexer)


@pytest.fixture
def vault() -> Vault:
    return Vault()


def names(node: TreeNode) -> list[str]:
    """Nombres de los hijos de un nodo, en orden."""
    return [child.name for child in node.children]


def child(node: TreeNode, name: str) -> TreeNode:
    """El único hijo llamado ``name``."""
    matches = [c for c in node.children if c.name == name]
    assert len(matches) == 1, f"expected one child {name!r} in {names(node)}"
    return matches[0]


def file_paths(node: TreeNode) -> list[str]:
    """Paths de los hijos archivo de un nodo, en orden."""
    return [c.document.path for c in node.children if c.is_file]
