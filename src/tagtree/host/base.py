"""
Host boundary - documents and the metadata store the indexer reads from.

The host owns documents. The indexer only keeps references to them and
reads two facts per document through ``get_metadata``: the raw inline
labels and the frontmatter property blob.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePosixPath
from typing import Any

from ..events import EventEmitter

__all__ = [
    "Document",
    "DocumentHost",
    "DocumentMetadata",
    "HostEvent",
]


class HostEvent(Enum):
    """Notifications a host delivers, one at a time."""

    CHANGED = "changed"    # payload: document
    DELETED = "deleted"    # payload: document
    RENAMED = "renamed"    # payload: document, old path
    RESOLVED = "resolved"  # metadata store finished its initial load


@dataclass(eq=False)
class Document:
    """Handle to a host-managed file.

    Hashing is by identity: a rename mutates ``path`` on the same object,
    so the indexer's maps keep working across renames.
    """

    path: str
    ctime: float = 0.0
    mtime: float = 0.0
    size: int = 0

    @property
    def name(self) -> str:
        return PurePosixPath(self.path).name

    @property
    def basename(self) -> str:
        """File name without its extension."""
        return PurePosixPath(self.path).stem

    def __repr__(self) -> str:
        return f"<Document {self.path}>"


@dataclass
class DocumentMetadata:
    """Facts the host has cached for a document."""

    labels: list[str] = field(default_factory=list)
    frontmatter: dict[str, Any] | None = None


class DocumentHost(ABC):
    """Source of documents, metadata and change notifications."""

    def __init__(self) -> None:
        self.events = EventEmitter()

    @abstractmethod
    def documents(self) -> list[Document]:
        """Every document currently known to the host."""

    @abstractmethod
    def get_metadata(self, document: Document) -> DocumentMetadata | None:
        """Cached metadata for a document, or None on a cache miss."""

    @property
    @abstractmethod
    def is_ready(self) -> bool:
        """True once the metadata store finished its initial load."""

    @abstractmethod
    async def wait_until_ready(self) -> None:
        """Suspend until ``is_ready`` is True."""
