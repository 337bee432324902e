"""
In-memory host, for embedding the indexer in another program and for tests.
"""

import asyncio
import time
from typing import Any

from .base import Document, DocumentHost, DocumentMetadata, HostEvent

__all__ = ["InMemoryHost"]


class InMemoryHost(DocumentHost):
    """Host whose documents and metadata are set programmatically.

    Mutating methods emit the same events a real host would, so the
    indexer's incremental path can be driven directly.
    """

    def __init__(self, ready: bool = True) -> None:
        super().__init__()
        self._documents: list[Document] = []
        self._metadata: dict[Document, DocumentMetadata] = {}
        self._ready = asyncio.Event()
        if ready:
            self._ready.set()

    # -- DocumentHost --------------------------------------------------------

    def documents(self) -> list[Document]:
        return list(self._documents)

    def get_metadata(self, document: Document) -> DocumentMetadata | None:
        return self._metadata.get(document)

    @property
    def is_ready(self) -> bool:
        return self._ready.is_set()

    async def wait_until_ready(self) -> None:
        await self._ready.wait()

    def mark_ready(self) -> None:
        """Signal that the metadata store finished loading."""
        if not self._ready.is_set():
            self._ready.set()
            self.events.emit(HostEvent.RESOLVED)

    # -- Mutation ------------------------------------------------------------

    def add(
        self,
        path: str,
        labels: list[str] | None = None,
        properties: dict[str, Any] | None = None,
        *,
        with_metadata: bool = True,
        size: int = 0,
    ) -> Document:
        """Add a document without notifying listeners.

        Args:
            path: Vault-relative path.
            labels: Inline labels, with or without a leading ``#``.
            properties: Frontmatter blob.
            with_metadata: If False the document has no cached metadata.
            size: File size reported in the document stat.
        """
        now = time.time()
        document = Document(path=path, ctime=now, mtime=now, size=size)
        self._documents.append(document)
        if with_metadata:
            self._metadata[document] = DocumentMetadata(
                labels=list(labels or []),
                frontmatter=dict(properties) if properties is not None else None,
            )
        return document

    def update(
        self,
        document: Document,
        labels: list[str] | None = None,
        properties: dict[str, Any] | None = None,
    ) -> None:
        """Replace a document's metadata and emit CHANGED."""
        self._metadata[document] = DocumentMetadata(
            labels=list(labels or []),
            frontmatter=dict(properties) if properties is not None else None,
        )
        document.mtime = time.time()
        self.events.emit(HostEvent.CHANGED, document)

    def delete(self, document: Document) -> None:
        """Forget a document and emit DELETED."""
        if document in self._documents:
            self._documents.remove(document)
        self._metadata.pop(document, None)
        self.events.emit(HostEvent.DELETED, document)

    def rename(self, document: Document, new_path: str) -> None:
        """Move a document to a new path and emit RENAMED."""
        old_path = document.path
        document.path = new_path
        self.events.emit(HostEvent.RENAMED, document, old_path)

    def drop_metadata(self, document: Document) -> None:
        """Simulate a metadata cache miss for a document."""
        self._metadata.pop(document, None)

    def clear(self) -> None:
        """Remove every document without notifying listeners."""
        self._documents.clear()
        self._metadata.clear()
