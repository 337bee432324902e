"""
Label indexer - reverse indices over a host's documents.

Keeps four maps current as documents change:

- label → documents (including every prefix of each exact label)
- property → stringified value → documents
- document → exact labels
- document → properties

The full index is built once when the host's metadata store is ready;
after that every change is applied incrementally (remove the document's
old entries, then index it again). A full rebuild only happens through
an explicit ``refresh()``.

Invariants:
- A document is in ``label → documents[L]`` iff one of its exact labels
  equals L or has L as a proper prefix.
- Empty sets are pruned as soon as they become empty.
- Mutations never yield, so queries never see a half-applied update.
"""

import asyncio
import time
from enum import Enum
from typing import Any

import structlog

from ..events import EventEmitter
from ..host.base import Document, DocumentHost, DocumentMetadata, HostEvent
from .labels import (
    RESERVED_PROPERTIES,
    is_under,
    normalize_label,
    prefix_chain,
    stringify_value,
)

logger = structlog.get_logger()

__all__ = [
    "IndexEvent",
    "IndexerNotReadyError",
    "IndexerState",
    "LabelIndexer",
]

_EMPTY: frozenset[Document] = frozenset()


class IndexerNotReadyError(RuntimeError):
    """The indexer was used before ``initialize()`` completed."""


class IndexerState(Enum):
    """Indexer lifecycle."""

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"


class IndexEvent(Enum):
    """Notifications emitted by the indexer."""

    # payload: the affected document, or None after a full refresh
    INDEX_UPDATED = "index-updated"


class LabelIndexer(EventEmitter):
    """Incremental index of labels and properties for a document host."""

    def __init__(self, host: DocumentHost) -> None:
        """Initialize an empty indexer.

        Args:
            host: Document host providing documents, metadata and events.
        """
        super().__init__()
        self.host = host
        self.state = IndexerState.UNINITIALIZED

        self._label_to_docs: dict[str, set[Document]] = {}
        self._property_to_value_to_docs: dict[str, dict[str, set[Document]]] = {}
        # Insertion-ordered; also the set of indexed documents
        self._doc_to_labels: dict[Document, tuple[str, ...]] = {}
        self._doc_to_properties: dict[Document, dict[str, Any]] = {}
        self._prefix_chains: dict[str, tuple[str, ...]] = {}

        self._ready_event: asyncio.Event | None = None
        self.last_indexed_at: float = 0.0
        self.log = logger.bind(component="indexer")

    # -- Lifecycle -----------------------------------------------------------

    async def initialize(self) -> None:
        """Wait for the host to be ready, index everything, subscribe to changes.

        Idempotent: a call after success returns immediately, and calls made
        while initialization is in flight wait for it to finish.

        Raises:
            IndexerNotReadyError: If this call waited on an initialization
                that failed in another caller.
        """
        if self.state is IndexerState.READY:
            return
        if self.state is IndexerState.INITIALIZING and self._ready_event is not None:
            await self._ready_event.wait()
            if self.state is not IndexerState.READY:
                raise IndexerNotReadyError(
                    "Concurrent initialization failed; call initialize() again"
                )
            return

        self.state = IndexerState.INITIALIZING
        self._ready_event = asyncio.Event()
        try:
            if not self.host.is_ready:
                self.log.debug("indexer.waiting_for_host")
                await self.host.wait_until_ready()

            start = time.monotonic()
            self._index_all()
            self._subscribe()
            self.state = IndexerState.READY
            self.log.info(
                "indexer.ready",
                documents=len(self._doc_to_labels),
                labels=len(self._label_to_docs),
                duration_ms=round((time.monotonic() - start) * 1000, 1),
            )
        except BaseException:
            self.state = IndexerState.UNINITIALIZED
            raise
        finally:
            self._ready_event.set()

    def close(self) -> None:
        """Unsubscribe from the host and drop every index."""
        if self.state is IndexerState.READY:
            self._unsubscribe()
        self._clear()
        self.state = IndexerState.UNINITIALIZED

    @property
    def is_ready(self) -> bool:
        return self.state is IndexerState.READY

    def _require_ready(self) -> None:
        if self.state is not IndexerState.READY:
            raise IndexerNotReadyError(
                f"Indexer is {self.state.value}; await initialize() first"
            )

    def _subscribe(self) -> None:
        self.host.events.on(HostEvent.CHANGED, self._on_changed)
        self.host.events.on(HostEvent.DELETED, self._on_deleted)
        self.host.events.on(HostEvent.RENAMED, self._on_renamed)

    def _unsubscribe(self) -> None:
        self.host.events.off(HostEvent.CHANGED, self._on_changed)
        self.host.events.off(HostEvent.DELETED, self._on_deleted)
        self.host.events.off(HostEvent.RENAMED, self._on_renamed)

    # -- Host event handlers ---------------------------------------------------

    def _on_changed(self, document: Document) -> None:
        self.update_document(document)

    def _on_deleted(self, document: Document) -> None:
        self.remove_document(document)
        self.emit(IndexEvent.INDEX_UPDATED, document)

    def _on_renamed(self, document: Document, old_path: str) -> None:
        self.log.debug("indexer.renamed", old_path=old_path, path=document.path)
        self.update_document(document)

    # -- Mutation --------------------------------------------------------------

    def refresh(self) -> None:
        """Clear every index and re-index all documents the host knows."""
        self._require_ready()
        self._clear()
        self._index_all()
        self.log.info("indexer.refreshed", documents=len(self._doc_to_labels))
        self.emit(IndexEvent.INDEX_UPDATED, None)

    def update_document(self, document: Document) -> None:
        """Re-index one document and notify listeners."""
        self._require_ready()
        self.remove_document(document)
        self.index_document(document)
        self.emit(IndexEvent.INDEX_UPDATED, document)

    def index_document(self, document: Document) -> bool:
        """Add one document's labels and properties to the indices.

        A document with no cached metadata is skipped. Errors are logged
        and contained: the document then contributes nothing.

        Returns:
            True if the document was indexed.
        """
        if document in self._doc_to_labels:
            self.remove_document(document)

        try:
            metadata = self.host.get_metadata(document)
            if metadata is None:
                self.log.warning("indexer.document_skipped", path=document.path, reason="no metadata")
                return False
            labels = self._extract_labels(metadata)
            properties = self._extract_properties(metadata)
        except Exception as e:
            self.log.error("indexer.document_failed", path=document.path, error=str(e))
            return False

        for label in labels:
            for prefix in self._prefix_chain(label):
                self._label_to_docs.setdefault(prefix, set()).add(document)
        self._doc_to_labels[document] = labels

        for key, value in properties.items():
            values = self._property_to_value_to_docs.setdefault(key, {})
            values.setdefault(stringify_value(value), set()).add(document)
        self._doc_to_properties[document] = properties

        self.last_indexed_at = time.time()
        return True

    def remove_document(self, document: Document) -> None:
        """Remove one document from every index.

        Uses the labels and properties recorded when the document was last
        indexed, so it must run before the document is indexed again.
        """
        labels = self._doc_to_labels.pop(document, None)
        if labels is not None:
            for label in labels:
                for prefix in self._prefix_chain(label):
                    docs = self._label_to_docs.get(prefix)
                    if docs is None:
                        continue
                    docs.discard(document)
                    if not docs:
                        del self._label_to_docs[prefix]
                        self._prefix_chains.pop(prefix, None)

        properties = self._doc_to_properties.pop(document, None)
        if properties is not None:
            for key, value in properties.items():
                values = self._property_to_value_to_docs.get(key)
                if values is None:
                    continue
                value_key = stringify_value(value)
                docs = values.get(value_key)
                if docs is not None:
                    docs.discard(document)
                    if not docs:
                        del values[value_key]
                if not values:
                    del self._property_to_value_to_docs[key]

    def _index_all(self) -> None:
        skipped = 0
        for document in self.host.documents():
            if not self.index_document(document):
                skipped += 1
        if skipped:
            self.log.warning("indexer.documents_skipped", count=skipped)

    def _clear(self) -> None:
        self._label_to_docs.clear()
        self._property_to_value_to_docs.clear()
        self._doc_to_labels.clear()
        self._doc_to_properties.clear()
        self._prefix_chains.clear()

    def _prefix_chain(self, label: str) -> tuple[str, ...]:
        chain = self._prefix_chains.get(label)
        if chain is None:
            chain = prefix_chain(label)
            self._prefix_chains[label] = chain
        return chain

    @staticmethod
    def _extract_labels(metadata: DocumentMetadata) -> tuple[str, ...]:
        raw: list[str] = []
        frontmatter = metadata.frontmatter or {}
        fm_labels = frontmatter.get("tags")
        if isinstance(fm_labels, str):
            raw.append(fm_labels)
        elif isinstance(fm_labels, list):
            raw.extend(item for item in fm_labels if isinstance(item, str))
        raw.extend(metadata.labels)

        labels: dict[str, None] = {}
        for label in raw:
            normalized = normalize_label(label)
            if normalized:
                labels[normalized] = None
        return tuple(labels)

    @staticmethod
    def _extract_properties(metadata: DocumentMetadata) -> dict[str, Any]:
        if not metadata.frontmatter:
            return {}
        return {
            str(key): value
            for key, value in metadata.frontmatter.items()
            if key not in RESERVED_PROPERTIES
        }

    # -- Queries ---------------------------------------------------------------

    def get_documents_for_label(self, label: str) -> frozenset[Document] | set[Document]:
        """Documents bearing ``label`` or any label nested under it.

        Returns the maintained set itself; callers must not mutate it.
        """
        self._require_ready()
        return self._label_to_docs.get(normalize_label(label), _EMPTY)

    def get_documents_for_property(self, property: str, value: Any = None) -> set[Document]:
        """Documents with a property, optionally restricted to one value.

        Args:
            property: Property name.
            value: Value to match (compared in stringified form). None means
                any value.
        """
        self._require_ready()
        values = self._property_to_value_to_docs.get(property)
        if not values:
            return set()
        if value is not None:
            return set(values.get(stringify_value(value), _EMPTY))
        documents: set[Document] = set()
        for docs in values.values():
            documents |= docs
        return documents

    def get_property_values(self, property: str) -> list[str]:
        """Stringified values currently indexed for a property."""
        self._require_ready()
        return list(self._property_to_value_to_docs.get(property, {}))

    def get_labels_under(self, root_label: str) -> list[str]:
        """Every indexed label equal to ``root_label`` or nested under it."""
        self._require_ready()
        root = normalize_label(root_label)
        return [label for label in self._label_to_docs if is_under(label, root)]

    def get_all_labels(self) -> list[str]:
        """Every indexed label, prefixes included."""
        self._require_ready()
        return list(self._label_to_docs)

    def get_labels_for_document(self, document: Document) -> tuple[str, ...]:
        """Exact labels of a document (no prefixes), in extraction order."""
        self._require_ready()
        return self._doc_to_labels.get(document, ())

    def get_properties_for_document(self, document: Document) -> dict[str, Any]:
        self._require_ready()
        return self._doc_to_properties.get(document, {})

    def get_all_documents(self) -> list[Document]:
        """Indexed documents in index order."""
        self._require_ready()
        return list(self._doc_to_labels)

    @property
    def document_count(self) -> int:
        return len(self._doc_to_labels)
