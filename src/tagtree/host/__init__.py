"""
Host module - the document store the indexer observes.
"""

from .base import Document, DocumentHost, DocumentMetadata, HostEvent
from .filesystem import MarkdownVaultHost
from .memory import InMemoryHost

__all__ = [
    "Document",
    "DocumentHost",
    "DocumentMetadata",
    "HostEvent",
    "InMemoryHost",
    "MarkdownVaultHost",
]
