"""
Indexer module - incremental label/property index.
"""

from .index import IndexEvent, IndexerNotReadyError, IndexerState, LabelIndexer
from .labels import normalize_label, prefix_chain, stringify_value

__all__ = [
    "IndexEvent",
    "IndexerNotReadyError",
    "IndexerState",
    "LabelIndexer",
    "normalize_label",
    "prefix_chain",
    "stringify_value",
]
