"""Incremental indexing of narrative entities into a vector store."""

from loreweave.indexing.canonical import (
    CanonicalText,
    canonical_text,
    content_hash,
    entity_type_of,
    searchable_text,
)
from loreweave.indexing.indexer import ContentHashCache, Indexer, IndexOptions, ProgressCallback

__all__ = [
    "CanonicalText",
    "ContentHashCache",
    "IndexOptions",
    "Indexer",
    "ProgressCallback",
    "canonical_text",
    "content_hash",
    "entity_type_of",
    "searchable_text",
]
