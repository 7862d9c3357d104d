"""loreweave: retrieval engine for narrative context assembly.

Hybrid (vector + keyword) retrieval over chapters, characters and wiki
entries, incremental indexing into a vector store, and weighted traversal
of the character relationship graph.
"""

from loreweave.graph import RelationshipGraph, RelationWeightResolver, TraversalConfig
from loreweave.indexing import ContentHashCache, Indexer, IndexOptions
from loreweave.models import (
    BatchIndexResult,
    Chapter,
    Character,
    CharacterRelationship,
    EntityType,
    GenerationContext,
    IndexOutcome,
    IndexStatus,
    MatchType,
    ProgressStatus,
    RetrievalMode,
    RetrievalOutcome,
    RetrievalResult,
    VectorRecord,
    WikiEntry,
)
from loreweave.retrieval import RetrievalConfig, Retriever
from loreweave.text import extract_keywords
from loreweave.vec import (
    EmbeddingAdapter,
    EmbeddingCache,
    InMemoryVectorStore,
    ProviderConfig,
    SqliteVectorStore,
    VectorStore,
)

__version__ = "0.1.0"

__all__ = [
    "BatchIndexResult",
    "Chapter",
    "Character",
    "CharacterRelationship",
    "ContentHashCache",
    "EmbeddingAdapter",
    "EmbeddingCache",
    "EntityType",
    "GenerationContext",
    "InMemoryVectorStore",
    "IndexOptions",
    "IndexOutcome",
    "IndexStatus",
    "Indexer",
    "MatchType",
    "ProgressStatus",
    "ProviderConfig",
    "RelationWeightResolver",
    "RelationshipGraph",
    "RetrievalConfig",
    "RetrievalMode",
    "RetrievalOutcome",
    "RetrievalResult",
    "Retriever",
    "SqliteVectorStore",
    "TraversalConfig",
    "VectorRecord",
    "VectorStore",
    "WikiEntry",
    "extract_keywords",
]
