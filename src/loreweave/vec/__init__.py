"""Vector layer: embedding backends, query cache, similarity, stores."""

from loreweave.vec.cache import EmbeddingCache
from loreweave.vec.embeddings import (
    EmbeddingAdapter,
    EmbeddingModel,
    OllamaEmbedding,
    OpenAIEmbedding,
    ProviderConfig,
    SentenceTransformerEmbedding,
    build_embedding_model,
)
from loreweave.vec.similarity import cosine_similarity, max_similarity
from loreweave.vec.store import InMemoryVectorStore, SqliteVectorStore, VectorStore

__all__ = [
    "EmbeddingAdapter",
    "EmbeddingCache",
    "EmbeddingModel",
    "InMemoryVectorStore",
    "OllamaEmbedding",
    "OpenAIEmbedding",
    "ProviderConfig",
    "SentenceTransformerEmbedding",
    "SqliteVectorStore",
    "VectorStore",
    "build_embedding_model",
    "cosine_similarity",
    "max_similarity",
]
