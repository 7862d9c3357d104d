"""Wiring of store, adapter, cache, indexer and retriever for CLI commands."""

from __future__ import annotations

from loreweave.config import LoreweaveConfig
from loreweave.indexing.indexer import Indexer
from loreweave.retrieval.orchestrator import Retriever
from loreweave.vec.cache import EmbeddingCache
from loreweave.vec.embeddings import EmbeddingAdapter
from loreweave.vec.store import SqliteVectorStore


def open_store(config: LoreweaveConfig, store_path: str | None = None) -> SqliteVectorStore:
    return SqliteVectorStore(store_path or config.store_path)


def build_indexer(
    config: LoreweaveConfig,
    store: SqliteVectorStore,
    chunk: bool = True,
    force: bool = False,
) -> Indexer:
    adapter = EmbeddingAdapter(config.provider_config())
    return Indexer(store, adapter, options=config.index_options(chunk=chunk, force=force))


def build_retriever(config: LoreweaveConfig, store: SqliteVectorStore) -> Retriever:
    adapter = EmbeddingAdapter(config.provider_config())
    cache = None
    if adapter.available:
        cache = EmbeddingCache(
            adapter,
            ttl_seconds=config.cache_ttl_seconds,
            max_size=config.cache_max_size,
        )
    return Retriever(store, cache, config.retrieval_config())
