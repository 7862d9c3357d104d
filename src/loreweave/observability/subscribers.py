"""Routes every event to a structured log line via the active log formatter.

Always-on subscriber, registered by emitter.configure().
"""

from __future__ import annotations

from dataclasses import asdict

from loreweave.observability.events import (
    BatchIndexCompleted,
    EmbeddingCacheSwept,
    EmbeddingUnavailable,
    EntityIndexed,
    GraphTraversed,
    IndexFailed,
    IndexSkipped,
    ProviderChanged,
    RetrievalCompleted,
    RetrievalDegraded,
    RetrievalStarted,
)
from loreweave.observability.linker import LoreweaveEventLinker
from loreweave.observability.logging import get_logger


def _get_logger():
    """Lazy logger; always reflects the active formatter."""
    return get_logger("loreweave.events")


def _to_dict(event: object) -> dict:
    return asdict(event)  # type: ignore[arg-type]


def register_structlog_subscriber() -> None:
    """Register log handlers for all events on LoreweaveEventLinker."""

    # Retrieval
    @LoreweaveEventLinker.on(RetrievalStarted)
    def _log_retrieval_started(event: RetrievalStarted) -> None:
        _get_logger().debug("retrieval.started", **_to_dict(event))

    @LoreweaveEventLinker.on(RetrievalCompleted)
    def _log_retrieval_completed(event: RetrievalCompleted) -> None:
        _get_logger().info("retrieval.completed", **_to_dict(event))

    @LoreweaveEventLinker.on(RetrievalDegraded)
    def _log_retrieval_degraded(event: RetrievalDegraded) -> None:
        _get_logger().warning("retrieval.degraded", **_to_dict(event))

    # Embeddings
    @LoreweaveEventLinker.on(EmbeddingUnavailable)
    def _log_embedding_unavailable(event: EmbeddingUnavailable) -> None:
        _get_logger().warning("embedding.unavailable", **_to_dict(event))

    @LoreweaveEventLinker.on(EmbeddingCacheSwept)
    def _log_cache_swept(event: EmbeddingCacheSwept) -> None:
        _get_logger().debug("embedding.cache.swept", **_to_dict(event))

    # Indexing
    @LoreweaveEventLinker.on(EntityIndexed)
    def _log_entity_indexed(event: EntityIndexed) -> None:
        _get_logger().info("index.completed", **_to_dict(event))

    @LoreweaveEventLinker.on(IndexSkipped)
    def _log_index_skipped(event: IndexSkipped) -> None:
        _get_logger().debug("index.skipped", **_to_dict(event))

    @LoreweaveEventLinker.on(IndexFailed)
    def _log_index_failed(event: IndexFailed) -> None:
        _get_logger().error("index.failed", **_to_dict(event))

    @LoreweaveEventLinker.on(BatchIndexCompleted)
    def _log_batch_completed(event: BatchIndexCompleted) -> None:
        _get_logger().info("index.batch.completed", **_to_dict(event))

    @LoreweaveEventLinker.on(ProviderChanged)
    def _log_provider_changed(event: ProviderChanged) -> None:
        _get_logger().warning("index.provider_changed", **_to_dict(event))

    # Graph
    @LoreweaveEventLinker.on(GraphTraversed)
    def _log_graph_traversed(event: GraphTraversed) -> None:
        _get_logger().debug("graph.traversed", **_to_dict(event))
