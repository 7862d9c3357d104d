"""Typed event dataclasses for loreweave observability.

All events are frozen (immutable) dataclasses. Modules emit these and
don't know who listens. Subscribers handle routing.

Grouped by domain: retrieval, embeddings, indexing, graph.
"""

from __future__ import annotations

from dataclasses import dataclass


# ---------------------------------------------------------------------------
# Retrieval
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RetrievalStarted:
    entity_type: str  # "chapter" | "character" | "wiki"
    query_length: int
    candidate_count: int
    top_k: int


@dataclass(frozen=True)
class RetrievalCompleted:
    entity_type: str
    mode: str  # "hybrid" | "vector" | "keyword" | "disabled"
    result_count: int
    candidate_count: int
    degraded: bool
    latency_ms: float


@dataclass(frozen=True)
class RetrievalDegraded:
    entity_type: str
    reason: str


# ---------------------------------------------------------------------------
# Embeddings
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EmbeddingUnavailable:
    provider: str
    reason: str


@dataclass(frozen=True)
class EmbeddingCacheSwept:
    expired: int
    evicted: int
    size: int


# ---------------------------------------------------------------------------
# Indexing
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EntityIndexed:
    entity_type: str
    related_id: str
    records_written: int
    chunked: bool
    latency_ms: float


@dataclass(frozen=True)
class IndexSkipped:
    entity_type: str
    related_id: str
    reason: str  # "unchanged" | "provider_unavailable"


@dataclass(frozen=True)
class IndexFailed:
    entity_type: str
    related_id: str
    error: str


@dataclass(frozen=True)
class BatchIndexCompleted:
    total: int
    succeeded: int
    skipped: int
    failed: int
    latency_ms: float


@dataclass(frozen=True)
class ProviderChanged:
    previous: str
    current: str
    records_cleared: int


# ---------------------------------------------------------------------------
# Graph
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GraphTraversed:
    seed_count: int
    visited_count: int
    result_count: int
    pruned_count: int
    max_depth: int
    latency_ms: float
