"""Hybrid retrieval over indexed narrative entities."""

from loreweave.retrieval.orchestrator import RetrievalConfig, Retriever, fallback_results
from loreweave.retrieval.scoring import (
    category_bonus,
    deduplicate,
    expand_query,
    keyword_score,
    recency_weight,
)

__all__ = [
    "RetrievalConfig",
    "Retriever",
    "category_bonus",
    "deduplicate",
    "expand_query",
    "fallback_results",
    "keyword_score",
    "recency_weight",
]
