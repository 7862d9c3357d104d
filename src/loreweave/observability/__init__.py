"""loreweave observability: typed events, structured logs, trace spans.

Public API:
    emit(event)     Fire-and-forget event emission (no-op if not configured)
    configure(cfg)  Initialize logging, emitter, and subscribers
    reset()         Reset for testing

Logging (formatter x destination, chosen by config):
    get_logger(name)              Get a structured logger
"""

from loreweave.observability.config import ObservabilityConfig
from loreweave.observability.emitter import configure, emit, is_configured, reset
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
from loreweave.observability.logging import get_logger, setup_logging
from loreweave.observability.tracing import traced

__all__ = [
    "BatchIndexCompleted",
    "EmbeddingCacheSwept",
    "EmbeddingUnavailable",
    "EntityIndexed",
    "GraphTraversed",
    "IndexFailed",
    "IndexSkipped",
    "LoreweaveEventLinker",
    "ObservabilityConfig",
    "ProviderChanged",
    "RetrievalCompleted",
    "RetrievalDegraded",
    "RetrievalStarted",
    "configure",
    "emit",
    "get_logger",
    "is_configured",
    "reset",
    "setup_logging",
    "traced",
]
