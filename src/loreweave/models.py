"""Core data models for loreweave.

These models define the contract between components:
- Entity providers hand Chapters / Characters / WikiEntries to the core
- The Indexer turns entities into VectorRecords in a VectorStore
- The Retriever turns a query + candidate pool into RetrievalResults
- GenerationContext is what prompt assembly consumes

Narrative entities are owned by the surrounding application. The core
only reads the fields it needs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar, Union

# =============================================================================
# Enums
# =============================================================================


class EntityType(str, Enum):
    """Kinds of entity the core knows how to index and retrieve."""

    CHAPTER = "chapter"
    CHARACTER = "character"
    WIKI = "wiki"


class MatchType(str, Enum):
    """Which signal put a result in the ranking."""

    VECTOR = "vector"
    KEYWORD = "keyword"
    HYBRID = "hybrid"
    GRAPH = "graph"  # surfaced by neighborhood expansion, not by the query text
    FALLBACK = "fallback"  # recency / order padding


class RetrievalMode(str, Enum):
    VECTOR = "vector"
    KEYWORD = "keyword"
    HYBRID = "hybrid"
    DISABLED = "disabled"


class IndexStatus(str, Enum):
    INDEXED = "indexed"
    SKIPPED = "skipped"  # unchanged content, or provider unavailable
    FAILED = "failed"


class ProgressStatus(str, Enum):
    INDEXING = "indexing"
    COMPLETED = "completed"
    ERROR = "error"


# =============================================================================
# Narrative entities (read-only inputs)
# =============================================================================


@dataclass
class Chapter:
    id: str
    order: int
    title: str
    summary: str = ""
    content: str = ""


@dataclass
class CharacterRelationship:
    """A declared, directed relationship from one character to another."""

    target_id: str
    relation: str
    target_name: str = ""
    attitude: str = ""


@dataclass
class Character:
    id: str
    name: str
    role: str = ""
    description: str = ""
    appearance: str = ""
    background: str = ""
    personality: str = ""
    speaking_style: str = ""
    motivation: str = ""
    relationships: list[CharacterRelationship] = field(default_factory=list)
    status: str = ""
    tags: list[str] = field(default_factory=list)


@dataclass
class WikiEntry:
    id: str
    name: str
    category: str = "Other"
    description: str = ""
    aliases: list[str] = field(default_factory=list)

    @property
    def all_names(self) -> list[str]:
        """Primary name followed by every alias."""
        return [self.name, *self.aliases]


Entity = Union[Chapter, Character, WikiEntry]
T = TypeVar("T")


def entity_label(entity: Entity) -> str:
    """Human-readable label for progress reporting and logs."""
    if isinstance(entity, Chapter):
        return entity.title
    return entity.name


# =============================================================================
# Index records
# =============================================================================


@dataclass
class VectorRecord:
    """One embedded slice of an entity.

    An entity owns several records only when its text was chunked; each
    chunk carries chunk_index / total_chunks in metadata. `provider` is the
    "<provider>:<model>" signature of the embedding space the vector lives in.
    """

    id: str
    related_id: str
    type: EntityType
    text: str
    vector: list[float]
    timestamp: float
    provider: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "related_id": self.related_id,
            "type": self.type.value,
            "text": self.text,
            "vector": list(self.vector),
            "timestamp": self.timestamp,
            "provider": self.provider,
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VectorRecord:
        return cls(
            id=data["id"],
            related_id=data["related_id"],
            type=EntityType(data["type"]),
            text=data.get("text", ""),
            vector=list(data.get("vector", [])),
            timestamp=float(data.get("timestamp", 0.0)),
            provider=data.get("provider", ""),
            metadata=dict(data.get("metadata") or {}),
        )


# =============================================================================
# Retrieval outputs
# =============================================================================


@dataclass
class RetrievalResult(Generic[T]):
    """A ranked entity with the score that put it there."""

    entity: T
    relevance_score: float
    match_type: MatchType
    vector_score: float = 0.0
    keyword_score: float = 0.0

    @property
    def entity_id(self) -> str:
        return self.entity.id  # type: ignore[attr-defined]


@dataclass
class RetrievalOutcome(Generic[T]):
    """Ranked results plus how they were obtained.

    degraded=True means the caller got a lower-quality answer than the
    configuration asked for (keyword-only, or deterministic fallback);
    `reason` says why.
    """

    results: list[RetrievalResult[T]]
    mode: RetrievalMode
    degraded: bool = False
    reason: str | None = None

    @property
    def entities(self) -> list[T]:
        return [r.entity for r in self.results]


@dataclass
class GenerationContext:
    """Bundle handed to prompt assembly."""

    relevant_chapters: list[RetrievalResult[Chapter]]
    relevant_characters: list[RetrievalResult[Character]]
    relevant_wiki_entries: list[RetrievalResult[WikiEntry]]
    retrieval_mode: RetrievalMode
    degraded: bool = False
    reasons: list[str] = field(default_factory=list)


@dataclass
class IndexOutcome:
    status: IndexStatus
    related_id: str
    records_written: int = 0
    degraded: bool = False
    reason: str | None = None


@dataclass
class BatchIndexResult:
    total: int = 0
    succeeded: int = 0
    skipped: int = 0
    failed: int = 0
    errors: list[dict[str, str]] = field(default_factory=list)

    def summary(self) -> str:
        return (
            f"Indexed {self.total} entities: {self.succeeded} indexed, "
            f"{self.skipped} skipped, {self.failed} failed"
        )
