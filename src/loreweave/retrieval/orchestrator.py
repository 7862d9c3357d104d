"""Hybrid retrieval: vector + keyword + domain bonuses, one ranking per type.

Per entity type:
    1. Expand the query into variants
    2. Embed the variants (through the cache) and load this type's vectors
    3. Score every candidate:
           vector  = best cosine over (variant, candidate chunk) pairs
           keyword = share of query keywords in the candidate text + name bonus
           score   = vector * 0.6 + keyword * 0.4   (keyword alone without vectors)
       then chapter recency, wiki category, and character graph bonuses
    4. Drop candidates under the similarity floor unless they matched lexically
    5. Deduplicate by keyword-set overlap
    6. Top K (chapters back in narrative order)
    7. Open slots are topped up: latest chapters, graph neighbors of the
       ranked characters, and the deterministic fallback order whenever
       vectors were expected but missing. Top-ups respect the dedup rule.

An exception anywhere in 2-6 yields the deterministic fallback instead of
propagating. Outcomes say when either happened (degraded, reason).
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from loreweave.graph.engine import RelationshipGraph, TraversalConfig
from loreweave.graph.weights import RelationWeightResolver
from loreweave.indexing.canonical import searchable_text
from loreweave.models import (
    Chapter,
    Character,
    Entity,
    EntityType,
    GenerationContext,
    MatchType,
    RetrievalMode,
    RetrievalOutcome,
    RetrievalResult,
    WikiEntry,
)
from loreweave.observability.emitter import emit
from loreweave.observability.events import (
    RetrievalCompleted,
    RetrievalDegraded,
    RetrievalStarted,
)
from loreweave.observability.logging import get_logger
from loreweave.observability.tracing import traced
from loreweave.retrieval.scoring import (
    category_bonus,
    deduplicate,
    expand_query,
    keyword_score,
    recency_weight,
)
from loreweave.text.keywords import extract_keywords, jaccard_similarity, keyword_set
from loreweave.vec.cache import EmbeddingCache
from loreweave.vec.similarity import max_similarity
from loreweave.vec.store import VectorStore

logger = get_logger(__name__)

_PRIORITY_MARKERS = ("protagonist", "main", "active", "lead", "主角", "主要", "核心")


@dataclass
class RetrievalConfig:
    enabled: bool = True
    top_k_chapters: int = 3
    top_k_characters: int = 5
    top_k_wiki: int = 5
    vector_weight: float = 0.6
    keyword_weight: float = 0.4
    similarity_floor: float = 0.3
    chapter_keyword_bar: float = 0.1
    keyword_bar: float = 0.0  # characters and wiki entries
    dedup_threshold: float = 0.7
    graph_depth: int = 2
    graph_bonus: float = 0.2
    graph_seed_count: int = 3

    def top_k(self, kind: EntityType) -> int:
        if kind is EntityType.CHAPTER:
            return self.top_k_chapters
        if kind is EntityType.CHARACTER:
            return self.top_k_characters
        return self.top_k_wiki


@dataclass
class _Scored:
    entity: Any
    score: float
    vector_score: float
    keyword_score: float
    text: str

    @property
    def id(self) -> str:
        return self.entity.id


def _names(entity: Entity) -> list[str]:
    if isinstance(entity, Chapter):
        return [entity.title]
    if isinstance(entity, WikiEntry):
        return entity.all_names
    return [entity.name]


def _entity_type(entity_type: EntityType | str) -> EntityType:
    return entity_type if isinstance(entity_type, EntityType) else EntityType(entity_type)


def _is_priority(character: Character) -> bool:
    haystack = " ".join([character.role, character.status, *character.tags]).lower()
    return any(marker in haystack for marker in _PRIORITY_MARKERS)


def fallback_results(
    kind: EntityType,
    candidates: Sequence[Entity],
    top_k: int,
) -> list[RetrievalResult]:
    """Deterministic stand-in ranking used when scoring cannot run.

    Chapters: the K latest by order, returned in narrative order.
    Characters: protagonist/active-tagged first, then pool order.
    Wiki: the first K entries.
    """
    if kind is EntityType.CHAPTER:
        latest = sorted(candidates, key=lambda c: c.order, reverse=True)[:top_k]  # type: ignore[union-attr]
        chosen: list = sorted(latest, key=lambda c: c.order)  # type: ignore[union-attr]
    elif kind is EntityType.CHARACTER:
        priority = [c for c in candidates if _is_priority(c)]  # type: ignore[arg-type]
        rest = [c for c in candidates if not _is_priority(c)]  # type: ignore[arg-type]
        chosen = [*priority, *rest][:top_k]
    else:
        chosen = list(candidates)[:top_k]
    return [
        RetrievalResult(entity=e, relevance_score=0.0, match_type=MatchType.FALLBACK)
        for e in chosen
    ]


class Retriever:
    """Hybrid retrieval orchestrator over one vector store.

    `cache` is None when no embedding provider is configured; retrieval
    then ranks by keyword overlap alone and reports RetrievalMode.KEYWORD.
    """

    def __init__(
        self,
        store: VectorStore,
        cache: EmbeddingCache | None = None,
        config: RetrievalConfig | None = None,
        resolver: RelationWeightResolver | None = None,
    ) -> None:
        self.store = store
        self.cache = cache
        self.config = config or RetrievalConfig()
        self.resolver = resolver or RelationWeightResolver()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def retrieve(
        self,
        query: str,
        pool: Sequence[Entity],
        entity_type: EntityType | str,
        top_k: int | None = None,
        exclude_id: str | None = None,
    ) -> RetrievalOutcome:
        """Rank `pool` against `query`.

        Scoring failures never raise; they come back as a degraded fallback
        outcome. An `entity_type` string that names no EntityType is a caller
        bug and raises ValueError before any retrieval starts.
        """
        kind = _entity_type(entity_type)
        k = top_k if top_k is not None else self.config.top_k(kind)
        candidates = [e for e in pool if e.id != exclude_id]
        t0 = time.perf_counter()

        emit(
            RetrievalStarted(
                entity_type=kind.value,
                query_length=len(query or ""),
                candidate_count=len(candidates),
                top_k=k,
            )
        )

        if not self.config.enabled:
            outcome = RetrievalOutcome(
                results=fallback_results(kind, candidates, k),
                mode=RetrievalMode.DISABLED,
                reason="retrieval disabled",
            )
        else:
            try:
                outcome = await self._retrieve(query, candidates, kind, k)
            except Exception as exc:
                logger.warning(
                    "retrieval.fallback",
                    entity_type=kind.value,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
                outcome = RetrievalOutcome(
                    results=fallback_results(kind, candidates, k),
                    mode=RetrievalMode.KEYWORD,
                    degraded=True,
                    reason=f"fallback: {exc}",
                )

        if outcome.degraded:
            emit(RetrievalDegraded(entity_type=kind.value, reason=outcome.reason or ""))
        emit(
            RetrievalCompleted(
                entity_type=kind.value,
                mode=outcome.mode.value,
                result_count=len(outcome.results),
                candidate_count=len(candidates),
                degraded=outcome.degraded,
                latency_ms=(time.perf_counter() - t0) * 1000,
            )
        )
        return outcome

    async def retrieve_chapters(
        self,
        query: str,
        chapters: Sequence[Chapter],
        top_k: int | None = None,
        exclude_id: str | None = None,
    ) -> RetrievalOutcome[Chapter]:
        return await self.retrieve(query, chapters, EntityType.CHAPTER, top_k, exclude_id)

    async def retrieve_characters(
        self,
        query: str,
        characters: Sequence[Character],
        top_k: int | None = None,
    ) -> RetrievalOutcome[Character]:
        return await self.retrieve(query, characters, EntityType.CHARACTER, top_k)

    async def retrieve_wiki(
        self,
        query: str,
        entries: Sequence[WikiEntry],
        top_k: int | None = None,
    ) -> RetrievalOutcome[WikiEntry]:
        return await self.retrieve(query, entries, EntityType.WIKI, top_k)

    @traced("retrieval.context")
    async def retrieve_context(
        self,
        query: str,
        chapters: Sequence[Chapter] = (),
        characters: Sequence[Character] = (),
        wiki_entries: Sequence[WikiEntry] = (),
        current_chapter_id: str | None = None,
    ) -> GenerationContext:
        """All three retrievals concurrently, bundled for prompt assembly."""
        chapter_out, character_out, wiki_out = await asyncio.gather(
            self.retrieve_chapters(query, chapters, exclude_id=current_chapter_id),
            self.retrieve_characters(query, characters),
            self.retrieve_wiki(query, wiki_entries),
        )
        outcomes = {
            EntityType.CHAPTER: chapter_out,
            EntityType.CHARACTER: character_out,
            EntityType.WIKI: wiki_out,
        }
        return GenerationContext(
            relevant_chapters=chapter_out.results,
            relevant_characters=character_out.results,
            relevant_wiki_entries=wiki_out.results,
            retrieval_mode=_combined_mode([o.mode for o in outcomes.values()]),
            degraded=any(o.degraded for o in outcomes.values()),
            reasons=[f"{kind.value}: {o.reason}" for kind, o in outcomes.items() if o.degraded and o.reason],
        )

    # ------------------------------------------------------------------
    # Ranking
    # ------------------------------------------------------------------

    async def _query_vectors(self, variants: list[str]) -> list[list[float]]:
        assert self.cache is not None
        vectors = await asyncio.gather(*(self.cache.get_or_compute(v) for v in variants))
        return [v for v in vectors if v]

    async def _candidate_vectors(self, kind: EntityType) -> dict[str, list[list[float]]]:
        """Stored vectors of this type from the current embedding space, by entity id."""
        assert self.cache is not None
        signature = self.cache.signature
        by_entity: dict[str, list[list[float]]] = {}
        for record in await self.store.get_all_vectors():
            if record.type is kind and record.provider == signature and record.vector:
                by_entity.setdefault(record.related_id, []).append(record.vector)
        return by_entity

    @traced("retrieval.rank")
    async def _retrieve(
        self,
        query: str,
        candidates: list,
        kind: EntityType,
        top_k: int,
    ) -> RetrievalOutcome:
        if not candidates or top_k <= 0:
            return RetrievalOutcome(results=[], mode=RetrievalMode.KEYWORD)

        cfg = self.config
        variants = expand_query(query)
        query_keywords = extract_keywords(query)

        mode = RetrievalMode.KEYWORD
        degraded = False
        reason: str | None = None
        query_vectors: list[list[float]] = []
        stored: dict[str, list[list[float]]] = {}

        if self.cache is not None and self.cache.available and variants:
            query_vectors = await self._query_vectors(variants)
            if not query_vectors:
                degraded, reason = True, "embedding unavailable; keyword-only"
            else:
                stored = await self._candidate_vectors(kind)
                if not stored:
                    degraded, reason = True, f"no {kind.value} vectors indexed; keyword-only"
                    query_vectors = []
                else:
                    mode = RetrievalMode.HYBRID if query_keywords else RetrievalMode.VECTOR
        elif self.cache is not None and not self.cache.available:
            reason = self.cache.adapter.unavailable_reason

        use_vectors = bool(query_vectors)
        max_order = max((c.order for c in candidates), default=0) if kind is EntityType.CHAPTER else 0

        scored: list[_Scored] = []
        for entity in candidates:
            text = searchable_text(entity)
            kw = keyword_score(query_keywords, text, _names(entity), query)
            vec = 0.0
            if use_vectors:
                vec = max(0.0, max_similarity(query_vectors, stored.get(entity.id, [])))
                score = vec * cfg.vector_weight + kw * cfg.keyword_weight
            else:
                score = kw
            if kind is EntityType.CHAPTER:
                score *= recency_weight(entity.order, max_order)
            elif kind is EntityType.WIKI:
                score += category_bonus(entity.category, query)
            scored.append(_Scored(entity=entity, score=score, vector_score=vec, keyword_score=kw, text=text))

        if kind is EntityType.CHARACTER:
            self._apply_graph_bonus(scored, candidates)

        scored.sort(key=lambda s: s.score, reverse=True)

        if len(candidates) <= top_k:
            ranked = scored
        else:
            bar = cfg.chapter_keyword_bar if kind is EntityType.CHAPTER else cfg.keyword_bar
            survivors = [s for s in scored if s.score >= cfg.similarity_floor or s.keyword_score > bar]
            ranked = deduplicate(
                survivors,
                lambda s: keyword_set(s.text),
                threshold=cfg.dedup_threshold,
            )[:top_k]

        results = [
            RetrievalResult(
                entity=s.entity,
                relevance_score=s.score,
                match_type=_match_type(s, use_vectors),
                vector_score=s.vector_score,
                keyword_score=s.keyword_score,
            )
            for s in ranked
        ]

        threshold = cfg.dedup_threshold
        if kind is EntityType.CHAPTER:
            latest_first = sorted(candidates, key=lambda c: c.order, reverse=True)
            results = _top_up(results, latest_first, top_k, MatchType.FALLBACK, threshold)
            results.sort(key=lambda r: r.entity.order)
        else:
            if kind is EntityType.CHARACTER:
                results = self._enrich_characters(results, candidates, top_k)
            if degraded:
                stand_in = [r.entity for r in fallback_results(kind, candidates, len(candidates))]
                results = _top_up(results, stand_in, top_k, MatchType.FALLBACK, threshold)

        logger.debug(
            "retrieval.ranked",
            entity_type=kind.value,
            mode=mode.value,
            variants=len(variants),
            keywords=len(query_keywords),
            candidates=len(candidates),
            results=len(results),
        )
        return RetrievalOutcome(results=results, mode=mode, degraded=degraded, reason=reason)

    def _apply_graph_bonus(self, scored: list[_Scored], characters: list) -> None:
        """Boost characters connected to the query's top-ranked characters."""
        cfg = self.config
        if cfg.graph_bonus <= 0:
            return
        top = sorted((s for s in scored if s.score > 0), key=lambda s: s.score, reverse=True)
        seeds = [s.id for s in top[: cfg.graph_seed_count]]
        if not seeds:
            return
        graph = RelationshipGraph(characters, self.resolver)
        hits = graph.traverse(
            seeds, TraversalConfig(max_depth=cfg.graph_depth, include_seeds=False)
        )
        bonus = {hit.character.id: cfg.graph_bonus * hit.relevance_score for hit in hits}
        for s in scored:
            s.score += bonus.get(s.id, 0.0)

    def _enrich_characters(
        self,
        results: list[RetrievalResult],
        characters: list,
        top_k: int,
    ) -> list[RetrievalResult]:
        """Fill open slots with graph neighbors of the ranked characters."""
        if not results or len(results) >= top_k:
            return results
        graph = RelationshipGraph(characters, self.resolver)
        neighbors = graph.enhance(
            [r.entity_id for r in results], depth=self.config.graph_depth, limit=top_k + len(results)
        )
        return _top_up(results, neighbors, top_k, MatchType.GRAPH, self.config.dedup_threshold)


def _match_type(s: _Scored, use_vectors: bool) -> MatchType:
    if use_vectors and s.vector_score > 0:
        return MatchType.HYBRID if s.keyword_score > 0 else MatchType.VECTOR
    return MatchType.KEYWORD


def _top_up(
    results: list[RetrievalResult],
    fillers: Sequence[Entity],
    top_k: int,
    match_type: MatchType,
    threshold: float,
) -> list[RetrievalResult]:
    """Append unranked fillers, in order, until there are top_k results.

    A filler whose keyword overlap with anything already kept exceeds
    `threshold` is passed over, so near-duplicates dropped during ranking
    stay dropped.
    """
    if len(results) >= top_k:
        return results
    out = list(results)
    present = {r.entity_id for r in out}
    kept = [keyword_set(searchable_text(r.entity)) for r in out]
    for entity in fillers:
        if len(out) >= top_k:
            break
        if entity.id in present:
            continue
        kws = keyword_set(searchable_text(entity))
        if any(jaccard_similarity(kws, other) > threshold for other in kept):
            continue
        present.add(entity.id)
        kept.append(kws)
        out.append(RetrievalResult(entity=entity, relevance_score=0.0, match_type=match_type))
    return out


def _combined_mode(modes: list[RetrievalMode]) -> RetrievalMode:
    if all(m is RetrievalMode.DISABLED for m in modes):
        return RetrievalMode.DISABLED
    for preferred in (RetrievalMode.HYBRID, RetrievalMode.VECTOR):
        if preferred in modes:
            return preferred
    return RetrievalMode.KEYWORD
