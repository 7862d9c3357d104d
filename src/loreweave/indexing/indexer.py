"""Incremental indexer: entity -> VectorRecords, skipping unchanged content.

Pipeline per entity:
    canonical text -> content hash (skip if unchanged)
    -> chunk (long chapters) or excerpt -> embed each slice
    -> delete old records for the entity -> save new records -> remember hash

Nothing is written unless every slice embedded, so a half-indexed
entity never replaces a complete one. The delete/save pair is two store
calls and is not atomic: a crash between them leaves the entity
un-indexed until its next pass.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from loreweave.indexing.canonical import (
    CanonicalText,
    canonical_text,
    content_hash,
    entity_type_of,
)
from loreweave.models import (
    BatchIndexResult,
    Chapter,
    Character,
    Entity,
    EntityType,
    IndexOutcome,
    IndexStatus,
    ProgressStatus,
    VectorRecord,
    WikiEntry,
    entity_label,
)
from loreweave.observability.emitter import emit
from loreweave.observability.events import (
    BatchIndexCompleted,
    EntityIndexed,
    IndexFailed,
    IndexSkipped,
    ProviderChanged,
)
from loreweave.observability.logging import get_logger
from loreweave.observability.tracing import traced
from loreweave.text.chunker import chunk_text
from loreweave.vec.embeddings import EmbeddingAdapter
from loreweave.vec.store import VectorStore

logger = get_logger(__name__)

ProgressCallback = Callable[[int, int, str, ProgressStatus], None]


class ContentHashCache:
    """related_id -> hash of the last successfully indexed canonical text."""

    def __init__(self) -> None:
        self._hashes: dict[str, str] = {}

    def get(self, related_id: str) -> str | None:
        return self._hashes.get(related_id)

    def set(self, related_id: str, digest: str) -> None:
        self._hashes[related_id] = digest

    def discard(self, related_id: str) -> None:
        self._hashes.pop(related_id, None)

    def clear(self) -> None:
        self._hashes.clear()

    def __contains__(self, related_id: object) -> bool:
        return related_id in self._hashes

    def __len__(self) -> int:
        return len(self._hashes)


@dataclass
class IndexOptions:
    chunk: bool = True
    chunk_size: int = 1500
    chunk_overlap: int = 200
    excerpt_chars: int = 2500
    force: bool = False  # re-embed even when the hash matches

    @property
    def layout(self) -> str:
        """How text is sliced for embedding; part of every content hash."""
        if self.chunk:
            return f"chunk:{self.chunk_size}:{self.chunk_overlap}:{self.excerpt_chars}"
        return f"excerpt:{self.excerpt_chars}"


def _entity_metadata(entity: Entity) -> dict:
    if isinstance(entity, Chapter):
        return {"order": entity.order, "title": entity.title}
    if isinstance(entity, Character):
        return {"name": entity.name, "role": entity.role}
    if isinstance(entity, WikiEntry):
        return {"name": entity.name, "category": entity.category}
    return {}


class Indexer:
    """Keeps a VectorStore in step with the entities handed to it.

    `hashes` is injected so several indexers (or a retriever and an
    indexer) can share one view of what is already indexed.
    """

    def __init__(
        self,
        store: VectorStore,
        adapter: EmbeddingAdapter,
        hashes: ContentHashCache | None = None,
        options: IndexOptions | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.adapter = adapter
        self.hashes = hashes if hashes is not None else ContentHashCache()
        self.options = options or IndexOptions()
        self._clock = clock
        self._provider_checked = False

    # ------------------------------------------------------------------
    # Provider bookkeeping
    # ------------------------------------------------------------------

    async def _ensure_provider_consistency(self) -> None:
        """Clear the store once if it holds vectors from another embedding space."""
        if self._provider_checked:
            return
        records = await self.store.get_all_vectors()
        signature = self.adapter.signature
        stale = sorted({r.provider for r in records if r.provider != signature})
        if stale:
            await self.store.clear_all()
            self.hashes.clear()
            previous = ",".join(p or "unknown" for p in stale)
            emit(
                ProviderChanged(
                    previous=previous, current=signature, records_cleared=len(records)
                )
            )
            logger.warning(
                "index.store_cleared",
                previous=previous,
                current=signature,
                records_cleared=len(records),
            )
        self._provider_checked = True

    async def warm_from_store(self) -> int:
        """Seed the hash cache from content_hash metadata already in the store.

        Keeps the unchanged-content skip working across processes. Returns
        the number of entities seeded.
        """
        if not self.adapter.available:
            return 0
        await self._ensure_provider_consistency()
        seeded = 0
        for record in await self.store.get_all_vectors():
            digest = record.metadata.get("content_hash")
            if digest and record.related_id not in self.hashes:
                self.hashes.set(record.related_id, digest)
                seeded += 1
        logger.debug("index.hashes_warmed", seeded=seeded)
        return seeded

    # ------------------------------------------------------------------
    # Single entity
    # ------------------------------------------------------------------

    def _slices(self, canon: CanonicalText, related_id: str, opts: IndexOptions) -> list[str]:
        if opts.chunk and len(canon.body) > opts.chunk_size:
            chunks = chunk_text(
                canon.body,
                chunk_size=opts.chunk_size,
                overlap=opts.chunk_overlap,
                source_id=related_id,
            )
            return [canon.with_chunk(c.text) for c in chunks]
        return [canon.excerpt(opts.excerpt_chars)]

    def _records(
        self,
        entity: Entity,
        kind: EntityType,
        texts: list[str],
        vectors: list[list[float]],
        digest: str,
    ) -> list[VectorRecord]:
        now = self._clock()
        base = {**_entity_metadata(entity), "content_hash": digest}
        chunked = len(texts) > 1
        records = []
        for i, (text, vector) in enumerate(zip(texts, vectors)):
            metadata = dict(base)
            record_id = f"{kind.value}-{entity.id}"
            if chunked:
                metadata.update(chunk_index=i, total_chunks=len(texts))
                record_id = f"{record_id}-chunk-{i}"
            records.append(
                VectorRecord(
                    id=record_id,
                    related_id=entity.id,
                    type=kind,
                    text=text,
                    vector=vector,
                    timestamp=now,
                    provider=self.adapter.signature,
                    metadata=metadata,
                )
            )
        return records

    @traced("index.entity")
    async def index(self, entity: Entity, options: IndexOptions | None = None) -> IndexOutcome:
        """Index one entity. Never raises; failures come back as FAILED outcomes."""
        opts = options or self.options
        kind = entity_type_of(entity)
        t0 = time.perf_counter()

        if not self.adapter.available:
            reason = self.adapter.unavailable_reason or "embedding provider unavailable"
            emit(IndexSkipped(entity_type=kind.value, related_id=entity.id, reason="provider_unavailable"))
            return IndexOutcome(
                status=IndexStatus.SKIPPED, related_id=entity.id, degraded=True, reason=reason
            )

        try:
            await self._ensure_provider_consistency()

            canon = canonical_text(entity)
            digest = content_hash(self.adapter.signature, canon.full, opts.layout)
            if not opts.force and self.hashes.get(entity.id) == digest:
                emit(IndexSkipped(entity_type=kind.value, related_id=entity.id, reason="unchanged"))
                return IndexOutcome(
                    status=IndexStatus.SKIPPED, related_id=entity.id, reason="unchanged"
                )

            texts = self._slices(canon, entity.id, opts)
            vectors: list[list[float]] = []
            for text in texts:
                vector = await self.adapter.embed(text)
                if not vector:
                    emit(
                        IndexSkipped(
                            entity_type=kind.value,
                            related_id=entity.id,
                            reason="provider_unavailable",
                        )
                    )
                    return IndexOutcome(
                        status=IndexStatus.SKIPPED,
                        related_id=entity.id,
                        degraded=True,
                        reason="embedding unavailable",
                    )
                vectors.append(vector)

            records = self._records(entity, kind, texts, vectors, digest)
            await self.store.delete_vectors_by_related_id(entity.id)
            await self.store.save_vectors(records)
        except Exception as exc:
            logger.error(
                "index.entity_failed",
                related_id=entity.id,
                entity_type=kind.value,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            emit(IndexFailed(entity_type=kind.value, related_id=entity.id, error=str(exc)))
            return IndexOutcome(
                status=IndexStatus.FAILED, related_id=entity.id, degraded=True, reason=str(exc)
            )

        self.hashes.set(entity.id, digest)
        emit(
            EntityIndexed(
                entity_type=kind.value,
                related_id=entity.id,
                records_written=len(records),
                chunked=len(records) > 1,
                latency_ms=(time.perf_counter() - t0) * 1000,
            )
        )
        return IndexOutcome(
            status=IndexStatus.INDEXED, related_id=entity.id, records_written=len(records)
        )

    async def remove(self, related_id: str) -> None:
        """Drop an entity's records and forget its hash."""
        await self.store.delete_vectors_by_related_id(related_id)
        self.hashes.discard(related_id)

    # ------------------------------------------------------------------
    # Batch
    # ------------------------------------------------------------------

    async def index_all(
        self,
        entities: Iterable[Entity],
        progress: ProgressCallback | None = None,
        options: IndexOptions | None = None,
    ) -> BatchIndexResult:
        """Index entities one at a time; one failure never stops the batch.

        `progress(current, total, label, status)` fires with INDEXING
        before each item and COMPLETED or ERROR after it.
        """
        items = list(entities)
        result = BatchIndexResult(total=len(items))
        t0 = time.perf_counter()

        for current, entity in enumerate(items, start=1):
            label = entity_label(entity)
            if progress is not None:
                progress(current, result.total, label, ProgressStatus.INDEXING)

            outcome = await self.index(entity, options)
            if outcome.status is IndexStatus.FAILED:
                result.failed += 1
                result.errors.append(
                    {"id": entity.id, "label": label, "error": outcome.reason or "unknown error"}
                )
                status = ProgressStatus.ERROR
            elif outcome.status is IndexStatus.SKIPPED:
                result.skipped += 1
                status = ProgressStatus.COMPLETED
            else:
                result.succeeded += 1
                status = ProgressStatus.COMPLETED

            if progress is not None:
                progress(current, result.total, label, status)

        emit(
            BatchIndexCompleted(
                total=result.total,
                succeeded=result.succeeded,
                skipped=result.skipped,
                failed=result.failed,
                latency_ms=(time.perf_counter() - t0) * 1000,
            )
        )
        return result
