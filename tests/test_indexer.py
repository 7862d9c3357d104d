"""Tests for canonical text and the incremental indexer."""

import pytest
from conftest import FakeEmbedding, FlakyStore, make_adapter, make_chapters, make_wiki

from loreweave.indexing import (
    ContentHashCache,
    Indexer,
    IndexOptions,
    canonical_text,
    content_hash,
    searchable_text,
)
from loreweave.models import (
    Chapter,
    Character,
    EntityType,
    IndexStatus,
    ProgressStatus,
    VectorRecord,
)
from loreweave.vec.embeddings import EmbeddingAdapter, ProviderConfig
from loreweave.vec.store import InMemoryVectorStore

LONG_CONTENT = "The river runs cold tonight. " * 100


class SwitchableEmbedding(FakeEmbedding):
    """FakeEmbedding that can be taken offline mid-test."""

    def __init__(self):
        super().__init__()
        self.down = False

    def embed(self, texts):
        if self.down:
            raise RuntimeError("provider down")
        return super().embed(texts)


def _indexer(model=None, store=None, **kwargs) -> Indexer:
    return Indexer(
        store if store is not None else InMemoryVectorStore(),
        make_adapter(model),
        clock=lambda: 1000.0,
        **kwargs,
    )


# =============================================================================
# Canonical text
# =============================================================================


class TestCanonicalText:
    def test_chapter_header_and_body(self):
        canon = canonical_text(Chapter(id="c", order=1, title="Ashes", summary="Aftermath", content="Body."))
        assert canon.header == "Chapter: Ashes\nSummary: Aftermath"
        assert canon.full == "Chapter: Ashes\nSummary: Aftermath\n\nBody."
        assert canon.excerpt(2) == "Chapter: Ashes\nSummary: Aftermath\n\nBo"

    def test_character_skips_empty_fields(self):
        canon = canonical_text(Character(id="x", name="Lin Feng", role="protagonist"))
        assert canon.full == "Name: Lin Feng\nRole: protagonist"

    def test_wiki_lists_aliases(self):
        canon = canonical_text(make_wiki()[5])
        assert "Aliases: Smiths" in canon.full
        assert "Category: Organization" in canon.full

    def test_rejects_other_types(self):
        with pytest.raises(TypeError):
            canonical_text("not an entity")

    def test_searchable_text_has_no_labels(self):
        text = searchable_text(Character(id="x", name="Lin Feng", tags=["Sword", "Exile"]))
        assert text == "lin feng\nsword exile"

    def test_hash_depends_on_signature_and_text(self):
        assert content_hash("a:m", "text") == content_hash("a:m", "text")
        assert content_hash("a:m", "text") != content_hash("b:m", "text")
        assert content_hash("a:m", "text") != content_hash("a:m", "text!")

    def test_hash_depends_on_layout(self):
        assert content_hash("a:m", "text", "chunk:1500:200:2500") != content_hash(
            "a:m", "text", "excerpt:2500"
        )

    def test_layout_tracks_slicing_options(self):
        assert IndexOptions().layout == "chunk:1500:200:2500"
        assert IndexOptions(chunk_size=900).layout == "chunk:900:200:2500"
        assert IndexOptions(chunk=False, excerpt_chars=100).layout == "excerpt:100"
        assert IndexOptions(force=True).layout == IndexOptions().layout


# =============================================================================
# Indexer.index
# =============================================================================


class TestIndex:
    async def test_indexes_chapter(self):
        indexer = _indexer()
        outcome = await indexer.index(make_chapters()[1])

        assert outcome.status is IndexStatus.INDEXED
        assert outcome.records_written == 1
        (record,) = await indexer.store.get_all_vectors()
        assert record.id == "chapter-ch2"
        assert record.related_id == "ch2"
        assert record.type is EntityType.CHAPTER
        assert record.provider == "openai:text-embedding-3-small"
        assert record.timestamp == 1000.0
        assert record.metadata["order"] == 2
        assert record.metadata["content_hash"]
        assert "ch2" in indexer.hashes

    async def test_record_id_prefix_per_type(self):
        indexer = _indexer()
        await indexer.index(make_wiki()[0])
        await indexer.index(Character(id="A", name="Alder"))
        ids = {r.id for r in await indexer.store.get_all_vectors()}
        assert ids == {"wiki-w1", "character-A"}

    async def test_unchanged_content_skipped(self):
        model = FakeEmbedding()
        indexer = _indexer(model)
        chapter = make_chapters()[0]

        await indexer.index(chapter)
        calls = len(model.calls)
        outcome = await indexer.index(chapter)

        assert outcome.status is IndexStatus.SKIPPED
        assert outcome.reason == "unchanged"
        assert not outcome.degraded
        assert len(model.calls) == calls

    async def test_force_reindexes(self):
        indexer = _indexer()
        chapter = make_chapters()[0]
        await indexer.index(chapter)
        outcome = await indexer.index(chapter, IndexOptions(force=True))
        assert outcome.status is IndexStatus.INDEXED

    async def test_changed_content_replaces_records(self):
        indexer = _indexer()
        chapter = make_chapters()[0]
        await indexer.index(chapter)
        chapter.content = "Lin Feng turns back."
        outcome = await indexer.index(chapter)

        assert outcome.status is IndexStatus.INDEXED
        (record,) = await indexer.store.get_all_vectors()
        assert "turns back" in record.text

    async def test_long_chapter_chunked(self):
        indexer = _indexer()
        chapter = Chapter(id="long", order=9, title="The River", content=LONG_CONTENT)
        outcome = await indexer.index(chapter)

        records = await indexer.store.get_all_vectors()
        assert outcome.records_written == len(records) > 1
        assert [r.id for r in records] == [f"chapter-long-chunk-{i}" for i in range(len(records))]
        assert all(r.text.startswith("Chapter: The River") for r in records)
        assert all(r.metadata["total_chunks"] == len(records) for r in records)
        assert [r.metadata["chunk_index"] for r in records] == list(range(len(records)))

    async def test_no_chunk_uses_excerpt(self):
        indexer = _indexer(options=IndexOptions(chunk=False, excerpt_chars=100))
        chapter = Chapter(id="long", order=9, title="The River", content=LONG_CONTENT)
        await indexer.index(chapter)

        (record,) = await indexer.store.get_all_vectors()
        assert record.id == "chapter-long"
        assert len(record.text) == len("Chapter: The River\n\n") + 100

    async def test_shrinking_chapter_drops_stale_chunks(self):
        indexer = _indexer()
        chapter = Chapter(id="long", order=9, title="The River", content=LONG_CONTENT)
        await indexer.index(chapter)
        chapter.content = "Now it is short."
        await indexer.index(chapter)
        assert [r.id for r in await indexer.store.get_all_vectors()] == ["chapter-long"]

    async def test_switching_to_excerpt_reindexes(self):
        indexer = _indexer()
        chapter = Chapter(id="long", order=9, title="The River", content=LONG_CONTENT)
        await indexer.index(chapter)
        assert len(await indexer.store.get_all_vectors()) > 1

        outcome = await indexer.index(chapter, IndexOptions(chunk=False))
        assert outcome.status is IndexStatus.INDEXED
        assert [r.id for r in await indexer.store.get_all_vectors()] == ["chapter-long"]

        again = await indexer.index(chapter, IndexOptions(chunk=False))
        assert again.status is IndexStatus.SKIPPED

    async def test_provider_unavailable(self):
        store = InMemoryVectorStore()
        indexer = Indexer(store, EmbeddingAdapter(ProviderConfig(provider="none")))
        outcome = await indexer.index(make_chapters()[0])

        assert outcome.status is IndexStatus.SKIPPED
        assert outcome.degraded
        assert "does not support embeddings" in outcome.reason
        assert len(store) == 0

    async def test_embedding_failure_keeps_previous_records(self):
        model = SwitchableEmbedding()
        indexer = _indexer(model)
        chapter = make_chapters()[0]
        await indexer.index(chapter)
        before = await indexer.store.get_all_vectors()

        model.down = True
        chapter.content = "Lin Feng turns back."
        outcome = await indexer.index(chapter)

        assert outcome.status is IndexStatus.SKIPPED
        assert outcome.degraded
        assert outcome.reason == "embedding unavailable"
        assert await indexer.store.get_all_vectors() == before

        model.down = False
        assert (await indexer.index(chapter)).status is IndexStatus.INDEXED

    async def test_store_failure_reported(self):
        indexer = _indexer(store=FlakyStore({"ch1"}))
        outcome = await indexer.index(make_chapters()[0])

        assert outcome.status is IndexStatus.FAILED
        assert outcome.degraded
        assert "cannot delete ch1" in outcome.reason
        assert "ch1" not in indexer.hashes


# =============================================================================
# Provider bookkeeping
# =============================================================================


class TestProviderConsistency:
    @pytest.mark.parametrize("old_provider", ["ollama:nomic-embed-text", ""])
    async def test_foreign_vectors_cleared(self, old_provider):
        stale = VectorRecord(
            id="chapter-old",
            related_id="old",
            type=EntityType.CHAPTER,
            text="t",
            vector=[1.0],
            timestamp=0.0,
            provider=old_provider,
        )
        store = InMemoryVectorStore([stale])
        indexer = _indexer(store=store)
        await indexer.index(make_chapters()[0])

        assert [r.id for r in await store.get_all_vectors()] == ["chapter-ch1"]

    async def test_same_provider_kept(self):
        first = _indexer()
        await first.index(make_chapters()[0])
        second = _indexer(store=first.store)
        await second.index(make_chapters()[1])
        assert len(first.store) == 2

    async def test_warm_from_store_restores_skip(self):
        model = FakeEmbedding()
        first = _indexer(model)
        chapters = make_chapters()
        await first.index_all(chapters)

        second = Indexer(first.store, make_adapter(model), hashes=ContentHashCache())
        assert await second.warm_from_store() == len(chapters)
        calls = len(model.calls)
        result = await second.index_all(chapters)

        assert result.skipped == len(chapters)
        assert len(model.calls) == calls

    async def test_remove(self):
        indexer = _indexer()
        await indexer.index(make_chapters()[0])
        await indexer.remove("ch1")
        assert len(indexer.store) == 0
        assert "ch1" not in indexer.hashes


# =============================================================================
# Indexer.index_all
# =============================================================================


class TestIndexAll:
    async def test_progress_and_counts(self):
        indexer = _indexer(store=FlakyStore({"ch3"}))
        events = []
        result = await indexer.index_all(
            make_chapters(), progress=lambda i, n, label, status: events.append((i, n, label, status))
        )

        assert (result.total, result.succeeded, result.skipped, result.failed) == (5, 4, 0, 1)
        assert result.errors == [
            {"id": "ch3", "label": "A Quiet Inn", "error": "cannot delete ch3"}
        ]
        assert events[0] == (1, 5, "The Road North", ProgressStatus.INDEXING)
        assert events[1] == (1, 5, "The Road North", ProgressStatus.COMPLETED)
        assert (3, 5, "A Quiet Inn", ProgressStatus.ERROR) in events
        assert len(events) == 10
        assert result.summary() == "Indexed 5 entities: 4 indexed, 0 skipped, 1 failed"

    async def test_second_pass_skips_everything(self):
        indexer = _indexer()
        await indexer.index_all(make_chapters())
        result = await indexer.index_all(make_chapters())
        assert result.skipped == 5
        assert result.succeeded == 0

    async def test_empty_batch(self):
        result = await _indexer().index_all([])
        assert result.total == 0
        assert result.errors == []
