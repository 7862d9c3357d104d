"""Tests for sentence-aligned chunking."""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from loreweave.text.chunker import SentenceBoundaryChunker, chunk_text, split_sentences


def _story(n: int) -> str:
    return "".join(f"Sentence number {i} happens here. " for i in range(n))


class TestSplitSentences:
    def test_keeps_terminators(self):
        assert split_sentences("One. Two! Three?") == ["One.", " Two!", " Three?"]

    def test_cjk_terminators(self):
        assert split_sentences("他来了。她走了！") == ["他来了。", "她走了！"]


class TestChunkText:
    def test_empty(self):
        assert chunk_text("") == []
        assert chunk_text("   ") == []

    def test_short_text_single_chunk(self):
        chunks = chunk_text("A short passage.", chunk_size=100)
        assert len(chunks) == 1
        assert chunks[0].text == "A short passage."
        assert chunks[0].index == 0

    def test_long_text_respects_size(self):
        chunks = chunk_text(_story(100), chunk_size=200, overlap=50)
        assert len(chunks) > 1
        assert all(len(c.text) <= 200 for c in chunks)

    def test_overlap_carried_forward(self):
        chunks = chunk_text(_story(100), chunk_size=200, overlap=50)
        for prev, nxt in zip(chunks, chunks[1:]):
            assert nxt.text.startswith(prev.text[-50:])

    def test_every_sentence_covered(self):
        text = _story(60)
        chunks = chunk_text(text, chunk_size=150, overlap=20)
        joined = "".join(c.text for c in chunks)
        for sentence in split_sentences(text):
            assert sentence in joined

    def test_ids_deterministic_and_unique(self):
        a = chunk_text(_story(50), chunk_size=200, overlap=30, source_id="ch-1")
        b = chunk_text(_story(50), chunk_size=200, overlap=30, source_id="ch-1")
        assert [c.id for c in a] == [c.id for c in b]
        assert len({c.id for c in a}) == len(a)

    def test_indices_sequential(self):
        chunks = chunk_text(_story(50), chunk_size=200, overlap=30)
        assert [c.index for c in chunks] == list(range(len(chunks)))

    def test_oversized_sentence_kept_whole(self):
        long_sentence = "x" * 300 + "."
        chunks = chunk_text("Short one. " + long_sentence, chunk_size=100, overlap=10)
        assert any(long_sentence in c.text for c in chunks)

    def test_rejects_non_positive_size(self):
        with pytest.raises(ValueError):
            chunk_text(_story(10), chunk_size=0)

    def test_overlap_clamped_below_size(self):
        chunks = chunk_text(_story(40), chunk_size=120, overlap=500)
        assert len(chunks) > 1

    @given(st.integers(min_value=5, max_value=80), st.integers(min_value=80, max_value=400))
    @settings(max_examples=30)
    def test_no_chunk_exceeds_size_for_short_sentences(self, n, size):
        chunks = chunk_text(_story(n), chunk_size=size, overlap=size // 4)
        assert chunks
        assert all(len(c.text) <= size for c in chunks)


class TestSentenceBoundaryChunker:
    def test_needs_chunking(self):
        chunker = SentenceBoundaryChunker(chunk_size=100, overlap=10)
        assert chunker.needs_chunking("x" * 101)
        assert not chunker.needs_chunking("x" * 100)

    def test_callable(self):
        chunker = SentenceBoundaryChunker(chunk_size=150, overlap=20)
        assert len(chunker(_story(40), source_id="s")) > 1
