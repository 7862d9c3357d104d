"""Tests for keyword extraction and set overlap."""

from hypothesis import given, settings
from hypothesis import strategies as st

from loreweave.text.keywords import (
    MAX_KEYWORDS,
    extract_keywords,
    jaccard_similarity,
    keyword_set,
)


class TestExtractKeywords:
    def test_empty_input(self):
        assert extract_keywords("") == []
        assert extract_keywords(None) == []

    def test_strips_punctuation_and_stopwords(self):
        kws = extract_keywords("The dragon clan's destruction!")
        assert "dragon" in kws
        assert "clan" in kws
        assert "the" not in kws
        assert "s" not in kws

    def test_token_length_bounds(self):
        kws = extract_keywords("a ox extraordinarily")
        assert "ox" in kws
        assert "a" not in kws
        # 15 characters: over the token cap
        assert "extraordinarily" not in kws

    def test_lowercases(self):
        assert extract_keywords("DRAGON") == ["dragon"]

    def test_han_spans(self):
        kws = extract_keywords("林风来到青云宗")
        assert "林风来到" in kws
        assert "青云宗" in kws

    def test_latin_proper_noun_spans(self):
        kws = extract_keywords("Lin Feng met Su Yan at the Azure Cloud Sect.")
        assert "lin feng" in kws
        assert "su yan" in kws
        assert "azure cloud sect" in kws

    def test_sentence_initial_stopword_dropped_from_span(self):
        kws = extract_keywords("The Jade Emperor frowned.")
        assert "jade emperor" in kws
        assert "the jade emperor" not in kws

    def test_quoted_spans(self):
        kws = extract_keywords('He whispered "Heavenly Flame" twice, then read 《青云志》.')
        assert "heavenly flame" in kws
        assert "青云志" in kws

    def test_deduplicates_in_first_seen_order(self):
        assert extract_keywords("sword shield sword") == ["sword", "shield"]

    def test_caps_result(self):
        text = " ".join(f"word{i:03d}" for i in range(200))
        assert len(extract_keywords(text)) == MAX_KEYWORDS

    def test_custom_limit(self):
        assert extract_keywords("alpha beta gamma delta", limit=2) == ["alpha", "beta"]


class TestKeywordProperties:
    @given(st.text(max_size=400))
    @settings(max_examples=100)
    def test_deterministic_unique_and_bounded(self, text):
        first = extract_keywords(text)
        assert first == extract_keywords(text)
        assert len(first) <= MAX_KEYWORDS
        assert len(first) == len(set(first))


class TestJaccard:
    def test_identical(self):
        assert jaccard_similarity({"a", "b"}, {"a", "b"}) == 1.0

    def test_disjoint(self):
        assert jaccard_similarity({"a"}, {"b"}) == 0.0

    def test_partial(self):
        assert jaccard_similarity({"a", "b", "c"}, {"b", "c", "d"}) == 0.5

    def test_empty_side(self):
        assert jaccard_similarity(set(), {"a"}) == 0.0

    def test_keyword_set(self):
        assert keyword_set("dragon dragon clan") == {"dragon", "clan"}
