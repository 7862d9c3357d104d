"""Tests for embedding provider selection and the never-raising adapter."""

import pytest
from conftest import FailingEmbedding, FakeEmbedding, make_adapter

from loreweave.errors import ProviderError
from loreweave.vec.embeddings import (
    EmbeddingAdapter,
    EmbeddingModel,
    OllamaEmbedding,
    OpenAIEmbedding,
    ProviderConfig,
    SentenceTransformerEmbedding,
    build_embedding_model,
)

# =============================================================================
# ProviderConfig / build_embedding_model
# =============================================================================


class TestProviderConfig:
    def test_default_model_per_provider(self):
        assert ProviderConfig(provider="openai").model_name == "text-embedding-3-small"
        assert ProviderConfig(provider="ollama").model_name == "nomic-embed-text"
        assert ProviderConfig(provider="none").model_name == ""

    def test_explicit_model_wins(self):
        cfg = ProviderConfig(provider="openai", model="text-embedding-3-large")
        assert cfg.signature == "openai:text-embedding-3-large"

    def test_api_key_hidden_from_repr(self):
        assert "sk-secret" not in repr(ProviderConfig(provider="openai", api_key="sk-secret"))


class TestBuildEmbeddingModel:
    @pytest.mark.parametrize("provider", ["none", "anthropic", "gemini", ""])
    def test_unsupported_provider(self, provider):
        with pytest.raises(ProviderError):
            build_embedding_model(ProviderConfig(provider=provider))

    def test_openai_needs_key(self):
        with pytest.raises(ProviderError, match="api key"):
            build_embedding_model(ProviderConfig(provider="openai"))

    def test_custom_needs_base_url_and_key(self):
        with pytest.raises(ProviderError):
            build_embedding_model(ProviderConfig(provider="custom", api_key="k"))
        model = build_embedding_model(
            ProviderConfig(provider="custom", api_key="k", base_url="http://localhost:8000/v1")
        )
        assert isinstance(model, OpenAIEmbedding)

    def test_openai(self):
        model = build_embedding_model(ProviderConfig(provider="openai", api_key="k"))
        assert isinstance(model, OpenAIEmbedding)

    def test_local_backends_need_no_key(self):
        assert isinstance(
            build_embedding_model(ProviderConfig(provider="ollama")), OllamaEmbedding
        )
        assert isinstance(
            build_embedding_model(ProviderConfig(provider="sentence-transformers")),
            SentenceTransformerEmbedding,
        )

    def test_fake_satisfies_protocol(self):
        assert isinstance(FakeEmbedding(), EmbeddingModel)


# =============================================================================
# EmbeddingAdapter
# =============================================================================


class TestEmbeddingAdapter:
    def test_unavailable_provider(self):
        adapter = EmbeddingAdapter(ProviderConfig(provider="none"))
        assert not adapter.available
        assert "does not support embeddings" in adapter.unavailable_reason

    def test_default_config_is_unavailable(self):
        assert not EmbeddingAdapter().available

    async def test_unavailable_returns_empty(self):
        adapter = EmbeddingAdapter(ProviderConfig(provider="openai"))
        assert await adapter.embed("dragon") == []

    async def test_embeds(self):
        adapter = make_adapter()
        vector = await adapter.embed("dragon clan")
        assert len(vector) == 64
        assert all(isinstance(x, float) for x in vector)

    async def test_blank_text_skips_provider(self):
        model = FakeEmbedding()
        adapter = make_adapter(model)
        assert await adapter.embed("") == []
        assert await adapter.embed("   ") == []
        assert model.calls == []

    async def test_truncates_long_text(self):
        model = FakeEmbedding()
        adapter = EmbeddingAdapter(
            ProviderConfig(provider="openai", api_key="k", max_chars=10), model=model
        )
        await adapter.embed("x" * 50)
        assert model.calls == ["x" * 10]

    async def test_provider_failure_becomes_empty(self):
        model = FailingEmbedding()
        adapter = make_adapter(model)
        assert await adapter.embed("dragon") == []
        assert model.calls == 1

    async def test_empty_backend_result(self):
        class Empty:
            def embed(self, texts):
                return []

        assert await make_adapter(Empty()).embed("dragon") == []

    def test_signature(self):
        assert make_adapter().signature == "openai:text-embedding-3-small"
