"""Embedding backends and the provider adapter.

Pluggable strategy: OpenAI (cloud), OpenAI-compatible endpoints
("custom"), Ollama (local server), sentence-transformers (in-process).

The adapter is the only thing the rest of loreweave talks to. It never
raises: a provider that cannot embed (unsupported, missing credentials,
network error) yields an empty vector, and the empty vector is the one
signal callers use to drop to keyword-only scoring.

Usage:
    adapter = EmbeddingAdapter(ProviderConfig(provider="openai", api_key="sk-..."))
    vector = await adapter.embed("The dragon clan fell in one night.")
    if not vector:
        ...  # keyword-only
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from loreweave.errors import ProviderError
from loreweave.observability.emitter import emit
from loreweave.observability.events import EmbeddingUnavailable
from loreweave.observability.logging import get_logger
from loreweave.observability.tracing import traced

logger = get_logger(__name__)

MAX_EMBED_CHARS = 10_000

DEFAULT_MODELS: dict[str, str] = {
    "openai": "text-embedding-3-small",
    "custom": "text-embedding-3-small",
    "ollama": "nomic-embed-text",
    "sentence-transformers": "all-MiniLM-L6-v2",
}

SUPPORTED_PROVIDERS = frozenset(DEFAULT_MODELS)


@runtime_checkable
class EmbeddingModel(Protocol):
    """Protocol for embedding text into vectors.

    Implement this to plug in any embedding backend. Backends are
    synchronous; the adapter moves them off the event loop.
    """

    def embed(self, texts: list[str]) -> list[list[float]]:
        """Embed a batch of texts. Same length and order as `texts`."""
        ...


class SentenceTransformerEmbedding:
    """Local embedding model backed by sentence-transformers.

    Default model: all-MiniLM-L6-v2 (384 dims). No API key needed.

    Requires: pip install loreweave[local]
    """

    def __init__(self, model_name: str = "all-MiniLM-L6-v2") -> None:
        self._model_name = model_name
        self._model = None

    def _load(self):
        if self._model is not None:
            return
        try:
            from sentence_transformers import SentenceTransformer
        except ImportError as e:
            raise ProviderError(
                "sentence-transformers required: pip install loreweave[local]"
            ) from e
        self._model = SentenceTransformer(self._model_name)
        logger.info("embedding.model_loaded", model=self._model_name)

    def embed(self, texts: list[str]) -> list[list[float]]:
        self._load()
        assert self._model is not None
        embeddings = self._model.encode(texts, convert_to_numpy=True)
        return embeddings.tolist()


class OpenAIEmbedding:
    """Embeddings via the OpenAI API or any OpenAI-compatible endpoint.

    Requires: pip install loreweave[openai]
    """

    def __init__(
        self,
        model: str = "text-embedding-3-small",
        api_key: str | None = None,
        base_url: str | None = None,
    ) -> None:
        self._model = model
        self._api_key = api_key
        self._base_url = base_url
        self._client = None

    def _get_client(self):
        if self._client is not None:
            return self._client
        try:
            import openai
        except ImportError as e:
            raise ProviderError("openai required: pip install loreweave[openai]") from e

        kwargs = {}
        if self._api_key:
            kwargs["api_key"] = self._api_key
        if self._base_url:
            kwargs["base_url"] = self._base_url
        self._client = openai.OpenAI(**kwargs)
        return self._client

    def embed(self, texts: list[str]) -> list[list[float]]:
        client = self._get_client()
        response = client.embeddings.create(input=texts, model=self._model)
        return [item.embedding for item in response.data]


class OllamaEmbedding:
    """Local embedding model via an Ollama server.

    Default model: nomic-embed-text (768 dims). No API key needed.
    """

    def __init__(
        self,
        model_name: str = "nomic-embed-text",
        base_url: str = "http://localhost:11434",
        timeout: float = 30.0,
    ) -> None:
        self._model_name = model_name
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    def embed(self, texts: list[str]) -> list[list[float]]:
        import urllib.request

        results = []
        for text in texts:
            req = urllib.request.Request(
                f"{self._base_url}/api/embeddings",
                data=json.dumps({"model": self._model_name, "prompt": text}).encode(),
                headers={"Content-Type": "application/json"},
            )
            with urllib.request.urlopen(req, timeout=self._timeout) as resp:
                data = json.loads(resp.read())
                results.append(data["embedding"])
        return results


# ---------------------------------------------------------------------------
# Provider configuration
# ---------------------------------------------------------------------------


@dataclass
class ProviderConfig:
    """Which embedding provider to call and how.

    `provider` is one of SUPPORTED_PROVIDERS; anything else ("none",
    chat-only providers) means embeddings are unavailable.
    """

    provider: str = "none"
    model: str = ""
    api_key: str | None = field(default=None, repr=False)
    base_url: str | None = None
    max_chars: int = MAX_EMBED_CHARS

    @property
    def model_name(self) -> str:
        return self.model or DEFAULT_MODELS.get(self.provider, "")

    @property
    def signature(self) -> str:
        """Identity of the embedding space, as provider:model."""
        return f"{self.provider}:{self.model_name}"


def build_embedding_model(config: ProviderConfig) -> EmbeddingModel:
    """Construct the backend for a provider config.

    Raises:
        ProviderError: provider unsupported or credentials missing.
    """
    provider = config.provider
    if provider not in SUPPORTED_PROVIDERS:
        raise ProviderError(f"provider {provider!r} does not support embeddings")
    if provider == "openai":
        if not config.api_key:
            raise ProviderError("openai embeddings need an api key")
        return OpenAIEmbedding(model=config.model_name, api_key=config.api_key)
    if provider == "custom":
        if not config.base_url or not config.api_key:
            raise ProviderError("custom embeddings need both base_url and api key")
        return OpenAIEmbedding(
            model=config.model_name, api_key=config.api_key, base_url=config.base_url
        )
    if provider == "ollama":
        return OllamaEmbedding(
            model_name=config.model_name,
            base_url=config.base_url or "http://localhost:11434",
        )
    return SentenceTransformerEmbedding(model_name=config.model_name)


class EmbeddingAdapter:
    """Wraps one embedding backend behind `async embed(text) -> vector | []`.

    Pass `model` to inject a backend directly (tests, custom providers);
    otherwise one is built from `config`.
    """

    def __init__(
        self,
        config: ProviderConfig | None = None,
        model: EmbeddingModel | None = None,
    ) -> None:
        self.config = config or ProviderConfig()
        self.unavailable_reason: str | None = None
        self._model: EmbeddingModel | None = model
        if self._model is None:
            try:
                self._model = build_embedding_model(self.config)
            except ProviderError as exc:
                self.unavailable_reason = str(exc)
                logger.info(
                    "embedding.provider_unavailable",
                    provider=self.config.provider,
                    reason=self.unavailable_reason,
                )

    @property
    def available(self) -> bool:
        return self._model is not None

    @property
    def signature(self) -> str:
        return self.config.signature

    @traced("embedding.request", external=True)
    async def embed(self, text: str) -> list[float]:
        """Embed one text. Returns [] when the provider cannot deliver."""
        if self._model is None or not text or not text.strip():
            return []

        snippet = text[: self.config.max_chars]
        try:
            vectors = await asyncio.to_thread(self._model.embed, [snippet])
        except Exception as exc:
            logger.warning(
                "embedding.call_failed",
                provider=self.signature,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            emit(EmbeddingUnavailable(provider=self.signature, reason=str(exc)))
            return []

        if not vectors or not vectors[0]:
            return []
        return [float(x) for x in vectors[0]]
