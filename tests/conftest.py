"""Shared fixtures and test doubles for the loreweave suite."""

from __future__ import annotations

import hashlib
import re

import pytest

from loreweave.config import reset_config
from loreweave.errors import StoreError
from loreweave.models import Chapter, Character, CharacterRelationship, WikiEntry
from loreweave.observability import reset as obs_reset
from loreweave.vec.embeddings import EmbeddingAdapter, ProviderConfig
from loreweave.vec.store import InMemoryVectorStore

_WORD_RE = re.compile(r"\w+")


# =============================================================================
# Embedding doubles
# =============================================================================


class FakeEmbedding:
    """Deterministic bag-of-words embedding: shared words -> similar vectors."""

    def __init__(self, dims: int = 64):
        self.dims = dims
        self.calls: list[str] = []

    def embed(self, texts: list[str]) -> list[list[float]]:
        out = []
        for text in texts:
            self.calls.append(text)
            vec = [0.0] * self.dims
            for word in _WORD_RE.findall(text.lower()):
                slot = int(hashlib.md5(word.encode()).hexdigest(), 16) % self.dims
                vec[slot] += 1.0
            out.append(vec)
        return out


class FailingEmbedding:
    """Backend whose every call blows up, like a provider outage."""

    def __init__(self):
        self.calls = 0

    def embed(self, texts: list[str]) -> list[list[float]]:
        self.calls += 1
        raise RuntimeError("provider down")


def make_adapter(model=None, provider: str = "openai") -> EmbeddingAdapter:
    """Adapter with an injected backend and a stable signature."""
    return EmbeddingAdapter(
        ProviderConfig(provider=provider, api_key="test-key"),
        model=model if model is not None else FakeEmbedding(),
    )


# =============================================================================
# Store doubles
# =============================================================================


class BrokenStore(InMemoryVectorStore):
    """Every read and write fails."""

    async def save_vectors(self, records):
        raise StoreError("disk full")

    async def get_all_vectors(self):
        raise StoreError("cannot read")

    async def delete_vectors_by_related_id(self, related_id):
        raise StoreError("cannot delete")


class FlakyStore(InMemoryVectorStore):
    """Fails only for the given related ids."""

    def __init__(self, failing_ids: set[str]):
        super().__init__()
        self.failing_ids = failing_ids

    async def delete_vectors_by_related_id(self, related_id):
        if related_id in self.failing_ids:
            raise StoreError(f"cannot delete {related_id}")
        await super().delete_vectors_by_related_id(related_id)


# =============================================================================
# Narrative fixtures
# =============================================================================


def make_chapters() -> list[Chapter]:
    return [
        Chapter(id="ch1", order=1, title="The Road North", content="Lin Feng leaves the village at dawn."),
        Chapter(
            id="ch2",
            order=2,
            title="Fire in the Valley",
            content="The dragon clan meets its destruction in one night.",
        ),
        Chapter(id="ch3", order=3, title="A Quiet Inn", content="Travelers rest and trade rumors over tea."),
        Chapter(
            id="ch4",
            order=4,
            title="Ashes",
            content="Survivors of the dragon clan mourn the destruction.",
        ),
        Chapter(id="ch5", order=5, title="Crossroads", content="A merchant offers passage east."),
    ]


def make_triangle() -> list[Character]:
    """A --enemy--> B --friend--> C."""
    return [
        Character(
            id="A", name="Alder", relationships=[CharacterRelationship(target_id="B", relation="enemy")]
        ),
        Character(
            id="B", name="Bram", relationships=[CharacterRelationship(target_id="C", relation="friend")]
        ),
        Character(id="C", name="Cora"),
    ]


def make_wiki() -> list[WikiEntry]:
    return [
        WikiEntry(
            id="w1",
            name="Azure Sword",
            category="Item",
            description="An ancient azure sword forged in dragon fire.",
        ),
        WikiEntry(
            id="w2",
            name="Azure Sword Replica",
            category="Item",
            description="An ancient azure sword forged in dragon fire.",
        ),
        WikiEntry(id="w3", name="Cloud Peak", category="Location", description="A mountain above the sea."),
        WikiEntry(id="w4", name="Night Market", category="Location", description="Stalls open after dusk."),
        WikiEntry(id="w5", name="Harvest Rite", category="Event", description="Held every autumn."),
        WikiEntry(
            id="w6",
            name="Iron Guild",
            category="Organization",
            description="Smiths who trade ore.",
            aliases=["Smiths"],
        ),
    ]


@pytest.fixture
def chapters() -> list[Chapter]:
    return make_chapters()


@pytest.fixture
def triangle() -> list[Character]:
    return make_triangle()


@pytest.fixture
def wiki_entries() -> list[WikiEntry]:
    return make_wiki()


@pytest.fixture(autouse=True)
def _reset_state():
    obs_reset()
    reset_config()
    yield
    obs_reset()
    reset_config()
