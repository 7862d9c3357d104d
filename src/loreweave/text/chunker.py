"""Sentence-aligned chunking with overlap for long documents.

Sentences are accumulated into a chunk until adding the next one would
cross `chunk_size` characters. The last `overlap` characters of each
finished chunk are carried into the next, so a passage that straddles a
boundary is still retrievable from either side.
"""

from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass

DEFAULT_CHUNK_SIZE = 1500
DEFAULT_OVERLAP = 200

# Split after sentence terminators (Latin and CJK) and newlines, keeping
# the terminator attached to its sentence.
_SENTENCE_RE = re.compile(r"(?<=[.!?。！？\n])")


@dataclass(frozen=True)
class Chunk:
    """Immutable text chunk with deterministic ID."""

    id: str
    text: str
    index: int


def split_sentences(text: str) -> list[str]:
    return [s for s in _SENTENCE_RE.split(text) if s]


def _chunk_id(source_id: str, idx: int, text: str) -> str:
    return hashlib.sha256(f"{source_id}:{idx}:{text[:64]}".encode()).hexdigest()[:16]


def chunk_text(
    text: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    overlap: int = DEFAULT_OVERLAP,
    source_id: str = "",
) -> list[Chunk]:
    """Split text into overlapping, sentence-aligned chunks.

    Text no longer than chunk_size comes back as a single chunk. A single
    sentence longer than chunk_size becomes its own (oversized) chunk
    rather than being cut mid-sentence.
    """
    if not text or not text.strip():
        return []
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    overlap = max(0, min(overlap, chunk_size - 1))

    if len(text) <= chunk_size:
        return [Chunk(id=_chunk_id(source_id, 0, text), text=text, index=0)]

    pieces: list[str] = []
    current = ""
    for sentence in split_sentences(text):
        if current and len(current) + len(sentence) > chunk_size:
            pieces.append(current)
            current = (current[-overlap:] if overlap else "") + sentence
        else:
            current += sentence
    if current.strip():
        pieces.append(current)

    return [Chunk(id=_chunk_id(source_id, i, p), text=p, index=i) for i, p in enumerate(pieces)]


class SentenceBoundaryChunker:
    """Callable chunking strategy bound to a size / overlap policy."""

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE, overlap: int = DEFAULT_OVERLAP) -> None:
        self.chunk_size = chunk_size
        self.overlap = overlap

    def needs_chunking(self, text: str) -> bool:
        return len(text) > self.chunk_size

    def __call__(self, text: str, source_id: str = "") -> list[Chunk]:
        return chunk_text(text, self.chunk_size, self.overlap, source_id=source_id)
