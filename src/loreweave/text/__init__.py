"""Text utilities: keyword extraction and semantic chunking."""

from loreweave.text.chunker import Chunk, SentenceBoundaryChunker, chunk_text, split_sentences
from loreweave.text.keywords import extract_keywords, jaccard_similarity, keyword_set

__all__ = [
    "Chunk",
    "SentenceBoundaryChunker",
    "chunk_text",
    "extract_keywords",
    "jaccard_similarity",
    "keyword_set",
    "split_sentences",
]
