"""Keyword extraction and set overlap for lexical scoring.

Deterministic, dependency-free. Handles mixed Latin / CJK prose:

- Whitespace tokens of 2-10 characters (punctuation stripped, lowercased,
  English stopwords removed)
- CJK runs of 2-4 Han characters (the usual length of a personal or
  place name)
- Capitalized Latin word runs ("Lin Feng", "Azure Cloud Sect")
- Quoted spans in any of the common quote styles

Results are deduplicated in first-seen order and capped.
"""

from __future__ import annotations

import re

MAX_KEYWORDS = 50
MIN_TOKEN_LEN = 2
MAX_TOKEN_LEN = 10

STOPWORDS = frozenset({
    'a', 'an', 'the', 'is', 'are', 'was', 'were', 'be', 'been',
    'being', 'have', 'has', 'had', 'do', 'does', 'did', 'will',
    'would', 'could', 'should', 'may', 'might', 'must', 'shall',
    'can', 'to', 'of', 'in', 'for', 'on', 'with', 'at', 'by',
    'from', 'as', 'into', 'through', 'during', 'before', 'after',
    'above', 'below', 'between', 'under', 'again', 'further',
    'then', 'once', 'here', 'there', 'when', 'where', 'why', 'how',
    'all', 'each', 'few', 'more', 'most', 'other', 'some', 'such',
    'no', 'nor', 'not', 'only', 'own', 'same', 'so', 'than', 'too',
    'very', 'just', 'and', 'but', 'if', 'or', 'because', 'until',
    'while', 'this', 'that', 'these', 'those', 'it', 'its',
    'he', 'she', 'his', 'her', 'him', 'they', 'them', 'their',
    'we', 'our', 'you', 'your', 'who', 'what', 'which',
})

# \w is unicode-aware, so Han characters survive; underscore does not.
_PUNCT_RE = re.compile(r"[^\w\s]|_")
_HAN_SPAN_RE = re.compile(r"[\u4e00-\u9fff]{2,4}")
_LATIN_PROPER_RE = re.compile(r"\b[A-Z][a-z]+(?:[ \t]+[A-Z][a-z]+){0,3}\b")
_QUOTED_RE = re.compile(
    r'"([^"\n]{1,30})"'
    r"|“([^”\n]{1,30})”"
    r"|「([^」\n]{1,30})」"
    r"|『([^』\n]{1,30})』"
    r"|《([^》\n]{1,30})》"
)


def _tokens(text: str) -> list[str]:
    cleaned = _PUNCT_RE.sub(" ", text)
    out = []
    for word in cleaned.split():
        word = word.lower()
        if MIN_TOKEN_LEN <= len(word) <= MAX_TOKEN_LEN and word not in STOPWORDS:
            out.append(word)
    return out


def _latin_proper_nouns(text: str) -> list[str]:
    spans = []
    for match in _LATIN_PROPER_RE.finditer(text):
        words = match.group(0).split()
        # Sentence-initial "The", "When", ... get capitalized too
        while words and words[0].lower() in STOPWORDS:
            words.pop(0)
        if len(words) > 1:
            spans.append(" ".join(words).lower())
    return spans


def _quoted_spans(text: str) -> list[str]:
    spans = []
    for match in _QUOTED_RE.finditer(text):
        span = next(g for g in match.groups() if g is not None).strip().lower()
        if len(span) >= MIN_TOKEN_LEN:
            spans.append(span)
    return spans


def extract_keywords(text: str | None, limit: int = MAX_KEYWORDS) -> list[str]:
    """Extract candidate terms from free text.

    Returns lowercased, deduplicated terms in first-seen order, at most
    `limit` of them. Empty or None input yields an empty list.
    """
    if not text:
        return []

    candidates = [
        *_tokens(text),
        *_HAN_SPAN_RE.findall(text),
        *_latin_proper_nouns(text),
        *_quoted_spans(text),
    ]
    return list(dict.fromkeys(candidates))[:limit]


def keyword_set(text: str | None) -> set[str]:
    """Keyword set for overlap comparisons."""
    return set(extract_keywords(text))


def jaccard_similarity(tokens_a: set[str], tokens_b: set[str]) -> float:
    """Compute Jaccard similarity between token sets."""
    if not tokens_a or not tokens_b:
        return 0.0
    intersection = len(tokens_a & tokens_b)
    union = len(tokens_a | tokens_b)
    return intersection / union if union > 0 else 0.0
