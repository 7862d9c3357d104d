"""Scoring primitives for hybrid retrieval.

Pure functions, no I/O:

    expand_query      1-3 query variants for recall
    keyword_score     fraction of query keywords present + direct-name bonus
    recency_weight    multiplicative boost for later chapters
    category_bonus    additive boost when the query names a wiki category
    deduplicate       drop near-duplicates by keyword-set Jaccard overlap
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from typing import TypeVar

from loreweave.text.keywords import extract_keywords, jaccard_similarity

T = TypeVar("T")

SHORT_QUERY_KEYWORDS = 5
LONG_QUERY_CHARS = 200
NAME_BONUS = 0.3
RECENCY_FACTOR = 0.1
CATEGORY_BONUS = 0.1

CATEGORY_TRIGGERS: dict[str, tuple[str, ...]] = {
    "Item": (
        "item", "weapon", "sword", "blade", "artifact", "treasure", "armor",
        "potion", "pill", "relic",
        "物品", "武器", "法宝", "宝物", "丹药", "神器", "剑",
    ),
    "Skill": (
        "skill", "technique", "spell", "magic", "ability", "power", "style",
        "cultivation",
        "技能", "功法", "法术", "武功", "招式", "剑法", "心法", "神通",
    ),
    "Location": (
        "place", "location", "city", "town", "village", "mountain", "forest",
        "palace", "realm", "valley", "river", "kingdom",
        "地点", "城", "镇", "村", "山", "宫", "殿", "谷", "河", "国",
    ),
    "Event": (
        "event", "battle", "war", "festival", "ceremony", "tournament",
        "incident", "massacre", "history",
        "事件", "战斗", "战争", "大战", "大会", "比武", "历史",
    ),
    "Organization": (
        "organization", "sect", "clan", "guild", "order", "faction", "school",
        "empire", "alliance",
        "组织", "门派", "宗门", "家族", "帮", "派", "盟",
    ),
    "Person": (
        "person", "people", "hero", "elder", "figure",
        "人物", "长老", "前辈",
    ),
    "Other": (),
}

_CATEGORY_ALIASES: dict[str, str] = {
    "物品": "Item",
    "道具": "Item",
    "技能": "Skill",
    "功法": "Skill",
    "地点": "Location",
    "事件": "Event",
    "组织": "Organization",
    "势力": "Organization",
    "人物": "Person",
    "其他": "Other",
}


def expand_query(query: str) -> list[str]:
    """The query, a short form of its top keywords, and (long queries) a prefix.

    Variants are deduplicated; empty input yields [].
    """
    text = (query or "").strip()
    if not text:
        return []

    variants = [text]
    short = " ".join(extract_keywords(text)[:SHORT_QUERY_KEYWORDS])
    if short and short != text.lower():
        variants.append(short)
    if len(text) > LONG_QUERY_CHARS:
        prefix = text[: len(text) // 2].strip()
        if prefix:
            variants.append(prefix)
    return list(dict.fromkeys(variants))


def name_in_query(names: Iterable[str], query: str) -> bool:
    """True when any name longer than one character appears in the query."""
    lowered = query.lower()
    for name in names:
        name = name.strip().lower()
        if len(name) > 1 and name in lowered:
            return True
    return False


def keyword_score(
    query_keywords: Sequence[str],
    text: str,
    names: Iterable[str] = (),
    query: str = "",
) -> float:
    """Share of query keywords found in `text`, plus NAME_BONUS, capped at 1.0.

    `text` is expected lowercased (extract_keywords lowercases too).
    """
    base = 0.0
    if query_keywords:
        hits = sum(1 for kw in query_keywords if kw in text)
        base = hits / len(query_keywords)
    bonus = NAME_BONUS if query and name_in_query(names, query) else 0.0
    return min(1.0, base + bonus)


def recency_weight(order: int, max_order: int) -> float:
    """1 + 0.1 * order / max_order; 1.0 when there is no ordering to speak of."""
    if max_order <= 0:
        return 1.0
    return 1.0 + RECENCY_FACTOR * (max(order, 0) / max_order)


def normalize_category(category: str) -> str:
    stripped = (category or "").strip()
    if stripped in _CATEGORY_ALIASES:
        return _CATEGORY_ALIASES[stripped]
    for known in CATEGORY_TRIGGERS:
        if stripped.lower() == known.lower():
            return known
    return "Other"


def category_bonus(category: str, query: str) -> float:
    """CATEGORY_BONUS when the query contains a trigger word of the entry's category."""
    triggers = CATEGORY_TRIGGERS[normalize_category(category)]
    lowered = query.lower()
    if any(trigger in lowered for trigger in triggers):
        return CATEGORY_BONUS
    return 0.0


def deduplicate(
    items: Sequence[T],
    keywords_of: Callable[[T], set[str]],
    threshold: float = 0.7,
) -> list[T]:
    """Keep items in order, dropping any whose keyword overlap with a kept one exceeds threshold.

    `items` must already be sorted best-first, so the lower-scored member
    of every near-duplicate pair is the one dropped.
    """
    kept: list[T] = []
    kept_sets: list[set[str]] = []
    for item in items:
        kws = keywords_of(item)
        if any(jaccard_similarity(kws, other) > threshold for other in kept_sets):
            continue
        kept.append(item)
        kept_sets.append(kws)
    return kept
