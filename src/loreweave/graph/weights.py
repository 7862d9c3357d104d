"""Relation label -> edge weight resolution.

Relationship labels are free text typed by authors ("sworn enemy",
"secret crush", "师父"). Resolution walks an ordered rule table and the
first rule that produces a weight wins:

    1. ExactRule      label is a vocabulary key
    2. SubstringRule  label contains a key, or a key contains the label
    3. RootRule       label contains a keyword root of a relation family
    4. default        DEFAULT_RELATION_WEIGHT

Weights express narrative importance: conflict outranks romance, which
outranks kinship, friendship, and acquaintance, in that order. Extend
the vocabulary by passing a new table; control flow does not change.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Protocol

DEFAULT_RELATION_WEIGHT = 0.5

RELATION_WEIGHTS: dict[str, float] = {
    # Core conflict
    "enemy": 1.0,
    "nemesis": 1.0,
    "archenemy": 1.0,
    "arch-enemy": 1.0,
    "sworn enemy": 1.0,
    "mortal enemy": 1.0,
    "仇人": 1.0,
    "死敌": 1.0,
    "宿敌": 1.0,
    "杀父仇人": 1.0,
    "灭门仇人": 1.0,
    # Romance
    "lover": 0.9,
    "wife": 0.9,
    "husband": 0.9,
    "spouse": 0.9,
    "爱人": 0.9,
    "恋人": 0.9,
    "妻子": 0.9,
    "丈夫": 0.9,
    # Kinship and lineage
    "father": 0.85,
    "mother": 0.85,
    "son": 0.85,
    "daughter": 0.85,
    "parent": 0.85,
    "父亲": 0.85,
    "母亲": 0.85,
    "儿子": 0.85,
    "女儿": 0.85,
    "mentor": 0.85,
    "master": 0.85,
    "apprentice": 0.85,
    "disciple": 0.85,
    "student": 0.85,
    "师父": 0.85,
    "徒弟": 0.85,
    "brother": 0.8,
    "sister": 0.8,
    "sibling": 0.8,
    "best friend": 0.8,
    "兄弟": 0.8,
    "姐妹": 0.8,
    "挚友": 0.8,
    "生死之交": 0.8,
    # Tension short of enmity
    "love rival": 0.8,
    "情敌": 0.8,
    "rival": 0.75,
    "竞争对手": 0.75,
    "crush": 0.7,
    "暗恋": 0.7,
    "单相思": 0.7,
    # Ordinary ties
    "ally": 0.65,
    "盟友": 0.65,
    "friend": 0.6,
    "companion": 0.6,
    "classmate": 0.6,
    "ex": 0.6,
    "朋友": 0.6,
    "同门": 0.6,
    "同伴": 0.6,
    "前任": 0.6,
    "collaborator": 0.55,
    "partner": 0.55,
    "合作者": 0.55,
    "boss": 0.5,
    "subordinate": 0.5,
    "上司": 0.5,
    "下属": 0.5,
    "colleague": 0.45,
    "同事": 0.45,
    # Weak ties
    "acquaintance": 0.35,
    "熟人": 0.35,
    "neighbor": 0.3,
    "认识": 0.3,
    "邻居": 0.3,
    "passerby": 0.2,
    "路人": 0.2,
    "stranger": 0.1,
    "陌生人": 0.1,
}

# (roots, weight), checked in order
RELATION_ROOTS: list[tuple[tuple[str, ...], float]] = [
    (("enem", "foe", "hate", "hatred", "feud", "仇", "敌"), 0.9),
    (("love", "romance", "beloved", "爱", "恋"), 0.85),
    (("father", "mother", "daughter", "parent", "child", "父", "母", "子", "女"), 0.8),
    (("friend", "ally", "companion", "友", "伴"), 0.6),
]

# Substring matching on very short keys ("ex", "son") mostly produces
# false hits ("next", "person"); those keys only match exactly.
_MIN_SUBSTRING_KEY_LEN = 4
_MIN_SUBSTRING_KEY_LEN_CJK = 1


def _normalize(label: str) -> str:
    return " ".join(label.strip().lower().split())


def _is_cjk(text: str) -> bool:
    return any("\u4e00" <= ch <= "\u9fff" for ch in text)


class WeightRule(Protocol):
    """One stage of the resolution table. Returns None when it does not apply."""

    def __call__(self, label: str) -> float | None: ...


@dataclass
class ExactRule:
    vocabulary: Mapping[str, float]

    def __call__(self, label: str) -> float | None:
        return self.vocabulary.get(label)


@dataclass
class SubstringRule:
    vocabulary: Mapping[str, float]

    def __call__(self, label: str) -> float | None:
        for key, weight in self.vocabulary.items():
            min_len = _MIN_SUBSTRING_KEY_LEN_CJK if _is_cjk(key) else _MIN_SUBSTRING_KEY_LEN
            if len(key) < min_len:
                continue
            if key in label or (len(label) >= min_len and label in key):
                return weight
        return None


@dataclass
class RootRule:
    roots: Sequence[tuple[tuple[str, ...], float]]

    def __call__(self, label: str) -> float | None:
        for family, weight in self.roots:
            if any(root in label for root in family):
                return weight
        return None


@dataclass
class RelationWeightResolver:
    """Maps relationship labels to weights in [0, 1]. Never raises."""

    vocabulary: Mapping[str, float] = field(default_factory=lambda: dict(RELATION_WEIGHTS))
    roots: Sequence[tuple[tuple[str, ...], float]] = field(
        default_factory=lambda: list(RELATION_ROOTS)
    )
    default: float = DEFAULT_RELATION_WEIGHT

    def __post_init__(self) -> None:
        vocab = {_normalize(k): v for k, v in self.vocabulary.items()}
        self.rules: list[WeightRule] = [
            ExactRule(vocab),
            SubstringRule(vocab),
            RootRule(self.roots),
        ]

    def resolve(self, label: str | None) -> float:
        norm = _normalize(label or "")
        if norm:
            for rule in self.rules:
                weight = rule(norm)
                if weight is not None:
                    return _clamp(weight)
        return _clamp(self.default)

    __call__ = resolve


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


_default_resolver = RelationWeightResolver()


def get_relation_weight(label: str | None) -> float:
    """Resolve a label against the built-in vocabulary."""
    return _default_resolver.resolve(label)
