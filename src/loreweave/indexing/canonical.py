"""Canonical index text per entity type.

Every entity is reduced to a header (the short, always-embedded part)
and a body (long free text that may be excerpted or chunked). Only
chapters have a body.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass

from loreweave.models import Chapter, Character, Entity, EntityType, WikiEntry


@dataclass(frozen=True)
class CanonicalText:
    header: str
    body: str = ""

    @property
    def full(self) -> str:
        return _join(self.header, self.body)

    def excerpt(self, max_chars: int) -> str:
        """Header plus at most max_chars of body."""
        return _join(self.header, self.body[:max_chars])

    def with_chunk(self, chunk: str) -> str:
        """Header plus one chunk of body, so each chunk keeps its context."""
        return _join(self.header, chunk)


def _join(header: str, body: str) -> str:
    if not body:
        return header
    return f"{header}\n\n{body}"


def _lines(*pairs: tuple[str, str]) -> str:
    return "\n".join(f"{label}: {value.strip()}" for label, value in pairs if value and value.strip())


def entity_type_of(entity: Entity) -> EntityType:
    if isinstance(entity, Chapter):
        return EntityType.CHAPTER
    if isinstance(entity, Character):
        return EntityType.CHARACTER
    if isinstance(entity, WikiEntry):
        return EntityType.WIKI
    raise TypeError(f"not an indexable entity: {type(entity).__name__}")


def chapter_text(chapter: Chapter) -> CanonicalText:
    return CanonicalText(
        header=_lines(("Chapter", chapter.title), ("Summary", chapter.summary)),
        body=chapter.content.strip(),
    )


def character_text(character: Character) -> CanonicalText:
    return CanonicalText(
        header=_lines(
            ("Name", character.name),
            ("Role", character.role),
            ("Description", character.description),
            ("Appearance", character.appearance),
            ("Background", character.background),
            ("Personality", character.personality),
            ("Speaking style", character.speaking_style),
            ("Motivation", character.motivation),
        )
    )


def wiki_text(entry: WikiEntry) -> CanonicalText:
    aliases = ", ".join(a for a in entry.aliases if a.strip())
    return CanonicalText(
        header=_lines(
            ("Name", entry.name),
            ("Aliases", aliases),
            ("Category", entry.category),
            ("Description", entry.description),
        )
    )


def canonical_text(entity: Entity) -> CanonicalText:
    kind = entity_type_of(entity)
    if kind is EntityType.CHAPTER:
        return chapter_text(entity)  # type: ignore[arg-type]
    if kind is EntityType.CHARACTER:
        return character_text(entity)  # type: ignore[arg-type]
    return wiki_text(entity)  # type: ignore[arg-type]


def searchable_text(entity: Entity) -> str:
    """Lowercased field values without labels, for keyword scoring and dedup."""
    if isinstance(entity, Chapter):
        parts = [entity.title, entity.summary, entity.content]
    elif isinstance(entity, Character):
        parts = [
            entity.name,
            entity.role,
            entity.description,
            entity.appearance,
            entity.background,
            entity.personality,
            entity.speaking_style,
            entity.motivation,
            " ".join(entity.tags),
        ]
    else:
        parts = [entity.name, *entity.aliases, entity.category, entity.description]
    return "\n".join(p for p in parts if p).lower()


def content_hash(signature: str, text: str, layout: str = "") -> str:
    """sha256 over the provider signature, the slicing layout and the canonical text.

    A provider switch or a change in how text is sliced for embedding
    invalidates every hash.
    """
    h = hashlib.sha256()
    h.update(signature.encode("utf-8"))
    h.update(b"\x00")
    h.update(layout.encode("utf-8"))
    h.update(b"\x00")
    h.update(text.encode("utf-8"))
    return h.hexdigest()
