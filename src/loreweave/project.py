"""Project snapshot loading: the read-only entity provider for the CLI.

A snapshot is a JSON or YAML document:

    name: Azure Sky
    chapters:
      - {id: ch-1, order: 1, title: "...", summary: "...", content: "..."}
    characters:
      - id: lin
        name: Lin Feng
        relationships:
          - {targetId: zhao, relation: nemesis}
    wikiEntries:
      - {id: w-1, name: Dragon Clan, category: Organization, aliases: [...]}

Keys may be camelCase (as exported by the editor) or snake_case.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from loreweave.errors import ProjectLoadError
from loreweave.models import Chapter, Character, CharacterRelationship, Entity, WikiEntry

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


def _snake(key: str) -> str:
    return _CAMEL_RE.sub("_", key).lower()


def _normalize_keys(data: dict[str, Any]) -> dict[str, Any]:
    return {_snake(str(k)): v for k, v in data.items()}


@dataclass
class Project:
    name: str = ""
    chapters: list[Chapter] = field(default_factory=list)
    characters: list[Character] = field(default_factory=list)
    wiki_entries: list[WikiEntry] = field(default_factory=list)

    def entities(self) -> list[Entity]:
        return [*self.chapters, *self.characters, *self.wiki_entries]

    def get(self, entity_id: str) -> Entity | None:
        for entity in self.entities():
            if entity.id == entity_id:
                return entity
        return None


def _require_id(kind: str, item: dict[str, Any], index: int) -> str:
    entity_id = item.get("id")
    if entity_id is None or str(entity_id) == "":
        raise ProjectLoadError(f"{kind}[{index}] has no id")
    return str(entity_id)


def _text(item: dict[str, Any], key: str) -> str:
    value = item.get(key)
    return "" if value is None else str(value)


def _string_list(value: Any) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [value]
    return [str(v) for v in value]


def _chapter(item: dict[str, Any], index: int) -> Chapter:
    try:
        order = int(item.get("order", index + 1))
    except (TypeError, ValueError) as err:
        raise ProjectLoadError(f"chapters[{index}] has a non-numeric order") from err
    return Chapter(
        id=_require_id("chapters", item, index),
        order=order,
        title=_text(item, "title"),
        summary=_text(item, "summary"),
        content=_text(item, "content"),
    )


def _relationship(raw: dict[str, Any]) -> CharacterRelationship | None:
    item = _normalize_keys(raw)
    target = item.get("target_id")
    if not target:
        return None
    return CharacterRelationship(
        target_id=str(target),
        relation=_text(item, "relation") or _text(item, "type"),
        target_name=_text(item, "target_name"),
        attitude=_text(item, "attitude"),
    )


def _character(item: dict[str, Any], index: int) -> Character:
    relationships = [
        rel
        for rel in (_relationship(r) for r in item.get("relationships") or [] if isinstance(r, dict))
        if rel is not None
    ]
    return Character(
        id=_require_id("characters", item, index),
        name=_text(item, "name"),
        role=_text(item, "role"),
        description=_text(item, "description"),
        appearance=_text(item, "appearance"),
        background=_text(item, "background"),
        personality=_text(item, "personality"),
        speaking_style=_text(item, "speaking_style"),
        motivation=_text(item, "motivation"),
        relationships=relationships,
        status=_text(item, "status"),
        tags=_string_list(item.get("tags")),
    )


def _wiki(item: dict[str, Any], index: int) -> WikiEntry:
    return WikiEntry(
        id=_require_id("wiki_entries", item, index),
        name=_text(item, "name"),
        category=_text(item, "category") or "Other",
        description=_text(item, "description"),
        aliases=_string_list(item.get("aliases")),
    )


def _items(data: dict[str, Any], *keys: str) -> list[dict[str, Any]]:
    for key in keys:
        if key in data:
            raw = data[key] or []
            if not isinstance(raw, list):
                raise ProjectLoadError(f"{key} must be a list")
            return [_normalize_keys(item) for item in raw if isinstance(item, dict)]
    return []


def project_from_dict(data: dict[str, Any]) -> Project:
    """Build a Project from an already-parsed snapshot document."""
    if not isinstance(data, dict):
        raise ProjectLoadError("project snapshot must be a mapping")
    data = _normalize_keys(data)
    return Project(
        name=_text(data, "name"),
        chapters=[_chapter(item, i) for i, item in enumerate(_items(data, "chapters"))],
        characters=[_character(item, i) for i, item in enumerate(_items(data, "characters"))],
        wiki_entries=[
            _wiki(item, i) for i, item in enumerate(_items(data, "wiki_entries", "wiki"))
        ],
    )


def load_project(path: str | Path) -> Project:
    """Read a .json / .yaml / .yml snapshot from disk.

    Raises:
        ProjectLoadError: missing file, unparseable document, or bad entity.
    """
    file_path = Path(path)
    try:
        raw_text = file_path.read_text(encoding="utf-8")
    except OSError as err:
        raise ProjectLoadError(f"cannot read {file_path}: {err}") from err

    try:
        if file_path.suffix.lower() == ".json":
            data = json.loads(raw_text)
        else:
            data = yaml.safe_load(raw_text)
    except (json.JSONDecodeError, yaml.YAMLError) as err:
        raise ProjectLoadError(f"cannot parse {file_path}: {err}") from err

    return project_from_dict(data or {})
