"""Tests for project snapshot loading."""

import json

import pytest

from loreweave.errors import ProjectLoadError
from loreweave.models import Chapter, Character, WikiEntry
from loreweave.project import load_project, project_from_dict

SNAPSHOT = {
    "name": "Azure Sky",
    "chapters": [
        {"id": "ch-1", "order": 1, "title": "Dawn", "content": "Lin Feng wakes."},
        {"id": "ch-2", "order": "2", "title": "Dusk"},
    ],
    "characters": [
        {
            "id": "lin",
            "name": "Lin Feng",
            "speakingStyle": "terse",
            "tags": "protagonist",
            "relationships": [
                {"targetId": "zhao", "relation": "nemesis"},
                {"targetId": "su", "type": "lover", "targetName": "Su Yan"},
                {"relation": "orphaned edge"},
            ],
        },
        {"id": "zhao", "name": "Zhao Kun"},
    ],
    "wikiEntries": [
        {"id": "w-1", "name": "Dragon Clan", "category": "Organization", "aliases": ["The Clan"]},
        {"id": "w-2", "name": "Mist"},
    ],
}


class TestProjectFromDict:
    def test_parses_entities(self):
        project = project_from_dict(SNAPSHOT)
        assert project.name == "Azure Sky"
        assert [c.id for c in project.chapters] == ["ch-1", "ch-2"]
        assert project.chapters[1].order == 2
        assert isinstance(project.chapters[0], Chapter)
        assert [c.id for c in project.characters] == ["lin", "zhao"]
        assert [w.id for w in project.wiki_entries] == ["w-1", "w-2"]

    def test_camel_case_keys(self):
        lin = project_from_dict(SNAPSHOT).characters[0]
        assert isinstance(lin, Character)
        assert lin.speaking_style == "terse"
        assert lin.tags == ["protagonist"]

    def test_relationships(self):
        rels = project_from_dict(SNAPSHOT).characters[0].relationships
        assert [(r.target_id, r.relation) for r in rels] == [("zhao", "nemesis"), ("su", "lover")]
        assert rels[1].target_name == "Su Yan"

    def test_wiki_defaults(self):
        mist = project_from_dict(SNAPSHOT).wiki_entries[1]
        assert isinstance(mist, WikiEntry)
        assert mist.category == "Other"
        assert mist.aliases == []

    def test_wiki_short_key(self):
        project = project_from_dict({"wiki": [{"id": "w", "name": "X"}]})
        assert [w.id for w in project.wiki_entries] == ["w"]

    def test_order_defaults_to_position(self):
        project = project_from_dict({"chapters": [{"id": "a"}, {"id": "b"}]})
        assert [c.order for c in project.chapters] == [1, 2]

    def test_entities_and_get(self):
        project = project_from_dict(SNAPSHOT)
        assert len(project.entities()) == 6
        assert project.get("zhao").name == "Zhao Kun"
        assert project.get("nobody") is None

    @pytest.mark.parametrize(
        "data,message",
        [
            ({"chapters": [{"title": "no id"}]}, "no id"),
            ({"chapters": [{"id": "a", "order": "first"}]}, "non-numeric order"),
            ({"characters": {"id": "a"}}, "must be a list"),
            (["not", "a", "mapping"], "mapping"),
        ],
    )
    def test_invalid(self, data, message):
        with pytest.raises(ProjectLoadError, match=message):
            project_from_dict(data)


class TestLoadProject:
    def test_json(self, tmp_path):
        path = tmp_path / "project.json"
        path.write_text(json.dumps(SNAPSHOT), encoding="utf-8")
        assert load_project(path).name == "Azure Sky"

    def test_yaml(self, tmp_path):
        path = tmp_path / "project.yaml"
        path.write_text(
            "name: 青云\n"
            "characters:\n"
            "  - id: lin\n"
            "    name: 林风\n"
            "    relationships:\n"
            "      - {targetId: zhao, relation: 宿敌}\n",
            encoding="utf-8",
        )
        project = load_project(path)
        assert project.name == "青云"
        assert project.characters[0].relationships[0].relation == "宿敌"

    def test_empty_yaml(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_project(path).entities() == []

    def test_missing_file(self, tmp_path):
        with pytest.raises(ProjectLoadError, match="cannot read"):
            load_project(tmp_path / "nope.json")

    def test_unparseable(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(ProjectLoadError, match="cannot parse"):
            load_project(path)
