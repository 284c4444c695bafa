"""Unit tests for loading and validating source-of-truth facts."""

import json

import pytest
import yaml
from conftest import SAMPLE_FACTS

from vetter.contexts.evaluation.exceptions import SourceFactsError
from vetter.contexts.evaluation.source_facts import SourceFacts, load_source_facts


@pytest.mark.unit
def test_load_json_facts(facts_file):
    facts = load_source_facts(facts_file)

    assert facts.achievement_ids == ["ach-001", "ach-002"]
    assert facts.profile["name"] == "Jane Doe"
    assert facts.projects[0]["name"] == "kube-tools"
    assert json.loads(facts.achievements_json())[0]["metrics"] == [
        "40% cost reduction",
        "200+ services migrated",
    ]


@pytest.mark.unit
@pytest.mark.parametrize("suffix", [".yaml", ".yml"])
def test_load_yaml_facts(tmp_path, facts_file, suffix):
    """Test YAML facts load to the same values as the JSON equivalent."""
    path = tmp_path / f"summaries{suffix}"
    path.write_text(yaml.safe_dump(SAMPLE_FACTS))

    assert load_source_facts(path) == load_source_facts(facts_file)


@pytest.mark.unit
def test_optional_sections_default_empty():
    facts = SourceFacts.from_dict({"achievements": [{"id": "a"}]})

    assert facts.profile == {}
    assert facts.skills == {}
    assert facts.projects == ()
    assert facts.skills_json() == "{}"


@pytest.mark.unit
def test_missing_file(tmp_path):
    with pytest.raises(SourceFactsError, match="not found"):
        load_source_facts(tmp_path / "missing.json")


@pytest.mark.unit
@pytest.mark.parametrize(
    "filename,content",
    [
        ("facts.json", "{not json"),
        ("facts.yaml", "achievements: [unclosed\n"),
    ],
)
def test_unparseable_file(tmp_path, filename, content):
    path = tmp_path / filename
    path.write_text(content)

    with pytest.raises(SourceFactsError, match="Failed to parse"):
        load_source_facts(path)


@pytest.mark.unit
@pytest.mark.parametrize(
    "data,message",
    [
        ([], "mapping"),
        ({}, "No achievements"),
        ({"achievements": []}, "No achievements"),
        ({"achievements": ["ach-001"]}, "index 0 is not a mapping"),
        ({"achievements": [{"id": "a"}, {"title": "no id"}]}, "index 1 missing id"),
        ({"achievements": [{"id": "  "}]}, "index 0 missing id"),
        ({"achievements": [{"id": "a"}, {"id": "a"}]}, "Duplicate achievement id: a"),
    ],
)
def test_invalid_facts(data, message):
    with pytest.raises(SourceFactsError, match=message):
        SourceFacts.from_dict(data)
