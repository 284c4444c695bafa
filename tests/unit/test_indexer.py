"""Unit tests for evaluation persistence, storage backends and index rebuilds."""

import json

import pytest
from conftest import make_evaluation, make_violation
from loguru import logger

from vetter.contexts.learning.classifiers import Industry, RoleLevel
from vetter.contexts.learning.index_data_structures import EvaluationIndex
from vetter.contexts.learning.indexer import IndexLoadError, Indexer, record_key, slugify
from vetter.contexts.learning.storage import (
    INDEX_FILENAME,
    FileEvaluationStore,
    InMemoryEvaluationStore,
)
from vetter.contexts.scoring.evaluation_data_structures import Evaluation

KEY = "acme/acme-senior-platform-engineer-20251018T101500.evaluation.json"


@pytest.fixture
def warnings():
    """Collect loguru warning messages emitted during a test."""
    messages = []
    handler_id = logger.add(messages.append, level="WARNING", format="{message}")
    yield messages
    logger.remove(handler_id)


# =============================================================================
# KEYS
# =============================================================================


@pytest.mark.unit
@pytest.mark.parametrize(
    "text,expected",
    [
        ("Acme Corp", "acme-corp"),
        ("Senior Engineer, Platform (Remote)", "senior-engineer-platform-remote"),
        ("  --  ", "unknown"),
    ],
)
def test_slugify(text, expected):
    assert slugify(text) == expected


@pytest.mark.unit
def test_record_key():
    assert record_key("Acme Corp", "Senior Engineer", "20251018T101500") == (
        "acme-corp/acme-corp-senior-engineer-20251018T101500.evaluation.json"
    )


# =============================================================================
# PERSIST
# =============================================================================


@pytest.mark.unit
def test_persist_writes_record():
    """Test persist stores the evaluation JSON under a company/role/timestamp key."""
    store = InMemoryEvaluationStore()
    evaluation = make_evaluation()

    key = Indexer(store).persist(evaluation)

    assert key == KEY
    assert Evaluation.from_json(store.read_record(key)) == evaluation


@pytest.mark.unit
def test_persist_never_overwrites():
    """Test a second record with the same timestamp gets a numeric suffix."""
    store = InMemoryEvaluationStore()
    indexer = Indexer(store)

    first = indexer.persist(make_evaluation())
    second = indexer.persist(make_evaluation())
    third = indexer.persist(make_evaluation())

    assert first == KEY
    assert second == KEY.replace("101500", "101500-2")
    assert third == KEY.replace("101500", "101500-3")
    assert len(store.list_records()) == 3


@pytest.mark.unit
def test_persist_with_unparseable_timestamp():
    """Test an evaluated_at that is not ISO 8601 falls back to the current time."""
    store = InMemoryEvaluationStore()

    key = Indexer(store).persist(make_evaluation(evaluated_at="yesterday"))

    assert key.startswith("acme/acme-senior-platform-engineer-")
    assert key.endswith(".evaluation.json")


# =============================================================================
# REBUILD AND LOAD
# =============================================================================


@pytest.mark.unit
def test_rebuild_summarizes_every_record():
    """Test rebuild classifies each record and writes the index."""
    store = InMemoryEvaluationStore()
    indexer = Indexer(store)
    indexer.persist(make_evaluation(violations=[make_violation("FORBIDDEN_NUMBER_FABRICATION")]))
    indexer.persist(make_evaluation(company="Capital One", role="Director of Engineering"))

    count, index = indexer.rebuild()

    assert count == 2
    assert [e.company for e in index.evaluations] == ["acme", "Capital One"]

    acme, capital = index.evaluations
    assert acme.role_level == RoleLevel.SENIOR_IC
    assert acme.industry == Industry.UNKNOWN
    assert acme.overall_score == 89
    assert acme.critical_violations == 1
    assert "FORBIDDEN_NUMBER_FABRICATION" in acme.rag_context
    assert acme.path == f"memory://{KEY}"
    assert capital.role_level == RoleLevel.DIRECTOR
    assert capital.industry == Industry.FINTECH
    assert capital.critical_violations == 0

    assert EvaluationIndex.from_json(store.read_index()).evaluations == index.evaluations


@pytest.mark.unit
def test_rebuild_skips_unreadable_records(warnings):
    """Test corrupt records are skipped and logged while the rest are indexed."""
    store = InMemoryEvaluationStore(
        records={
            KEY: make_evaluation().to_json(),
            "acme/broken.evaluation.json": "{not json",
            "acme/partial.evaluation.json": json.dumps({"company": "acme"}),
            "acme/notes.txt": "ignored",
        }
    )

    count, index = Indexer(store).rebuild()

    assert count == 1
    assert len(index) == 1
    assert len(warnings) == 2
    assert any("broken.evaluation.json" in message for message in warnings)


@pytest.mark.unit
def test_rebuild_is_idempotent():
    """Test rebuilding twice over the same records yields the same entries."""
    store = InMemoryEvaluationStore()
    indexer = Indexer(store)
    indexer.persist(make_evaluation())
    indexer.persist(make_evaluation(company="PayPal", role="Staff Engineer"))

    _, first = indexer.rebuild()
    _, second = indexer.rebuild()

    assert first.evaluations == second.evaluations


@pytest.mark.unit
def test_rebuild_over_empty_store():
    """Test an empty store produces an empty, written index."""
    store = InMemoryEvaluationStore()

    count, index = Indexer(store).rebuild()

    assert count == 0
    assert len(index) == 0
    assert store.read_index() is not None


@pytest.mark.unit
def test_load_without_index_is_empty():
    assert len(Indexer(InMemoryEvaluationStore()).load()) == 0


@pytest.mark.unit
@pytest.mark.parametrize(
    "text",
    [
        "{not json",
        "[]",
        json.dumps({"updated_at": "x"}),
        json.dumps({"evaluations": [{"company": "acme"}]}),
        json.dumps(
            {
                "evaluations": [
                    {
                        "company": "acme",
                        "role": "Engineer",
                        "role_level": "Intern",
                        "industry": "unknown",
                        "overall_score": 80,
                        "critical_violations": 0,
                    }
                ]
            }
        ),
    ],
)
def test_load_corrupt_index(text):
    """Test a corrupt index raises IndexLoadError naming the index."""
    with pytest.raises(IndexLoadError, match=INDEX_FILENAME):
        Indexer(InMemoryEvaluationStore(index=text)).load()


# =============================================================================
# FILE STORE
# =============================================================================


@pytest.mark.unit
def test_file_store_layout(tmp_path):
    """Test records land under <root>/<company>/ and the index at the root."""
    indexer = Indexer.for_directory(tmp_path)

    key = indexer.persist(make_evaluation())
    indexer.rebuild()

    assert (tmp_path / key).is_file()
    assert (tmp_path / INDEX_FILENAME).is_file()
    assert not (tmp_path / (INDEX_FILENAME + ".tmp")).exists()
    assert len(indexer.load()) == 1
    assert indexer.load().evaluations[0].path == str(tmp_path / key)


@pytest.mark.unit
def test_file_store_lists_only_records(tmp_path):
    """Test drafts and the index are not mistaken for evaluation records."""
    (tmp_path / "acme").mkdir()
    (tmp_path / "acme" / "jane-doe-acme-resume.md").write_text("# Resume")
    (tmp_path / "acme" / "a.evaluation.json").write_text("{}")
    (tmp_path / "globex").mkdir()
    (tmp_path / "globex" / "b.evaluation.json").write_text("{}")
    (tmp_path / INDEX_FILENAME).write_text("{}")

    store = FileEvaluationStore(tmp_path)

    assert store.list_records() == ["acme/a.evaluation.json", "globex/b.evaluation.json"]


@pytest.mark.unit
def test_file_store_missing_paths(tmp_path):
    """Test a missing root lists nothing and a missing record raises KeyError."""
    store = FileEvaluationStore(tmp_path / "missing")

    assert store.list_records() == []
    assert store.read_index() is None
    with pytest.raises(KeyError):
        store.read_record("acme/nothing.evaluation.json")
