"""Unit tests for similarity retrieval and prompt formatting."""

import pytest

from vetter.contexts.learning.classifiers import Industry, RoleLevel
from vetter.contexts.learning.index_data_structures import (
    EvaluationIndex,
    IndexedEvaluation,
    RAGContext,
)
from vetter.contexts.learning.indexer import Indexer
from vetter.contexts.learning.retriever import (
    NO_DATA,
    VIOLATION_LABELS,
    Retriever,
    format_for_prompt,
    similarity,
)
from vetter.contexts.learning.storage import InMemoryEvaluationStore
from vetter.contexts.scoring.rules import DEFAULT_RULE_CATALOG


def entry(
    company: str,
    role_level: RoleLevel = RoleLevel.SENIOR_IC,
    score: int = 90,
    critical: int = 0,
    lessons=(),
    rag: str = "",
) -> IndexedEvaluation:
    return IndexedEvaluation(
        company=company,
        role="Engineer",
        role_level=role_level,
        industry=Industry.UNKNOWN,
        evaluated_at="2025-10-18T10:15:00",
        overall_score=score,
        critical_violations=critical,
        lessons_learned=tuple(lessons),
        rag_context=rag,
    )


def retriever_for(*entries) -> Retriever:
    store = InMemoryEvaluationStore(index=EvaluationIndex(evaluations=entries).to_json())
    return Retriever(Indexer(store))


# =============================================================================
# SIMILARITY
# =============================================================================


@pytest.mark.unit
def test_similarity_adds_all_signals():
    """Test same level, low score and critical violations add up."""
    failed = entry("acme", score=60, critical=2)

    assert similarity(failed, RoleLevel.SENIOR_IC) == pytest.approx(1.2)
    assert similarity(failed, RoleLevel.CTO) == pytest.approx(0.7)


@pytest.mark.unit
def test_low_score_alone_is_not_similar():
    """Test an entry scoring only the low-score weight stays below the threshold."""
    retriever = retriever_for(entry("globex", role_level=RoleLevel.DIRECTOR, score=70))

    ctx = retriever.retrieve("acme", "Senior Engineer")

    assert ctx.similar_applications == 0


# =============================================================================
# RETRIEVE
# =============================================================================


@pytest.mark.unit
def test_retrieve_aggregates_similar_entries():
    """Test lessons, violation counts and successful patterns from similar entries."""
    retriever = retriever_for(
        entry(
            "acme",
            score=60,
            critical=2,
            lessons=["Lesson one", "Lesson two"],
            rag="- FORBIDDEN_NUMBER_FABRICATION: 500 engineers\n- SKILL_FABRICATION: Rust\n",
        ),
        entry("initech", score=90, lessons=["Lesson two", "Lesson three"], rag="- SKILL_FABRICATION: Go\n"),
        entry("globex", role_level=RoleLevel.DIRECTOR, score=70, lessons=["Unrelated"]),
    )

    ctx = retriever.retrieve("Umbrella", "Senior Software Engineer", "brief text")

    assert ctx.similar_applications == 2
    assert ctx.relevant_lessons == ["Lesson one", "Lesson two", "Lesson three"]
    assert ctx.common_violations == [
        "Skill fabrication (listing skills not in source data) (occurred 2 times)",
        "Number fabrication (inventing metrics/headcounts) (occurred 1 times)",
    ]
    assert ctx.successful_patterns == ["initech application scored 90 - good example"]


@pytest.mark.unit
def test_violation_ties_keep_catalog_order():
    """Test equally frequent violations are listed in rule catalog order."""
    retriever = Retriever(Indexer(InMemoryEvaluationStore()))

    ctx = retriever.build_context(
        [entry("acme", rag="INAPPROPRIATE_TONE SKILL_FABRICATION FORBIDDEN_NUMBER_FABRICATION")]
    )

    assert [v.split(" (")[0] for v in ctx.common_violations] == [
        "Number fabrication",
        "Skill fabrication",
        "Inappropriate tone",
    ]


@pytest.mark.unit
def test_retrieve_from_empty_index():
    """Test retrieval with no index yields the no-data prompt."""
    retriever = Retriever(Indexer(InMemoryEvaluationStore()))

    ctx = retriever.retrieve("acme", "Senior Engineer")

    assert ctx == RAGContext()
    assert format_for_prompt(ctx) == NO_DATA


@pytest.mark.unit
def test_retrieve_from_corrupt_index():
    """Test a corrupt index degrades to an empty context instead of raising."""
    retriever = Retriever(Indexer(InMemoryEvaluationStore(index="{not json")))

    assert retriever.retrieve("acme", "Senior Engineer").similar_applications == 0


@pytest.mark.unit
def test_custom_violation_labels():
    """Test injected labels replace the default table."""
    retriever = Retriever(Indexer(InMemoryEvaluationStore()), violation_labels={"CUSTOM": "Custom"})

    ctx = retriever.build_context([entry("acme", rag="CUSTOM SKILL_FABRICATION")])

    assert ctx.common_violations == ["Custom (occurred 1 times)"]


@pytest.mark.unit
def test_labels_cover_every_rule():
    assert list(VIOLATION_LABELS) == DEFAULT_RULE_CATALOG.rule_names()


# =============================================================================
# FORMAT
# =============================================================================


@pytest.mark.unit
def test_format_for_prompt_sections():
    """Test populated sections render with headings and blank-line separators."""
    ctx = RAGContext(
        relevant_lessons=["Lesson one"],
        common_violations=["Skill fabrication (occurred 1 times)"],
        similar_applications=1,
    )

    assert format_for_prompt(ctx) == (
        "**LEARNING FROM 1 PREVIOUS APPLICATIONS:**\n\n"
        "**COMMON VIOLATIONS TO AVOID:**\n"
        "- Skill fabrication (occurred 1 times)\n\n"
        "**LESSONS LEARNED:**\n"
        "- Lesson one\n\n"
    )


@pytest.mark.unit
def test_format_for_prompt_successful_patterns():
    ctx = RAGContext(
        successful_patterns=["initech application scored 90 - good example"],
        similar_applications=3,
    )

    text = format_for_prompt(ctx)

    assert text.startswith("**LEARNING FROM 3 PREVIOUS APPLICATIONS:**\n\n**SUCCESSFUL PATTERNS:**\n")
    assert "LESSONS LEARNED" not in text


@pytest.mark.unit
def test_format_for_prompt_without_similar_applications():
    """Test the no-data text wins even if other fields are populated."""
    assert format_for_prompt(RAGContext(relevant_lessons=["x"])) == NO_DATA
