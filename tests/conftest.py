"""Shared fixtures: fake collaborators and sample data for evaluation tests."""

import json
from pathlib import Path

import pytest

from vetter.contexts.evaluation.evaluator import ViolationDetector
from vetter.contexts.evaluation.source_facts import SourceFacts
from vetter.contexts.scoring import Scorer
from vetter.contexts.scoring.evaluation_data_structures import (
    Evaluation,
    EvaluationResponse,
    Violation,
)
from vetter.utils.llm import LLMProvider, LLMResponse

SAMPLE_FACTS = {
    "achievements": [
        {
            "id": "ach-001",
            "company": "Acme Payments",
            "role": "Senior Platform Engineer",
            "dates": "2019-2023",
            "title": "Kubernetes platform migration",
            "metrics": ["40% cost reduction", "200+ services migrated"],
        },
        {
            "id": "ach-002",
            "company": "Globex",
            "role": "Infrastructure Engineer",
            "dates": "2015-2019",
            "title": "Observability stack",
            "metrics": ["99.99% uptime"],
        },
    ],
    "profile": {"name": "Jane Doe", "title": "Platform Engineer", "years_experience": 12},
    "skills": {"languages": ["Python", "Go"], "cloud": ["AWS"]},
    "opensource_projects": [{"name": "kube-tools", "url": "https://example.com/kube-tools"}],
}

RESUME_TEXT = (
    "# Jane Doe\n\n"
    "**Platform Engineer with 25+ years of experience** building Kubernetes platforms at scale\n\n"
    "**Climate Tech Expert**\n"
)

COVER_LETTER_TEXT = (
    "Dear Hiring Manager,\n\n"
    "This is a targeted resume highlighting my platform work.\n"
    "I have processed 1000+ security events daily across 7 distributed clusters.\n"
)

BRIEF_TEXT = "Acme is hiring a Senior Platform Engineer with Kubernetes and AWS experience."


class FakeDetector(ViolationDetector):
    """Returns queued responses (or raises queued exceptions) in order."""

    def __init__(self, *results):
        self.results = list(results)
        self.requests = []

    def evaluate(self, request):
        self.requests.append(request)
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


class FakeProvider(LLMProvider):
    """LLMProvider returning canned text without network access."""

    _provider_prefix = "fake"
    _retryable_exception = ConnectionError
    _service_exception = (RuntimeError, ConnectionError)
    _retry_message = "Fake provider busy"

    def __init__(self, content: str, failures=()):
        self.content = content
        self.failures = list(failures)
        self.calls = []
        self.update_model("fake-model")

    def _call_api(self, system_prompt, user_prompt, max_tokens):
        self.calls.append((system_prompt, user_prompt, max_tokens))
        if self.failures:
            raise self.failures.pop(0)
        return LLMResponse(
            id="msg_fake",
            role="assistant",
            content=self.content,
            model=self.model,
            input_tokens=10,
            output_tokens=20,
        )


def make_violation(rule: str, severity: str = "critical", fabricated: str = "text") -> Violation:
    return Violation(
        rule=rule,
        severity=severity,
        location="resume.md:1",
        fabricated=fabricated,
        evidence_checked="source achievements",
    )


def clean_response(**overrides) -> EvaluationResponse:
    fields = dict(verified_metrics=("40% cost reduction",))
    fields.update(overrides)
    return EvaluationResponse(**fields)


def make_evaluation(
    company: str = "acme",
    role: str = "Senior Platform Engineer",
    violations=(),
    evaluated_at: str = "2025-10-18T10:15:00",
) -> Evaluation:
    """Scored Evaluation built from resume violations, the way the orchestrator builds one."""
    scorer = Scorer()
    scores = scorer.score(resume_violations=list(violations))
    lessons = scorer.extract_lessons(scores)
    return Evaluation(
        company=company,
        role=role,
        generated_at="2025-10-18T09:00:00",
        evaluated_at=evaluated_at,
        scores=scores,
        lessons=tuple(lessons),
        rag_context=scorer.build_rag_text(company, role, scores, lessons),
    )


@pytest.fixture
def facts() -> SourceFacts:
    return SourceFacts.from_dict(SAMPLE_FACTS)


@pytest.fixture
def facts_file(tmp_path) -> Path:
    path = tmp_path / "summaries.json"
    path.write_text(json.dumps(SAMPLE_FACTS))
    return path


@pytest.fixture
def app_dir(tmp_path) -> Path:
    """Application directory with resume, cover letter and brief drafts."""
    directory = tmp_path / "applications" / "acme"
    directory.mkdir(parents=True)
    (directory / "jane-doe-acme-senior-platform-engineer-resume.md").write_text(RESUME_TEXT)
    (directory / "jane-doe-acme-senior-platform-engineer-cover.md").write_text(COVER_LETTER_TEXT)
    (directory / "jane-doe-acme-senior-platform-engineer-jd.txt").write_text(BRIEF_TEXT)
    return directory
