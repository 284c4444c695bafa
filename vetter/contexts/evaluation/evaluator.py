"""
Violation detection for generated drafts.

A ViolationDetector audits a resume / cover letter pair against the source facts and
returns an EvaluationResponse. LLMEvaluator is the production detector: a separate model
call that is asked for a single JSON document, which is then parsed strictly.
"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass

from vetter.contexts.evaluation.exceptions import MalformedResponseError
from vetter.contexts.evaluation.source_facts import SourceFacts
from vetter.contexts.scoring.evaluation_data_structures import (
    EvaluationResponse,
    RecordFormatError,
)
from vetter.contexts.scoring.rules import DEFAULT_RULE_CATALOG, RuleCatalog
from vetter.utils.llm import LLMProvider, parse_json_object

DEFAULT_EVALUATION_MAX_TOKENS = 16000

# =============================================================================
# PROMPT TEMPLATES
# =============================================================================

_SYSTEM_PROMPT = """\
You are a strict resume auditor. You compare generated application documents against the
candidate's source data and report every claim the source data does not support.
Return ONLY a JSON object in the requested format."""

_USER_PROMPT_TEMPLATE = """\
Audit the generated resume and cover letter for {company} - {role}.

RULES (report violations using these exact rule identifiers):
{rules}

Also report numbers under 10-20 that undermine credibility as weak_quantifications, list
every metric you verified against the source achievements, and check that company dates,
role titles and years of experience match the source data exactly.

Return a JSON object with exactly these keys:
{schema}

---
SOURCE ACHIEVEMENTS:
{achievements}

SOURCE PROFILE:
{profile}

SOURCE SKILLS:
{skills}

---
JOB DESCRIPTION:
{job_description}

---
GENERATED RESUME:
{resume}

---
GENERATED COVER LETTER:
{cover_letter}"""

_VIOLATION_SHAPE = {
    "rule": "RULE_IDENTIFIER",
    "severity": "critical | major | minor",
    "location": "resume.md line or section",
    "fabricated": "the offending text",
    "evidence_checked": "what you checked in the source data",
    "suggested_fix": "optional rewrite",
}

_RESPONSE_SCHEMA = {
    "resume_violations": [_VIOLATION_SHAPE],
    "weak_quantifications": [
        {"location": "...", "weak_number": "...", "suggested": "...", "fixed": False}
    ],
    "accuracy_violations": [_VIOLATION_SHAPE],
    "cover_letter_violations": [_VIOLATION_SHAPE],
    "verified_metrics": ["metric found verbatim in source achievements"],
    "company_dates_correct": True,
    "role_titles_correct": True,
    "years_exp_correct": True,
    "jd_match": {"matched": ["..."], "unmatched": ["..."], "fabrications_to_match": ["..."]},
    "lessons_learned": ["..."],
}


@dataclass(frozen=True)
class EvaluationRequest:
    """Everything a detector needs to audit one pair of drafts."""

    company: str
    role: str
    job_description: str
    resume: str
    cover_letter: str
    facts: SourceFacts


class ViolationDetector(ABC):
    """Audits drafts and reports violations."""

    @abstractmethod
    def evaluate(self, request: EvaluationRequest) -> EvaluationResponse:
        """
        Raises:
            LLMServiceError: If the underlying service call fails
            MalformedResponseError: If the service answered in the wrong shape
        """
        pass


def build_evaluation_prompt(request: EvaluationRequest, catalog: RuleCatalog) -> str:
    """
    Build the user prompt for an evaluation call.

    Args:
        request: Drafts and source facts to audit
        catalog: Rules the evaluator should report against

    Returns:
        User prompt string
    """
    rules = "\n".join(
        f"- {rule.name} ({rule.severity.value}): {rule.description}"
        for rule in catalog.rules.values()
    )
    return _USER_PROMPT_TEMPLATE.format(
        company=request.company,
        role=request.role,
        rules=rules,
        schema=json.dumps(_RESPONSE_SCHEMA, indent=2),
        achievements=request.facts.achievements_json(),
        profile=request.facts.profile_json(),
        skills=request.facts.skills_json(),
        job_description=request.job_description,
        resume=request.resume,
        cover_letter=request.cover_letter,
    )


class LLMEvaluator(ViolationDetector):
    """
    Detector backed by an LLM provider.

    Example:
        evaluator = LLMEvaluator(get_provider(model="claude-sonnet-4-5-20250929"))
        response = evaluator.evaluate(request)
    """

    def __init__(
        self,
        provider: LLMProvider,
        max_tokens: int = DEFAULT_EVALUATION_MAX_TOKENS,
        catalog: RuleCatalog = DEFAULT_RULE_CATALOG,
    ):
        self.provider = provider
        self.max_tokens = max_tokens
        self.catalog = catalog

    def evaluate(self, request: EvaluationRequest) -> EvaluationResponse:
        user_prompt = build_evaluation_prompt(request, self.catalog)
        response = self.provider.generate(
            system_prompt=_SYSTEM_PROMPT, user_prompt=user_prompt, max_tokens=self.max_tokens
        )

        data = parse_json_object(response.content)
        try:
            return EvaluationResponse.from_dict(data)
        except RecordFormatError as e:
            raise MalformedResponseError(
                f"Evaluation response has the wrong shape: {e}", response.content
            ) from e
