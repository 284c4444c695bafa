"""
Similarity retrieval over the evaluation index.

Finds past applications worth learning from (same seniority, low scores, critical
violations) and aggregates their lessons into a RAGContext that can be rendered into the
next generation request.
"""

from collections import Counter
from typing import Mapping

from vetter.contexts.learning.classifiers import RoleLevel, infer_role_level
from vetter.contexts.learning.index_data_structures import (
    EvaluationIndex,
    IndexedEvaluation,
    RAGContext,
)
from vetter.contexts.learning.indexer import Indexer, IndexLoadError
from vetter.contexts.learning.logger import _log_warning, log_retrieval

NO_DATA = "No previous evaluation data available."

# Similarity weights (additive, not normalized)
ROLE_LEVEL_MATCH = 0.5
LOW_SCORE = 0.3
HAS_CRITICAL = 0.4
LOW_SCORE_THRESHOLD = 80
SIMILARITY_THRESHOLD = 0.3
SUCCESS_THRESHOLD = 85

# Rule token -> human label, in catalog order (ties in frequency keep this order)
VIOLATION_LABELS = {
    "FORBIDDEN_NUMBER_FABRICATION": "Number fabrication (inventing metrics/headcounts)",
    "FORBIDDEN_INDUSTRY_CLAIMS": "Industry fabrication (claiming industries not in experience)",
    "FORBIDDEN_TECHNICAL_DOMAIN_CLAIMS": (
        "Domain fabrication (claiming technical domains not in experience)"
    ),
    "FORBIDDEN_PATTERN_MATCHING": (
        "Pattern matching (claiming work 'mirrors' domains candidate lacks)"
    ),
    "SKILL_FABRICATION": "Skill fabrication (listing skills not in source data)",
    "WEAK_QUANTIFICATIONS": "Weak quantifications (small numbers that undermine credibility)",
    "COMPANY_DATE_MISMATCH": "Company date mismatch (employment dates differ from source)",
    "ROLE_TITLE_MISMATCH": "Role title mismatch (titles changed from source)",
    "YEARS_EXPERIENCE_WRONG": "Years of experience wrong (differs from profile)",
    "METRIC_FABRICATION": "Metric fabrication (percentages or amounts not in source)",
    "TEMPORAL_IMPOSSIBILITY": "Temporal impossibility (more years than a tool has existed)",
    "POOR_JD_ALIGNMENT": "Poor JD alignment (relevant achievements not emphasized)",
    "INAPPROPRIATE_TONE": "Inappropriate tone (cover letter misses culture signals)",
}


def similarity(entry: IndexedEvaluation, role_level: RoleLevel) -> float:
    score = 0.0
    if entry.role_level == role_level:
        score += ROLE_LEVEL_MATCH
    # Past failures are the most useful to learn from
    if entry.overall_score < LOW_SCORE_THRESHOLD:
        score += LOW_SCORE
    if entry.critical_violations > 0:
        score += HAS_CRITICAL
    return score


class Retriever:
    """
    Retrieves lessons from similar past applications.

    Example:
        retriever = Retriever(indexer)
        ctx = retriever.retrieve("Acme", "Senior Engineer", jd_text)
        prompt_section = format_for_prompt(ctx)
    """

    def __init__(self, indexer: Indexer, violation_labels: Mapping[str, str] = VIOLATION_LABELS):
        self.indexer = indexer
        self.violation_labels = violation_labels

    def _load_index(self) -> EvaluationIndex:
        try:
            return self.indexer.load()
        except IndexLoadError as e:
            _log_warning(f"{e}; retrieving from an empty index")
            return EvaluationIndex.empty()

    def retrieve(self, company: str, role: str, brief_text: str = "") -> RAGContext:
        """
        Build a RAGContext for a new application.

        Only the role is used for matching today; company and brief_text are accepted so
        callers do not change when matching gets richer.
        """
        index = self._load_index()
        role_level = infer_role_level(role)

        similar = [
            entry
            for entry in index.evaluations
            if similarity(entry, role_level) > SIMILARITY_THRESHOLD
        ]
        log_retrieval(role_level.value, len(similar), len(index))

        ctx = self.build_context(similar)
        ctx.similar_applications = len(similar)
        return ctx

    def build_context(self, similar: list[IndexedEvaluation]) -> RAGContext:
        ctx = RAGContext()
        violation_counts = Counter()

        for entry in similar:
            for lesson in entry.lessons_learned:
                if lesson not in ctx.relevant_lessons:
                    ctx.relevant_lessons.append(lesson)

            for token in self.violation_labels:
                if token in entry.rag_context:
                    violation_counts[token] += 1

            if entry.overall_score >= SUCCESS_THRESHOLD:
                ctx.successful_patterns.append(
                    f"{entry.company} application scored {entry.overall_score} - good example"
                )

        # sorted() is stable, so equal counts keep catalog order
        ranked = sorted(
            (token for token in self.violation_labels if violation_counts[token]),
            key=lambda token: -violation_counts[token],
        )
        ctx.common_violations = [
            f"{self.violation_labels[token]} (occurred {violation_counts[token]} times)"
            for token in ranked
        ]
        return ctx


def format_for_prompt(ctx: RAGContext) -> str:
    """
    Render a RAGContext for injection into a generation request.

    Returns NO_DATA when no similar applications were found, whatever else ctx holds.
    """
    if ctx.similar_applications == 0:
        return NO_DATA

    parts = [f"**LEARNING FROM {ctx.similar_applications} PREVIOUS APPLICATIONS:**\n\n"]

    sections = [
        ("**COMMON VIOLATIONS TO AVOID:**", ctx.common_violations),
        ("**LESSONS LEARNED:**", ctx.relevant_lessons),
        ("**SUCCESSFUL PATTERNS:**", ctx.successful_patterns),
    ]
    for heading, items in sections:
        if items:
            parts.append(heading + "\n")
            parts.extend(f"- {item}\n" for item in items)
            parts.append("\n")

    return "".join(parts)
