"""
Rule-weighted scoring of evaluator findings.

Turns violations, weak-quantification issues and accuracy flags into bounded category
scores, blends them into section totals and an overall score, and derives the lessons and
retrieval text stored with each Evaluation.

Scoring is pure: the same findings and catalog always give the same Scores.
"""

from typing import Iterable, Sequence

from vetter.contexts.scoring.evaluation_data_structures import (
    AccuracyFlags,
    AccuracyScore,
    AntiFabricationScore,
    CoverLetterScore,
    DomainClaimsScore,
    EvaluationResponse,
    ResumeScore,
    Scores,
    ToneScore,
    Violation,
    WeakQuantificationIssue,
    WeakQuantificationsScore,
)
from vetter.contexts.scoring.rules import DEFAULT_RULE_CATALOG, Category, RuleCatalog

# Blends are truncated; the epsilon keeps 0.7 * 100 from landing on 69.999...
_BLEND_EPSILON = 1e-9

WEAK_QUANTIFICATION_LESSON = "Weak quantifications found that undermine credibility"
COVER_LETTER_LESSON = "Cover letter made domain claims not supported by achievements"
LOW_SCORE_LESSON = "Overall quality below acceptable threshold - multiple issues detected"


def _clamp(score: int) -> int:
    return max(0, min(100, score))


def _blend(parts: Iterable[tuple[float, float]]) -> int:
    return int(sum(value * weight for value, weight in parts) + _BLEND_EPSILON)


class Scorer:
    """
    Computes Scores from evaluator findings using an injected RuleCatalog.

    Example:
        scorer = Scorer()
        scores = scorer.score_response(response)
        lessons = scorer.extract_lessons(scores)
    """

    def __init__(self, catalog: RuleCatalog = DEFAULT_RULE_CATALOG):
        self.catalog = catalog

    # --- Category scores ---

    def _category_deduction(self, violations: Iterable[Violation], category: Category) -> int:
        total = 0
        for violation in violations:
            rule = self.catalog.get(violation.rule)
            if rule is not None and rule.category == category:
                total += rule.weight
        return total

    def anti_fabrication_score(self, violations: Sequence[Violation]) -> int:
        return _clamp(100 - self._category_deduction(violations, Category.ANTI_FABRICATION))

    def weak_quantifications_score(self, issues: Sequence[WeakQuantificationIssue]) -> int:
        weight = self.catalog.weight_of(self.catalog.weak_quantification_rule)
        return _clamp(100 - weight * len(issues))

    def accuracy_score(
        self,
        violations: Sequence[Violation],
        verified_metrics: Sequence[str],
        flags: AccuracyFlags,
    ) -> int:
        """
        Accuracy starts at 100, loses category weights and failed-flag weights, then gains
        one point per verified metric up to the catalog's bonus cap.
        """
        score = 100 - self._category_deduction(violations, Category.ACCURACY)

        for flag_name, rule_name in self.catalog.accuracy_flag_rules.items():
            if not getattr(flags, flag_name):
                score -= self.catalog.weight_of(rule_name)

        score += min(len(verified_metrics), self.catalog.verified_bonus_cap)
        return _clamp(score)

    def domain_claims_score(self, violations: Sequence[Violation]) -> int:
        # Cover-letter claims deduct every known rule regardless of category
        return _clamp(100 - sum(self.catalog.weight_of(v.rule) for v in violations))

    # --- Full scoring ---

    def score(
        self,
        resume_violations: Sequence[Violation] = (),
        weak_issues: Sequence[WeakQuantificationIssue] = (),
        accuracy_violations: Sequence[Violation] = (),
        cover_letter_violations: Sequence[Violation] = (),
        verified_metrics: Sequence[str] = (),
        flags: AccuracyFlags = AccuracyFlags(),
    ) -> Scores:
        """
        Score one set of findings.

        Resume total blends anti-fabrication, weak quantifications (the quality category)
        and accuracy by category weight; overall blends resume and cover letter by section
        weight. Every returned score lies in [0, 100].
        """
        anti_fab = self.anti_fabrication_score(resume_violations)
        weak = self.weak_quantifications_score(weak_issues)
        accuracy = self.accuracy_score(accuracy_violations, verified_metrics, flags)
        domain = self.domain_claims_score(cover_letter_violations)

        category_weights = self.catalog.category_weights
        resume_total = _blend(
            [
                (anti_fab, category_weights[Category.ANTI_FABRICATION]),
                (weak, category_weights[Category.QUALITY]),
                (accuracy, category_weights[Category.ACCURACY]),
            ]
        )
        cover_letter_total = domain

        section_weights = self.catalog.section_weights
        overall = _blend(
            [
                (resume_total, section_weights["resume"]),
                (cover_letter_total, section_weights["cover_letter"]),
            ]
        )

        return Scores(
            resume=ResumeScore(
                total=resume_total,
                anti_fabrication=AntiFabricationScore(anti_fab, tuple(resume_violations)),
                weak_quantifications=WeakQuantificationsScore(weak, tuple(weak_issues)),
                accuracy=AccuracyScore(
                    score=accuracy,
                    violations=tuple(accuracy_violations),
                    verified_metrics=tuple(verified_metrics),
                    company_dates_correct=flags.company_dates_correct,
                    role_titles_correct=flags.role_titles_correct,
                    years_exp_correct=flags.years_exp_correct,
                ),
            ),
            cover_letter=CoverLetterScore(
                total=cover_letter_total,
                domain_claims=DomainClaimsScore(domain, tuple(cover_letter_violations)),
                tone=ToneScore(),
            ),
            overall=_clamp(overall),
        )

    def score_response(self, response: EvaluationResponse) -> Scores:
        """Score a detector response."""
        return self.score(
            resume_violations=response.resume_violations,
            weak_issues=response.weak_quantifications,
            accuracy_violations=response.accuracy_violations,
            cover_letter_violations=response.cover_letter_violations,
            verified_metrics=response.verified_metrics,
            flags=response.flags,
        )

    # --- Lessons and retrieval text ---

    def extract_lessons(self, scores: Scores) -> list[str]:
        """
        Derive lessons from scored findings.

        Returns:
            One lesson per critical fabrication or accuracy violation, followed by generic
            lessons for weak quantifications, cover-letter claims and a low overall score
        """
        lessons = []

        for v in scores.resume.anti_fabrication.violations:
            if v.is_critical:
                lessons.append(f"Fabrication detected: {v.rule} - {v.fabricated}")

        for v in scores.resume.accuracy.violations:
            if v.is_critical:
                lessons.append(f"Accuracy error: {v.rule} - {v.fabricated}")

        if scores.resume.weak_quantifications.issues:
            lessons.append(WEAK_QUANTIFICATION_LESSON)

        if scores.cover_letter.domain_claims.violations:
            lessons.append(COVER_LETTER_LESSON)

        if scores.overall < self.catalog.lesson_threshold:
            lessons.append(LOW_SCORE_LESSON)

        return lessons

    def build_rag_text(
        self, company: str, role: str, scores: Scores, lessons: Sequence[str]
    ) -> str:
        """
        Build the retrieval text stored with an Evaluation.

        Rule identifiers are written verbatim so the retriever can count them later.
        """
        lines = [f"Application: {company} - {role}", f"Overall Score: {scores.overall}/100", ""]

        if lessons:
            lines.append("Key Issues:")
            lines.extend(f"- {lesson}" for lesson in lessons)

        sections = [
            ("Fabrication Patterns to Avoid:", scores.resume.anti_fabrication.violations),
            ("Accuracy Errors to Avoid:", scores.resume.accuracy.violations),
            ("Cover Letter Claims to Avoid:", scores.cover_letter.domain_claims.violations),
        ]
        for heading, violations in sections:
            if violations:
                lines.append("")
                lines.append(heading)
                lines.extend(f"- {v.rule}: {v.fabricated}" for v in violations)

        return "\n".join(lines) + "\n"
