"""
Evaluation data structures for the Scoring context.

Immutable records describing what the evaluator found (violations, weak quantifications,
accuracy flags), the scores derived from those findings, and the persisted Evaluation record.

Every record converts to and from plain dicts (JSON-ready). from_dict() is strict: a missing
required field or a value of the wrong type raises RecordFormatError, so callers can tell a
malformed evaluator response or corrupt evaluation file apart from a valid empty one.
"""

import json
from dataclasses import dataclass, field, replace
from typing import Any, Optional

EVALUATION_VERSION = "1.0.0"

_MISSING = object()


class RecordFormatError(ValueError):
    """Raised when a dict does not match the expected record shape."""


# =============================================================================
# FIELD HELPERS
# =============================================================================


def _require_dict(data: Any, context: str) -> dict:
    if not isinstance(data, dict):
        raise RecordFormatError(f"{context}: expected object, got {type(data).__name__}")
    return data


def _field(data: dict, key: str, expected: type, context: str, default: Any = _MISSING) -> Any:
    value = data.get(key)
    if value is None:
        if default is _MISSING:
            raise RecordFormatError(f"{context}: missing '{key}'")
        return default
    # bool is an int subclass; never accept it where a number is expected
    if not isinstance(value, expected) or (expected is not bool and isinstance(value, bool)):
        raise RecordFormatError(
            f"{context}: '{key}' should be {expected.__name__}, got {type(value).__name__}"
        )
    return value


def _str_tuple(data: dict, key: str, context: str) -> tuple[str, ...]:
    items = _field(data, key, list, context, default=[])
    if not all(isinstance(item, str) for item in items):
        raise RecordFormatError(f"{context}: '{key}' must be a list of strings")
    return tuple(items)


def _record_tuple(data: dict, key: str, record_type, context: str) -> tuple:
    items = _field(data, key, list, context, default=[])
    return tuple(record_type.from_dict(item) for item in items)


# =============================================================================
# FINDINGS
# =============================================================================


@dataclass(frozen=True)
class Violation:
    """
    A detected rule breach in generated text.

    Attributes:
        rule: Rule identifier (e.g., "FORBIDDEN_NUMBER_FABRICATION")
        severity: "critical", "major" or "minor"
        location: Where it was found (e.g., "resume.md:12")
        fabricated: The offending text
        evidence_checked: What the evaluator checked in the source facts
        suggested_fix: Optional fix proposed by the evaluator
        fix_applied: Optional note attached once an automated fix addressed it
    """

    rule: str
    severity: str
    location: str = ""
    fabricated: str = ""
    evidence_checked: str = ""
    suggested_fix: str = ""
    fix_applied: str = ""

    @property
    def is_critical(self) -> bool:
        return self.severity == "critical"

    def with_fix_note(self, note: str) -> "Violation":
        """Return a copy carrying a fix note."""
        return replace(self, fix_applied=note)

    def to_dict(self) -> dict:
        data = {
            "rule": self.rule,
            "severity": self.severity,
            "location": self.location,
            "fabricated": self.fabricated,
            "evidence_checked": self.evidence_checked,
        }
        if self.suggested_fix:
            data["suggested_fix"] = self.suggested_fix
        if self.fix_applied:
            data["fix_applied"] = self.fix_applied
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "Violation":
        data = _require_dict(data, "violation")
        ctx = "violation"
        return cls(
            rule=_field(data, "rule", str, ctx),
            severity=_field(data, "severity", str, ctx, default="minor"),
            location=_field(data, "location", str, ctx, default=""),
            fabricated=_field(data, "fabricated", str, ctx, default=""),
            evidence_checked=_field(data, "evidence_checked", str, ctx, default=""),
            suggested_fix=_field(data, "suggested_fix", str, ctx, default=""),
            fix_applied=_field(data, "fix_applied", str, ctx, default=""),
        )


@dataclass(frozen=True)
class WeakQuantificationIssue:
    """A number small enough to undermine credibility (e.g., "7 clusters")."""

    location: str
    weak_number: str
    suggested: str = ""
    fixed: bool = False

    def to_dict(self) -> dict:
        return {
            "location": self.location,
            "weak_number": self.weak_number,
            "suggested": self.suggested,
            "fixed": self.fixed,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "WeakQuantificationIssue":
        data = _require_dict(data, "weak quantification")
        ctx = "weak quantification"
        return cls(
            location=_field(data, "location", str, ctx, default=""),
            weak_number=_field(data, "weak_number", str, ctx),
            suggested=_field(data, "suggested", str, ctx, default=""),
            fixed=_field(data, "fixed", bool, ctx, default=False),
        )


@dataclass(frozen=True)
class AccuracyFlags:
    """Evaluator verdicts on facts that must match the source exactly."""

    company_dates_correct: bool = True
    role_titles_correct: bool = True
    years_exp_correct: bool = True


@dataclass(frozen=True)
class JDMatch:
    """How the generated documents line up with the job description requirements."""

    matched: tuple[str, ...] = ()
    unmatched: tuple[str, ...] = ()
    fabrications_to_match: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "matched": list(self.matched),
            "unmatched": list(self.unmatched),
            "fabrications_to_match": list(self.fabrications_to_match),
        }

    @classmethod
    def from_dict(cls, data: Any) -> "JDMatch":
        data = _require_dict(data, "jd_match")
        return cls(
            matched=_str_tuple(data, "matched", "jd_match"),
            unmatched=_str_tuple(data, "unmatched", "jd_match"),
            fabrications_to_match=_str_tuple(data, "fabrications_to_match", "jd_match"),
        )


@dataclass(frozen=True)
class EvaluationResponse:
    """
    Structured output of one violation-detection pass.

    Produced by a ViolationDetector (normally the LLM evaluator) and consumed by the
    Scorer, Fixer and orchestrator.
    """

    resume_violations: tuple[Violation, ...] = ()
    weak_quantifications: tuple[WeakQuantificationIssue, ...] = ()
    accuracy_violations: tuple[Violation, ...] = ()
    cover_letter_violations: tuple[Violation, ...] = ()
    verified_metrics: tuple[str, ...] = ()
    flags: AccuracyFlags = field(default_factory=AccuracyFlags)
    jd_match: JDMatch = field(default_factory=JDMatch)
    lessons_learned: tuple[str, ...] = ()

    @property
    def total_violations(self) -> int:
        """Violations that trigger the fix pass (weak quantifications excluded)."""
        return (
            len(self.resume_violations)
            + len(self.accuracy_violations)
            + len(self.cover_letter_violations)
        )

    def to_dict(self) -> dict:
        return {
            "resume_violations": [v.to_dict() for v in self.resume_violations],
            "weak_quantifications": [i.to_dict() for i in self.weak_quantifications],
            "accuracy_violations": [v.to_dict() for v in self.accuracy_violations],
            "cover_letter_violations": [v.to_dict() for v in self.cover_letter_violations],
            "verified_metrics": list(self.verified_metrics),
            "company_dates_correct": self.flags.company_dates_correct,
            "role_titles_correct": self.flags.role_titles_correct,
            "years_exp_correct": self.flags.years_exp_correct,
            "jd_match": self.jd_match.to_dict(),
            "lessons_learned": list(self.lessons_learned),
        }

    @classmethod
    def from_dict(cls, data: Any) -> "EvaluationResponse":
        """
        Parse an evaluator response.

        List fields default to empty; the three accuracy flags are required because a
        silently defaulted flag would either hide or invent an accuracy deduction.
        """
        data = _require_dict(data, "evaluation response")
        ctx = "evaluation response"
        return cls(
            resume_violations=_record_tuple(data, "resume_violations", Violation, ctx),
            weak_quantifications=_record_tuple(
                data, "weak_quantifications", WeakQuantificationIssue, ctx
            ),
            accuracy_violations=_record_tuple(data, "accuracy_violations", Violation, ctx),
            cover_letter_violations=_record_tuple(data, "cover_letter_violations", Violation, ctx),
            verified_metrics=_str_tuple(data, "verified_metrics", ctx),
            flags=AccuracyFlags(
                company_dates_correct=_field(data, "company_dates_correct", bool, ctx),
                role_titles_correct=_field(data, "role_titles_correct", bool, ctx),
                years_exp_correct=_field(data, "years_exp_correct", bool, ctx),
            ),
            jd_match=JDMatch.from_dict(_field(data, "jd_match", dict, ctx, default={})),
            lessons_learned=_str_tuple(data, "lessons_learned", ctx),
        )


# =============================================================================
# SCORES
# =============================================================================


@dataclass(frozen=True)
class AntiFabricationScore:
    score: int
    violations: tuple[Violation, ...] = ()

    def to_dict(self) -> dict:
        return {"score": self.score, "violations": [v.to_dict() for v in self.violations]}

    @classmethod
    def from_dict(cls, data: Any) -> "AntiFabricationScore":
        data = _require_dict(data, "anti_fabrication")
        return cls(
            score=_field(data, "score", int, "anti_fabrication"),
            violations=_record_tuple(data, "violations", Violation, "anti_fabrication"),
        )


@dataclass(frozen=True)
class WeakQuantificationsScore:
    score: int
    issues: tuple[WeakQuantificationIssue, ...] = ()

    def to_dict(self) -> dict:
        return {"score": self.score, "issues": [i.to_dict() for i in self.issues]}

    @classmethod
    def from_dict(cls, data: Any) -> "WeakQuantificationsScore":
        data = _require_dict(data, "weak_quantifications")
        return cls(
            score=_field(data, "score", int, "weak_quantifications"),
            issues=_record_tuple(
                data, "issues", WeakQuantificationIssue, "weak_quantifications"
            ),
        )


@dataclass(frozen=True)
class AccuracyScore:
    score: int
    violations: tuple[Violation, ...] = ()
    verified_metrics: tuple[str, ...] = ()
    company_dates_correct: bool = True
    role_titles_correct: bool = True
    years_exp_correct: bool = True

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "violations": [v.to_dict() for v in self.violations],
            "verified_metrics": list(self.verified_metrics),
            "company_dates_correct": self.company_dates_correct,
            "role_titles_correct": self.role_titles_correct,
            "years_exp_correct": self.years_exp_correct,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "AccuracyScore":
        data = _require_dict(data, "accuracy")
        ctx = "accuracy"
        return cls(
            score=_field(data, "score", int, ctx),
            violations=_record_tuple(data, "violations", Violation, ctx),
            verified_metrics=_str_tuple(data, "verified_metrics", ctx),
            company_dates_correct=_field(data, "company_dates_correct", bool, ctx, default=True),
            role_titles_correct=_field(data, "role_titles_correct", bool, ctx, default=True),
            years_exp_correct=_field(data, "years_exp_correct", bool, ctx, default=True),
        )


@dataclass(frozen=True)
class ResumeScore:
    total: int
    anti_fabrication: AntiFabricationScore
    weak_quantifications: WeakQuantificationsScore
    accuracy: AccuracyScore

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "anti_fabrication": self.anti_fabrication.to_dict(),
            "weak_quantifications": self.weak_quantifications.to_dict(),
            "accuracy": self.accuracy.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Any) -> "ResumeScore":
        data = _require_dict(data, "resume")
        return cls(
            total=_field(data, "total", int, "resume"),
            anti_fabrication=AntiFabricationScore.from_dict(data.get("anti_fabrication")),
            weak_quantifications=WeakQuantificationsScore.from_dict(
                data.get("weak_quantifications")
            ),
            accuracy=AccuracyScore.from_dict(data.get("accuracy")),
        )


@dataclass(frozen=True)
class DomainClaimsScore:
    score: int
    violations: tuple[Violation, ...] = ()

    def to_dict(self) -> dict:
        return {"score": self.score, "violations": [v.to_dict() for v in self.violations]}

    @classmethod
    def from_dict(cls, data: Any) -> "DomainClaimsScore":
        data = _require_dict(data, "domain_claims")
        return cls(
            score=_field(data, "score", int, "domain_claims"),
            violations=_record_tuple(data, "violations", Violation, "domain_claims"),
        )


@dataclass(frozen=True)
class ToneScore:
    # Tone is not scored yet; kept so records carry a stable shape
    score: int = 100
    feedback: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {"score": self.score, "feedback": list(self.feedback)}

    @classmethod
    def from_dict(cls, data: Any) -> "ToneScore":
        data = _require_dict(data, "tone")
        return cls(
            score=_field(data, "score", int, "tone", default=100),
            feedback=_str_tuple(data, "feedback", "tone"),
        )


@dataclass(frozen=True)
class CoverLetterScore:
    total: int
    domain_claims: DomainClaimsScore
    tone: ToneScore = field(default_factory=ToneScore)

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "domain_claims": self.domain_claims.to_dict(),
            "tone": self.tone.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Any) -> "CoverLetterScore":
        data = _require_dict(data, "cover_letter")
        tone = data.get("tone")
        return cls(
            total=_field(data, "total", int, "cover_letter"),
            domain_claims=DomainClaimsScore.from_dict(data.get("domain_claims")),
            tone=ToneScore.from_dict(tone) if tone is not None else ToneScore(),
        )


@dataclass(frozen=True)
class Scores:
    """Per-section scores plus the weighted overall score. All values lie in [0, 100]."""

    resume: ResumeScore
    cover_letter: CoverLetterScore
    overall: int

    @property
    def all_violations(self) -> tuple[Violation, ...]:
        return (
            self.resume.anti_fabrication.violations
            + self.resume.accuracy.violations
            + self.cover_letter.domain_claims.violations
        )

    @property
    def critical_violation_count(self) -> int:
        return sum(1 for v in self.all_violations if v.is_critical)

    def to_dict(self) -> dict:
        return {
            "resume": self.resume.to_dict(),
            "cover_letter": self.cover_letter.to_dict(),
            "overall": self.overall,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "Scores":
        data = _require_dict(data, "scores")
        return cls(
            resume=ResumeScore.from_dict(data.get("resume")),
            cover_letter=CoverLetterScore.from_dict(data.get("cover_letter")),
            overall=_field(data, "overall", int, "scores"),
        )


# =============================================================================
# EVALUATION RECORD
# =============================================================================


@dataclass(frozen=True)
class Evaluation:
    """
    One full audit result for a generation attempt.

    Written once to <output_dir>/<company>/...evaluation.json and never modified.
    """

    company: str
    role: str
    generated_at: str
    evaluated_at: str
    scores: Scores
    jd_match: JDMatch = field(default_factory=JDMatch)
    lessons: tuple[str, ...] = ()
    rag_context: str = ""
    version: str = EVALUATION_VERSION

    @property
    def application(self) -> str:
        return f"{self.company} - {self.role}"

    def to_dict(self) -> dict:
        return {
            "company": self.company,
            "role": self.role,
            "generated_at": self.generated_at,
            "evaluated_at": self.evaluated_at,
            "scores": self.scores.to_dict(),
            "jd_requirements": self.jd_match.to_dict(),
            "lessons_learned": list(self.lessons),
            "rag_context": self.rag_context,
            "version": self.version,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_dict(cls, data: Any) -> "Evaluation":
        data = _require_dict(data, "evaluation")
        ctx = "evaluation"
        jd_match: Optional[dict] = _field(data, "jd_requirements", dict, ctx, default=None)
        return cls(
            company=_field(data, "company", str, ctx),
            role=_field(data, "role", str, ctx),
            generated_at=_field(data, "generated_at", str, ctx, default=""),
            evaluated_at=_field(data, "evaluated_at", str, ctx),
            scores=Scores.from_dict(data.get("scores")),
            jd_match=JDMatch.from_dict(jd_match) if jd_match is not None else JDMatch(),
            lessons=_str_tuple(data, "lessons_learned", ctx),
            rag_context=_field(data, "rag_context", str, ctx, default=""),
            version=_field(data, "version", str, ctx, default=EVALUATION_VERSION),
        )

    @classmethod
    def from_json(cls, text: str) -> "Evaluation":
        """
        Parse a serialized evaluation.

        Raises:
            RecordFormatError: If the text is not valid JSON or not an evaluation record
        """
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise RecordFormatError(f"evaluation: invalid JSON ({e})") from e
        return cls.from_dict(data)
