"""
Deterministic, pattern-based correction of generated drafts.

The Fixer never mutates its inputs: it takes the drafts plus a detector response and returns
a FixResult holding the rewritten drafts and the fixes that were made.

Which libraries run is decided by the violations:
- Temporal patterns run on the resume when a resume violation's rule mentions TEMPORAL
- Positioning patterns run on a document when one of its violations mentions DOMAIN in the
  rule or "Expert" in the offending text
- Wording patterns always run on both documents

Each library runs at most once per document per call. Re-running the Fixer on its own
output is not guaranteed to be a no-op, and the Fixer does not iterate to a fixed point.
"""

from dataclasses import dataclass
from typing import Sequence

from vetter.contexts.evaluation.fix_patterns import (
    POSITIONING_PATTERNS,
    TEMPORAL_PATTERNS,
    WORDING_PATTERNS,
    FixPattern,
)
from vetter.contexts.evaluation.logger import log_pattern_applied
from vetter.contexts.scoring.evaluation_data_structures import EvaluationResponse, Violation


@dataclass(frozen=True)
class AppliedFix:
    """
    A violation addressed by an automated rewrite.

    Attributes:
        label: Human-readable summary (e.g., "Fixed temporal impossibility: ...")
        violation: The triggering violation with its fix_applied note set
        patterns: Names of the patterns that made replacements
    """

    label: str
    violation: Violation
    patterns: tuple[str, ...]


@dataclass(frozen=True)
class FixResult:
    resume: str
    cover_letter: str
    applied_fixes: tuple[AppliedFix, ...] = ()
    patterns_applied: tuple[str, ...] = ()

    @property
    def labels(self) -> list[str]:
        return [fix.label for fix in self.applied_fixes]


def _is_temporal(violation: Violation) -> bool:
    return "TEMPORAL" in violation.rule


def _is_positioning(violation: Violation) -> bool:
    return "DOMAIN" in violation.rule or "Expert" in violation.fabricated


class Fixer:
    """
    Applies ordered rewrite pattern libraries to resume and cover letter drafts.

    Example:
        fixer = Fixer()
        result = fixer.apply_fixes(resume_md, cover_md, response)
        for fix in result.applied_fixes:
            print(fix.label)
    """

    def __init__(
        self,
        temporal_patterns: Sequence[FixPattern] = TEMPORAL_PATTERNS,
        positioning_patterns: Sequence[FixPattern] = POSITIONING_PATTERNS,
        wording_patterns: Sequence[FixPattern] = WORDING_PATTERNS,
    ):
        self.temporal_patterns = tuple(temporal_patterns)
        self.positioning_patterns = tuple(positioning_patterns)
        self.wording_patterns = tuple(wording_patterns)

    @staticmethod
    def run_library(text: str, patterns: Sequence[FixPattern]) -> tuple[str, list[str]]:
        """
        Apply each pattern in order.

        Returns:
            Tuple of (rewritten text, names of patterns that made at least one replacement)
        """
        fired = []
        for pattern in patterns:
            text, count = pattern.apply(text)
            if count:
                fired.append(pattern.name)
                log_pattern_applied(pattern.name, count)
        return text, fired

    def _fix_for_triggers(
        self,
        text: str,
        patterns: Sequence[FixPattern],
        triggers: list[Violation],
        label_prefix: str,
        fixes: list[AppliedFix],
        fired_all: list[str],
    ) -> str:
        if not triggers:
            return text

        text, fired = self.run_library(text, patterns)
        if fired:
            fired_all.extend(fired)
            note = f"Rewritten by: {', '.join(fired)}"
            for violation in triggers:
                fixes.append(
                    AppliedFix(
                        label=f"{label_prefix}: {violation.fabricated}",
                        violation=violation.with_fix_note(note),
                        patterns=tuple(fired),
                    )
                )
        return text

    def apply_fixes(self, resume: str, cover_letter: str, response: EvaluationResponse) -> FixResult:
        """
        Rewrite drafts according to the violations in a detector response.

        Args:
            resume: Resume markdown
            cover_letter: Cover letter markdown
            response: Detector findings for these drafts

        Returns:
            FixResult with rewritten drafts; applied_fixes is empty when nothing triggered
            a library that made a replacement
        """
        fixes: list[AppliedFix] = []
        fired_all: list[str] = []

        resume = self._fix_for_triggers(
            resume,
            self.temporal_patterns,
            [v for v in response.resume_violations if _is_temporal(v)],
            "Fixed temporal impossibility",
            fixes,
            fired_all,
        )
        resume = self._fix_for_triggers(
            resume,
            self.positioning_patterns,
            [v for v in response.resume_violations if _is_positioning(v)],
            "Fixed domain expert claim",
            fixes,
            fired_all,
        )
        resume, fired = self.run_library(resume, self.wording_patterns)
        fired_all.extend(fired)

        cover_letter = self._fix_for_triggers(
            cover_letter,
            self.positioning_patterns,
            [v for v in response.cover_letter_violations if _is_positioning(v)],
            "Fixed cover letter domain claim",
            fixes,
            fired_all,
        )
        cover_letter, fired = self.run_library(cover_letter, self.wording_patterns)
        fired_all.extend(fired)

        return FixResult(
            resume=resume,
            cover_letter=cover_letter,
            applied_fixes=tuple(fixes),
            patterns_applied=tuple(fired_all),
        )
