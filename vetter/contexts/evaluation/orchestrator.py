"""
Evaluate-fix-verify orchestration for one generation attempt.

Steps, strictly in order:
    1. Read drafts
    2. Evaluate#1 with the violation detector (failure aborts the attempt)
    3. Zero violations: skip straight to step 6
    4. Fix drafts with the Fixer and write back changed files (failure only warns)
    5. Evaluate#2 on the corrected drafts (failure aborts the attempt)
    6. Score, build the Evaluation, persist it and rebuild the index (failure only warns)

Cancellation and the attempt deadline are checked before every step. Both raise
AttemptCancelledError, and nothing is persisted for a cancelled attempt. A detector call
already in flight runs until its own request timeout.
"""

import re
import threading
import time
from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from vetter.contexts.evaluation.evaluator import EvaluationRequest, ViolationDetector
from vetter.contexts.evaluation.exceptions import (
    AttemptCancelledError,
    EvaluationAbortedError,
    MalformedResponseError,
)
from vetter.contexts.evaluation.fixer import AppliedFix, Fixer
from vetter.contexts.evaluation.logger import (
    _log_info,
    _log_warning,
    log_detector_result,
    log_evaluation_start,
    log_final_scores,
    log_fix_result,
)
from vetter.contexts.evaluation.source_facts import SourceFacts
from vetter.contexts.learning.indexer import Indexer, slugify
from vetter.contexts.learning.retriever import NO_DATA, Retriever, format_for_prompt
from vetter.contexts.scoring.evaluation_data_structures import Evaluation, EvaluationResponse
from vetter.contexts.scoring.scorer import Scorer
from vetter.utils.event_logging import log_pipeline_event
from vetter.utils.llm import LLMServiceError
from vetter.utils.timestamp import now_exact

DEFAULT_ATTEMPT_TIMEOUT_S = 300.0

RESUME_SUFFIX = "-resume.md"
COVER_LETTER_SUFFIX = "-cover.md"
BRIEF_SUFFIX = "-jd.txt"


@dataclass(frozen=True)
class Target:
    company: str
    role: str

    @property
    def application(self) -> str:
        return f"{self.company} - {self.role}"


@dataclass(frozen=True)
class DraftSet:
    """
    Paths to the generated drafts and the brief they were tailored to.

    Layout produced by generation:
        <app_dir>/<candidate>-<company>-<role>-resume.md
        <app_dir>/<candidate>-<company>-<role>-cover.md
        <app_dir>/<candidate>-<company>-<role>-jd.txt
    """

    resume_path: Path
    cover_letter_path: Path
    brief_path: Path

    @classmethod
    def from_directory(cls, app_dir: Path) -> "DraftSet":
        """
        Locate the drafts in an application directory.

        Raises:
            FileNotFoundError: If any of the three files is missing
        """
        app_dir = Path(app_dir)
        if not app_dir.is_dir():
            raise FileNotFoundError(f"Application directory not found: {app_dir}")

        found = {}
        for suffix, label in (
            (RESUME_SUFFIX, "resume markdown"),
            (COVER_LETTER_SUFFIX, "cover letter markdown"),
            (BRIEF_SUFFIX, "job description"),
        ):
            matches = sorted(p for p in app_dir.iterdir() if p.is_file() and p.name.endswith(suffix))
            if not matches:
                raise FileNotFoundError(f"No {label} file (*{suffix}) in {app_dir}")
            found[suffix] = matches[-1]

        return cls(
            resume_path=found[RESUME_SUFFIX],
            cover_letter_path=found[COVER_LETTER_SUFFIX],
            brief_path=found[BRIEF_SUFFIX],
        )

    def read_resume(self) -> str:
        return self.resume_path.read_text(encoding="utf-8")

    def read_cover_letter(self) -> str:
        return self.cover_letter_path.read_text(encoding="utf-8")

    def read_brief(self) -> str:
        return self.brief_path.read_text(encoding="utf-8")

    def generated_at(self) -> str:
        """Modification time of the resume draft as ISO 8601."""
        return datetime.fromtimestamp(self.resume_path.stat().st_mtime).isoformat()

    def infer_target(self, candidate_name: str = "") -> Target:
        """
        Infer company and role from the directory and resume filename.

        The directory name is the company; the role is what remains of the resume filename
        after dropping the candidate and company prefixes, title-cased.

        Example:
            acme/jane-doe-acme-staff-engineer-resume.md -> Target("acme", "Staff Engineer")
        """
        company = self.resume_path.parent.name
        tokens = self.resume_path.name[: -len(RESUME_SUFFIX)].split("-")

        for prefix in (slugify(candidate_name) if candidate_name else "", slugify(company)):
            prefix_tokens = prefix.split("-") if prefix else []
            if prefix_tokens and tokens[: len(prefix_tokens)] == prefix_tokens:
                tokens = tokens[len(prefix_tokens) :]

        role = " ".join(token.capitalize() for token in tokens if token)
        return Target(company=company, role=role or "Unknown Role")


@dataclass
class AttemptOutcome:
    """
    Result of a completed attempt.

    Attributes:
        evaluation: The final Evaluation (possibly with unresolved violations)
        evaluation_key: Storage key of the persisted record (None if persisting failed)
        applied_fixes: Fixes made between Evaluate#1 and Evaluate#2
        initial_response: Detector findings on the original drafts
        final_response: Findings the scores were computed from
        index_count: Entries in the rebuilt index (None if rebuilding failed)
        warnings: Non-fatal problems encountered along the way
    """

    evaluation: Evaluation
    evaluation_key: Optional[str]
    applied_fixes: tuple[AppliedFix, ...]
    initial_response: EvaluationResponse
    final_response: EvaluationResponse
    index_count: Optional[int] = None
    warnings: list[str] = field(default_factory=list)

    @property
    def verified(self) -> bool:
        """True when a second evaluation ran on fixed drafts."""
        return self.final_response is not self.initial_response


def merge_lessons(*groups) -> list[str]:
    """Concatenate lesson lists, keeping first occurrences only."""
    merged = []
    for group in groups:
        for lesson in group:
            if lesson not in merged:
                merged.append(lesson)
    return merged


class EvaluationOrchestrator:
    """
    Runs one evaluate-fix-verify attempt and records the outcome for future learning.

    Example:
        orchestrator = EvaluationOrchestrator(
            detector=LLMEvaluator(provider),
            scorer=Scorer(),
            fixer=Fixer(),
            indexer=Indexer.for_directory(config.output_path),
            events_file=config.events_file,
        )
        outcome = orchestrator.run(target, DraftSet.from_directory(app_dir), facts)
    """

    def __init__(
        self,
        detector: ViolationDetector,
        scorer: Scorer,
        fixer: Fixer,
        indexer: Indexer,
        auto_fix: bool = True,
        attempt_timeout_s: float = DEFAULT_ATTEMPT_TIMEOUT_S,
        events_file: Optional[Path] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.detector = detector
        self.scorer = scorer
        self.fixer = fixer
        self.indexer = indexer
        self.auto_fix = auto_fix
        self.attempt_timeout_s = attempt_timeout_s
        self.events_file = events_file
        self._clock = clock

    # --- Helpers ---

    def _event(self, event_type: str, target: Target, **extra) -> None:
        if self.events_file is None:
            return
        log_pipeline_event(
            self.events_file, event_type, target.application, source="evaluation", **extra
        )

    def _checkpoint(
        self,
        step: str,
        target: Target,
        cancel_event: Optional[threading.Event],
        deadline: float,
    ) -> None:
        reason = None
        if cancel_event is not None and cancel_event.is_set():
            reason = "cancelled"
        elif self._clock() > deadline:
            reason = "timed out"

        if reason:
            _log_warning(f"Attempt for {target.application} {reason} before '{step}'")
            self._event("attempt_aborted", target, step=step, reason=reason)
            raise AttemptCancelledError(step, reason)

    def _detect(self, request: EvaluationRequest, target: Target, stage: str) -> EvaluationResponse:
        log_evaluation_start(target.application, stage)
        start = time.perf_counter()
        try:
            response = self.detector.evaluate(request)
        except (LLMServiceError, MalformedResponseError) as e:
            _log_warning(f"Detector failed during {stage} evaluation: {e}")
            self._event("attempt_aborted", target, step=stage, reason=str(e))
            raise EvaluationAbortedError(target.company, target.role, stage, str(e)) from e

        log_detector_result(stage, response, time.perf_counter() - start)
        return response

    # --- Attempt ---

    def run(
        self,
        target: Target,
        drafts: DraftSet,
        facts: SourceFacts,
        cancel_event: Optional[threading.Event] = None,
    ) -> AttemptOutcome:
        """
        Evaluate, fix, verify and persist one pair of drafts.

        Args:
            target: Company and role the drafts were tailored to
            drafts: Draft file locations (fixed drafts are written back in place)
            facts: Source-of-truth facts to audit against
            cancel_event: Set from another thread to stop the attempt between steps

        Returns:
            AttemptOutcome with the final Evaluation

        Raises:
            EvaluationAbortedError: If drafts cannot be read or the detector fails
            AttemptCancelledError: If cancelled or past the attempt deadline
        """
        deadline = self._clock() + self.attempt_timeout_s
        warnings: list[str] = []

        def checkpoint(step: str) -> None:
            self._checkpoint(step, target, cancel_event, deadline)

        def warn(message: str) -> None:
            _log_warning(message)
            warnings.append(message)

        # 1. Read drafts
        checkpoint("read drafts")
        try:
            resume = drafts.read_resume()
            cover_letter = drafts.read_cover_letter()
            brief = drafts.read_brief()
            generated_at = drafts.generated_at()
        except OSError as e:
            self._event("attempt_aborted", target, step="read drafts", reason=str(e))
            raise EvaluationAbortedError(target.company, target.role, "initial", str(e)) from e

        self._event("evaluation_started", target, auto_fix=self.auto_fix)
        request = EvaluationRequest(
            company=target.company,
            role=target.role,
            job_description=brief,
            resume=resume,
            cover_letter=cover_letter,
            facts=facts,
        )

        # 2. Evaluate#1
        checkpoint("initial evaluation")
        initial = self._detect(request, target, "initial")
        final = initial
        applied_fixes: tuple[AppliedFix, ...] = ()

        # 3. Nothing to fix
        if initial.total_violations == 0:
            _log_info("No violations found; skipping fix and verification")
        elif not self.auto_fix:
            _log_info(f"{initial.total_violations} violation(s) found; auto-fix disabled")
        else:
            # 4. Fix
            checkpoint("fix")
            try:
                result = self.fixer.apply_fixes(resume, cover_letter, initial)
                if result.resume != resume:
                    drafts.resume_path.write_text(result.resume, encoding="utf-8")
                    resume = result.resume
                if result.cover_letter != cover_letter:
                    drafts.cover_letter_path.write_text(result.cover_letter, encoding="utf-8")
                    cover_letter = result.cover_letter
                applied_fixes = result.applied_fixes
                log_fix_result(result)
                self._event(
                    "fixes_applied",
                    target,
                    fixes=len(applied_fixes),
                    patterns=list(result.patterns_applied),
                )
            except (OSError, re.error) as e:
                warn(f"Automated fixes failed, continuing with last written drafts: {e}")

            # 5. Evaluate#2
            checkpoint("verification evaluation")
            final = self._detect(
                replace(request, resume=resume, cover_letter=cover_letter), target, "verification"
            )

        # 6. Score & persist
        checkpoint("score and persist")
        scores = self.scorer.score_response(final)
        lessons = merge_lessons(self.scorer.extract_lessons(scores), final.lessons_learned)
        evaluation = Evaluation(
            company=target.company,
            role=target.role,
            generated_at=generated_at,
            evaluated_at=now_exact(),
            scores=scores,
            jd_match=final.jd_match,
            lessons=tuple(lessons),
            rag_context=self.scorer.build_rag_text(target.company, target.role, scores, lessons),
        )
        log_final_scores(target.application, scores)

        evaluation_key = None
        index_count = None
        try:
            evaluation_key = self.indexer.persist(evaluation)
            index_count, _ = self.indexer.rebuild()
        except OSError as e:
            warn(f"Failed to persist or index evaluation: {e}")

        self._event(
            "evaluation_persisted",
            target,
            overall_score=scores.overall,
            critical_violations=scores.critical_violation_count,
            evaluation_key=evaluation_key,
            index_count=index_count,
        )

        return AttemptOutcome(
            evaluation=evaluation,
            evaluation_key=evaluation_key,
            applied_fixes=applied_fixes,
            initial_response=initial,
            final_response=final,
            index_count=index_count,
            warnings=warnings,
        )

    # --- Generation support ---

    def prepare_generation_context(self, company: str, role: str, brief: str) -> str:
        """
        Render lessons from similar past applications for a new generation request.

        Retrieval problems never block generation; they fall back to NO_DATA.
        """
        try:
            ctx = Retriever(self.indexer).retrieve(company, role, brief)
        except OSError as e:
            _log_warning(f"Retrieval failed, generating without past lessons: {e}")
            return NO_DATA
        return format_for_prompt(ctx)
