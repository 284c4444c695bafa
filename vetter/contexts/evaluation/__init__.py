"""
Evaluation Context

Responsibilities:
- Loads the source-of-truth facts that drafts are audited against
- Detects rule violations in generated drafts (LLM evaluator)
- Rewrites drafts with deterministic fix patterns
- Orchestrates evaluate -> fix -> re-evaluate -> score -> persist for one attempt

Owns: Violation detection, automated fixes, attempt control flow (cancellation, deadline)
Never: Decides rule weights or how past evaluations are ranked
"""

from vetter.contexts.evaluation.evaluator import (
    EvaluationRequest,
    LLMEvaluator,
    ViolationDetector,
)
from vetter.contexts.evaluation.exceptions import (
    AttemptCancelledError,
    EvaluationAbortedError,
    MalformedResponseError,
    SourceFactsError,
)
from vetter.contexts.evaluation.fixer import AppliedFix, Fixer, FixResult
from vetter.contexts.evaluation.orchestrator import (
    AttemptOutcome,
    DraftSet,
    EvaluationOrchestrator,
    Target,
)
from vetter.contexts.evaluation.source_facts import SourceFacts, load_source_facts

__all__ = [
    # Detection
    "ViolationDetector",
    "LLMEvaluator",
    "EvaluationRequest",
    # Fixing
    "Fixer",
    "FixResult",
    "AppliedFix",
    # Orchestration
    "EvaluationOrchestrator",
    "AttemptOutcome",
    "DraftSet",
    "Target",
    # Source facts
    "SourceFacts",
    "load_source_facts",
    # Errors
    "MalformedResponseError",
    "EvaluationAbortedError",
    "AttemptCancelledError",
    "SourceFactsError",
]
