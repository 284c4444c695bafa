"""
Scoring Context

Responsibilities:
- Defines the rule catalog (rules, severities, deduction weights, blend weights)
- Represents evaluator findings and scores as immutable records
- Converts findings into bounded category, section and overall scores
- Derives lessons and retrieval text from scored findings

Owns: Rule catalog, evaluation data model, score computation
Never: Calls external services, reads or writes files
"""

from vetter.contexts.scoring.evaluation_data_structures import (
    AccuracyFlags,
    Evaluation,
    EvaluationResponse,
    JDMatch,
    RecordFormatError,
    Scores,
    Violation,
    WeakQuantificationIssue,
)
from vetter.contexts.scoring.rules import DEFAULT_RULE_CATALOG, Category, Rule, RuleCatalog, Severity
from vetter.contexts.scoring.scorer import Scorer

__all__ = [
    # Rule catalog
    "Category",
    "Severity",
    "Rule",
    "RuleCatalog",
    "DEFAULT_RULE_CATALOG",
    # Data structures
    "Violation",
    "WeakQuantificationIssue",
    "AccuracyFlags",
    "JDMatch",
    "EvaluationResponse",
    "Scores",
    "Evaluation",
    "RecordFormatError",
    # Scoring
    "Scorer",
]
