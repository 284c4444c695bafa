"""
Scoring rule catalog.

Rules, category weights and section weights are bundled in an immutable RuleCatalog value
that is injected into the Scorer. DEFAULT_RULE_CATALOG is the production table; tests and
experiments can build alternate catalogs without touching module state.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Iterable, Mapping, Optional


class Category(str, Enum):
    ANTI_FABRICATION = "anti_fabrication"
    ACCURACY = "accuracy"
    QUALITY = "quality"


class Severity(str, Enum):
    CRITICAL = "critical"
    MAJOR = "major"
    MINOR = "minor"


@dataclass(frozen=True)
class Rule:
    """
    A single scoring rule.

    Attributes:
        name: Rule identifier as reported by the evaluator (e.g., "SKILL_FABRICATION")
        category: Scored category the rule deducts from
        severity: Default severity of a breach
        description: What the rule forbids
        weight: Points deducted per violation
    """

    name: str
    category: Category
    severity: Severity
    description: str
    weight: int


def _frozen_weights(weights: Mapping, label: str) -> Mapping:
    total = sum(weights.values())
    if not math.isclose(total, 1.0, abs_tol=1e-9):
        raise ValueError(f"{label} must sum to 1.0, got {total}")
    if any(w < 0 for w in weights.values()):
        raise ValueError(f"{label} must be non-negative")
    return MappingProxyType(dict(weights))


@dataclass(frozen=True)
class RuleCatalog:
    """
    Immutable rule table plus the weights used to blend scores.

    Attributes:
        rules: Rule name -> Rule
        category_weights: Category -> fraction of the resume total (sums to 1.0)
        section_weights: Section ("resume", "cover_letter") -> fraction of overall (sums to 1.0)
        weak_quantification_rule: Rule whose weight is deducted per weak-number issue
        accuracy_flag_rules: Accuracy flag name -> rule deducted when the flag is False
        verified_bonus_cap: Maximum bonus points for independently verified metrics
        lesson_threshold: Overall score below which a generic "below threshold" lesson is emitted
    """

    rules: Mapping[str, Rule]
    category_weights: Mapping[Category, float]
    section_weights: Mapping[str, float]
    weak_quantification_rule: str = "WEAK_QUANTIFICATIONS"
    accuracy_flag_rules: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType(
            {
                "company_dates_correct": "COMPANY_DATE_MISMATCH",
                "role_titles_correct": "ROLE_TITLE_MISMATCH",
                "years_exp_correct": "YEARS_EXPERIENCE_WRONG",
            }
        )
    )
    verified_bonus_cap: int = 10
    lesson_threshold: int = 70

    def __post_init__(self):
        object.__setattr__(self, "rules", MappingProxyType(dict(self.rules)))
        object.__setattr__(
            self, "category_weights", _frozen_weights(self.category_weights, "Category weights")
        )
        object.__setattr__(
            self, "section_weights", _frozen_weights(self.section_weights, "Section weights")
        )
        for section in ("resume", "cover_letter"):
            if section not in self.section_weights:
                raise ValueError(f"Section weights missing '{section}'")
        missing = {Category.ANTI_FABRICATION, Category.ACCURACY, Category.QUALITY} - set(
            self.category_weights
        )
        if missing:
            raise ValueError(f"Category weights missing {sorted(c.value for c in missing)}")

    @classmethod
    def from_rules(
        cls,
        rules: Iterable[Rule],
        category_weights: Mapping[Category, float],
        section_weights: Mapping[str, float],
        **kwargs,
    ) -> "RuleCatalog":
        return cls(
            rules={rule.name: rule for rule in rules},
            category_weights=category_weights,
            section_weights=section_weights,
            **kwargs,
        )

    def get(self, rule_name: str) -> Optional[Rule]:
        """Look up a rule; unknown names return None."""
        return self.rules.get(rule_name)

    def weight_of(self, rule_name: str) -> int:
        """Weight of a rule, or 0 for unknown names."""
        rule = self.rules.get(rule_name)
        return rule.weight if rule else 0

    def rule_names(self) -> list[str]:
        """Rule names in catalog order."""
        return list(self.rules)


# =============================================================================
# PRODUCTION RULES
# =============================================================================

DEFAULT_RULES = (
    # Anti-fabrication
    Rule(
        "FORBIDDEN_NUMBER_FABRICATION",
        Category.ANTI_FABRICATION,
        Severity.CRITICAL,
        "Numbers invented that don't exist in source achievement metrics",
        30,
    ),
    Rule(
        "FORBIDDEN_INDUSTRY_CLAIMS",
        Category.ANTI_FABRICATION,
        Severity.CRITICAL,
        "Industry claims (climate-tech, gaming, etc.) not in achievement companies",
        25,
    ),
    Rule(
        "FORBIDDEN_TECHNICAL_DOMAIN_CLAIMS",
        Category.ANTI_FABRICATION,
        Severity.CRITICAL,
        "Technical domain claims (satellite imagery, geospatial) not in achievements",
        25,
    ),
    Rule(
        "FORBIDDEN_PATTERN_MATCHING",
        Category.ANTI_FABRICATION,
        Severity.CRITICAL,
        "Claims that work 'mirrors' or is 'similar to' a domain the candidate lacks",
        20,
    ),
    Rule(
        "SKILL_FABRICATION",
        Category.ANTI_FABRICATION,
        Severity.MAJOR,
        "Skills listed that are not in source skills data",
        15,
    ),
    Rule(
        "WEAK_QUANTIFICATIONS",
        Category.ANTI_FABRICATION,
        Severity.MINOR,
        "Numbers under 10-20 that undermine credibility (7 clusters, 3 regions, etc.)",
        5,
    ),
    # Accuracy
    Rule(
        "COMPANY_DATE_MISMATCH",
        Category.ACCURACY,
        Severity.CRITICAL,
        "Company employment dates don't match source achievement data",
        25,
    ),
    Rule(
        "ROLE_TITLE_MISMATCH",
        Category.ACCURACY,
        Severity.CRITICAL,
        "Role titles modified from source achievement data",
        20,
    ),
    Rule(
        "YEARS_EXPERIENCE_WRONG",
        Category.ACCURACY,
        Severity.CRITICAL,
        "Years of experience doesn't match profile.years_experience",
        25,
    ),
    Rule(
        "METRIC_FABRICATION",
        Category.ACCURACY,
        Severity.CRITICAL,
        "Metrics (percentages, dollar amounts) not in achievement metrics",
        20,
    ),
    Rule(
        "TEMPORAL_IMPOSSIBILITY",
        Category.ACCURACY,
        Severity.MAJOR,
        "Claims X years experience with a tool that didn't exist for X years",
        15,
    ),
    # Quality
    Rule(
        "POOR_JD_ALIGNMENT",
        Category.QUALITY,
        Severity.MINOR,
        "Resume doesn't emphasize JD-relevant achievements",
        5,
    ),
    Rule(
        "INAPPROPRIATE_TONE",
        Category.QUALITY,
        Severity.MINOR,
        "Cover letter tone doesn't match company culture signals",
        5,
    ),
)

DEFAULT_CATEGORY_WEIGHTS = {
    Category.ANTI_FABRICATION: 0.50,
    Category.ACCURACY: 0.30,
    Category.QUALITY: 0.20,
}

DEFAULT_SECTION_WEIGHTS = {
    "resume": 0.70,
    "cover_letter": 0.30,
}

DEFAULT_RULE_CATALOG = RuleCatalog.from_rules(
    DEFAULT_RULES, DEFAULT_CATEGORY_WEIGHTS, DEFAULT_SECTION_WEIGHTS
)
