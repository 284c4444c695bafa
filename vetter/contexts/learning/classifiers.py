"""
Heuristic classifiers for indexed evaluations.

Case-insensitive substring rules mapping a company name to an industry and a role title
to a seniority level. The first matching rule wins.

Short abbreviations (cto, vp, sr) only match as whole words; as bare substrings they hit
ordinary words ("director" contains "cto").

Examples:
    >>> infer_industry("Capital One")
    <Industry.FINTECH: 'fintech'>
    >>> infer_role_level("Sr. Platform Engineer")
    <RoleLevel.SENIOR_IC: 'Senior IC'>
"""

import re
from enum import Enum


class Industry(str, Enum):
    """Industry inferred from a company name."""

    FINTECH = "fintech"
    TECHNOLOGY = "technology"
    CLOUD = "cloud"
    PAYMENTS = "payments"
    UNKNOWN = "unknown"


class RoleLevel(str, Enum):
    """Seniority inferred from a role title."""

    CTO = "CTO"
    VP = "VP"
    DIRECTOR = "Director"
    SENIOR_IC = "Senior IC"
    IC = "IC"


INDUSTRY_PATTERNS = [
    (re.compile(r"bank|capital"), Industry.FINTECH),
    (re.compile(r"tech|soft"), Industry.TECHNOLOGY),
    (re.compile(r"cloud|aws"), Industry.CLOUD),
    (re.compile(r"pay"), Industry.PAYMENTS),
]

ROLE_LEVEL_PATTERNS = [
    (re.compile(r"\bcto\b|chief"), RoleLevel.CTO),
    (re.compile(r"\bvp\b|vice president"), RoleLevel.VP),
    (re.compile(r"director"), RoleLevel.DIRECTOR),
    (re.compile(r"senior|\bsr\b|principal"), RoleLevel.SENIOR_IC),
    (re.compile(r"lead|staff"), RoleLevel.IC),
]


def infer_industry(company: str) -> Industry:
    lower = company.lower()
    for pattern, industry in INDUSTRY_PATTERNS:
        if pattern.search(lower):
            return industry
    return Industry.UNKNOWN


def infer_role_level(role: str) -> RoleLevel:
    lower = role.lower()
    for pattern, level in ROLE_LEVEL_PATTERNS:
        if pattern.search(lower):
            return level
    return RoleLevel.IC
