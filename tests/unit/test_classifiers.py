"""Unit tests for industry and role-level classification."""

import pytest

from vetter.contexts.learning.classifiers import (
    Industry,
    RoleLevel,
    infer_industry,
    infer_role_level,
)


@pytest.mark.unit
@pytest.mark.parametrize(
    "company,expected",
    [
        ("Capital One", Industry.FINTECH),
        ("First National Bank", Industry.FINTECH),
        ("Microsoft", Industry.TECHNOLOGY),
        ("Acme Technologies", Industry.TECHNOLOGY),
        ("AWS", Industry.CLOUD),
        ("SoundCloud", Industry.CLOUD),
        ("PayPal", Industry.PAYMENTS),
        ("Globex", Industry.UNKNOWN),
    ],
)
def test_infer_industry(company, expected):
    assert infer_industry(company) == expected


@pytest.mark.unit
def test_first_matching_industry_wins():
    """Test a company matching several rules takes the earliest one."""
    # "tech" matches technology before "pay" can match payments
    assert infer_industry("PayTech") == Industry.TECHNOLOGY


@pytest.mark.unit
@pytest.mark.parametrize(
    "role,expected",
    [
        ("CTO", RoleLevel.CTO),
        ("Chief Technology Officer", RoleLevel.CTO),
        ("VP of Engineering", RoleLevel.VP),
        ("Vice President, Platform", RoleLevel.VP),
        ("Director of Engineering", RoleLevel.DIRECTOR),
        ("Senior Director, Infrastructure", RoleLevel.DIRECTOR),
        ("Senior Platform Engineer", RoleLevel.SENIOR_IC),
        ("Sr. Engineer", RoleLevel.SENIOR_IC),
        ("Principal Engineer", RoleLevel.SENIOR_IC),
        ("Staff Engineer", RoleLevel.IC),
        ("Tech Lead", RoleLevel.IC),
        ("Software Engineer", RoleLevel.IC),
    ],
)
def test_infer_role_level(role, expected):
    assert infer_role_level(role) == expected


@pytest.mark.unit
@pytest.mark.parametrize("role", ["Director", "Vector Database Engineer", "Israel Site Engineer"])
def test_abbreviations_need_word_boundaries(role):
    """Test cto/vp/sr do not match inside ordinary words."""
    assert infer_role_level(role) not in (RoleLevel.CTO, RoleLevel.VP, RoleLevel.SENIOR_IC)
