"""
Rewrite patterns used by the Fixer.

Three ordered libraries, each a tuple of frozen FixPattern values:
- TEMPORAL_PATTERNS: "N+ years of experience building <tool>" where the tool is younger than N years
- POSITIONING_PATTERNS: "<Domain> Expert" headlines the candidate cannot support
- WORDING_PATTERNS: stock cover-letter phrasing and weak quantifications

Replacements use Python's \\g<n> group syntax. Patterns are evaluated in order; a later
pattern sees the output of an earlier one.
"""

import re
from dataclasses import dataclass


@dataclass(frozen=True)
class FixPattern:
    """
    A single search-and-rewrite rule.

    Attributes:
        name: Human-readable label for logs
        pattern: Compiled regex to search for
        replacement: re.sub replacement template
        rule_match: Violation rule this pattern addresses
    """

    name: str
    pattern: re.Pattern
    replacement: str
    rule_match: str

    def apply(self, text: str) -> tuple[str, int]:
        """Rewrite every match. Returns (new_text, number_of_replacements)."""
        return self.pattern.subn(self.replacement, text)


# =============================================================================
# TEMPORAL IMPOSSIBILITY
# =============================================================================

# "**Senior Engineer with 25+ years of experience** building ..."
_HEADLINE = r"(\*\*[^*]+with )(\d+\+? years of experience)\*\*"

TEMPORAL_PATTERNS = (
    FixPattern(
        name="Temporal - building platform engineering",
        pattern=re.compile(
            _HEADLINE + r" (building|architecting) "
            r"(enterprise-scale |scalable |production )?platform engineering([,\n])",
            re.IGNORECASE,
        ),
        replacement=(
            r"\g<1>\g<2> in software engineering and infrastructure** "
            r"with deep expertise in \g<4>platform engineering\g<5>"
        ),
        rule_match="TEMPORAL_IMPOSSIBILITY",
    ),
    FixPattern(
        name="Temporal - building AWS/cloud",
        pattern=re.compile(
            _HEADLINE + r" (building|architecting) "
            r"(AWS|Azure|GCP|multi-cloud|cloud-native) ([^,\n]+)",
            re.IGNORECASE,
        ),
        replacement=(
            r"\g<1>\g<2> in distributed systems and platform engineering** "
            r"with deep expertise in \g<4> \g<5>"
        ),
        rule_match="TEMPORAL_IMPOSSIBILITY",
    ),
    FixPattern(
        name="Temporal - building Kubernetes",
        pattern=re.compile(
            _HEADLINE + r" (building|architecting) "
            r"(Kubernetes|K8s|containerized|container-native) ([^,\n]+)",
            re.IGNORECASE,
        ),
        replacement=(
            r"\g<1>\g<2> in platform engineering and distributed systems** "
            r"with extensive \g<4> \g<5>"
        ),
        rule_match="TEMPORAL_IMPOSSIBILITY",
    ),
    FixPattern(
        name="Temporal - SRE/DevOps",
        pattern=re.compile(
            _HEADLINE + r" (in|of|building|architecting) "
            r"(site reliability engineering|SRE|DevOps) ([^,\n]+)",
            re.IGNORECASE,
        ),
        replacement=(
            r"\g<1>\g<2> in operational excellence and infrastructure automation** "
            r"with deep \g<4> expertise \g<5>"
        ),
        rule_match="TEMPORAL_IMPOSSIBILITY",
    ),
    FixPattern(
        name="Temporal - AI-powered",
        pattern=re.compile(
            _HEADLINE + r" (building|architecting|in) "
            r"(AI-powered|AI-driven|machine learning) ([^,\n]+)",
            re.IGNORECASE,
        ),
        replacement=(
            r"\g<1>\g<2> in system architecture and automation** with expertise in \g<4> \g<5>"
        ),
        rule_match="TEMPORAL_IMPOSSIBILITY",
    ),
    FixPattern(
        name="Temporal - DeFi/Blockchain",
        pattern=re.compile(
            _HEADLINE + r" (building|architecting) "
            r"(distributed DeFi|DeFi|blockchain|cryptocurrency) ([^,\n]+)",
            re.IGNORECASE,
        ),
        replacement=(
            r"\g<1>\g<2> in distributed systems and platform engineering** "
            r"with deep expertise building infrastructure for \g<4> \g<5>"
        ),
        rule_match="TEMPORAL_IMPOSSIBILITY",
    ),
    FixPattern(
        name="Temporal - general tech prefix",
        pattern=re.compile(
            _HEADLINE + r" (building|architecting|developing) "
            r"(enterprise-grade|scalable|production) ([^\n]*?) "
            r"(AWS|Kubernetes|SRE|AI|DeFi|cloud-native|blockchain) ([^,\n]+)",
            re.IGNORECASE,
        ),
        replacement=r"\g<1>\g<2> in \g<4> \g<5> systems** with expertise in \g<6> \g<7>",
        rule_match="TEMPORAL_IMPOSSIBILITY",
    ),
)


# =============================================================================
# DOMAIN POSITIONING
# =============================================================================

POSITIONING_PATTERNS = (
    FixPattern(
        name="DeFi/Crypto Expert (specializing) -> Infrastructure Architect",
        pattern=re.compile(
            r"\*\*([^*]*?)(DeFi|Cryptocurrency|Crypto)([^*]*?) Expert\*\* specializing in ([^\n]+)",
            re.IGNORECASE,
        ),
        replacement=(
            r"**Multi-Cloud Infrastructure Architect** specializing in Kubernetes platforms "
            r"supporting cryptocurrency trading systems, blockchain infrastructure, and \g<4>"
        ),
        rule_match="FORBIDDEN_TECHNICAL_DOMAIN_CLAIMS",
    ),
    FixPattern(
        name="DeFi/Crypto Expert -> Infrastructure Architect",
        pattern=re.compile(
            r"\*\*([^*]*?)(DeFi|Cryptocurrency|Crypto)([^*]*?) Expert\*\*", re.IGNORECASE
        ),
        replacement=r"**Multi-Cloud Infrastructure Architect**",
        rule_match="FORBIDDEN_TECHNICAL_DOMAIN_CLAIMS",
    ),
    FixPattern(
        name="Domain Expert (specific domains) -> Infrastructure Architect",
        pattern=re.compile(
            r"\*\*([^*]*?)(Climate|Gaming|Healthcare|Real Estate|Satellite|Geospatial)"
            r"([^*]*?) Expert\*\*",
            re.IGNORECASE,
        ),
        replacement=r"**Infrastructure Architect** with experience in \g<2> platforms",
        rule_match="FORBIDDEN_INDUSTRY_CLAIMS",
    ),
)


# =============================================================================
# WORDING
# =============================================================================

WORDING_PATTERNS = (
    FixPattern(
        name="Targeted resume wording",
        pattern=re.compile(r"This is a targeted resume highlighting"),
        replacement="The resume submitted for this role highlights",
        rule_match="INAPPROPRIATE_TONE",
    ),
    FixPattern(
        name="Weak quantification - 5 continents",
        pattern=re.compile(r"(across|spanning) 5 continents", re.IGNORECASE),
        replacement=r"\g<1> North America, South America, Europe, Africa, and India",
        rule_match="WEAK_QUANTIFICATIONS",
    ),
    FixPattern(
        name="Weak quantification - 7 clusters",
        pattern=re.compile(
            r"(\d+\+? (?:WAF )?(?:security )?(?:events|logs) daily (?:across|over) )"
            r"7 distributed clusters",
            re.IGNORECASE,
        ),
        replacement=r"\g<1>multi-cluster distributed infrastructure",
        rule_match="WEAK_QUANTIFICATIONS",
    ),
)
