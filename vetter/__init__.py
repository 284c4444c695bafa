"""
VETTER - Verification and Evaluation of Tailored Text for Employer Review

Quality-assurance feedback loop for tailored resumes and cover letters. Generated drafts are
audited against a fixed anti-fabrication rule set, repaired with deterministic rewrite patterns,
scored, and persisted so that lessons from past applications inform the next one.

Architecture:
- Scoring Context: Rule catalog, evaluation data model, weighted scoring
- Evaluation Context: Violation detection, automated fixes, evaluate-fix-verify orchestration
- Learning Context: Evaluation persistence, index rebuilds, retrieval of past lessons
"""

__version__ = "1.0.0"
