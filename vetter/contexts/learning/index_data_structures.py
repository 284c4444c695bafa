"""
Data structures for the retrieval index and retrieved context.

IndexedEvaluation: one summarized Evaluation, classified for similarity search
EvaluationIndex: the full derived index, persisted as .rag-index.json and rebuilt wholesale
RAGContext: lessons aggregated from similar past applications (never persisted)
"""

import json
from dataclasses import dataclass, field

from vetter.contexts.learning.classifiers import Industry, RoleLevel
from vetter.utils.timestamp import now_exact

INDEX_VERSION = "1.0.0"


@dataclass(frozen=True)
class IndexedEvaluation:
    company: str
    role: str
    role_level: RoleLevel
    industry: Industry
    evaluated_at: str
    overall_score: int
    critical_violations: int
    lessons_learned: tuple[str, ...] = ()
    rag_context: str = ""
    path: str = ""

    def to_dict(self) -> dict:
        return {
            "company": self.company,
            "role": self.role,
            "role_level": self.role_level.value,
            "industry": self.industry.value,
            "evaluated_at": self.evaluated_at,
            "overall_score": self.overall_score,
            "critical_violations": self.critical_violations,
            "lessons_learned": list(self.lessons_learned),
            "rag_context": self.rag_context,
            "path": self.path,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "IndexedEvaluation":
        """
        Raises:
            KeyError, TypeError, ValueError: If the entry is incomplete or malformed
        """
        overall_score = data["overall_score"]
        critical_violations = data["critical_violations"]
        if not isinstance(overall_score, int) or not isinstance(critical_violations, int):
            raise TypeError("overall_score and critical_violations must be integers")

        return cls(
            company=str(data["company"]),
            role=str(data["role"]),
            role_level=RoleLevel(data["role_level"]),
            industry=Industry(data["industry"]),
            evaluated_at=str(data.get("evaluated_at", "")),
            overall_score=overall_score,
            critical_violations=critical_violations,
            lessons_learned=tuple(str(lesson) for lesson in data.get("lessons_learned") or []),
            rag_context=str(data.get("rag_context") or ""),
            path=str(data.get("path") or ""),
        )


@dataclass(frozen=True)
class EvaluationIndex:
    evaluations: tuple[IndexedEvaluation, ...] = ()
    updated_at: str = field(default_factory=now_exact)
    version: str = INDEX_VERSION

    def __len__(self) -> int:
        return len(self.evaluations)

    @classmethod
    def empty(cls) -> "EvaluationIndex":
        return cls()

    def to_json(self) -> str:
        return json.dumps(
            {
                "evaluations": [e.to_dict() for e in self.evaluations],
                "updated_at": self.updated_at,
                "version": self.version,
            },
            indent=2,
        )

    @classmethod
    def from_json(cls, text: str) -> "EvaluationIndex":
        """
        Raises:
            json.JSONDecodeError, KeyError, TypeError, ValueError: If the index is corrupt
        """
        data = json.loads(text)
        if not isinstance(data, dict):
            raise TypeError(f"Index must be a JSON object, got {type(data).__name__}")
        return cls(
            evaluations=tuple(IndexedEvaluation.from_dict(e) for e in data["evaluations"]),
            updated_at=str(data.get("updated_at", "")),
            version=str(data.get("version", INDEX_VERSION)),
        )


@dataclass
class RAGContext:
    """
    Lessons retrieved from similar past applications.

    Attributes:
        relevant_lessons: Deduplicated lessons, first-seen order
        common_violations: "<label> (occurred N times)", most frequent first
        successful_patterns: Examples from similar applications scoring >= 85
        similar_applications: Number of index entries judged similar
    """

    relevant_lessons: list[str] = field(default_factory=list)
    common_violations: list[str] = field(default_factory=list)
    successful_patterns: list[str] = field(default_factory=list)
    similar_applications: int = 0
