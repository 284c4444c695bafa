"""
Evaluation persistence and index rebuilds.

Each Evaluation is written once as its own record; the index (.rag-index.json) is a derived
summary of every readable record and is always rebuilt wholesale. There is no incremental
mode: rebuilding twice over the same records yields the same entries in the same order.
"""

import json
import re
from pathlib import Path

from vetter.contexts.learning.classifiers import infer_industry, infer_role_level
from vetter.contexts.learning.index_data_structures import EvaluationIndex, IndexedEvaluation
from vetter.contexts.learning.logger import (
    log_rebuild_result,
    log_record_persisted,
    log_record_skipped,
)
from vetter.contexts.learning.storage import (
    INDEX_FILENAME,
    RECORD_SUFFIX,
    EvaluationStore,
    FileEvaluationStore,
)
from vetter.contexts.scoring.evaluation_data_structures import Evaluation, RecordFormatError
from vetter.utils.timestamp import file_stamp, now_exact


class IndexLoadError(Exception):
    """Raised when an existing index file cannot be parsed."""


def slugify(text: str) -> str:
    """Lowercase, collapse anything non-alphanumeric to single hyphens."""
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    return slug or "unknown"


def record_key(company: str, role: str, stamp: str) -> str:
    """
    Storage key for an evaluation record.

    Example:
        >>> record_key("Acme Corp", "Senior Engineer", "20251018T101500")
        'acme-corp/acme-corp-senior-engineer-20251018T101500.evaluation.json'
    """
    company_slug = slugify(company)
    return f"{company_slug}/{company_slug}-{slugify(role)}-{stamp}{RECORD_SUFFIX}"


def count_critical_violations(evaluation: Evaluation) -> int:
    return evaluation.scores.critical_violation_count


class Indexer:
    """
    Persists evaluations to an EvaluationStore and maintains the derived index.

    Example:
        indexer = Indexer.for_directory(Path("~/Documents/Applications"))
        key = indexer.persist(evaluation)
        count, index = indexer.rebuild()
    """

    def __init__(self, store: EvaluationStore):
        self.store = store

    @classmethod
    def for_directory(cls, root: Path) -> "Indexer":
        return cls(FileEvaluationStore(root))

    def persist(self, evaluation: Evaluation) -> str:
        """
        Write an evaluation as a new record.

        Existing records are never overwritten; a numeric suffix is added on collision.

        Returns:
            Storage key of the new record
        """
        try:
            stamp = file_stamp(evaluation.evaluated_at)
        except ValueError:
            stamp = file_stamp()

        key = record_key(evaluation.company, evaluation.role, stamp)
        suffix = 2
        while self.store.has_record(key):
            key = record_key(evaluation.company, evaluation.role, f"{stamp}-{suffix}")
            suffix += 1

        self.store.write_record(key, evaluation.to_json())
        log_record_persisted(evaluation.application, self.store.locate(key))
        return key

    def summarize(self, key: str, evaluation: Evaluation) -> IndexedEvaluation:
        """Classify an evaluation into an index entry."""
        return IndexedEvaluation(
            company=evaluation.company,
            role=evaluation.role,
            role_level=infer_role_level(evaluation.role),
            industry=infer_industry(evaluation.company),
            evaluated_at=evaluation.evaluated_at,
            overall_score=evaluation.scores.overall,
            critical_violations=count_critical_violations(evaluation),
            lessons_learned=evaluation.lessons,
            rag_context=evaluation.rag_context,
            path=self.store.locate(key),
        )

    def rebuild(self) -> tuple[int, EvaluationIndex]:
        """
        Rebuild the index from every record in the store.

        Records that cannot be read or parsed are logged and skipped.

        Returns:
            Tuple of (number of indexed evaluations, the written index)
        """
        entries = []
        skipped = 0

        for key in self.store.list_records():
            try:
                evaluation = Evaluation.from_json(self.store.read_record(key))
            except (RecordFormatError, KeyError, OSError, UnicodeDecodeError) as e:
                log_record_skipped(self.store.locate(key), e)
                skipped += 1
                continue
            entries.append(self.summarize(key, evaluation))

        index = EvaluationIndex(evaluations=tuple(entries), updated_at=now_exact())
        self.store.write_index(index.to_json())

        log_rebuild_result(len(entries), skipped, self.store.locate(INDEX_FILENAME))
        return len(entries), index

    def load(self) -> EvaluationIndex:
        """
        Load the current index.

        Returns:
            The stored index, or an empty index if none has been written yet

        Raises:
            IndexLoadError: If an index exists but is corrupt
        """
        text = self.store.read_index()
        if text is None:
            return EvaluationIndex.empty()

        try:
            return EvaluationIndex.from_json(text)
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            raise IndexLoadError(f"Corrupt index at {self.store.locate(INDEX_FILENAME)}: {e}") from e
