"""
Learning Context

Responsibilities:
- Persists each Evaluation as an immutable record under the application tree
- Rebuilds the retrieval index from every readable record
- Classifies past applications by industry and role level
- Retrieves lessons from similar past applications for the next generation request

Owns: Evaluation records, .rag-index.json, similarity retrieval
Never: Scores documents or edits drafts
"""

from vetter.contexts.learning.classifiers import Industry, RoleLevel, infer_industry, infer_role_level
from vetter.contexts.learning.index_data_structures import (
    EvaluationIndex,
    IndexedEvaluation,
    RAGContext,
)
from vetter.contexts.learning.indexer import IndexLoadError, Indexer
from vetter.contexts.learning.retriever import NO_DATA, Retriever, format_for_prompt
from vetter.contexts.learning.storage import (
    EvaluationStore,
    FileEvaluationStore,
    InMemoryEvaluationStore,
)

__all__ = [
    # Classification
    "Industry",
    "RoleLevel",
    "infer_industry",
    "infer_role_level",
    # Storage
    "EvaluationStore",
    "FileEvaluationStore",
    "InMemoryEvaluationStore",
    # Index
    "Indexer",
    "IndexLoadError",
    "EvaluationIndex",
    "IndexedEvaluation",
    # Retrieval
    "Retriever",
    "RAGContext",
    "format_for_prompt",
    "NO_DATA",
]
