"""
Storage backends for evaluation records and the retrieval index.

The Indexer only talks to an EvaluationStore, so rebuild logic can run against the real
application tree (FileEvaluationStore) or an in-memory fake (InMemoryEvaluationStore).

Record keys are POSIX-style paths relative to the store root, e.g.
"acme/acme-senior-engineer-20251018T101500.evaluation.json".
"""

import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

RECORD_SUFFIX = ".evaluation.json"
INDEX_FILENAME = ".rag-index.json"


class EvaluationStore(ABC):
    """Abstract store holding evaluation records and a single index document."""

    @abstractmethod
    def list_records(self) -> list[str]:
        """Keys of every evaluation record, sorted."""
        pass

    @abstractmethod
    def read_record(self, key: str) -> str:
        """Raw text of a record. Raises KeyError if the key is unknown."""
        pass

    @abstractmethod
    def write_record(self, key: str, text: str) -> None:
        pass

    @abstractmethod
    def read_index(self) -> Optional[str]:
        """Raw index text, or None if no index has been written yet."""
        pass

    @abstractmethod
    def write_index(self, text: str) -> None:
        pass

    @abstractmethod
    def locate(self, key: str) -> str:
        """Human-readable location of a record (a filesystem path for file stores)."""
        pass

    def has_record(self, key: str) -> bool:
        return key in self.list_records()


class FileEvaluationStore(EvaluationStore):
    """
    Evaluation records as *.evaluation.json files under an application tree.

    Layout:
        <root>/.rag-index.json
        <root>/<company>/<company>-<role>-<stamp>.evaluation.json
    """

    def __init__(self, root: Path):
        self.root = Path(root).expanduser()
        self.index_path = self.root / INDEX_FILENAME

    def list_records(self) -> list[str]:
        if not self.root.exists():
            return []
        return sorted(
            path.relative_to(self.root).as_posix()
            for path in self.root.rglob(f"*{RECORD_SUFFIX}")
            if path.is_file()
        )

    def read_record(self, key: str) -> str:
        path = self.root / key
        if not path.is_file():
            raise KeyError(key)
        return path.read_text(encoding="utf-8")

    def write_record(self, key: str, text: str) -> None:
        path = self.root / key
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")

    def has_record(self, key: str) -> bool:
        return (self.root / key).is_file()

    def read_index(self) -> Optional[str]:
        if not self.index_path.exists():
            return None
        return self.index_path.read_text(encoding="utf-8")

    def write_index(self, text: str) -> None:
        # Write-then-rename so a reader never sees a half-written index
        self.root.mkdir(parents=True, exist_ok=True)
        tmp_path = self.index_path.with_name(self.index_path.name + ".tmp")
        tmp_path.write_text(text, encoding="utf-8")
        os.replace(tmp_path, self.index_path)

    def locate(self, key: str) -> str:
        return str(self.root / key)


class InMemoryEvaluationStore(EvaluationStore):
    """Dict-backed store for tests and dry runs."""

    def __init__(self, records: Optional[dict[str, str]] = None, index: Optional[str] = None):
        self.records = dict(records or {})
        self.index = index

    def list_records(self) -> list[str]:
        return sorted(key for key in self.records if key.endswith(RECORD_SUFFIX))

    def read_record(self, key: str) -> str:
        return self.records[key]

    def write_record(self, key: str, text: str) -> None:
        self.records[key] = text

    def has_record(self, key: str) -> bool:
        return key in self.records

    def read_index(self) -> Optional[str]:
        return self.index

    def write_index(self, text: str) -> None:
        self.index = text

    def locate(self, key: str) -> str:
        return f"memory://{key}"
