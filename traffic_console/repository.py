"""
In-memory record storage with a trash bin.

The query layer only ever sees :meth:`InMemoryRepository.snapshot` deep copies;
all mutation goes through the repository methods.
"""

import copy
import threading
from typing import Any, Dict, Iterable, List, Optional


class InMemoryRepository:
    """Ordered records keyed by their ``id`` field, plus soft-deleted ones."""

    def __init__(self, records: Iterable[Dict[str, Any]] = ()):
        self._records: List[Dict[str, Any]] = [copy.deepcopy(dict(r)) for r in records]
        self._trash: List[Dict[str, Any]] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._records)

    @staticmethod
    def _index(rows: List[Dict[str, Any]], record_id: str) -> Optional[int]:
        for i, row in enumerate(rows):
            if str(row.get("id")) == str(record_id):
                return i
        return None

    def snapshot(self) -> List[Dict[str, Any]]:
        with self._lock:
            return copy.deepcopy(self._records)

    def trashed(self) -> List[Dict[str, Any]]:
        with self._lock:
            return copy.deepcopy(self._trash)

    def get(self, record_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            i = self._index(self._records, record_id)
            return copy.deepcopy(self._records[i]) if i is not None else None

    def get_trashed(self, record_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            i = self._index(self._trash, record_id)
            return copy.deepcopy(self._trash[i]) if i is not None else None

    def add(self, record: Dict[str, Any]) -> Dict[str, Any]:
        if "id" not in record:
            raise ValueError("record must have an id")
        with self._lock:
            if self._index(self._records, record["id"]) is not None:
                raise ValueError(f"duplicate id {record['id']}")
            self._records.append(copy.deepcopy(record))
        return copy.deepcopy(record)

    def update(self, record_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        with self._lock:
            i = self._index(self._records, record_id)
            if i is None:
                return None
            updated = {**self._records[i], **copy.deepcopy(changes)}
            self._records[i] = updated
            return copy.deepcopy(updated)

    def remove(self, record_id: str) -> Optional[Dict[str, Any]]:
        """Move a record to the trash and return it."""
        with self._lock:
            i = self._index(self._records, record_id)
            if i is None:
                return None
            row = self._records.pop(i)
            self._trash.append(row)
            return copy.deepcopy(row)

    def restore(self, record_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            i = self._index(self._trash, record_id)
            if i is None:
                return None
            row = self._trash.pop(i)
            self._records.append(row)
            return copy.deepcopy(row)
