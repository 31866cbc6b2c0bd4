"""
Record stores for document metadata.

Records are plain dicts keyed by ``"id"``.
"""

from __future__ import annotations

import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Union

Record = Dict[str, Any]


class RecordStore(ABC):
    """Abstract keyed record store."""

    @abstractmethod
    def get_all(self) -> List[Record]:
        """All stored records."""
        ...

    @abstractmethod
    def put(self, record: Record) -> None:
        """Insert or replace a record by its id."""
        ...


class MemoryRecordStore(RecordStore):
    """In-memory store."""

    def __init__(self):
        self._records: Dict[str, Record] = {}

    def get_all(self) -> List[Record]:
        return [dict(r) for r in self._records.values()]

    def put(self, record: Record) -> None:
        self._records[record["id"]] = dict(record)


class JsonRecordStore(RecordStore):
    """Store backed by a single JSON file.

    Writes go to a temporary file that replaces the original, so a failed
    write leaves the previous contents intact.
    """

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> Dict[str, Record]:
        if not self._path.exists():
            return {}
        with open(self._path, "r", encoding="utf-8") as fh:
            data = json.load(fh) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Unexpected store contents in {self._path}")
        return data

    def get_all(self) -> List[Record]:
        return list(self._read().values())

    def put(self, record: Record) -> None:
        records = self._read()
        records[record["id"]] = record
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=str(self._path.parent), suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(records, fh, indent=2)
            os.replace(tmp, self._path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise
