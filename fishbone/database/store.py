"""
Record Store
============

Key-value storage of whole records keyed by ``id``. Records are loaded and
saved wholesale; there is no partial patch. A ``put`` either replaces the
stored record completely or raises ``PersistenceError`` and leaves the
store as it was.

``JsonRecordStore`` keeps one collection in a JSON file shaped like::

    {"diagrams": [{"id": "...", ...}, ...]}

and rewrites the whole file on every change (temp file + ``os.replace``).
A missing file is created empty on first use.

Usage:
    from fishbone.database.store import JsonRecordStore, DiagramStore

    diagrams = DiagramStore(JsonRecordStore("data/db.json", "diagrams"))
    diagram = diagrams.get(diagram_id)
    diagrams.put(diagram.with_roots(new_roots))
"""

import copy
import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from fishbone.diagram.models import Diagram
from fishbone.errors import PersistenceError

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


class RecordStore(ABC):
    """Whole-record get/put by id."""

    @abstractmethod
    def get(self, record_id: str) -> Optional[Record]:
        ...

    @abstractmethod
    def put(self, record: Record) -> None:
        ...

    @abstractmethod
    def delete(self, record_id: str) -> bool:
        ...

    @abstractmethod
    def all(self) -> List[Record]:
        ...


class JsonRecordStore(RecordStore):
    """One collection in a JSON file, rewritten on every change."""

    def __init__(self, path: Union[str, Path], collection: str):
        self.path = Path(path)
        self.collection = collection
        self._lock = threading.RLock()
        self._records: List[Record] = []
        self._load()

    # ------------------------------------------------------------
    # File I/O
    # ------------------------------------------------------------

    def _load(self):
        if not self.path.exists():
            logger.info("No %s store at %s, creating a new one", self.collection, self.path)
            self._save()
            return

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Failed to load %s store %s: %s", self.collection, self.path, e)
            raise PersistenceError(f"Failed to load {self.collection} store") from e

        self._records = list(data.get(self.collection) or [])
        logger.info("Loaded %d %s from %s", len(self._records), self.collection, self.path)

    def _save(self):
        payload = {self.collection: self._records}
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=str(self.path.parent), prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    json.dump(payload, f, indent=2, ensure_ascii=False)
                os.replace(tmp_name, self.path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.remove(tmp_name)
                raise
        except (OSError, TypeError, ValueError) as e:
            logger.error("Failed to save %s store %s: %s", self.collection, self.path, e)
            raise PersistenceError(f"Failed to save {self.collection}") from e
        logger.debug("Saved %d %s to %s", len(self._records), self.collection, self.path)

    def _index_of(self, record_id: str) -> int:
        for i, record in enumerate(self._records):
            if record.get("id") == record_id:
                return i
        return -1

    # ------------------------------------------------------------
    # RecordStore
    # ------------------------------------------------------------

    def get(self, record_id: str) -> Optional[Record]:
        with self._lock:
            i = self._index_of(record_id)
            return copy.deepcopy(self._records[i]) if i >= 0 else None

    def put(self, record: Record) -> None:
        if not record.get("id"):
            raise PersistenceError("Record has no id")

        with self._lock:
            previous = list(self._records)
            i = self._index_of(record["id"])
            if i >= 0:
                self._records[i] = copy.deepcopy(record)
            else:
                self._records.append(copy.deepcopy(record))
            try:
                self._save()
            except PersistenceError:
                self._records = previous
                raise

    def delete(self, record_id: str) -> bool:
        with self._lock:
            i = self._index_of(record_id)
            if i < 0:
                return False
            previous = list(self._records)
            del self._records[i]
            try:
                self._save()
            except PersistenceError:
                self._records = previous
                raise
            return True

    def all(self) -> List[Record]:
        with self._lock:
            return copy.deepcopy(self._records)


class DiagramStore:
    """Typed access to diagram records."""

    def __init__(self, records: RecordStore):
        self.records = records

    def get(self, diagram_id: str) -> Optional[Diagram]:
        if not diagram_id or not diagram_id.strip():
            return None
        data = self.records.get(diagram_id)
        return Diagram.from_dict(data) if data is not None else None

    def put(self, diagram: Diagram) -> None:
        self.records.put(diagram.to_dict())

    def delete(self, diagram_id: str) -> bool:
        return self.records.delete(diagram_id)

    def all(self) -> List[Diagram]:
        return [Diagram.from_dict(d) for d in self.records.all()]
