"""
append-only stores for accepted detections.

a store only needs `append(record)`; there is no update or
delete. the scheduler calls it after the chord callback and logs, rather
than propagates, anything it raises.
"""

import json
import os
import threading
from typing import List, Protocol

from ..models import ChordRecord


class ChordStore(Protocol):
    def append(self, record: ChordRecord) -> None: ...


class MemoryChordStore:
    """keeps records in a list; handy for tests and short sessions."""

    def __init__(self):
        self.records: List[ChordRecord] = []

    def append(self, record: ChordRecord) -> None:
        self.records.append(record)

    def for_source(self, source_id: str) -> List[ChordRecord]:
        return [r for r in self.records if r.source_id == source_id]


class JsonlChordStore:
    """appends one JSON object per record to a file."""

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.Lock()
        parent = os.path.dirname(os.path.abspath(path))
        os.makedirs(parent, exist_ok=True)

    def append(self, record: ChordRecord) -> None:
        line = json.dumps(record.to_dict())
        with self._lock, open(self.path, "a", encoding="utf-8") as f:
            f.write(line + "\n")

    def read_all(self) -> List[ChordRecord]:
        if not os.path.exists(self.path):
            return []
        with open(self.path, encoding="utf-8") as f:
            return [ChordRecord(**json.loads(line)) for line in f if line.strip()]
