"""
In-memory resource store.

Records are keyed by their integer id. Every operation holds the same lock,
so a reader never sees a record halfway through a write. Records go in and
come out as copies: nothing outside the store keeps a reference to what it
holds.
"""
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from resources_service.models import Resource


class Outcome(str, Enum):
    OK = "ok"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class StoreResult:
    outcome: Outcome
    value: Optional[Resource] = None

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.OK

    @property
    def not_found(self) -> bool:
        return self.outcome is Outcome.NOT_FOUND


NOT_FOUND = StoreResult(Outcome.NOT_FOUND)


class ResourceStore:
    def __init__(self):
        self._items: Dict[int, Resource] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __contains__(self, resource_id: int) -> bool:
        with self._lock:
            return resource_id in self._items

    def put(self, resource_id: int, record: Resource) -> StoreResult:
        """Insert or replace unconditionally (upsert)."""
        stored = record.model_copy(update={"id": resource_id})
        with self._lock:
            self._items[resource_id] = stored
        return StoreResult(Outcome.OK, stored.model_copy())

    def get(self, resource_id: int) -> StoreResult:
        with self._lock:
            record = self._items.get(resource_id)
        if record is None:
            return NOT_FOUND
        return StoreResult(Outcome.OK, record.model_copy())

    def all(self) -> List[Resource]:
        """All records in insertion order; empty list when nothing is stored."""
        with self._lock:
            records = list(self._items.values())
        return [r.model_copy() for r in records]

    def update(self, resource_id: int, record: Resource) -> StoreResult:
        """Replace every field but the id. No-op when the id is absent."""
        with self._lock:
            if resource_id not in self._items:
                return NOT_FOUND
            updated = record.model_copy(update={"id": resource_id})
            self._items[resource_id] = updated
        return StoreResult(Outcome.OK, updated.model_copy())

    def delete(self, resource_id: int) -> StoreResult:
        with self._lock:
            removed = self._items.pop(resource_id, None)
        if removed is None:
            return NOT_FOUND
        return StoreResult(Outcome.OK, removed)
