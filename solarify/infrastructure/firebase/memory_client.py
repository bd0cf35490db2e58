"""In-process document store with the FirestoreRESTClient API.

Used when DATABASE_BACKEND=memory (local development and tests). Values are
normalized the way the REST round-trip normalizes them (dates become ISO
strings, tuples become lists) so repositories behave the same on both
backends. Queries follow Firestore rules: a filter or order_by on a field
excludes documents that do not have that field.
"""

from __future__ import annotations

import copy
from collections.abc import AsyncIterator
from datetime import date, datetime
from typing import Any

from solarify.infrastructure.firebase._rest_client import (
    DocumentExistsError,
    DocumentSnapshot,
    normalize_direction,
)

_MISSING = object()


def _normalize(value: Any) -> Any:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [_normalize(v) for v in value]
    if isinstance(value, dict):
        return {k: _normalize(v) for k, v in value.items()}
    return value


def _field(doc_id: str, data: dict, path: str) -> Any:
    if path == "__name__":
        return doc_id
    current: Any = data
    for part in path.split("."):
        if not isinstance(current, dict) or part not in current:
            return _MISSING
        current = current[part]
    return current


def _matches(actual: Any, op: str, expected: Any) -> bool:
    if actual is _MISSING:
        return False
    try:
        if op == "==":
            return actual == expected
        if op == "!=":
            return actual is not None and actual != expected
        if op == "<":
            return actual < expected
        if op == "<=":
            return actual <= expected
        if op == ">":
            return actual > expected
        if op == ">=":
            return actual >= expected
        if op == "in":
            return actual in expected
        if op == "not-in":
            return actual is not None and actual not in expected
        if op in ("array-contains", "array_contains"):
            return isinstance(actual, list) and expected in actual
        if op in ("array-contains-any", "array_contains_any"):
            return isinstance(actual, list) and any(v in actual for v in expected)
    except TypeError:
        # Firestore never matches across value types.
        return False
    raise ValueError(f"Unsupported filter operator: {op!r}")


class InMemoryDocumentReference:
    """Reference to a single in-memory document."""

    def __init__(self, store: dict[str, dict], document_id: str) -> None:
        self._store = store
        self.id = document_id

    async def set(self, data: dict[str, Any]) -> None:
        self._store[self.id] = _normalize(copy.deepcopy(data))

    async def update(self, data: dict[str, Any]) -> None:
        """Merge top-level fields; a missing document stays missing (REST returns 404)."""
        if self.id not in self._store:
            return
        self._store[self.id].update(_normalize(copy.deepcopy(data)))

    async def increment(self, field: str, amount: int | float) -> None:
        doc = self._store.setdefault(self.id, {})
        doc[field] = (doc.get(field) or 0) + amount

    async def get(self) -> DocumentSnapshot | None:
        data = self._store.get(self.id)
        if data is None:
            return None
        return DocumentSnapshot(self.id, copy.deepcopy(data))

    async def delete(self) -> None:
        self._store.pop(self.id, None)


class InMemoryQuery:
    """Chainable query evaluated against the collection dict on stream()."""

    def __init__(self, store: dict[str, dict]) -> None:
        self._store = store
        self._filters: list[tuple[str, str, Any]] = []
        self._order_by: list[tuple[str, str]] = []
        self._offset = 0
        self._limit = 100

    def where(self, field: str, op: str, value: Any) -> "InMemoryQuery":
        self._filters.append((field, op, _normalize(value)))
        return self

    def order_by(self, field: str, direction: str = "ASCENDING") -> "InMemoryQuery":
        self._order_by.append((field, normalize_direction(direction)))
        return self

    def offset(self, n: int) -> "InMemoryQuery":
        self._offset = n
        return self

    def limit(self, n: int) -> "InMemoryQuery":
        self._limit = n
        return self

    async def stream(self) -> AsyncIterator[DocumentSnapshot]:
        rows = [
            (doc_id, data)
            for doc_id, data in list(self._store.items())
            if all(_matches(_field(doc_id, data, f), op, v) for f, op, v in self._filters)
            and all(_field(doc_id, data, f) is not _MISSING for f, _ in self._order_by)
        ]
        rows.sort(key=lambda row: row[0])
        # Stable sorts applied last-key-first give a multi-key ordering.
        for field, direction in reversed(self._order_by):
            rows.sort(
                key=lambda row: (
                    _field(row[0], row[1], field) is not None,
                    _field(row[0], row[1], field),
                ),
                reverse=direction == "DESCENDING",
            )
        end = self._offset + self._limit if self._limit else None
        for doc_id, data in rows[self._offset:end]:
            yield DocumentSnapshot(doc_id, copy.deepcopy(data))


class InMemoryCollectionReference:
    """Collection of documents keyed by id."""

    def __init__(self, store: dict[str, dict]) -> None:
        self._store = store

    def document(self, document_id: str) -> InMemoryDocumentReference:
        return InMemoryDocumentReference(self._store, document_id)

    async def create(self, document_id: str, data: dict[str, Any]) -> None:
        if document_id in self._store:
            raise DocumentExistsError("Document already exists")
        self._store[document_id] = _normalize(copy.deepcopy(data))

    def where(self, field: str, op: str, value: Any) -> InMemoryQuery:
        return InMemoryQuery(self._store).where(field, op, value)

    def order_by(self, field: str, direction: str = "ASCENDING") -> InMemoryQuery:
        return InMemoryQuery(self._store).order_by(field, direction)

    async def stream(self) -> AsyncIterator[DocumentSnapshot]:
        for doc_id, data in list(self._store.items()):
            yield DocumentSnapshot(doc_id, copy.deepcopy(data))


class InMemoryFirestoreClient:
    """Drop-in replacement for FirestoreRESTClient backed by nested dicts."""

    project_id = "memory"

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, dict]] = {}

    def collection(self, collection_id: str) -> InMemoryCollectionReference:
        return InMemoryCollectionReference(self._collections.setdefault(collection_id, {}))

    async def ping(self) -> None:
        return None

    async def aclose(self) -> None:
        return None

    def clear(self) -> None:
        """Drop every collection (test isolation)."""
        self._collections.clear()
        self._collections.clear()
