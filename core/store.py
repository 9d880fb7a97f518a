# core/store.py

"""
The document store contract consumed by the engine, plus a thread-safe
in-memory implementation.

The engine never talks to a concrete database. View code hands it any object
satisfying `DocumentStore`; tests and local tooling use `InMemoryDocumentStore`.

Records are plain dictionaries. `list()` injects each document's id under the
`"id"` key so callers can keep the identity alongside the fields.
"""

from __future__ import annotations

import copy
import datetime
import threading
from collections.abc import Collection, Mapping
from typing import Any, Protocol, runtime_checkable

from core.keys import join_key
from core.utils import parse_timestamp, to_utc


@runtime_checkable
class DocumentStore(Protocol):
    def get(self, key: str) -> dict | None: ...

    def list(
        self,
        collection: str,
        filters: Mapping[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[dict]: ...

    def list_children(self, key: str) -> list[str]: ...

    def put(self, key: str, record: Mapping[str, Any]) -> None: ...

    def create(self, key: str, record: Mapping[str, Any]) -> bool: ...

    def update(self, key: str, fields: Mapping[str, Any]) -> None: ...

    def increment(self, key: str, field: str, delta: float = 1) -> None: ...


def matches_filters(record: Mapping[str, Any], filters: Mapping[str, Any] | None) -> bool:
    """
    Applies equality filters; a list, tuple or set value means "field in values".
    """
    if not filters:
        return True

    for field, expected in filters.items():
        actual = record.get(field)
        if isinstance(expected, Collection) and not isinstance(expected, (str, bytes)):
            if actual not in expected:
                return False
        elif actual != expected:
            return False

    return True


def order_value(value: Any) -> Any:
    """
    Sort key for `list(order_by=...)`.

    Timestamps in any stored shape (datetime, date, `{seconds, nanoseconds}`)
    compare as UTC instants; other values compare as stored.
    """
    if isinstance(value, (datetime.date, Mapping)):
        resolved = parse_timestamp(value)
        if resolved is not None:
            return to_utc(resolved)

    return value


class InMemoryDocumentStore:
    """
    A dictionary-backed `DocumentStore`.

    Notes:
        - Keys are normalized with `join_key()`, so `"users/a"` and `"users/a/"` are the same document.
        - Every public method holds a single lock, which makes `create()` a true write-if-absent and `increment()` atomic.
        - Records are deep-copied on the way in and out; callers can never mutate stored state by accident.
    """

    def __init__(self, documents: Mapping[str, Mapping[str, Any]] | None = None):
        self._documents: dict[str, dict] = {}
        self._lock = threading.Lock()

        for key, record in (documents or {}).items():
            self.put(key, record)

    # === reads ===

    def get(self, key: str) -> dict | None:
        key = join_key(key)
        with self._lock:
            record = self._documents.get(key)
            return copy.deepcopy(record) if record is not None else None

    def list(
        self,
        collection: str,
        filters: Mapping[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[dict]:
        collection = join_key(collection)
        prefix = f"{collection}/"

        with self._lock:
            records = []
            for key, record in self._documents.items():
                if not key.startswith(prefix):
                    continue

                doc_id = key[len(prefix):]
                if "/" in doc_id:
                    continue

                if matches_filters(record, filters):
                    records.append({**copy.deepcopy(record), "id": doc_id})

        if order_by is not None:
            # documents missing the order field sort last in either direction
            present = [r for r in records if r.get(order_by) is not None]
            missing = [r for r in records if r.get(order_by) is None]
            present.sort(key=lambda r: order_value(r[order_by]), reverse=descending)
            records = present + missing

        return records

    def list_children(self, key: str) -> list[str]:
        prefix = f"{join_key(key)}/"

        with self._lock:
            children = {
                stored_key[len(prefix):].split("/", 1)[0]
                for stored_key in self._documents
                if stored_key.startswith(prefix)
            }

        return sorted(children)

    # === writes ===

    def put(self, key: str, record: Mapping[str, Any]) -> None:
        key = join_key(key)
        with self._lock:
            self._documents[key] = copy.deepcopy(dict(record))

    def create(self, key: str, record: Mapping[str, Any]) -> bool:
        key = join_key(key)
        with self._lock:
            if key in self._documents:
                return False
            self._documents[key] = copy.deepcopy(dict(record))
            return True

    def update(self, key: str, fields: Mapping[str, Any]) -> None:
        key = join_key(key)
        with self._lock:
            if key not in self._documents:
                raise KeyError(f"No document found at '{key}'.")
            self._documents[key].update(copy.deepcopy(dict(fields)))

    def increment(self, key: str, field: str, delta: float = 1) -> None:
        key = join_key(key)
        with self._lock:
            if key not in self._documents:
                raise KeyError(f"No document found at '{key}'.")
            current = self._documents[key].get(field) or 0
            self._documents[key][field] = current + delta

    # === dunder methods ===

    def __len__(self) -> int:
        with self._lock:
            return len(self._documents)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        with self._lock:
            return join_key(key) in self._documents

    def __repr__(self) -> str:
        return f"InMemoryDocumentStore({len(self)} documents)"
