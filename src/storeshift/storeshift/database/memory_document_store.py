from __future__ import annotations

import copy
import threading
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..core.exceptions import StorageError
from .document_store import Document, Filter, Sort, check_name, matches, sort_key


class InMemoryDocumentStore:
    """Process-local document store.

    Used by the `memory` backend (development, demos) and by the test-suite.
    Documents are deep-copied on the way in and out so callers never share
    state with the store.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._collections: Dict[str, List[Document]] = {}

    def _docs(self, collection: str) -> List[Document]:
        return self._collections.setdefault(check_name(collection), [])

    def find_one(self, collection: str, filter: Filter) -> Optional[Document]:
        with self._lock:
            for doc in self._docs(collection):
                if matches(doc, filter):
                    return copy.deepcopy(doc)
        return None

    def find(
        self,
        collection: str,
        filter: Filter,
        *,
        sort: Optional[Sort] = None,
        limit: Optional[int] = None,
    ) -> Sequence[Document]:
        with self._lock:
            found = [copy.deepcopy(d) for d in self._docs(collection) if matches(d, filter)]

        # Apply sort keys from the least significant to the most significant.
        for field, direction in reversed(list(sort or [])):
            found.sort(key=sort_key(check_name(field)), reverse=direction < 0)
        if limit is not None:
            found = found[: max(int(limit), 0)]
        return found

    def insert_one(self, collection: str, doc: Document) -> None:
        if not doc.get("id"):
            raise StorageError("Document id is required")
        with self._lock:
            docs = self._docs(collection)
            if any(d.get("id") == doc["id"] for d in docs):
                raise StorageError(f"Duplicate id {doc['id']!r} in {collection}")
            docs.append(copy.deepcopy(doc))

    def _update(self, collection: str, filter: Filter, patch: Mapping[str, Any], *, many: bool) -> int:
        updated = 0
        with self._lock:
            for doc in self._docs(collection):
                if matches(doc, filter):
                    for field, value in patch.items():
                        doc[check_name(field)] = copy.deepcopy(value)
                    updated += 1
                    if not many:
                        break
        return updated

    def update_one(self, collection: str, filter: Filter, patch: Mapping[str, Any]) -> int:
        return self._update(collection, filter, patch, many=False)

    def update_many(self, collection: str, filter: Filter, patch: Mapping[str, Any]) -> int:
        return self._update(collection, filter, patch, many=True)

    def delete_one(self, collection: str, filter: Filter) -> int:
        with self._lock:
            docs = self._docs(collection)
            for index, doc in enumerate(docs):
                if matches(doc, filter):
                    del docs[index]
                    return 1
        return 0

    def delete_many(self, collection: str, filter: Filter) -> int:
        with self._lock:
            docs = self._docs(collection)
            kept = [d for d in docs if not matches(d, filter)]
            removed = len(docs) - len(kept)
            docs[:] = kept
        return removed

    def count(self, collection: str, filter: Filter) -> int:
        with self._lock:
            return sum(1 for d in self._docs(collection) if matches(d, filter))

    def close(self) -> None:
        with self._lock:
            self._collections.clear()
