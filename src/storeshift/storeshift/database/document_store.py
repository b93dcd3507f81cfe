"""Generic document store interface.

Documents are plain JSON-compatible dicts with a string `id`. Filters are
equality matches on top-level or dotted fields (`{"data.approvalId": "..."}`);
patches set top-level fields.
"""
from __future__ import annotations

import re
from typing import Any, Dict, Mapping, Optional, Protocol, Sequence, Tuple

from ..core.exceptions import ValidationError

Document = Dict[str, Any]
Filter = Mapping[str, Any]
Sort = Sequence[Tuple[str, int]]

ASCENDING = 1
DESCENDING = -1

_FIELD_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*$")
_MISSING = object()


class DocumentStore(Protocol):
    def find_one(self, collection: str, filter: Filter) -> Optional[Document]:
        raise NotImplementedError

    def find(
        self,
        collection: str,
        filter: Filter,
        *,
        sort: Optional[Sort] = None,
        limit: Optional[int] = None,
    ) -> Sequence[Document]:
        raise NotImplementedError

    def insert_one(self, collection: str, doc: Document) -> None:
        raise NotImplementedError

    def update_one(self, collection: str, filter: Filter, patch: Mapping[str, Any]) -> int:
        """Set `patch` fields on the first match; return the matched count (0 or 1)."""

        raise NotImplementedError

    def update_many(self, collection: str, filter: Filter, patch: Mapping[str, Any]) -> int:
        raise NotImplementedError

    def delete_one(self, collection: str, filter: Filter) -> int:
        raise NotImplementedError

    def delete_many(self, collection: str, filter: Filter) -> int:
        raise NotImplementedError

    def count(self, collection: str, filter: Filter) -> int:
        raise NotImplementedError

    def close(self) -> None:
        raise NotImplementedError


def check_name(name: str) -> str:
    """Reject collection/field names that are not plain identifiers."""
    if not _FIELD_RE.match(name or ""):
        raise ValidationError(f"Invalid field or collection name: {name!r}")
    return name


def get_path(doc: Mapping[str, Any], path: str) -> Any:
    current: Any = doc
    for part in path.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return _MISSING
        current = current[part]
    return current


def matches(doc: Mapping[str, Any], filter: Filter) -> bool:
    for path, expected in filter.items():
        actual = get_path(doc, path)
        if actual is _MISSING:
            if expected is not None:
                return False
            continue
        if actual != expected:
            return False
    return True


def sort_key(field: str):
    def key(doc: Mapping[str, Any]):
        value = get_path(doc, field)
        # Missing/None sort first in ascending order.
        if value is _MISSING or value is None:
            return (0, "")
        return (1, value)

    return key
