from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Read-only view of a user document (the users collection is owned elsewhere)."""

    user_id: str
    name: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "User":
        try:
            role = Role(doc.get("role", Role.EMPLOYEE.value))
        except ValueError:
            role = Role.EMPLOYEE
        return cls(user_id=str(doc["id"]), name=str(doc.get("name") or doc["id"]), role=role)
