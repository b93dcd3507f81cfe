from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.constants import USERS
from ..core.enums import Role
from ..database.document_store import ASCENDING, DocumentStore
from .model import User


class UserRepository(Protocol):
    """Repository interface for users.

    Note (DIP): services depend on this interface, not on a concrete store.
    """

    def get_by_id(self, user_id: str) -> Optional[User]:
        raise NotImplementedError

    def get_admin(self, user_id: str) -> Optional[User]:
        raise NotImplementedError

    def list_admins(self) -> Sequence[User]:
        raise NotImplementedError


class DocumentUserRepository(UserRepository):
    def __init__(self, store: DocumentStore):
        self._store = store

    def get_by_id(self, user_id: str) -> Optional[User]:
        doc = self._store.find_one(USERS, {"id": user_id})
        return User.from_document(doc) if doc else None

    def get_admin(self, user_id: str) -> Optional[User]:
        doc = self._store.find_one(USERS, {"id": user_id, "role": Role.ADMIN.value})
        return User.from_document(doc) if doc else None

    def list_admins(self) -> Sequence[User]:
        docs = self._store.find(USERS, {"role": Role.ADMIN.value}, sort=[("name", ASCENDING)])
        return [User.from_document(d) for d in docs]
