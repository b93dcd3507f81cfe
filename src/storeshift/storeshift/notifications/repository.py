from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.constants import NOTIFICATIONS
from ..database.document_store import DESCENDING, DocumentStore
from .model import Notification


class NotificationRepository(Protocol):
    def create(self, notification: Notification) -> None:
        raise NotImplementedError

    def get_by_id(self, notification_id: str) -> Optional[Notification]:
        raise NotImplementedError

    def list_for_target(self, target_user_id: str, *, unread_only: bool = False, limit: int = 50) -> Sequence[Notification]:
        raise NotImplementedError

    def list_for_approval(self, approval_id: str) -> Sequence[Notification]:
        raise NotImplementedError

    def mark_read(self, notification_id: str) -> bool:
        raise NotImplementedError

    def mark_read_for_approval(self, approval_id: str) -> int:
        raise NotImplementedError

    def mark_all_read(self, target_user_id: str) -> int:
        raise NotImplementedError

    def delete(self, notification_id: str) -> bool:
        raise NotImplementedError


class DocumentNotificationRepository(NotificationRepository):
    def __init__(self, store: DocumentStore):
        self._store = store

    def create(self, notification: Notification) -> None:
        self._store.insert_one(NOTIFICATIONS, notification.to_document())

    def get_by_id(self, notification_id: str) -> Optional[Notification]:
        doc = self._store.find_one(NOTIFICATIONS, {"id": notification_id})
        return Notification.from_document(doc) if doc else None

    def list_for_target(self, target_user_id: str, *, unread_only: bool = False, limit: int = 50) -> Sequence[Notification]:
        query = {"targetUserId": target_user_id}
        if unread_only:
            query["read"] = False
        docs = self._store.find(NOTIFICATIONS, query, sort=[("createdAt", DESCENDING)], limit=int(limit))
        return [Notification.from_document(d) for d in docs]

    def list_for_approval(self, approval_id: str) -> Sequence[Notification]:
        docs = self._store.find(NOTIFICATIONS, {"data.approvalId": approval_id})
        return [Notification.from_document(d) for d in docs]

    def mark_read(self, notification_id: str) -> bool:
        return self._store.update_one(NOTIFICATIONS, {"id": notification_id}, {"read": True}) > 0

    def mark_read_for_approval(self, approval_id: str) -> int:
        return self._store.update_many(NOTIFICATIONS, {"data.approvalId": approval_id, "read": False}, {"read": True})

    def mark_all_read(self, target_user_id: str) -> int:
        return self._store.update_many(NOTIFICATIONS, {"targetUserId": target_user_id, "read": False}, {"read": True})

    def delete(self, notification_id: str) -> bool:
        return self._store.delete_one(NOTIFICATIONS, {"id": notification_id}) > 0
