from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from ..common.datetime_utils import format_instant, parse_instant


@dataclass(frozen=True)
class Notification:
    """In-app notification addressed to `target_user_id`, triggered by `user_id`."""

    notification_id: str
    type: str
    title: str
    message: str
    target_user_id: str
    created_at: datetime
    user_id: Optional[str] = None
    read: bool = False
    data: Dict[str, Any] = field(default_factory=dict)

    def to_document(self) -> Dict[str, Any]:
        return {
            "id": self.notification_id,
            "type": self.type,
            "title": self.title,
            "message": self.message,
            "userId": self.user_id,
            "targetUserId": self.target_user_id,
            "read": self.read,
            "createdAt": format_instant(self.created_at),
            "data": dict(self.data),
        }

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Notification":
        return cls(
            notification_id=str(doc["id"]),
            type=str(doc.get("type", "")),
            title=str(doc.get("title", "")),
            message=str(doc.get("message", "")),
            user_id=doc.get("userId"),
            target_user_id=str(doc.get("targetUserId", "")),
            read=bool(doc.get("read", False)),
            created_at=parse_instant(doc["createdAt"]),
            data=dict(doc.get("data") or {}),
        )
