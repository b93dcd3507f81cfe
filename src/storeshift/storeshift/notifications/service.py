from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from ..common.datetime_utils import now_utc
from ..common.fanout import FanOut, best_effort
from ..common.validators import require_non_empty
from ..core.constants import DEFAULT_NOTIFICATION_LIMIT
from ..core.enums import NotificationType
from ..core.exceptions import NotFoundError
from ..realtime.broadcaster import Broadcaster
from ..users.repository import UserRepository
from .model import Notification
from .push import LoggingPushSender, PushSender
from .repository import NotificationRepository

logger = logging.getLogger(__name__)


class NotificationService:
    """Create in-app notifications, push them, and keep read flags in sync."""

    def __init__(
        self,
        notifications: NotificationRepository,
        users: UserRepository,
        broadcaster: Broadcaster,
        fanout: FanOut,
        *,
        push_sender: Optional[PushSender] = None,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._notifications = notifications
        self._users = users
        self._broadcaster = broadcaster
        self._fanout = fanout
        self._push = push_sender or LoggingPushSender()
        self._clock = clock

    def notify(
        self,
        target_user_id: str,
        title: str,
        body: str,
        data: Optional[Mapping[str, Any]] = None,
        *,
        notification_type: NotificationType = NotificationType.PUNCH,
        actor_id: Optional[str] = None,
    ) -> Notification:
        notification = Notification(
            notification_id=str(uuid.uuid4()),
            type=notification_type.value,
            title=title,
            message=body,
            user_id=actor_id,
            target_user_id=target_user_id,
            created_at=self._clock(),
            data={k: v for k, v in (data or {}).items() if v is not None},
        )
        self._notifications.create(notification)
        best_effort(
            lambda: self._push.send(target_user_id, title, body, notification.data),
            label=f"push to {target_user_id}",
        )
        return notification

    def notify_admins(
        self,
        *,
        actor_id: str,
        title: str,
        body: str,
        data: Optional[Mapping[str, Any]] = None,
        realtime: Optional[Dict[str, Any]] = None,
        notification_type: NotificationType = NotificationType.PUNCH,
    ) -> int:
        """Notify every admin; never raises. Returns the number of admins targeted.

        The admin list is read at call time. `realtime` is the lightweight
        payload pushed to each admin's live connections (defaults to title and
        message).
        """
        try:
            admins = self._users.list_admins()
        except Exception as ex:
            logger.error(f"Unable to load admins for '{title}': {ex!r}")
            return 0
        if not admins:
            logger.debug(f"No admin to notify for '{title}'")
            return 0

        event = realtime or {"type": notification_type.value, "title": title, "message": body}

        def task_for(admin_id: str):
            def task():
                self.notify(admin_id, title, body, data, notification_type=notification_type, actor_id=actor_id)
                self._broadcaster.notification_update(event, admin_id)

            return task

        self._fanout.run([task_for(a.user_id) for a in admins], label=f"notify admins '{title}'")
        return len(admins)

    def mark_read_for_approval(self, approval_id: str) -> List[Notification]:
        """Mark notifications linked to a late approval as read; returns the ones that changed."""
        unread = [n for n in self._notifications.list_for_approval(approval_id) if not n.read]
        if not unread:
            return []
        self._notifications.mark_read_for_approval(approval_id)
        return [replace(n, read=True) for n in unread]

    def list_for_user(
        self,
        user_id: str,
        *,
        unread_only: bool = False,
        limit: int = DEFAULT_NOTIFICATION_LIMIT,
    ) -> Sequence[Notification]:
        user_id = require_non_empty(user_id, "userId")
        return self._notifications.list_for_target(user_id, unread_only=unread_only, limit=limit)

    def mark_read(self, notification_id: str) -> None:
        if not self._notifications.mark_read(notification_id):
            raise NotFoundError("Notification not found")
        best_effort(
            lambda: self._broadcaster.notification_update({"id": notification_id, "read": True}),
            label="broadcast notification read",
        )

    def mark_all_read(self, user_id: str) -> int:
        user_id = require_non_empty(user_id, "userId")
        count = self._notifications.mark_all_read(user_id)
        best_effort(
            lambda: self._broadcaster.notification_update({"userId": user_id, "allRead": True}),
            label="broadcast notifications read",
        )
        return count

    def delete(self, notification_id: str) -> None:
        if not self._notifications.delete(notification_id):
            raise NotFoundError("Notification not found")
        best_effort(
            lambda: self._broadcaster.notification_update({"id": notification_id, "deleted": True}),
            label="broadcast notification deleted",
        )
