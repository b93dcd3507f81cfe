from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Callable, Optional

from .approvals.repository import DocumentLateApprovalRepository, DocumentLatePermissionRepository
from .approvals.service import LateApprovalService, LatePermissionService
from .attendance.repository import DocumentAttendanceRepository
from .attendance.service import AttendanceService
from .common.datetime_utils import now_utc
from .common.fanout import FanOut
from .common.keyed_lock import KeyedLock
from .core.constants import DEFAULT_FANOUT_WORKERS
from .database.connection import DBConfig, DatabaseConnection
from .database.document_store import DocumentStore
from .database.memory_document_store import InMemoryDocumentStore
from .database.mysql_document_store import MySQLDocumentStore
from .notifications.push import PushSender
from .notifications.repository import DocumentNotificationRepository
from .notifications.service import NotificationService
from .realtime.broadcaster import Broadcaster
from .realtime.registry import ConnectionRegistry
from .users.repository import DocumentUserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Container:
    store: DocumentStore
    registry: ConnectionRegistry
    broadcaster: Broadcaster
    fanout: FanOut
    locks: KeyedLock

    users_repo: DocumentUserRepository
    attendance_repo: DocumentAttendanceRepository
    approvals_repo: DocumentLateApprovalRepository
    permissions_repo: DocumentLatePermissionRepository
    notifications_repo: DocumentNotificationRepository

    notification_service: NotificationService
    late_approval_service: LateApprovalService
    late_permission_service: LatePermissionService
    attendance_service: AttendanceService

    def close(self) -> None:
        """Tear down process-wide resources (server shutdown)."""
        self.registry.close()
        self.fanout.close()
        self.store.close()
        logger.info("Container closed.")


def build_store(backend: str, db_config: Optional[dict] = None) -> DocumentStore:
    backend = (backend or "mysql").lower()
    if backend == "memory":
        logger.warning("Using the in-memory document store; data is lost on restart.")
        return InMemoryDocumentStore()
    if backend == "mysql":
        conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config or {}))
        return MySQLDocumentStore(conn)
    raise ValueError(f"Unknown STORE_BACKEND: {backend!r}")


def build_container(
    *,
    store: DocumentStore,
    store_tz: tzinfo,
    fanout_workers: int = DEFAULT_FANOUT_WORKERS,
    push_sender: Optional[PushSender] = None,
    clock: Callable[[], datetime] = now_utc,
) -> Container:
    registry = ConnectionRegistry()
    broadcaster = Broadcaster(registry)
    fanout = FanOut(max_workers=int(fanout_workers))
    locks = KeyedLock()

    users_repo = DocumentUserRepository(store)
    attendance_repo = DocumentAttendanceRepository(store)
    approvals_repo = DocumentLateApprovalRepository(store)
    permissions_repo = DocumentLatePermissionRepository(store)
    notifications_repo = DocumentNotificationRepository(store)

    notification_service = NotificationService(
        notifications_repo,
        users_repo,
        broadcaster,
        fanout,
        push_sender=push_sender,
        clock=clock,
    )
    late_approval_service = LateApprovalService(
        approvals_repo,
        permissions_repo,
        attendance_repo,
        users_repo,
        notification_service,
        broadcaster,
        locks,
        clock=clock,
    )
    late_permission_service = LatePermissionService(
        permissions_repo,
        users_repo,
        notification_service,
        broadcaster,
        locks,
        clock=clock,
    )
    attendance_service = AttendanceService(
        attendance_repo,
        users_repo,
        late_approval_service,
        notification_service,
        broadcaster,
        locks,
        store_tz=store_tz,
        clock=clock,
    )

    return Container(
        store=store,
        registry=registry,
        broadcaster=broadcaster,
        fanout=fanout,
        locks=locks,
        users_repo=users_repo,
        attendance_repo=attendance_repo,
        approvals_repo=approvals_repo,
        permissions_repo=permissions_repo,
        notifications_repo=notifications_repo,
        notification_service=notification_service,
        late_approval_service=late_approval_service,
        late_permission_service=late_permission_service,
        attendance_service=attendance_service,
    )
