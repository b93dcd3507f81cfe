from __future__ import annotations

import logging
import re
import uuid
from datetime import date, datetime
from typing import Callable, Optional, Sequence, Union

from ..attendance.repository import AttendanceRepository
from ..attendance.time_policy import format_minutes
from ..common.datetime_utils import format_instant, now_utc, parse_iso_date
from ..common.fanout import best_effort
from ..common.keyed_lock import KeyedLock
from ..common.validators import optional_text, require_non_empty
from ..core.constants import DEFAULT_APPROVAL_LIST_LIMIT
from ..core.enums import NotificationType, RequestStatus
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..notifications.service import NotificationService
from ..realtime.broadcaster import Broadcaster
from ..users.repository import UserRepository
from .model import LateApprovalRequest, LatePermission
from .repository import LateApprovalRepository, LatePermissionRepository

logger = logging.getLogger(__name__)

_HHMM_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

DECISIONS = (RequestStatus.APPROVED, RequestStatus.REJECTED)


def parse_decision(value: Union[str, RequestStatus, None]) -> RequestStatus:
    """Admin decisions are limited to approved/rejected."""
    try:
        status = RequestStatus(value)
    except ValueError:
        status = None
    if status not in DECISIONS:
        raise ValidationError('Invalid status. Must be "approved" or "rejected"')
    return status


def _as_date(value: Union[str, date, None]) -> date:
    if isinstance(value, date):
        return value
    text = require_non_empty(value, "date")
    try:
        return parse_iso_date(text)
    except ValueError:
        raise ValidationError("date must be YYYY-MM-DD")


class _UserNames:
    def __init__(self, users: UserRepository):
        self._users = users

    def display_name(self, user_id: str) -> str:
        try:
            user = self._users.get_by_id(user_id)
        except Exception as ex:
            logger.warning(f"Unable to resolve user {user_id}: {ex!r}")
            return user_id
        return user.name if user else user_id


class LateApprovalService(_UserNames):
    """Late-arrival approval workflow: pending -> approved | rejected.

    Requests are opened by the punch flow; admins decide them. A request is
    created already approved when the user holds an approved late permission
    for the day.
    """

    def __init__(
        self,
        approvals: LateApprovalRepository,
        permissions: LatePermissionRepository,
        attendance: AttendanceRepository,
        users: UserRepository,
        notifications: NotificationService,
        broadcaster: Broadcaster,
        locks: KeyedLock,
        *,
        clock: Callable[[], datetime] = now_utc,
    ):
        super().__init__(users)
        self._approvals = approvals
        self._permissions = permissions
        self._attendance = attendance
        self._notifications = notifications
        self._broadcaster = broadcaster
        self._locks = locks
        self._clock = clock

    def open_for_late_punch(
        self,
        *,
        user_id: str,
        attendance_id: str,
        punch_time: datetime,
        late_by_minutes: int,
        work_date: date,
    ) -> LateApprovalRequest:
        """Store the approval request for a late IN punch.

        Admins are not told here; call `announce` once the punch is saved.
        """
        permission = self._permissions.find_for_user_and_date(user_id, work_date, status=RequestStatus.APPROVED)

        approval = LateApprovalRequest(
            approval_id=str(uuid.uuid4()),
            user_id=user_id,
            attendance_id=attendance_id,
            punch_ref=format_instant(punch_time),
            work_date=work_date,
            punch_time=punch_time,
            late_by_minutes=int(late_by_minutes),
            has_permission=permission is not None,
            permission_id=permission.permission_id if permission else None,
            status=RequestStatus.APPROVED if permission else RequestStatus.PENDING,
            requested_at=self._clock(),
        )
        self._approvals.create(approval)

        if permission:
            logger.info(f"Late arrival of {user_id} on {work_date} auto-approved by permission {permission.permission_id}")
        return approval

    def announce(self, approval: LateApprovalRequest) -> int:
        """Notify every admin about a pending approval; returns the admins targeted."""
        if not approval.is_pending:
            return 0
        name = self.display_name(approval.user_id)
        title = "Late Arrival - Approval Required"
        return self._notifications.notify_admins(
            actor_id=approval.user_id,
            title=title,
            body=f"{name} arrived {format_minutes(approval.late_by_minutes)} late and needs approval",
            data={
                "type": "lateApproval",
                "approvalId": approval.approval_id,
                "attendanceId": approval.attendance_id,
                "lateByMinutes": approval.late_by_minutes,
            },
            realtime={"type": "lateApproval", "title": title, "message": f"{name} arrived late and needs approval"},
            notification_type=NotificationType.LATE_APPROVAL,
        )

    def discard(self, approval_id: str) -> None:
        """Remove a request whose punch could not be saved."""
        if self._approvals.delete(approval_id):
            logger.warning(f"Late approval {approval_id} discarded: its punch was not saved")

    def decide(
        self,
        approval_id: str,
        *,
        status: Union[str, RequestStatus, None],
        approved_by: Optional[str] = None,
        rejection_reason: Optional[str] = None,
        admin_notes: Optional[str] = None,
    ) -> LateApprovalRequest:
        decision = parse_decision(status)
        approval = self._approvals.get(approval_id)
        if not approval:
            raise NotFoundError("Approval not found")
        if not approval.is_pending:
            raise ConflictError(f"Approval already {approval.status.value}")

        decided = self._approvals.decide(
            approval_id,
            status=decision,
            approved_by=optional_text(approved_by),
            approved_at=self._clock(),
            rejection_reason=optional_text(rejection_reason),
            admin_notes=optional_text(admin_notes),
        )
        if not decided:
            raise ConflictError("Approval was decided concurrently")

        updated = self._approvals.get(approval_id)
        if not updated:
            raise NotFoundError("Approval not found")
        logger.info(f"Late approval {approval_id} {decision.value} by {updated.approved_by}")

        if decision == RequestStatus.APPROVED:
            best_effort(lambda: self._tag_punch(updated), label=f"tag punch of approval {approval_id}")

        best_effort(
            lambda: self._broadcaster.late_approval_update(updated.to_document()),
            label="broadcast late approval",
        )
        best_effort(lambda: self._release_notifications(approval_id), label="mark approval notifications read")
        return updated

    def _tag_punch(self, approval: LateApprovalRequest) -> None:
        with self._locks.hold((approval.user_id, approval.work_date)):
            record = self._attendance.get_by_id(approval.attendance_id)
            if not record:
                logger.warning(f"Attendance {approval.attendance_id} of approval {approval.approval_id} is gone")
                return
            record, changed = record.mark_late_approval(approval.approval_id, RequestStatus.APPROVED)
            if not changed:
                return
            self._attendance.save_punches(record)
        self._broadcaster.attendance_update(record.to_json())

    def _release_notifications(self, approval_id: str) -> None:
        for notification in self._notifications.mark_read_for_approval(approval_id):
            self._broadcaster.notification_update(
                {
                    "id": notification.notification_id,
                    "read": True,
                    "userId": notification.user_id,
                    "targetUserId": notification.target_user_id,
                }
            )

    def get(self, approval_id: str) -> LateApprovalRequest:
        approval = self._approvals.get(approval_id)
        if not approval:
            raise NotFoundError("Approval not found")
        return approval

    def list_pending(self) -> Sequence[LateApprovalRequest]:
        return self._approvals.list_by_status(RequestStatus.PENDING)

    def list_for_user(self, user_id: str, *, limit: int = DEFAULT_APPROVAL_LIST_LIMIT) -> Sequence[LateApprovalRequest]:
        return self._approvals.list_for_user(require_non_empty(user_id, "userId"), limit=limit)


class LatePermissionService(_UserNames):
    """Staff ask in advance to arrive late on a date; admins approve or reject."""

    def __init__(
        self,
        permissions: LatePermissionRepository,
        users: UserRepository,
        notifications: NotificationService,
        broadcaster: Broadcaster,
        locks: KeyedLock,
        *,
        clock: Callable[[], datetime] = now_utc,
    ):
        super().__init__(users)
        self._permissions = permissions
        self._notifications = notifications
        self._broadcaster = broadcaster
        self._locks = locks
        self._clock = clock

    def request(
        self,
        *,
        user_id: Optional[str],
        work_date: Union[str, date, None],
        reason: Optional[str],
        expected_arrival_time: Optional[str] = None,
    ) -> LatePermission:
        user_id = require_non_empty(user_id, "userId")
        on_date = _as_date(work_date)
        reason = require_non_empty(reason, "reason")
        arrival = optional_text(expected_arrival_time)
        if arrival is not None and not _HHMM_RE.match(arrival):
            raise ValidationError("expectedArrivalTime must be HH:MM")

        with self._locks.hold(("permission", user_id, on_date)):
            if self._permissions.find_for_user_and_date(user_id, on_date):
                raise ConflictError("Permission already requested for this date")
            permission = LatePermission(
                permission_id=str(uuid.uuid4()),
                user_id=user_id,
                work_date=on_date,
                requested_at=self._clock(),
                reason=reason,
                expected_arrival_time=arrival,
                status=RequestStatus.PENDING,
            )
            self._permissions.create(permission)

        name = self.display_name(user_id)
        title = "Late Arrival Permission Requested"
        self._notifications.notify_admins(
            actor_id=user_id,
            title=title,
            body=f"{name} requested permission to arrive late on {on_date.isoformat()}",
            data={"type": "latePermission", "permissionId": permission.permission_id, "date": on_date.isoformat()},
            realtime={"type": "latePermission", "title": title, "message": f"{name} requested permission to arrive late"},
            notification_type=NotificationType.LATE_PERMISSION,
        )
        best_effort(
            lambda: self._broadcaster.late_permission_update(permission.to_document()),
            label="broadcast late permission",
        )
        return permission

    def decide(
        self,
        permission_id: str,
        *,
        status: Union[str, RequestStatus, None],
        approved_by: Optional[str] = None,
        rejection_reason: Optional[str] = None,
    ) -> LatePermission:
        decision = parse_decision(status)
        permission = self._permissions.get(permission_id)
        if not permission:
            raise NotFoundError("Permission not found")
        if not permission.is_pending:
            raise ConflictError(f"Permission already {permission.status.value}")

        decided = self._permissions.decide(
            permission_id,
            status=decision,
            approved_by=optional_text(approved_by),
            approved_at=self._clock(),
            rejection_reason=optional_text(rejection_reason),
        )
        if not decided:
            raise ConflictError("Permission was decided concurrently")

        updated = self._permissions.get(permission_id)
        if not updated:
            raise NotFoundError("Permission not found")
        logger.info(f"Late permission {permission_id} {decision.value} by {updated.approved_by}")
        best_effort(
            lambda: self._broadcaster.late_permission_update(updated.to_document()),
            label="broadcast late permission",
        )
        return updated

    def list_for_user(
        self,
        user_id: str,
        *,
        status: Union[str, RequestStatus, None] = None,
        work_date: Union[str, date, None] = None,
    ) -> Sequence[LatePermission]:
        user_id = require_non_empty(user_id, "userId")
        status_filter = None
        if status:
            try:
                status_filter = RequestStatus(status)
            except ValueError:
                raise ValidationError(f"Unknown status: {status}")
        date_filter = _as_date(work_date) if work_date else None
        return self._permissions.list_for_user(user_id, status=status_filter, work_date=date_filter)

    def list_pending(self) -> Sequence[LatePermission]:
        return self._permissions.list_by_status(RequestStatus.PENDING)
