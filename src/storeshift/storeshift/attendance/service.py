from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, tzinfo
from typing import Callable, Optional, Sequence, Union

from ..approvals.model import LateApprovalRequest
from ..approvals.service import LateApprovalService
from ..common.datetime_utils import now_utc, parse_instant
from ..common.fanout import best_effort
from ..common.keyed_lock import KeyedLock
from ..common.validators import optional_text, require_non_empty
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.enums import PunchStatus, PunchType
from ..core.exceptions import AuthorizationError, StorageError, ValidationError
from ..notifications.service import NotificationService
from ..realtime.broadcaster import Broadcaster
from ..users.repository import UserRepository
from .factory import PunchStrategyFactory
from .model import AttendanceRecord, Punch
from .repository import AttendanceRepository
from .time_policy import StatusInfo

logger = logging.getLogger(__name__)


def parse_punch_type(value: Union[str, PunchType, None]) -> PunchType:
    text = require_non_empty(value.value if isinstance(value, PunchType) else value, "type")
    try:
        return PunchType(text.upper())
    except ValueError:
        raise ValidationError(f"Unknown punch type: {text}")


class AttendanceService:
    """Punch state machine and attendance queries.

    Every read-modify-write of a day's record runs under a per-(user, date)
    lock so concurrent punches are appended one after the other.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        late_approvals: LateApprovalService,
        notifications: NotificationService,
        broadcaster: Broadcaster,
        locks: KeyedLock,
        *,
        store_tz: tzinfo,
        strategy_factory: Optional[PunchStrategyFactory] = None,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._attendance = attendance
        self._users = users
        self._late_approvals = late_approvals
        self._notifications = notifications
        self._broadcaster = broadcaster
        self._locks = locks
        self._tz = store_tz
        self._factory = strategy_factory or PunchStrategyFactory()
        self._clock = clock

    def local_date(self, instant: datetime) -> date:
        return instant.astimezone(self._tz).date()

    def _resolve_time(self, custom_time: Union[str, datetime, None], now: datetime) -> datetime:
        if custom_time is None or custom_time == "":
            return now
        if isinstance(custom_time, datetime):
            return custom_time if custom_time.tzinfo else custom_time.replace(tzinfo=self._tz)
        try:
            return parse_instant(str(custom_time), self._tz)
        except ValueError:
            raise ValidationError(f"Invalid customTime: {custom_time}")

    def submit_punch(
        self,
        user_id: Optional[str],
        punch_type: Union[str, PunchType, None],
        *,
        manual: bool = False,
        manual_actor: Optional[str] = None,
        reason: Optional[str] = None,
        custom_time: Union[str, datetime, None] = None,
        selfie_ref: Optional[str] = None,
        location_ref: Optional[str] = None,
    ) -> AttendanceRecord:
        user_id = require_non_empty(user_id, "userId")
        kind = parse_punch_type(punch_type)
        now = self._clock()
        punch_time = self._resolve_time(custom_time, now)
        local_time = punch_time.astimezone(self._tz)
        work_date = local_time.date()
        reason = optional_text(reason)

        with self._locks.hold((user_id, work_date)):
            record = self._attendance.get_for_user_and_date(user_id, work_date)
            is_new = record is None
            if is_new:
                record = AttendanceRecord(attendance_id=str(uuid.uuid4()), user_id=user_id, work_date=work_date)

            check_in = record.first_punch(PunchType.IN)
            check_in_local = check_in.timestamp.astimezone(self._tz) if check_in else None
            info = self._factory.punch_status(kind, local_time, check_in_local)

            approval = None
            if kind == PunchType.IN and info.status == PunchStatus.LATE and (info.minutes_diff or 0) > 0:
                approval = self._open_late_approval(record, punch_time, info)

            punch = Punch(
                timestamp=punch_time,
                type=kind,
                manual=bool(manual),
                manual_actor=optional_text(manual_actor) if manual else None,
                reason=reason,
                classification=info.status,
                classification_detail=info.message or None,
                late_approval_id=approval.approval_id if approval else None,
                late_approval_status=approval.status if approval else None,
                selfie_ref=optional_text(selfie_ref),
                location_ref=optional_text(location_ref),
            )
            record = record.append(punch, now=now)
            try:
                self._persist(record, is_new=is_new)
            except Exception:
                if approval:
                    approval_id = approval.approval_id
                    best_effort(lambda: self._late_approvals.discard(approval_id), label="discard late approval")
                raise

        logger.info(
            f"Punch {kind.value} for {user_id} on {work_date} at {local_time:%H:%M}"
            f"{f' ({info.message})' if info.message else ''}"
        )

        # Side effects run once the punch is saved and the lock is released.
        if approval and approval.is_pending:
            best_effort(lambda: self._late_approvals.announce(approval), label="announce late approval")
        elif not punch.manual:
            self._notify_admins(record, punch, local_time)
        best_effort(lambda: self._broadcaster.attendance_update(record.to_json()), label="broadcast attendance")
        return record

    def _persist(self, record: AttendanceRecord, *, is_new: bool) -> None:
        if is_new:
            self._attendance.create(record)
            logger.debug(f"Attendance {record.attendance_id} created for {record.user_id} on {record.work_date}")
        elif not self._attendance.save_punches(record):
            raise StorageError("Failed to update attendance")

    def _open_late_approval(
        self, record: AttendanceRecord, punch_time: datetime, info: StatusInfo
    ) -> Optional[LateApprovalRequest]:
        try:
            approval = self._late_approvals.open_for_late_punch(
                user_id=record.user_id,
                attendance_id=record.attendance_id,
                punch_time=punch_time,
                late_by_minutes=int(info.minutes_diff or 0),
                work_date=record.work_date,
            )
        except Exception as ex:
            # The punch is recorded even when the approval request cannot be.
            logger.error(f"Failed to create late approval for {record.user_id}: {ex!r}", exc_info=True)
            return None
        return approval

    def _notify_admins(self, record: AttendanceRecord, punch: Punch, local_time: datetime) -> None:
        user = None
        try:
            user = self._users.get_by_id(record.user_id)
        except Exception as ex:
            logger.warning(f"Unable to resolve user {record.user_id}: {ex!r}")
        name = user.name if user else record.user_id
        at = local_time.strftime("%I:%M %p")
        detail = f" - {punch.classification_detail}" if punch.classification_detail else ""

        if punch.type == PunchType.IN:
            title, body = f"{name} checked in", f"{name} checked in at {at}{detail}"
        elif punch.type == PunchType.OUT:
            title, body = f"{name} checked out", f"{name} checked out at {at}{detail}"
        elif punch.type == PunchType.BREAK_START:
            title = f"{name} started break"
            body = f"{name} started break at {at}{f' - Reason: {punch.reason}' if punch.reason else ''}"
        else:
            title, body = f"{name} ended break", f"{name} ended break at {at}"

        self._notifications.notify_admins(
            actor_id=record.user_id,
            title=title,
            body=body,
            data={
                "attendanceId": record.attendance_id,
                "punchType": punch.type.value,
                "punchTime": punch.to_dict()["timestamp"],
                "status": punch.classification.value if punch.classification else None,
                "reason": punch.reason,
            },
        )

    def get_today(self, user_id: str) -> Optional[AttendanceRecord]:
        user_id = require_non_empty(user_id, "userId")
        record = self._attendance.get_for_user_and_date(user_id, self.local_date(self._clock()))
        return record.recompute(now=self._clock()) if record else None

    def get_history(self, user_id: str, *, limit: Optional[int] = None) -> Sequence[AttendanceRecord]:
        user_id = require_non_empty(user_id, "userId")
        limit = limit if limit and limit > 0 else DEFAULT_HISTORY_LIMIT
        return self._attendance.get_recent_for_user(user_id, limit)

    def list_all(self) -> Sequence[AttendanceRecord]:
        return self._attendance.list_all()

    def clear_all(self, *, admin_id: Optional[str] = None) -> int:
        """Delete every attendance record; when `admin_id` is given it must be an admin."""
        admin_id = optional_text(admin_id)
        if admin_id and not self._users.get_admin(admin_id):
            raise AuthorizationError("Only admins can clear attendance records")

        deleted = self._attendance.delete_all()
        logger.warning(f"All attendance records cleared ({deleted}) by {admin_id or 'unknown'}")
        best_effort(lambda: self._broadcaster.attendance_update({"cleared": True}), label="broadcast attendance cleared")
        return deleted
