from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Optional

from ..common.datetime_utils import format_instant, parse_instant
from ..core.enums import RequestStatus


def _instant(value: Optional[str]) -> Optional[datetime]:
    return parse_instant(value) if value else None


def _drop_none(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


@dataclass(frozen=True)
class LateApprovalRequest:
    """Approval request for a late IN punch.

    `punch_ref` is the timestamp of the late punch and correlates the request
    with it inside the attendance record.
    """

    approval_id: str
    user_id: str
    attendance_id: str
    punch_ref: str
    work_date: date
    punch_time: datetime
    late_by_minutes: int
    has_permission: bool
    status: RequestStatus
    requested_at: datetime
    permission_id: Optional[str] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    admin_notes: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING

    def to_document(self) -> Dict[str, Any]:
        return _drop_none(
            {
                "id": self.approval_id,
                "userId": self.user_id,
                "attendanceId": self.attendance_id,
                "punchRef": self.punch_ref,
                "date": self.work_date.isoformat(),
                "punchTime": format_instant(self.punch_time),
                "lateByMinutes": self.late_by_minutes,
                "hasPermission": self.has_permission,
                "permissionId": self.permission_id,
                "status": self.status.value,
                "requestedAt": format_instant(self.requested_at),
                "approvedBy": self.approved_by,
                "approvedAt": format_instant(self.approved_at) if self.approved_at else None,
                "rejectionReason": self.rejection_reason,
                "adminNotes": self.admin_notes,
            }
        )

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "LateApprovalRequest":
        return cls(
            approval_id=str(doc["id"]),
            user_id=str(doc["userId"]),
            attendance_id=str(doc["attendanceId"]),
            punch_ref=str(doc.get("punchRef") or doc["punchTime"]),
            work_date=date.fromisoformat(doc["date"]),
            punch_time=parse_instant(doc["punchTime"]),
            late_by_minutes=int(doc.get("lateByMinutes", 0)),
            has_permission=bool(doc.get("hasPermission", False)),
            permission_id=doc.get("permissionId"),
            status=RequestStatus(doc["status"]),
            requested_at=parse_instant(doc["requestedAt"]),
            approved_by=doc.get("approvedBy"),
            approved_at=_instant(doc.get("approvedAt")),
            rejection_reason=doc.get("rejectionReason"),
            admin_notes=doc.get("adminNotes"),
        )


@dataclass(frozen=True)
class LatePermission:
    """Pre-authorized permission to arrive late on one date."""

    permission_id: str
    user_id: str
    work_date: date
    requested_at: datetime
    reason: str
    status: RequestStatus
    expected_arrival_time: Optional[str] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING

    def to_document(self) -> Dict[str, Any]:
        return _drop_none(
            {
                "id": self.permission_id,
                "userId": self.user_id,
                "date": self.work_date.isoformat(),
                "requestedAt": format_instant(self.requested_at),
                "reason": self.reason,
                "expectedArrivalTime": self.expected_arrival_time,
                "status": self.status.value,
                "approvedBy": self.approved_by,
                "approvedAt": format_instant(self.approved_at) if self.approved_at else None,
                "rejectionReason": self.rejection_reason,
            }
        )

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "LatePermission":
        return cls(
            permission_id=str(doc["id"]),
            user_id=str(doc["userId"]),
            work_date=date.fromisoformat(doc["date"]),
            requested_at=parse_instant(doc["requestedAt"]),
            reason=str(doc.get("reason", "")),
            expected_arrival_time=doc.get("expectedArrivalTime"),
            status=RequestStatus(doc["status"]),
            approved_by=doc.get("approvedBy"),
            approved_at=_instant(doc.get("approvedAt")),
            rejection_reason=doc.get("rejectionReason"),
        )
