from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Any, Dict, Optional, Tuple

from ..common.datetime_utils import format_instant, parse_instant
from ..core.enums import PunchStatus, PunchType, RequestStatus
from .totals import Totals, compute_totals


@dataclass(frozen=True)
class Punch:
    """A single timestamped attendance event. Never edited once appended."""

    timestamp: datetime
    type: PunchType
    manual: bool = False
    manual_actor: Optional[str] = None
    reason: Optional[str] = None
    classification: Optional[PunchStatus] = None
    classification_detail: Optional[str] = None
    late_approval_id: Optional[str] = None
    late_approval_status: Optional[RequestStatus] = None
    selfie_ref: Optional[str] = None
    location_ref: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "timestamp": format_instant(self.timestamp),
            "type": self.type.value,
            "manual": self.manual,
        }
        optional = {
            "manualActor": self.manual_actor,
            "reason": self.reason,
            "classification": self.classification.value if self.classification else None,
            "classificationDetail": self.classification_detail,
            "lateApprovalId": self.late_approval_id,
            "lateApprovalStatus": self.late_approval_status.value if self.late_approval_status else None,
            "selfieRef": self.selfie_ref,
            "locationRef": self.location_ref,
        }
        data.update({k: v for k, v in optional.items() if v is not None})
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Punch":
        classification = data.get("classification")
        approval_status = data.get("lateApprovalStatus")
        return cls(
            timestamp=parse_instant(data["timestamp"]),
            type=PunchType(data["type"]),
            manual=bool(data.get("manual", False)),
            manual_actor=data.get("manualActor"),
            reason=data.get("reason"),
            classification=PunchStatus(classification) if classification else None,
            classification_detail=data.get("classificationDetail"),
            late_approval_id=data.get("lateApprovalId"),
            late_approval_status=RequestStatus(approval_status) if approval_status else None,
            selfie_ref=data.get("selfieRef"),
            location_ref=data.get("locationRef"),
        )


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one user's attendance for one calendar day.

    `totals` is always derived from `punches`; use `append` to get a new
    record with the punch added and totals recomputed.
    """

    attendance_id: str
    user_id: str
    work_date: date
    punches: Tuple[Punch, ...] = ()
    totals: Totals = field(default_factory=Totals)

    def append(self, punch: Punch, *, now: datetime) -> "AttendanceRecord":
        punches = self.punches + (punch,)
        return replace(self, punches=punches, totals=compute_totals(punches, now))

    def recompute(self, *, now: datetime) -> "AttendanceRecord":
        return replace(self, totals=compute_totals(self.punches, now))

    def first_punch(self, punch_type: PunchType) -> Optional[Punch]:
        return next((p for p in self.punches if p.type == punch_type), None)

    def mark_late_approval(self, approval_id: str, status: RequestStatus) -> Tuple["AttendanceRecord", bool]:
        """Tag the punch linked to `approval_id`; returns (record, whether a punch changed)."""
        changed = False
        punches = []
        for punch in self.punches:
            if punch.late_approval_id == approval_id:
                punch = replace(punch, late_approval_status=status)
                changed = True
            punches.append(punch)
        return replace(self, punches=tuple(punches)), changed

    def status_summary(self) -> Dict[str, str]:
        summary: Dict[str, str] = {}
        check_in = self.first_punch(PunchType.IN)
        check_out = self.first_punch(PunchType.OUT)
        if check_in and check_in.classification:
            summary["checkIn"] = check_in.classification.value
        if check_out and check_out.classification:
            summary["checkOut"] = check_out.classification.value
        return summary

    def to_document(self) -> Dict[str, Any]:
        return {
            "id": self.attendance_id,
            "userId": self.user_id,
            "date": self.work_date.isoformat(),
            "punches": [p.to_dict() for p in self.punches],
            "totals": self.totals.to_dict(),
        }

    def to_json(self) -> Dict[str, Any]:
        """API/broadcast view: the document plus the derived check-in/out status."""
        data = self.to_document()
        summary = self.status_summary()
        if summary:
            data["status"] = summary
        return data

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "AttendanceRecord":
        return cls(
            attendance_id=str(doc["id"]),
            user_id=str(doc["userId"]),
            work_date=date.fromisoformat(doc["date"]),
            punches=tuple(Punch.from_dict(p) for p in doc.get("punches") or []),
            totals=Totals.from_dict(doc.get("totals")),
        )
