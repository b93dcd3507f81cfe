from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles as stored in the users collection."""

    ADMIN = "admin"
    EMPLOYEE = "employee"


class PunchType(str, Enum):
    IN = "IN"
    OUT = "OUT"
    BREAK_START = "BREAK_START"
    BREAK_END = "BREAK_END"


class PunchStatus(str, Enum):
    """Punctuality verdict attached to IN/OUT punches."""

    ON_TIME = "on-time"
    LATE = "late"
    EARLY = "early"
    OVERTIME = "overtime"


class RequestStatus(str, Enum):
    """Approval workflow state (late approvals and late permissions)."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class DataType(str, Enum):
    """`dataType` values of the realtime data-update envelope."""

    ATTENDANCE = "attendance"
    LATE_APPROVAL = "lateApproval"
    LATE_PERMISSION = "latePermission"
    NOTIFICATION = "notification"


class NotificationType(str, Enum):
    PUNCH = "punch"
    LATE_APPROVAL = "lateApproval"
    LATE_PERMISSION = "latePermission"
