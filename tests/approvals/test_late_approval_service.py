from __future__ import annotations

import pytest

from conftest import ADMINS, EMPLOYEE, FakeConnection

from src.storeshift.storeshift.core.constants import NOTIFICATIONS
from src.storeshift.storeshift.core.enums import RequestStatus
from src.storeshift.storeshift.core.exceptions import ConflictError, NotFoundError, ValidationError


@pytest.fixture
def pending(container):
    container.attendance_service.submit_punch(EMPLOYEE, "IN")
    return container.late_approval_service.list_pending()[0]


def test_late_arrival_end_to_end(container, store, clock, fixed_now, listener):
    record = container.attendance_service.submit_punch(EMPLOYEE, "IN")
    assert len(record.punches) == 1
    clock.advance(20)
    assert container.attendance_service.get_today(EMPLOYEE).totals.work_minutes == 20

    approval = container.late_approval_service.list_pending()[0]
    assert approval.user_id == EMPLOYEE
    assert approval.attendance_id == record.attendance_id
    assert approval.punch_time == fixed_now
    listener.sent.clear()

    decided = container.late_approval_service.decide(
        approval.approval_id, status="approved", approved_by="admin-1", admin_notes="Traffic"
    )

    assert decided.status == RequestStatus.APPROVED
    assert decided.approved_by == "admin-1"
    assert decided.approved_at == clock.now
    assert decided.admin_notes == "Traffic"

    today = container.attendance_service.get_today(EMPLOYEE)
    assert today.punches[0].late_approval_status == RequestStatus.APPROVED

    approvals_seen = listener.data_updates("lateApproval")
    attendance_seen = listener.data_updates("attendance")
    assert [a["status"] for a in approvals_seen] == ["approved"]
    assert len(attendance_seen) == 1
    assert attendance_seen[0]["punches"][0]["lateApprovalStatus"] == "approved"


def test_decision_marks_linked_notifications_read(container, store, pending):
    container.late_approval_service.decide(pending.approval_id, status="rejected", approved_by="admin-2")

    notes = store.find(NOTIFICATIONS, {"data.approvalId": pending.approval_id})
    assert len(notes) == len(ADMINS)
    assert all(n["read"] for n in notes)


def test_admin_connections_see_notification_read_updates(container, pending):
    admin_conn = FakeConnection()
    container.registry.register("admin-1", admin_conn)

    container.late_approval_service.decide(pending.approval_id, status="approved", approved_by="admin-1")

    reads = admin_conn.data_updates("notification")
    assert len(reads) == len(ADMINS)
    assert all(r["read"] is True for r in reads)


def test_rejection_keeps_punch_untagged(container, pending):
    decided = container.late_approval_service.decide(
        pending.approval_id, status="rejected", approved_by="admin-1", rejection_reason="No reason given"
    )

    assert decided.status == RequestStatus.REJECTED
    assert decided.rejection_reason == "No reason given"
    today = container.attendance_service.get_today(EMPLOYEE)
    assert today.punches[0].late_approval_status == RequestStatus.PENDING


def test_decided_approval_is_terminal(container, pending):
    container.late_approval_service.decide(pending.approval_id, status="approved", approved_by="admin-1")

    with pytest.raises(ConflictError):
        container.late_approval_service.decide(pending.approval_id, status="rejected", approved_by="admin-2")

    assert container.late_approval_service.get(pending.approval_id).status == RequestStatus.APPROVED


@pytest.mark.parametrize("status", [None, "", "pending", "maybe"])
def test_decision_status_must_be_terminal(container, pending, status):
    with pytest.raises(ValidationError):
        container.late_approval_service.decide(pending.approval_id, status=status, approved_by="admin-1")


def test_unknown_approval(container):
    with pytest.raises(NotFoundError):
        container.late_approval_service.decide("missing", status="approved", approved_by="admin-1")
    with pytest.raises(NotFoundError):
        container.late_approval_service.get("missing")


def test_pending_list_shrinks_after_decision(container, pending):
    assert [a.approval_id for a in container.late_approval_service.list_pending()] == [pending.approval_id]

    container.late_approval_service.decide(pending.approval_id, status="approved", approved_by="admin-1")

    assert container.late_approval_service.list_pending() == []
    assert len(container.late_approval_service.list_for_user(EMPLOYEE)) == 1
