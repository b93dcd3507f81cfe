from __future__ import annotations

import threading

import pytest

from conftest import ADMINS, EMPLOYEE, FakeConnection, local

from src.storeshift.storeshift.core.constants import ATTENDANCE, LATE_APPROVALS, NOTIFICATIONS
from src.storeshift.storeshift.core.enums import PunchStatus, PunchType, RequestStatus
from src.storeshift.storeshift.core.exceptions import AuthorizationError, StorageError, ValidationError


def test_late_check_in_opens_one_pending_approval_and_notifies_each_admin(container, store, listener):
    record = container.attendance_service.submit_punch(EMPLOYEE, "IN")

    assert len(record.punches) == 1
    punch = record.punches[0]
    assert punch.classification == PunchStatus.LATE
    assert punch.classification_detail == "Late by 10m"

    approvals = store.find(LATE_APPROVALS, {"userId": EMPLOYEE})
    assert len(approvals) == 1
    assert approvals[0]["status"] == "pending"
    assert approvals[0]["lateByMinutes"] == 10
    assert approvals[0]["hasPermission"] is False
    assert punch.late_approval_id == approvals[0]["id"]

    for admin_id in ADMINS:
        notes = store.find(NOTIFICATIONS, {"targetUserId": admin_id})
        assert len(notes) == 1
        assert notes[0]["title"] == "Late Arrival - Approval Required"
        assert notes[0]["data"]["approvalId"] == approvals[0]["id"]

    assert len(listener.data_updates("attendance")) == 1


def test_late_check_in_with_approved_permission_is_auto_approved(container, store, push_sender):
    permission = container.late_permission_service.request(
        user_id=EMPLOYEE, work_date="2024-05-10", reason="Doctor visit", expected_arrival_time="10:00"
    )
    container.late_permission_service.decide(permission.permission_id, status="approved", approved_by="admin-1")
    push_sender.sent.clear()

    record = container.attendance_service.submit_punch(EMPLOYEE, "IN")

    approval = container.late_approval_service.list_for_user(EMPLOYEE)[0]
    assert approval.status == RequestStatus.APPROVED
    assert approval.has_permission is True
    assert approval.permission_id == permission.permission_id
    assert record.punches[0].late_approval_status == RequestStatus.APPROVED

    titles = [t for _, t, _, _ in push_sender.sent]
    assert "Late Arrival - Approval Required" not in titles
    assert titles.count("Asha checked in") == len(ADMINS)


def test_on_time_check_in_has_no_approval(container, store, clock):
    clock.now = local(9, 30)

    record = container.attendance_service.submit_punch(EMPLOYEE, "IN")

    assert record.punches[0].classification == PunchStatus.ON_TIME
    assert record.punches[0].late_approval_id is None
    assert store.count(LATE_APPROVALS, {}) == 0
    assert store.count(NOTIFICATIONS, {"title": "Asha checked in"}) == len(ADMINS)


def test_punches_of_a_day_share_one_record(container, clock):
    clock.now = local(9, 30)
    container.attendance_service.submit_punch(EMPLOYEE, "IN")
    clock.now = local(13, 40)
    container.attendance_service.submit_punch(EMPLOYEE, "BREAK_START", reason="Lunch")
    clock.now = local(14, 10)
    container.attendance_service.submit_punch(EMPLOYEE, "BREAK_END")
    clock.now = local(21, 45)
    record = container.attendance_service.submit_punch(EMPLOYEE, "out")

    assert [p.type for p in record.punches] == [
        PunchType.IN,
        PunchType.BREAK_START,
        PunchType.BREAK_END,
        PunchType.OUT,
    ]
    assert record.totals.work_minutes == 12 * 60 + 15 - 30
    assert record.totals.break_minutes == 30
    assert record.punches[1].classification is None
    assert record.punches[3].classification == PunchStatus.OVERTIME
    assert record.status_summary() == {"checkIn": "on-time", "checkOut": "overtime"}
    assert len(container.attendance_service.get_history(EMPLOYEE)) == 1


def test_check_out_without_check_in_is_unclassified(container, clock):
    clock.now = local(20, 0)

    record = container.attendance_service.submit_punch(EMPLOYEE, "OUT")

    assert record.punches[0].classification is None
    assert record.totals.work_minutes == 0


def test_custom_time_sets_the_work_date(container):
    record = container.attendance_service.submit_punch(
        EMPLOYEE, "IN", manual=True, manual_actor="admin-1", custom_time="2024-05-09T09:30:00"
    )

    assert record.work_date.isoformat() == "2024-05-09"
    assert record.punches[0].manual is True
    assert record.punches[0].manual_actor == "admin-1"
    assert record.punches[0].classification == PunchStatus.ON_TIME


def test_manual_punch_does_not_notify_admins(container, store, clock, listener):
    clock.now = local(9, 30)

    container.attendance_service.submit_punch(EMPLOYEE, "IN", manual=True, manual_actor="admin-1")

    assert store.count(NOTIFICATIONS, {}) == 0
    assert len(listener.data_updates("attendance")) == 1


@pytest.mark.parametrize("user_id, punch_type", [(None, "IN"), ("", "IN"), (EMPLOYEE, None), (EMPLOYEE, "LUNCH")])
def test_invalid_punch_is_rejected(container, user_id, punch_type):
    with pytest.raises(ValidationError):
        container.attendance_service.submit_punch(user_id, punch_type)


def test_invalid_custom_time_is_rejected(container):
    with pytest.raises(ValidationError):
        container.attendance_service.submit_punch(EMPLOYEE, "IN", custom_time="yesterday")


def test_approval_failure_does_not_abort_the_punch(container, monkeypatch):
    def broken(**kwargs):
        raise RuntimeError("approvals collection unavailable")

    monkeypatch.setattr(container.late_approval_service, "open_for_late_punch", broken)

    record = container.attendance_service.submit_punch(EMPLOYEE, "IN")

    assert len(record.punches) == 1
    assert record.punches[0].late_approval_id is None


class GatedConnection(FakeConnection):
    """Blocks every send until `release` is set."""

    def __init__(self):
        super().__init__()
        self.entered = threading.Event()
        self.release = threading.Event()

    def send(self, data: str) -> None:
        self.entered.set()
        self.release.wait(timeout=5)
        super().send(data)


def test_slow_admin_connection_does_not_delay_the_save(container, store):
    admin_conn = GatedConnection()
    container.registry.register("admin-1", admin_conn)
    worker = threading.Thread(target=container.attendance_service.submit_punch, args=(EMPLOYEE, "IN"))
    worker.start()
    try:
        assert admin_conn.entered.wait(timeout=5)
        saved = store.find_one(ATTENDANCE, {"userId": EMPLOYEE})
        assert saved is not None
        assert len(saved["punches"]) == 1
        assert store.count(LATE_APPROVALS, {"userId": EMPLOYEE}) == 1
        assert len(container.locks) == 0
    finally:
        admin_conn.release.set()
        worker.join(timeout=5)

    assert not worker.is_alive()
    assert admin_conn.data_updates("notification")


def test_failed_first_save_leaves_no_approval_or_notifications(container, store, push_sender, listener, monkeypatch):
    def broken(record):
        raise StorageError("attendance table unavailable")

    monkeypatch.setattr(container.attendance_repo, "create", broken)

    with pytest.raises(StorageError):
        container.attendance_service.submit_punch(EMPLOYEE, "IN")

    assert store.count(ATTENDANCE, {}) == 0
    assert store.count(LATE_APPROVALS, {}) == 0
    assert store.count(NOTIFICATIONS, {}) == 0
    assert push_sender.sent == []
    assert listener.sent == []
    assert len(container.locks) == 0


def test_failed_update_discards_the_new_approval(container, store, clock, push_sender, monkeypatch):
    clock.now = local(9, 30)
    container.attendance_service.submit_punch(EMPLOYEE, "IN")
    notes_before = store.count(NOTIFICATIONS, {})
    push_sender.sent.clear()
    monkeypatch.setattr(container.attendance_repo, "save_punches", lambda record: False)

    clock.now = local(9, 50)
    with pytest.raises(StorageError):
        container.attendance_service.submit_punch(EMPLOYEE, "IN")

    assert store.count(LATE_APPROVALS, {}) == 0
    assert store.count(NOTIFICATIONS, {}) == notes_before
    assert push_sender.sent == []
    assert len(container.attendance_service.get_today(EMPLOYEE).punches) == 1



def test_broadcast_failure_does_not_abort_the_punch(container, clock):
    container.registry.register("flaky", FakeConnection(fail=True))
    clock.now = local(9, 30)

    record = container.attendance_service.submit_punch(EMPLOYEE, "IN")

    assert len(record.punches) == 1
    assert not container.registry.is_online("flaky")


def test_concurrent_punches_are_all_appended(container, clock):
    clock.now = local(9, 30)
    start = threading.Barrier(8)

    def submit():
        start.wait()
        container.attendance_service.submit_punch(EMPLOYEE, "BREAK_END", manual=True)

    threads = [threading.Thread(target=submit) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    record = container.attendance_service.get_today(EMPLOYEE)
    assert len(record.punches) == 8
    assert len(container.locks) == 0


def test_get_today_returns_none_before_first_punch(container):
    assert container.attendance_service.get_today(EMPLOYEE) is None


def test_get_today_totals_follow_the_clock(container, clock):
    container.attendance_service.submit_punch(EMPLOYEE, "IN")
    clock.advance(50)

    assert container.attendance_service.get_today(EMPLOYEE).totals.work_minutes == 50


def test_clear_all_requires_an_admin(container, store):
    container.attendance_service.submit_punch(EMPLOYEE, "IN")

    with pytest.raises(AuthorizationError):
        container.attendance_service.clear_all(admin_id=EMPLOYEE)

    assert container.attendance_service.clear_all(admin_id="admin-1") == 1
    assert container.attendance_service.list_all() == []
