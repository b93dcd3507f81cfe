from __future__ import annotations

import pytest

from conftest import ADMINS, EMPLOYEE, FakeClock, FakePushSender, seed_users

from src.storeshift.storeshift.database.memory_document_store import InMemoryDocumentStore
from src.storeshift.storeshift.main import create_app


@pytest.fixture
def client(monkeypatch, fixed_now):
    monkeypatch.setenv("APP_ENV", "testing")
    store = InMemoryDocumentStore()
    seed_users(store)
    app = create_app(store=store, clock=FakeClock(fixed_now), push_sender=FakePushSender())
    with app.test_client() as client:
        yield client
    app.extensions["storeshift"].close()


def test_punch_and_read_back(client):
    res = client.post("/api/attendance/punch", json={"userId": EMPLOYEE, "type": "IN"})

    assert res.status_code == 200
    body = res.get_json()
    assert body["userId"] == EMPLOYEE
    assert body["date"] == "2024-05-10"
    assert body["punches"][0]["classification"] == "late"
    assert body["status"] == {"checkIn": "late"}

    today = client.get(f"/api/attendance/today/{EMPLOYEE}").get_json()
    assert today["id"] == body["id"]
    history = client.get(f"/api/attendance/history/{EMPLOYEE}?limit=5").get_json()
    assert [h["id"] for h in history] == [body["id"]]


def test_today_is_null_without_punches(client):
    res = client.get(f"/api/attendance/today/{EMPLOYEE}")

    assert res.status_code == 200
    assert res.get_json() is None


def test_missing_fields_are_bad_requests(client):
    res = client.post("/api/attendance/punch", json={"type": "IN"})

    assert res.status_code == 400
    assert res.get_json() == {"error": "userId is required"}


def test_bad_history_limit(client):
    assert client.get(f"/api/attendance/history/{EMPLOYEE}?limit=ten").status_code == 400


def test_approval_decision_over_http(client):
    client.post("/api/attendance/punch", json={"userId": EMPLOYEE, "type": "IN"})
    pending = client.get("/api/late-approvals/pending").get_json()
    assert len(pending) == 1
    approval_id = pending[0]["id"]

    res = client.put(
        f"/api/late-approvals/{approval_id}/status",
        json={"status": "approved", "approvedBy": "admin-1"},
    )
    assert res.status_code == 200
    assert res.get_json()["status"] == "approved"

    again = client.put(f"/api/late-approvals/{approval_id}/status", json={"status": "rejected"})
    assert again.status_code == 409

    assert client.get("/api/late-approvals/unknown").status_code == 404
    assert client.get(f"/api/late-approvals/user/{EMPLOYEE}").get_json()[0]["id"] == approval_id


def test_permission_flow_over_http(client):
    payload = {"userId": EMPLOYEE, "date": "2024-05-11", "reason": "Exam", "expectedArrivalTime": "12:00"}

    created = client.post("/api/late-permissions", json=payload)
    assert created.status_code == 201
    permission_id = created.get_json()["id"]

    assert client.post("/api/late-permissions", json=payload).status_code == 409
    assert len(client.get("/api/late-permissions/pending").get_json()) == 1

    res = client.put(f"/api/late-permissions/{permission_id}/status", json={"status": "approved", "approvedBy": "admin-1"})
    assert res.get_json()["status"] == "approved"

    listed = client.get(f"/api/late-permissions/user/{EMPLOYEE}?status=approved&date=2024-05-11").get_json()
    assert [p["id"] for p in listed] == [permission_id]


def test_notifications_over_http(client):
    client.post("/api/late-permissions", json={"userId": EMPLOYEE, "date": "2024-05-11", "reason": "Exam"})

    notes = client.get("/api/notifications?userId=admin-1&unreadOnly=true").get_json()
    assert len(notes) == 1

    assert client.put(f"/api/notifications/{notes[0]['id']}/read").status_code == 200
    assert client.get("/api/notifications?userId=admin-1&unreadOnly=true").get_json() == []

    res = client.put("/api/notifications/read-all", json={"userId": "admin-2"})
    assert res.get_json()["updatedCount"] == 1

    assert client.delete(f"/api/notifications/{notes[0]['id']}").status_code == 200
    assert client.delete(f"/api/notifications/{notes[0]['id']}").status_code == 404


def test_clear_all(client):
    client.post("/api/attendance/punch", json={"userId": EMPLOYEE, "type": "IN"})

    assert client.delete(f"/api/attendance/clear?adminId={EMPLOYEE}").status_code == 403

    res = client.delete(f"/api/attendance/clear?adminId={ADMINS[0]}")
    assert res.get_json() == {"message": "All attendance records cleared", "deletedCount": 1}
    assert client.get("/api/attendance/all").get_json() == []


def test_unknown_route_is_json_404(client):
    res = client.get("/api/nothing-here")

    assert res.status_code == 404
    assert "error" in res.get_json()
