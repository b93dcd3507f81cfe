from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from src.storeshift.storeshift.container import build_container
from src.storeshift.storeshift.core.constants import USERS
from src.storeshift.storeshift.database.memory_document_store import InMemoryDocumentStore

STORE_TZ = ZoneInfo("Asia/Kolkata")

ADMINS = ("admin-1", "admin-2")
EMPLOYEE = "emp-1"


def local(hour: int, minute: int, *, day: int = 10) -> datetime:
    """A store-local wall-clock time on 2024-05-<day>, as a UTC instant."""
    return datetime(2024, 5, day, hour, minute, tzinfo=STORE_TZ).astimezone(timezone.utc)


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, minutes: float) -> None:
        self.now = self.now + timedelta(minutes=minutes)


class FakeConnection:
    """Stands in for a websocket; records decoded frames."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []
        self.closed = False

    def send(self, data: str) -> None:
        if self.fail:
            raise ConnectionError("socket gone")
        self.sent.append(json.loads(data))

    def close(self) -> None:
        self.closed = True

    def data_updates(self, data_type: str):
        return [
            m["payload"]["data"]
            for m in self.sent
            if m.get("type") == "data-update" and m["payload"]["dataType"] == data_type
        ]


class FakePushSender:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    def send(self, user_id, title, body, data=None):
        if self.fail:
            raise RuntimeError("push service down")
        self.sent.append((user_id, title, body, dict(data or {})))


def seed_users(store: InMemoryDocumentStore) -> None:
    store.insert_one(USERS, {"id": "admin-1", "name": "Ravi", "role": "admin"})
    store.insert_one(USERS, {"id": "admin-2", "name": "Meera", "role": "admin"})
    store.insert_one(USERS, {"id": EMPLOYEE, "name": "Asha", "role": "employee"})


@pytest.fixture
def fixed_now() -> datetime:
    # 09:40 store time: ten minutes after opening
    return local(9, 40)


@pytest.fixture
def clock(fixed_now) -> FakeClock:
    return FakeClock(fixed_now)


@pytest.fixture
def store() -> InMemoryDocumentStore:
    store = InMemoryDocumentStore()
    seed_users(store)
    return store


@pytest.fixture
def push_sender() -> FakePushSender:
    return FakePushSender()


@pytest.fixture
def container(store, clock, push_sender):
    container = build_container(
        store=store,
        store_tz=STORE_TZ,
        fanout_workers=2,
        push_sender=push_sender,
        clock=clock,
    )
    yield container
    container.close()


@pytest.fixture
def listener(container) -> FakeConnection:
    """A connected client that is not one of the seeded users."""
    conn = FakeConnection()
    container.registry.register("observer", conn)
    return conn
