"""Example: drive the service layer directly (no Flask, in-memory store).

Controllers are a thin layer; the late-arrival workflow lives in the services.
"""

from datetime import datetime, timezone

from src.storeshift.storeshift.common.datetime_utils import get_zone
from src.storeshift.storeshift.container import build_container
from src.storeshift.storeshift.core.constants import USERS
from src.storeshift.storeshift.database.bootstrap import ensure_demo_users
from src.storeshift.storeshift.database.memory_document_store import InMemoryDocumentStore


def main():
    store = InMemoryDocumentStore()
    ensure_demo_users(store)
    admin = store.find_one(USERS, {"username": "admin"})
    employee = store.find_one(USERS, {"username": "asha"})

    # 09:40 in Asia/Kolkata, ten minutes past the 09:30 opening
    clock = lambda: datetime(2024, 5, 10, 4, 10, tzinfo=timezone.utc)
    container = build_container(store=store, store_tz=get_zone("Asia/Kolkata"), clock=clock)
    try:
        record = container.attendance_service.submit_punch(employee["id"], "IN")
        print(record.to_json())

        approval = container.late_approval_service.list_pending()[0]
        decided = container.late_approval_service.decide(
            approval.approval_id, status="approved", approved_by=admin["id"]
        )
        print(decided.to_document())
        print(container.attendance_service.get_today(employee["id"]).to_json())
    finally:
        container.close()


if __name__ == "__main__":
    main()
