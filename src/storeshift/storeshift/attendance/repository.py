from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.constants import ATTENDANCE
from ..database.document_store import DESCENDING, DocumentStore
from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: str) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_user_and_date(self, user_id: str, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_recent_for_user(self, user_id: str, limit: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_all(self) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def create(self, record: AttendanceRecord) -> None:
        raise NotImplementedError

    def save_punches(self, record: AttendanceRecord) -> bool:
        """Replace the punches and totals of an existing record."""

        raise NotImplementedError

    def delete_all(self) -> int:
        raise NotImplementedError


class DocumentAttendanceRepository(AttendanceRepository):
    """Attendance records in the `attendance` collection.

    Conversion between documents and `AttendanceRecord` happens only here.
    """

    def __init__(self, store: DocumentStore):
        self._store = store

    def get_by_id(self, attendance_id: str) -> Optional[AttendanceRecord]:
        doc = self._store.find_one(ATTENDANCE, {"id": attendance_id})
        return AttendanceRecord.from_document(doc) if doc else None

    def get_for_user_and_date(self, user_id: str, work_date: date) -> Optional[AttendanceRecord]:
        doc = self._store.find_one(ATTENDANCE, {"userId": user_id, "date": work_date.isoformat()})
        return AttendanceRecord.from_document(doc) if doc else None

    def get_recent_for_user(self, user_id: str, limit: int) -> Sequence[AttendanceRecord]:
        docs = self._store.find(ATTENDANCE, {"userId": user_id}, sort=[("date", DESCENDING)], limit=int(limit))
        return [AttendanceRecord.from_document(d) for d in docs]

    def list_all(self) -> Sequence[AttendanceRecord]:
        docs = self._store.find(ATTENDANCE, {}, sort=[("date", DESCENDING)])
        return [AttendanceRecord.from_document(d) for d in docs]

    def create(self, record: AttendanceRecord) -> None:
        self._store.insert_one(ATTENDANCE, record.to_document())

    def save_punches(self, record: AttendanceRecord) -> bool:
        doc = record.to_document()
        matched = self._store.update_one(
            ATTENDANCE,
            {"id": record.attendance_id},
            {"punches": doc["punches"], "totals": doc["totals"]},
        )
        return matched > 0

    def delete_all(self) -> int:
        return self._store.delete_many(ATTENDANCE, {})
