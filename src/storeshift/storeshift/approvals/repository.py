from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Optional, Protocol, Sequence

from ..common.datetime_utils import format_instant
from ..core.constants import LATE_APPROVALS, LATE_PERMISSIONS
from ..core.enums import RequestStatus
from ..database.document_store import DESCENDING, DocumentStore
from .model import LateApprovalRequest, LatePermission


class LateApprovalRepository(Protocol):
    def create(self, approval: LateApprovalRequest) -> None:
        raise NotImplementedError

    def get(self, approval_id: str) -> Optional[LateApprovalRequest]:
        raise NotImplementedError

    def list_by_status(self, status: RequestStatus) -> Sequence[LateApprovalRequest]:
        raise NotImplementedError

    def list_for_user(self, user_id: str, *, limit: int) -> Sequence[LateApprovalRequest]:
        raise NotImplementedError

    def delete(self, approval_id: str) -> bool:
        raise NotImplementedError

    def decide(
        self,
        approval_id: str,
        *,
        status: RequestStatus,
        approved_by: Optional[str],
        approved_at: datetime,
        rejection_reason: Optional[str] = None,
        admin_notes: Optional[str] = None,
    ) -> bool:
        """Move a pending request to `status`; False when it is no longer pending."""

        raise NotImplementedError


class LatePermissionRepository(Protocol):
    def create(self, permission: LatePermission) -> None:
        raise NotImplementedError

    def get(self, permission_id: str) -> Optional[LatePermission]:
        raise NotImplementedError

    def find_for_user_and_date(
        self,
        user_id: str,
        work_date: date,
        *,
        status: Optional[RequestStatus] = None,
    ) -> Optional[LatePermission]:
        raise NotImplementedError

    def list_for_user(
        self,
        user_id: str,
        *,
        status: Optional[RequestStatus] = None,
        work_date: Optional[date] = None,
    ) -> Sequence[LatePermission]:
        raise NotImplementedError

    def list_by_status(self, status: RequestStatus) -> Sequence[LatePermission]:
        raise NotImplementedError

    def decide(
        self,
        permission_id: str,
        *,
        status: RequestStatus,
        approved_by: Optional[str],
        approved_at: datetime,
        rejection_reason: Optional[str] = None,
    ) -> bool:
        raise NotImplementedError


def _decision_patch(*, status: RequestStatus, approved_at: datetime, **optional: Any) -> Dict[str, Any]:
    patch: Dict[str, Any] = {"status": status.value, "approvedAt": format_instant(approved_at)}
    patch.update({k: v for k, v in optional.items() if v is not None})
    return patch


class DocumentLateApprovalRepository(LateApprovalRepository):
    def __init__(self, store: DocumentStore):
        self._store = store

    def create(self, approval: LateApprovalRequest) -> None:
        self._store.insert_one(LATE_APPROVALS, approval.to_document())

    def get(self, approval_id: str) -> Optional[LateApprovalRequest]:
        doc = self._store.find_one(LATE_APPROVALS, {"id": approval_id})
        return LateApprovalRequest.from_document(doc) if doc else None

    def list_by_status(self, status: RequestStatus) -> Sequence[LateApprovalRequest]:
        docs = self._store.find(LATE_APPROVALS, {"status": status.value}, sort=[("requestedAt", DESCENDING)])
        return [LateApprovalRequest.from_document(d) for d in docs]

    def list_for_user(self, user_id: str, *, limit: int) -> Sequence[LateApprovalRequest]:
        docs = self._store.find(
            LATE_APPROVALS,
            {"userId": user_id},
            sort=[("date", DESCENDING), ("requestedAt", DESCENDING)],
            limit=int(limit),
        )
        return [LateApprovalRequest.from_document(d) for d in docs]

    def delete(self, approval_id: str) -> bool:
        return self._store.delete_one(LATE_APPROVALS, {"id": approval_id}) > 0

    def decide(
        self,
        approval_id: str,
        *,
        status: RequestStatus,
        approved_by: Optional[str],
        approved_at: datetime,
        rejection_reason: Optional[str] = None,
        admin_notes: Optional[str] = None,
    ) -> bool:
        patch = _decision_patch(
            status=status,
            approved_at=approved_at,
            approvedBy=approved_by,
            rejectionReason=rejection_reason,
            adminNotes=admin_notes,
        )
        # The status condition keeps decided requests terminal under concurrent decisions.
        matched = self._store.update_one(
            LATE_APPROVALS,
            {"id": approval_id, "status": RequestStatus.PENDING.value},
            patch,
        )
        return matched > 0


class DocumentLatePermissionRepository(LatePermissionRepository):
    def __init__(self, store: DocumentStore):
        self._store = store

    def create(self, permission: LatePermission) -> None:
        self._store.insert_one(LATE_PERMISSIONS, permission.to_document())

    def get(self, permission_id: str) -> Optional[LatePermission]:
        doc = self._store.find_one(LATE_PERMISSIONS, {"id": permission_id})
        return LatePermission.from_document(doc) if doc else None

    def find_for_user_and_date(
        self,
        user_id: str,
        work_date: date,
        *,
        status: Optional[RequestStatus] = None,
    ) -> Optional[LatePermission]:
        query: Dict[str, Any] = {"userId": user_id, "date": work_date.isoformat()}
        if status is not None:
            query["status"] = status.value
        doc = self._store.find_one(LATE_PERMISSIONS, query)
        return LatePermission.from_document(doc) if doc else None

    def list_for_user(
        self,
        user_id: str,
        *,
        status: Optional[RequestStatus] = None,
        work_date: Optional[date] = None,
    ) -> Sequence[LatePermission]:
        query: Dict[str, Any] = {"userId": user_id}
        if status is not None:
            query["status"] = status.value
        if work_date is not None:
            query["date"] = work_date.isoformat()
        docs = self._store.find(LATE_PERMISSIONS, query, sort=[("date", DESCENDING)])
        return [LatePermission.from_document(d) for d in docs]

    def list_by_status(self, status: RequestStatus) -> Sequence[LatePermission]:
        docs = self._store.find(LATE_PERMISSIONS, {"status": status.value}, sort=[("requestedAt", DESCENDING)])
        return [LatePermission.from_document(d) for d in docs]

    def decide(
        self,
        permission_id: str,
        *,
        status: RequestStatus,
        approved_by: Optional[str],
        approved_at: datetime,
        rejection_reason: Optional[str] = None,
    ) -> bool:
        patch = _decision_patch(
            status=status,
            approved_at=approved_at,
            approvedBy=approved_by,
            rejectionReason=rejection_reason if status == RequestStatus.REJECTED else None,
        )
        matched = self._store.update_one(
            LATE_PERMISSIONS,
            {"id": permission_id, "status": RequestStatus.PENDING.value},
            patch,
        )
        return matched > 0
