from __future__ import annotations

from typing import Optional, Sequence

from ..common.datetime_utils import coerce_datetime
from ..store.base import DocumentStore, Filter
from ..store.document import Document
from ..store.paths import TENANT_ATTENDANCE, TENANT_BREAKS, doc_path, tenant_collection
from .model import AttendanceRecord, BreakRecord
from .repository import AttendanceRepository


def break_from_document(doc: Document) -> BreakRecord:
    data = doc.data
    return BreakRecord(
        break_id=doc.id,
        attendance_id=data.get("attendanceId") or "",
        user_id=data.get("userId") or data.get("uid") or "",
        start_time=coerce_datetime(data.get("startTime")),
        end_time=coerce_datetime(data.get("endTime")),
        duration_minutes=int(data.get("duration") or 0),
    )


def record_from_document(doc: Document, tenant_id: str, breaks: Sequence[BreakRecord] = ()) -> AttendanceRecord:
    data = doc.data
    # Migrated legacy documents used clockIn/clockInTime and uid.
    start = data.get("startTime") or data.get("clockInTime") or data.get("clockIn")
    end = data.get("endTime") or data.get("clockOutTime") or data.get("clockOut")
    return AttendanceRecord(
        record_id=doc.id,
        tenant_id=data.get("tenantId") or tenant_id,
        user_id=data.get("userId") or data.get("uid") or "",
        user_name=data.get("userName") or data.get("displayName") or "",
        date=data.get("date") or "",
        site_name=data.get("siteName") or "",
        start_time=coerce_datetime(start),
        end_time=coerce_datetime(end),
        notes=data.get("notes") or "",
        breaks=tuple(breaks),
    )


class DocumentAttendanceRepository(AttendanceRepository):
    def __init__(self, store: DocumentStore):
        self._store = store

    def _records(self, tenant_id: str) -> str:
        return tenant_collection(tenant_id, TENANT_ATTENDANCE)

    def _breaks(self, tenant_id: str) -> str:
        return tenant_collection(tenant_id, TENANT_BREAKS)

    def get(self, tenant_id: str, record_id: str) -> Optional[AttendanceRecord]:
        doc = self._store.get(doc_path(self._records(tenant_id), record_id))
        return record_from_document(doc, tenant_id) if doc else None

    def find_open_for_user(self, tenant_id: str, user_id: str) -> Optional[AttendanceRecord]:
        docs = self._store.list(
            self._records(tenant_id),
            filters=[("userId", "==", user_id)],
            order_by="startTime",
            descending=True,
        )
        # A record without endTime may still be closed through clockOutTime.
        for doc in docs:
            record = record_from_document(doc, tenant_id)
            if record.is_open:
                return record
        return None

    def list_for_user(self, tenant_id: str, user_id: str, *, limit: int) -> Sequence[AttendanceRecord]:
        docs = self._store.list(
            self._records(tenant_id),
            filters=[("userId", "==", user_id)],
            order_by="date",
            descending=True,
            limit=limit,
        )
        return [record_from_document(d, tenant_id) for d in docs]

    def query(self, tenant_id: str, *, filters: Sequence[Filter] = ()) -> Sequence[AttendanceRecord]:
        return [record_from_document(d, tenant_id) for d in self._store.list(self._records(tenant_id), filters=filters)]

    def create(self, tenant_id: str, data: dict) -> str:
        return self._store.add(self._records(tenant_id), {**data, "tenantId": tenant_id})

    def update(self, tenant_id: str, record_id: str, changes: dict) -> None:
        self._store.update(doc_path(self._records(tenant_id), record_id), changes)

    def list_breaks(self, tenant_id: str, attendance_id: str) -> Sequence[BreakRecord]:
        docs = self._store.list(
            self._breaks(tenant_id), filters=[("attendanceId", "==", attendance_id)], order_by="startTime"
        )
        return [break_from_document(d) for d in docs]

    def create_break(self, tenant_id: str, data: dict) -> str:
        return self._store.add(self._breaks(tenant_id), {**data, "tenantId": tenant_id})

    def update_break(self, tenant_id: str, break_id: str, changes: dict) -> None:
        self._store.update(doc_path(self._breaks(tenant_id), break_id), changes)
