from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..store.base import Filter
from .model import AttendanceRecord, BreakRecord


class AttendanceRepository(Protocol):
    """Tenant-scoped attendance and break storage.

    Every method takes the tenant id; nothing here touches the flat legacy
    collections.
    """

    def get(self, tenant_id: str, record_id: str) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def find_open_for_user(self, tenant_id: str, user_id: str) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_for_user(self, tenant_id: str, user_id: str, *, limit: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def query(self, tenant_id: str, *, filters: Sequence[Filter] = ()) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def create(self, tenant_id: str, data: dict) -> str:
        raise NotImplementedError

    def update(self, tenant_id: str, record_id: str, changes: dict) -> None:
        raise NotImplementedError

    def list_breaks(self, tenant_id: str, attendance_id: str) -> Sequence[BreakRecord]:
        raise NotImplementedError

    def create_break(self, tenant_id: str, data: dict) -> str:
        raise NotImplementedError

    def update_break(self, tenant_id: str, break_id: str, changes: dict) -> None:
        raise NotImplementedError
