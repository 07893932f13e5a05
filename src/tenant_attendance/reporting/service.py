from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from typing import Optional, Sequence

from ..attendance.model import AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import minutes_between, parse_iso_date, parse_month
from ..context import RequestContext
from ..core.enums import ReportMode, Role
from ..core.exceptions import ValidationError
from ..users.permissions import require_tenant_admin
from ..users.repository import UserRepository

SORT_FIELDS = ("date", "employee", "site")
SORT_DIRECTIONS = ("asc", "desc")


@dataclass(frozen=True)
class ReportFilter:
    mode: ReportMode = ReportMode.DAILY
    date: Optional[str] = None
    month: Optional[str] = None
    user_id: Optional[str] = None
    site_name: Optional[str] = None
    sort_field: str = "date"
    sort_direction: str = "desc"


@dataclass(frozen=True)
class ReportRow:
    record: AttendanceRecord
    break_minutes: int
    working_minutes: int

    @property
    def working_hours(self) -> str:
        return format_minutes(self.working_minutes)


@dataclass(frozen=True)
class ReportData:
    rows: list[ReportRow]
    total_minutes: int

    @property
    def total_hours(self) -> str:
        return format_minutes(self.total_minutes)


def format_minutes(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def working_minutes(record: AttendanceRecord) -> tuple[int, int]:
    """Return (break minutes, working minutes) for a record with breaks attached.

    Open records count as zero working time.
    """

    break_total = sum(b.duration_minutes for b in record.breaks if not b.is_open)
    if not record.start_time or not record.end_time:
        return break_total, 0
    return break_total, max(0, minutes_between(record.start_time, record.end_time) - break_total)


def _sort_key(field: str):
    if field == "employee":
        return lambda row: (row.record.user_name or "").lower()
    if field == "site":
        return lambda row: (row.record.site_name or "").lower()
    return lambda row: row.record.date or ""


class AdminReportService:
    """Use case: tenant-wide attendance reports for administrators."""

    def __init__(self, attendance: AttendanceRepository, users: UserRepository):
        self._attendance = attendance
        self._users = users

    def build(self, ctx: RequestContext, report_filter: ReportFilter, *, today: Optional[date] = None) -> ReportData:
        require_tenant_admin(ctx.identity, ctx.tenant_id)
        if report_filter.sort_field not in SORT_FIELDS:
            raise ValidationError(f"Unknown sort field: {report_filter.sort_field}")
        if report_filter.sort_direction not in SORT_DIRECTIONS:
            raise ValidationError(f"Unknown sort direction: {report_filter.sort_direction}")

        filters = self._filters_for(report_filter, today=today or date.today())
        rows = []
        for record in self._attendance.query(ctx.tenant_id, filters=filters):
            record = replace(record, breaks=tuple(self._attendance.list_breaks(ctx.tenant_id, record.record_id)))
            break_total, worked = working_minutes(record)
            rows.append(ReportRow(record=record, break_minutes=break_total, working_minutes=worked))

        rows.sort(key=_sort_key(report_filter.sort_field), reverse=report_filter.sort_direction == "desc")
        return ReportData(rows=rows, total_minutes=sum(r.working_minutes for r in rows))

    def list_sites(self, ctx: RequestContext) -> list[str]:
        require_tenant_admin(ctx.identity, ctx.tenant_id)
        return sorted({r.site_name for r in self._attendance.query(ctx.tenant_id) if r.site_name})

    def list_employees(self, ctx: RequestContext) -> Sequence[dict]:
        require_tenant_admin(ctx.identity, ctx.tenant_id)
        users = self._users.list_tenant_users(ctx.tenant_id, role=Role.EMPLOYEE)
        out = [{"uid": u.uid, "name": u.display_name or u.email} for u in users]
        out.sort(key=lambda x: x["name"].lower())
        return out

    @staticmethod
    def _filters_for(report_filter: ReportFilter, *, today: date) -> list:
        mode = report_filter.mode
        if mode == ReportMode.DAILY:
            day = report_filter.date or today.isoformat()
            try:
                parse_iso_date(day)
            except ValueError as e:
                raise ValidationError("Date must be YYYY-MM-DD") from e
            return [("date", "==", day)]

        if mode == ReportMode.MONTHLY:
            if not report_filter.month:
                return []
            try:
                parse_month(report_filter.month)
            except ValueError as e:
                raise ValidationError("Month must be YYYY-MM") from e
            # String range on YYYY-MM-DD dates; -31 also covers shorter months.
            return [("date", ">=", f"{report_filter.month}-01"), ("date", "<=", f"{report_filter.month}-31")]

        if mode == ReportMode.EMPLOYEE:
            return [("userId", "==", report_filter.user_id)] if report_filter.user_id else []

        if mode == ReportMode.SITE:
            return [("siteName", "==", report_filter.site_name)] if report_filter.site_name else []

        raise ValidationError(f"Unknown report mode: {mode}")
