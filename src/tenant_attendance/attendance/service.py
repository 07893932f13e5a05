from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import minutes_between, now_utc
from ..common.validators import require_non_empty
from ..context import RequestContext
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.exceptions import ValidationError
from ..store.values import SERVER_TIMESTAMP
from ..users.repository import UserRepository
from .model import AttendanceRecord, BreakRecord
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class AttendanceService:
    """Use case: clock in/out and take breaks inside the caller's tenant."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        *,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._attendance = attendance
        self._users = users
        self._clock = clock

    def clock_in(
        self, ctx: RequestContext, *, site_name: str, notes: str = "", now: Optional[datetime] = None
    ) -> AttendanceRecord:
        now = now or self._clock()
        site_name = require_non_empty(site_name, "Site name")

        if self._attendance.find_open_for_user(ctx.tenant_id, ctx.uid):
            raise ValidationError("You are already clocked in")

        record_id = self._attendance.create(
            ctx.tenant_id,
            {
                "userId": ctx.uid,
                "userName": ctx.identity.display_name,
                "userEmail": ctx.identity.email,
                "date": now.date().isoformat(),
                "siteName": site_name,
                "startTime": now,
                "endTime": None,
                "notes": (notes or "").strip(),
                "createdAt": SERVER_TIMESTAMP,
            },
        )
        # Super admins visiting another tenant have no user record there.
        if self._users.get_tenant_user(ctx.tenant_id, ctx.uid) is not None:
            self._users.add_site_history(ctx.tenant_id, ctx.uid, site_name)
        logger.info("Clock-in %s tenant=%s user=%s site=%s", record_id, ctx.tenant_id, ctx.uid, site_name)
        return self._require(ctx, record_id)

    def clock_out(self, ctx: RequestContext, *, notes: Optional[str] = None, now: Optional[datetime] = None) -> AttendanceRecord:
        now = now or self._clock()
        record = self._open_record(ctx)
        if any(b.is_open for b in self._attendance.list_breaks(ctx.tenant_id, record.record_id)):
            raise ValidationError("Please end your break before clocking out")

        changes = {"endTime": now, "updatedAt": SERVER_TIMESTAMP}
        if notes is not None and notes.strip():
            changes["notes"] = notes.strip()
        self._attendance.update(ctx.tenant_id, record.record_id, changes)
        logger.info("Clock-out %s tenant=%s user=%s", record.record_id, ctx.tenant_id, ctx.uid)
        return self._require(ctx, record.record_id)

    def start_break(self, ctx: RequestContext, *, now: Optional[datetime] = None) -> BreakRecord:
        now = now or self._clock()
        record = self._open_record(ctx)
        if any(b.is_open for b in self._attendance.list_breaks(ctx.tenant_id, record.record_id)):
            raise ValidationError("You are already on a break")

        break_id = self._attendance.create_break(
            ctx.tenant_id,
            {
                "attendanceId": record.record_id,
                "userId": ctx.uid,
                "startTime": now,
                "endTime": None,
                "duration": 0,
            },
        )
        return next(b for b in self._attendance.list_breaks(ctx.tenant_id, record.record_id) if b.break_id == break_id)

    def end_break(self, ctx: RequestContext, *, now: Optional[datetime] = None) -> BreakRecord:
        now = now or self._clock()
        record = self._open_record(ctx)
        current = next((b for b in self._attendance.list_breaks(ctx.tenant_id, record.record_id) if b.is_open), None)
        if current is None:
            raise ValidationError("You are not on a break")

        duration = max(0, minutes_between(current.start_time, now)) if current.start_time else 0
        self._attendance.update_break(ctx.tenant_id, current.break_id, {"endTime": now, "duration": duration})
        return replace(current, end_time=now, duration_minutes=duration)

    def list_for_user(self, ctx: RequestContext, *, limit: int = DEFAULT_HISTORY_LIMIT) -> Sequence[AttendanceRecord]:
        records = self._attendance.list_for_user(ctx.tenant_id, ctx.uid, limit=limit)
        return [replace(r, breaks=tuple(self._attendance.list_breaks(ctx.tenant_id, r.record_id))) for r in records]

    def _open_record(self, ctx: RequestContext) -> AttendanceRecord:
        record = self._attendance.find_open_for_user(ctx.tenant_id, ctx.uid)
        if record is None:
            raise ValidationError("You have not clocked in")
        return record

    def _require(self, ctx: RequestContext, record_id: str) -> AttendanceRecord:
        record = self._attendance.get(ctx.tenant_id, record_id)
        if record is None:
            raise ValidationError("Attendance record could not be saved")
        return record
