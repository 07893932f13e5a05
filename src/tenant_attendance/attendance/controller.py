from __future__ import annotations

from flask import Flask, g, request

from ..container import Container
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.exceptions import ValidationError
from ..web import json_body, json_errors, login_required, ok
from .model import AttendanceRecord, BreakRecord


def break_to_dict(b: BreakRecord) -> dict:
    return {
        "id": b.break_id,
        "attendanceId": b.attendance_id,
        "startTime": b.start_time,
        "endTime": b.end_time,
        "duration": b.duration_minutes,
    }


def record_to_dict(record: AttendanceRecord) -> dict:
    return {
        "id": record.record_id,
        "tenantId": record.tenant_id,
        "userId": record.user_id,
        "userName": record.user_name,
        "date": record.date,
        "siteName": record.site_name,
        "startTime": record.start_time,
        "endTime": record.end_time,
        "notes": record.notes,
        "breaks": [break_to_dict(b) for b in record.breaks],
    }


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance/clock-in", methods=["POST"], endpoint="attendance_clock_in")
    @json_errors
    @login_required
    def attendance_clock_in():
        data = json_body()
        record = container.attendance_service.clock_in(
            g.ctx, site_name=data.get("siteName", ""), notes=data.get("notes", "")
        )
        return ok(201, message="Clocked in", record=record_to_dict(record))

    @app.route("/api/attendance/clock-out", methods=["POST"], endpoint="attendance_clock_out")
    @json_errors
    @login_required
    def attendance_clock_out():
        record = container.attendance_service.clock_out(g.ctx, notes=json_body().get("notes"))
        return ok(message="Clocked out", record=record_to_dict(record))

    @app.route("/api/attendance/break-start", methods=["POST"], endpoint="attendance_break_start")
    @json_errors
    @login_required
    def attendance_break_start():
        b = container.attendance_service.start_break(g.ctx)
        return ok(201, message="Break started", breakRecord=break_to_dict(b))

    @app.route("/api/attendance/break-end", methods=["POST"], endpoint="attendance_break_end")
    @json_errors
    @login_required
    def attendance_break_end():
        b = container.attendance_service.end_break(g.ctx)
        return ok(message="Break ended", breakRecord=break_to_dict(b))

    @app.route("/api/attendance", methods=["GET"], endpoint="attendance_history")
    @json_errors
    @login_required
    def attendance_history():
        try:
            limit = int(request.args.get("limit", DEFAULT_HISTORY_LIMIT))
        except ValueError:
            raise ValidationError("limit must be a number")
        records = container.attendance_service.list_for_user(g.ctx, limit=limit)
        return ok(records=[record_to_dict(r) for r in records])
