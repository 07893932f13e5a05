from __future__ import annotations

from flask import Flask, g, request

from ..attendance.controller import record_to_dict
from ..container import Container
from ..core.enums import ReportMode
from ..core.exceptions import ValidationError
from ..web import admin_required, json_errors, ok
from .service import ReportFilter


def _report_filter() -> ReportFilter:
    args = request.args
    try:
        mode = ReportMode(args.get("mode", ReportMode.DAILY.value))
    except ValueError:
        raise ValidationError(f"Unknown report mode: {args.get('mode')}")
    return ReportFilter(
        mode=mode,
        date=args.get("date") or None,
        month=args.get("month") or None,
        user_id=args.get("userId") or None,
        site_name=args.get("siteName") or None,
        sort_field=args.get("sort", "date"),
        sort_direction=args.get("direction", "desc"),
    )


def register(app: Flask, container: Container) -> None:
    @app.route("/api/admin/attendance", methods=["GET"], endpoint="admin_attendance")
    @json_errors
    @admin_required
    def admin_attendance():
        report = container.report_service.build(g.ctx, _report_filter())
        rows = [
            {
                **record_to_dict(r.record),
                "breakMinutes": r.break_minutes,
                "workingMinutes": r.working_minutes,
                "workingHours": r.working_hours,
            }
            for r in report.rows
        ]
        return ok(rows=rows, totalMinutes=report.total_minutes, totalHours=report.total_hours)

    @app.route("/api/admin/sites", methods=["GET"], endpoint="admin_sites")
    @json_errors
    @admin_required
    def admin_sites():
        return ok(sites=container.report_service.list_sites(g.ctx))

    @app.route("/api/admin/employees", methods=["GET"], endpoint="admin_employees")
    @json_errors
    @admin_required
    def admin_employees():
        return ok(employees=container.report_service.list_employees(g.ctx))
