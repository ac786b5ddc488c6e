from __future__ import annotations

from datetime import timedelta

from flask import Flask, request

from ..common.datetime_utils import local_date, now_utc
from ..common.http import current_context, date_arg, int_arg, json_body, make_guards, ok
from ..core.constants import DEFAULT_HISTORY_LIMIT, DEFAULT_REPORT_DAYS
from ..reports.export import XLSX_MIMETYPE, attendance_csv, attendance_xlsx


def register(app: Flask, container) -> None:
    login_required, admin_required, viewer_required = make_guards(container)
    attendance = container.attendance_service

    # employee self-service

    @app.route("/api/attendance/check-in", methods=["POST"], endpoint="attendance_check_in")
    @login_required
    def check_in():
        data = json_body()
        record = attendance.check_in(
            current_context(),
            location=data.get("location") or None,
            remote=bool(data.get("remote", False)),
            notes=data.get("notes") or None,
        )
        return ok("Checked in", status=201, attendance=record.to_dict())

    @app.route("/api/attendance/check-out", methods=["POST"], endpoint="attendance_check_out")
    @login_required
    def check_out():
        data = json_body()
        record = attendance.check_out(current_context(), notes=data.get("notes") or None)
        return ok("Checked out", attendance=record.to_dict())

    @app.route("/api/attendance/break/start", methods=["POST"], endpoint="attendance_break_start")
    @login_required
    def break_start():
        data = json_body()
        record = attendance.start_break(current_context(), data.get("type"))
        return ok("Break started", attendance=record.to_dict())

    @app.route("/api/attendance/break/end", methods=["POST"], endpoint="attendance_break_end")
    @login_required
    def break_end():
        record = attendance.end_break(current_context())
        return ok("Break ended", attendance=record.to_dict())

    @app.route("/api/attendance/today", methods=["GET"], endpoint="attendance_today")
    @login_required
    def today():
        record = attendance.today(current_context())
        return ok(attendance=record.to_dict() if record else None)

    @app.route("/api/attendance/history", methods=["GET"], endpoint="attendance_history")
    @login_required
    def history():
        records = attendance.history(
            current_context(),
            request.args.get("employee_id") or None,
            limit=int_arg("limit", DEFAULT_HISTORY_LIMIT),
            start_date=date_arg("start"),
            end_date=date_arg("end"),
        )
        return ok(attendance=[r.to_dict() for r in records])

    @app.route("/api/attendance/calendar", methods=["GET"], endpoint="attendance_calendar")
    @login_required
    def calendar():
        ctx = current_context()
        today = local_date(now_utc(), container.organization_service.timezone_for(ctx.organization_id))
        days = attendance.month_calendar(
            ctx,
            int_arg("year", today.year),
            int_arg("month", today.month),
            employee_id=request.args.get("employee_id") or None,
        )
        return ok(days=[d.to_dict() for d in days])

    # administration

    def _period():
        ctx = current_context()
        today = local_date(now_utc(), container.organization_service.timezone_for(ctx.organization_id))
        end = date_arg("end", today)
        start = date_arg("start", end - timedelta(days=DEFAULT_REPORT_DAYS - 1))
        return start, end

    @app.route("/api/admin/attendance", methods=["GET"], endpoint="admin_attendance")
    @viewer_required
    def list_attendance():
        start, end = _period()
        records = attendance.list_for_organization(
            current_context(),
            start_date=start,
            end_date=end,
            department_id=request.args.get("department_id") or None,
            employee_id=request.args.get("employee_id") or None,
            status=request.args.get("status") or None,
        )
        return ok(start=start.isoformat(), end=end.isoformat(), attendance=[r.to_dict() for r in records])

    def _export_rows():
        start, end = _period()
        ctx = current_context()
        rows = container.report_service.attendance_rows(
            ctx,
            start=start,
            end=end,
            department_id=request.args.get("department_id") or None,
            employee_id=request.args.get("employee_id") or None,
        )
        return rows, start, end, container.organization_service.timezone_for(ctx.organization_id)

    @app.route("/api/admin/attendance.csv", methods=["GET"], endpoint="admin_attendance_csv")
    @viewer_required
    def attendance_export_csv():
        rows, start, end, tz = _export_rows()
        filename = f"attendance_report_{start.strftime('%Y%m%d')}_{end.strftime('%Y%m%d')}.csv"
        return app.response_class(
            attendance_csv(rows, tz).encode("utf-8-sig"),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @app.route("/api/admin/attendance.xlsx", methods=["GET"], endpoint="admin_attendance_xlsx")
    @viewer_required
    def attendance_export_xlsx():
        rows, start, end, tz = _export_rows()
        filename = f"attendance_report_{start.strftime('%Y%m%d')}_{end.strftime('%Y%m%d')}.xlsx"
        return app.response_class(
            attendance_xlsx(rows, tz),
            mimetype=XLSX_MIMETYPE,
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @app.route("/api/admin/attendance/<attendance_id>", methods=["PATCH"], endpoint="admin_attendance_update")
    @admin_required
    def update_attendance(attendance_id: str):
        record = attendance.admin_update(current_context(), attendance_id, json_body())
        return ok("Attendance updated", attendance=record.to_dict())

    @app.route("/api/admin/attendance/absence", methods=["POST"], endpoint="admin_attendance_absence")
    @admin_required
    def mark_absent():
        data = json_body()
        record = attendance.mark_absent(
            current_context(),
            data.get("employee_id") or "",
            data.get("date"),
            status=data.get("status") or "absent",
            notes=data.get("notes") or None,
        )
        return ok("Absence recorded", status=201, attendance=record.to_dict())
