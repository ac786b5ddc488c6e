from __future__ import annotations

from datetime import timedelta

from flask import Flask, request

from ..common.datetime_utils import local_date, now_utc
from ..common.http import current_context, date_arg, int_arg, make_guards, ok
from ..core.constants import DEFAULT_REPORT_DAYS
from .export import attendance_csv


def register(app: Flask, container) -> None:
    login_required, _, viewer_required = make_guards(container)
    reports = container.report_service

    @app.route("/api/me/report", methods=["GET"], endpoint="me_report")
    @login_required
    def me_report():
        data = reports.personal_report(current_context(), start=date_arg("start"), end=date_arg("end"))
        body = data.to_dict()
        body["attendance"] = [r.record.to_dict() for r in data.rows]
        return ok(**body)

    @app.route("/api/me/report.csv", methods=["GET"], endpoint="me_report_csv")
    @login_required
    def me_report_csv():
        ctx = current_context()
        data = reports.personal_report(ctx, start=date_arg("start"), end=date_arg("end"))
        tz = container.organization_service.timezone_for(ctx.organization_id)
        filename = f"my_attendance_{data.start.strftime('%Y%m%d')}_{data.end.strftime('%Y%m%d')}.csv"
        return app.response_class(
            attendance_csv(data.rows, tz).encode("utf-8-sig"),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @app.route("/api/admin/dashboard", methods=["GET"], endpoint="admin_dashboard")
    @viewer_required
    def dashboard():
        ctx = current_context()
        return ok(
            stats=reports.dashboard_stats(ctx),
            activity=reports.today_activity(ctx),
            absent=[e.to_dict() for e in reports.absent_employees_today(ctx)],
        )

    @app.route("/api/admin/analytics", methods=["GET"], endpoint="admin_analytics")
    @viewer_required
    def analytics():
        ctx = current_context()
        today = local_date(now_utc(), container.organization_service.timezone_for(ctx.organization_id))
        end = date_arg("end", today)
        start = date_arg("start", end - timedelta(days=DEFAULT_REPORT_DAYS - 1))
        data = reports.period_analytics(
            ctx, start=start, end=end, department_id=request.args.get("department_id") or None
        )
        return ok(**data.to_dict())

    @app.route("/api/admin/trends", methods=["GET"], endpoint="admin_trends")
    @viewer_required
    def trends():
        return ok(months=reports.monthly_trends(current_context(), months=int_arg("months", 6)))
