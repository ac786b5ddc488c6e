from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Optional, Sequence

from ..attendance.model import AttendanceRecord, AttendanceReportRow
from ..attendance.repository import AttendanceRepository
from ..attendance.schedule import resolve_schedule
from ..common.datetime_utils import Timestamp, ensure_utc, local_date, now_utc
from ..core.constants import DEFAULT_REPORT_DAYS, DEFAULT_STANDARD_DAILY_HOURS
from ..core.context import RequestContext
from ..core.exceptions import NotFoundError, ValidationError
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..organization.service import OrganizationService
from .statistics import (
    AttendanceSummary,
    expected_working_days,
    group_by_department,
    group_by_employee,
    group_by_week,
    summarize,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReportData:
    rows: list[AttendanceReportRow]
    summary: AttendanceSummary
    start: date
    end: date
    weekly: dict = field(default_factory=dict)
    departments: list[dict] = field(default_factory=list)
    employees: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "summary": self.summary.to_dict(),
            "weekly": [dict(s.to_dict(), week_start=k.isoformat()) for k, s in self.weekly.items()],
            "departments": self.departments,
            "employees": self.employees,
        }


def _check_period(start: date, end: date) -> None:
    if end < start:
        raise ValidationError("end date must not be before start date")


def _month_bounds(year: int, month: int) -> tuple[date, date]:
    first = date(year, month, 1)
    following = date(year + month // 12, month % 12 + 1, 1)
    return first, following - timedelta(days=1)


class ReportService:
    """Dashboards, analytics and report read-models built on the statistics module."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        employees: EmployeeRepository,
        organization: OrganizationService,
        *,
        standard_daily_hours: float = DEFAULT_STANDARD_DAILY_HOURS,
    ):
        self._attendance = attendance
        self._employees = employees
        self._organization = organization
        self._standard_daily_hours = float(standard_daily_hours)

    def _today(self, organization_id: str, now: Optional[Timestamp]) -> date:
        instant = ensure_utc(now) if now is not None else now_utc()
        return local_date(instant, self._organization.timezone_for(organization_id))

    def _working_days(self, organization_id: str, employee: Optional[Employee] = None) -> frozenset[int]:
        policy = self._organization.get_active_policy(organization_id)
        return resolve_schedule(employee, policy, standard_daily_hours=self._standard_daily_hours).working_days

    def _join(self, ctx: RequestContext, records: Sequence[AttendanceRecord]) -> list[AttendanceReportRow]:
        employees = {e.employee_id: e for e in self._employees.list_for_organization(ctx.organization_id)}
        departments = {d.department_id: d for d in self._organization.list_departments(ctx, include_inactive=True)}
        rows = []
        for r in records:
            emp = employees.get(r.employee_id)
            if emp is None:
                logger.warning("attendance %s references unknown employee %s", r.attendance_id, r.employee_id)
            dept = departments.get(emp.department_id) if emp and emp.department_id else None
            rows.append(
                AttendanceReportRow(
                    record=r,
                    employee_name=emp.full_name if emp else r.employee_id,
                    employee_code=emp.employee_code if emp else "",
                    department_id=emp.department_id if emp else None,
                    department_name=dept.name if dept else None,
                )
            )
        return rows

    # read-models

    def attendance_rows(
        self,
        ctx: RequestContext,
        *,
        start: date,
        end: date,
        department_id: Optional[str] = None,
        employee_id: Optional[str] = None,
    ) -> list[AttendanceReportRow]:
        _check_period(start, end)
        if employee_id:
            ctx.require_self_or_viewer(employee_id)
        else:
            ctx.require_viewer()
        employee_ids = None
        if department_id:
            employee_ids = [
                e.employee_id for e in self._employees.list_for_organization(ctx.organization_id, department_id=department_id)
            ]
        if employee_id:
            employee_ids = [employee_id] if employee_ids is None or employee_id in employee_ids else []
        records = self._attendance.list_for_organization(
            ctx.organization_id, start_date=start, end_date=end, employee_ids=employee_ids
        )
        return self._join(ctx, records)

    def dashboard_stats(self, ctx: RequestContext, *, now: Optional[Timestamp] = None) -> dict:
        ctx.require_viewer()
        today = self._today(ctx.organization_id, now)
        active = {e.employee_id for e in self._employees.list_for_organization(ctx.organization_id, active_only=True)}
        headcount = len(active)
        records = [
            r
            for r in self._attendance.list_for_organization(ctx.organization_id, start_date=today, end_date=today)
            if r.employee_id in active
        ]
        summary = summarize(records, headcount)
        departments = self._organization.list_departments(ctx)
        return {
            "date": today.isoformat(),
            "total_employees": headcount,
            "present_today": summary.present_days,
            "late_today": summary.late_days,
            "on_time_today": summary.on_time_days,
            "absent_today": summary.absent_days,
            "departments": len(departments),
            "attendance_rate": summary.attendance_rate,
            "punctuality_rate": summary.punctuality_rate,
            "hours_today": summary.total_hours,
            "overtime_hours_today": summary.overtime_hours,
        }

    def today_activity(self, ctx: RequestContext, *, now: Optional[Timestamp] = None, limit: int = 10) -> dict:
        ctx.require_viewer()
        today = self._today(ctx.organization_id, now)
        rows = self._join(
            ctx, self._attendance.list_for_organization(ctx.organization_id, start_date=today, end_date=today)
        )
        checked_in = [r for r in rows if r.record.check_in_time is not None]
        recent = sorted(
            checked_in,
            key=lambda r: r.record.check_out_time or r.record.check_in_time,
            reverse=True,
        )[: int(limit)]
        return {
            "date": today.isoformat(),
            "check_ins": len(checked_in),
            "check_outs": sum(1 for r in checked_in if r.record.check_out_time is not None),
            "pending_checkout": sum(1 for r in checked_in if r.record.check_out_time is None),
            "recent": [
                {
                    "employee_id": r.employee_id,
                    "employee_name": r.employee_name,
                    "department": r.department_name,
                    "status": r.status.value,
                    "check_in_time": r.record.check_in_time.isoformat(),
                    "check_out_time": r.record.check_out_time.isoformat() if r.record.check_out_time else None,
                }
                for r in recent
            ],
        }

    def absent_employees_today(self, ctx: RequestContext, *, now: Optional[Timestamp] = None) -> list[Employee]:
        """Active employees with no present-type record for today."""
        ctx.require_viewer()
        today = self._today(ctx.organization_id, now)
        present = {
            r.employee_id
            for r in self._attendance.list_for_organization(ctx.organization_id, start_date=today, end_date=today)
            if r.status.is_present
        }
        return [
            e
            for e in self._employees.list_for_organization(ctx.organization_id, active_only=True)
            if e.employee_id not in present
        ]

    def monthly_trends(self, ctx: RequestContext, *, months: int = 6, now: Optional[Timestamp] = None) -> list[dict]:
        """One summary per month, oldest first, ending with the current month."""
        ctx.require_viewer()
        if not 1 <= int(months) <= 24:
            raise ValidationError("months must be between 1 and 24")
        today = self._today(ctx.organization_id, now)
        active = {e.employee_id for e in self._employees.list_for_organization(ctx.organization_id, active_only=True)}
        headcount = len(active)
        working_days = self._working_days(ctx.organization_id)

        year, month = today.year, today.month
        periods = []
        for _ in range(int(months)):
            periods.append((year, month))
            year, month = (year - 1, 12) if month == 1 else (year, month - 1)

        first_start, _ = _month_bounds(*periods[-1])
        records = self._attendance.list_for_organization(ctx.organization_id, start_date=first_start, end_date=today)
        records = [r for r in records if r.employee_id in active]

        trends = []
        for y, m in reversed(periods):
            start, end = _month_bounds(y, m)
            end = min(end, today)
            in_month = [r for r in records if start <= r.work_date <= end]
            expected = headcount * expected_working_days(start, end, working_days)
            trends.append(dict(summarize(in_month, expected).to_dict(), month=f"{y:04d}-{m:02d}"))
        return trends

    def period_analytics(
        self,
        ctx: RequestContext,
        *,
        start: date,
        end: date,
        department_id: Optional[str] = None,
    ) -> ReportData:
        """Organization summary plus weekly, department and employee breakdowns."""
        ctx.require_viewer()
        _check_period(start, end)
        working_days = self._working_days(ctx.organization_id)
        days = expected_working_days(start, end, working_days)

        employees = self._employees.list_for_organization(
            ctx.organization_id, active_only=True, department_id=department_id
        )
        headcounts: dict = {}
        for e in employees:
            headcounts[e.department_id] = headcounts.get(e.department_id, 0) + 1

        # rates are measured against the active headcount, so rows of deactivated staff are left out
        active = {e.employee_id for e in employees}
        rows = [
            r for r in self.attendance_rows(ctx, start=start, end=end, department_id=department_id) if r.employee_id in active
        ]
        summary = summarize(rows, len(employees) * days)
        weekly = group_by_week(
            rows, headcount=len(employees), working_days=working_days, start_date=start, end_date=end
        )
        names = {r.department_id: r.department_name for r in rows}
        by_department = [
            dict(s.to_dict(), department_id=dept, department_name=names.get(dept) or "No department")
            for dept, s in group_by_department(rows, headcounts=headcounts, working_days_in_period=days).items()
        ]
        by_employee = [b.to_dict() for b in group_by_employee(rows, days)]
        return ReportData(
            rows=rows,
            summary=summary,
            start=start,
            end=end,
            weekly=weekly,
            departments=by_department,
            employees=by_employee,
        )

    def personal_report(
        self,
        ctx: RequestContext,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        employee_id: Optional[str] = None,
        now: Optional[Timestamp] = None,
    ) -> ReportData:
        """One employee's records and summary; defaults to the last week."""
        target = employee_id or ctx.employee_id
        ctx.require_self_or_viewer(target)
        employee = self._employees.get_by_id(ctx.organization_id, target)
        if not employee:
            raise NotFoundError("Employee not found")

        end = end or self._today(ctx.organization_id, now)
        start = start or end - timedelta(days=DEFAULT_REPORT_DAYS - 1)
        _check_period(start, end)

        records = self._attendance.list_for_employee(ctx.organization_id, target, start_date=start, end_date=end)
        rows = self._join(ctx, sorted(records, key=lambda r: r.work_date))
        working_days = self._working_days(ctx.organization_id, employee)
        days = expected_working_days(start, end, working_days)
        return ReportData(
            rows=rows,
            summary=summarize(rows, days),
            start=start,
            end=end,
            weekly=group_by_week(rows, headcount=1, working_days=working_days, start_date=start, end_date=end),
        )
