from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, tzinfo
from typing import Any, Callable, Mapping, Optional, Sequence

from ..common.datetime_utils import Timestamp, ensure_utc, local_date, now_utc, optional_utc, parse_iso_date
from ..core.constants import DEFAULT_HISTORY_LIMIT, DEFAULT_STANDARD_DAILY_HOURS
from ..core.context import RequestContext
from ..core.enums import AttendanceStatus, BreakType
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..organization.service import OrganizationService
from .calendar import CalendarDay, build_month_grid
from .factory import AttendanceStrategyFactory
from .model import AttendanceRecord, BreakInterval, LocationData, parse_breaks, parse_status
from .repository import AttendanceRepository
from .schedule import EffectiveSchedule, resolve_schedule
from .time_accounting import compute_overtime, compute_worked_hours

logger = logging.getLogger(__name__)


def _parse_break_type(value: Any) -> BreakType:
    try:
        return BreakType(value or BreakType.SHORT_BREAK.value)
    except ValueError:
        raise ValidationError(f"Invalid break type: {value!r}") from None


class AttendanceService:
    """Use cases: daily check-in/out, breaks, history, calendar and admin corrections."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        employees: EmployeeRepository,
        organization: OrganizationService,
        *,
        strategy_factory: AttendanceStrategyFactory | None = None,
        standard_daily_hours: float = DEFAULT_STANDARD_DAILY_HOURS,
        id_factory: Callable[[], str] | None = None,
    ):
        self._attendance = attendance
        self._employees = employees
        self._organization = organization
        self._factory = strategy_factory or AttendanceStrategyFactory()
        self._standard_daily_hours = float(standard_daily_hours)
        self._new_id = id_factory or (lambda: str(uuid.uuid4()))

    def _employee(self, ctx: RequestContext, employee_id: str) -> Employee:
        employee = self._employees.get_by_id(ctx.organization_id, employee_id)
        if not employee:
            raise NotFoundError("Employee not found")
        return employee

    def _schedule(self, employee: Optional[Employee], organization_id: str) -> tuple[EffectiveSchedule, tzinfo]:
        policy = self._organization.get_active_policy(organization_id)
        schedule = resolve_schedule(employee, policy, standard_daily_hours=self._standard_daily_hours)
        return schedule, self._organization.timezone_for(organization_id)

    def _today_record(self, ctx: RequestContext, now: datetime, tz: tzinfo) -> Optional[AttendanceRecord]:
        return self._attendance.get_for_employee_and_date(ctx.organization_id, ctx.employee_id, local_date(now, tz))

    def _require_open_day(self, ctx: RequestContext, now: datetime, tz: tzinfo) -> AttendanceRecord:
        record = self._today_record(ctx, now, tz)
        if not record or record.check_in_time is None:
            raise ValidationError("You have not checked in today")
        if record.check_out_time is not None:
            raise ConflictError("You have already checked out today")
        return record

    # employee self-service

    def check_in(
        self,
        ctx: RequestContext,
        *,
        now: Optional[Timestamp] = None,
        location: Optional[Mapping[str, Any]] = None,
        remote: bool = False,
        notes: Optional[str] = None,
    ) -> AttendanceRecord:
        instant = ensure_utc(now) if now is not None else now_utc()
        employee = self._employee(ctx, ctx.employee_id)
        if not employee.is_active:
            raise ValidationError("Inactive employees cannot check in")

        schedule, tz = self._schedule(employee, ctx.organization_id)
        if remote and not schedule.allow_remote:
            raise ValidationError("Remote work is not allowed by the work policy")
        loc = LocationData.from_dict(location) if location else None
        if schedule.require_geolocation and loc is None:
            raise ValidationError("Location is required to check in")

        strategy = self._factory.for_checkin(now=instant, schedule=schedule, tz=tz, remote=remote)
        decision = strategy.decide_checkin(now=instant, schedule=schedule, tz=tz)
        note = " | ".join(n for n in (notes, decision.note) if n) or None

        record = AttendanceRecord(
            attendance_id=self._new_id(),
            organization_id=ctx.organization_id,
            employee_id=employee.employee_id,
            work_date=local_date(instant, tz),
            check_in_time=instant,
            check_out_time=None,
            status=decision.status,
            notes=note,
            location=loc,
        )
        stored, created = self._attendance.record_checkin(record)
        if created:
            logger.info("check-in employee=%s date=%s status=%s", employee.employee_id, record.work_date, decision.status.value)
            return stored
        if stored.check_in_time is not None:
            raise ConflictError("You have already checked in today", details={"attendance_id": stored.attendance_id})

        # row pre-created by an administrator (e.g. marked absent): fill it in
        return self._attendance.save(
            stored.with_changes(
                check_in_time=instant,
                status=decision.status,
                notes=note or stored.notes,
                location=loc or stored.location,
            )
        )

    def check_out(self, ctx: RequestContext, *, now: Optional[Timestamp] = None, notes: Optional[str] = None) -> AttendanceRecord:
        instant = ensure_utc(now) if now is not None else now_utc()
        employee = self._employee(ctx, ctx.employee_id)
        schedule, tz = self._schedule(employee, ctx.organization_id)
        record = self._require_open_day(ctx, instant, tz)
        if instant <= record.check_in_time:
            raise ValidationError("Check-out must be later than check-in")

        breaks = tuple(b if not b.is_open else BreakInterval(b.break_type, b.start, instant) for b in record.breaks)
        worked = compute_worked_hours(record.check_in_time, instant, breaks)
        overtime = compute_overtime(worked, schedule.standard_daily_hours)

        strategy = self._factory.for_checkout(
            now=instant, schedule=schedule, tz=tz, current_status=record.status, overtime_hours=overtime
        )
        decision = strategy.decide_checkout(
            now=instant, schedule=schedule, tz=tz, current=record.status, overtime_hours=overtime
        )
        note = " | ".join(n for n in (record.notes, notes, decision.note) if n) or None

        saved = self._attendance.save(
            record.with_changes(
                check_out_time=instant,
                breaks=breaks,
                work_hours=worked,
                overtime_hours=overtime,
                status=decision.status,
                notes=note,
            )
        )
        logger.info("check-out employee=%s date=%s hours=%.2f", employee.employee_id, saved.work_date, worked)
        return saved

    def start_break(self, ctx: RequestContext, break_type: Any = None, *, now: Optional[Timestamp] = None) -> AttendanceRecord:
        instant = ensure_utc(now) if now is not None else now_utc()
        kind = _parse_break_type(break_type)
        tz = self._organization.timezone_for(ctx.organization_id)
        record = self._require_open_day(ctx, instant, tz)
        if record.open_break is not None:
            raise ConflictError("A break is already in progress")
        if instant < record.check_in_time:
            raise ValidationError("Break cannot start before check-in")
        return self._attendance.save(record.with_changes(breaks=record.breaks + (BreakInterval(kind, instant),)))

    def end_break(self, ctx: RequestContext, *, now: Optional[Timestamp] = None) -> AttendanceRecord:
        instant = ensure_utc(now) if now is not None else now_utc()
        tz = self._organization.timezone_for(ctx.organization_id)
        record = self._require_open_day(ctx, instant, tz)
        current = record.open_break
        if current is None:
            raise ValidationError("No break in progress")
        if instant < current.start:
            raise ValidationError("Break cannot end before it started")
        breaks = tuple(BreakInterval(b.break_type, b.start, instant) if b is current else b for b in record.breaks)
        return self._attendance.save(record.with_changes(breaks=breaks))

    def today(self, ctx: RequestContext, *, now: Optional[Timestamp] = None) -> Optional[AttendanceRecord]:
        """Today's record or None; no record yet is a normal state."""
        instant = ensure_utc(now) if now is not None else now_utc()
        return self._today_record(ctx, instant, self._organization.timezone_for(ctx.organization_id))

    def history(
        self,
        ctx: RequestContext,
        employee_id: Optional[str] = None,
        *,
        limit: int = DEFAULT_HISTORY_LIMIT,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Sequence[AttendanceRecord]:
        target = employee_id or ctx.employee_id
        ctx.require_self_or_viewer(target)
        return self._attendance.list_for_employee(
            ctx.organization_id, target, start_date=start_date, end_date=end_date, limit=int(limit)
        )

    def month_calendar(
        self,
        ctx: RequestContext,
        year: int,
        month: int,
        *,
        employee_id: Optional[str] = None,
        now: Optional[Timestamp] = None,
    ) -> list[CalendarDay]:
        target = employee_id or ctx.employee_id
        ctx.require_self_or_viewer(target)
        employee = self._employee(ctx, target)
        schedule, tz = self._schedule(employee, ctx.organization_id)
        instant = ensure_utc(now) if now is not None else now_utc()

        if not 1 <= int(month) <= 12:
            raise ValidationError(f"Invalid month: {month!r}")
        first = date(int(year), int(month), 1)
        last = date(first.year + first.month // 12, first.month % 12 + 1, 1)
        records = [
            r
            for r in self._attendance.list_for_employee(ctx.organization_id, target, start_date=first)
            if r.work_date < last
        ]
        return build_month_grid(first.year, first.month, records, local_date(instant, tz), schedule.working_days)

    # administration

    def list_for_organization(
        self,
        ctx: RequestContext,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        department_id: Optional[str] = None,
        employee_id: Optional[str] = None,
        status: Optional[Any] = None,
    ) -> Sequence[AttendanceRecord]:
        ctx.require_viewer()
        employee_ids = None
        if department_id:
            employee_ids = [
                e.employee_id for e in self._employees.list_for_organization(ctx.organization_id, department_id=department_id)
            ]
        if employee_id:
            employee_ids = [employee_id] if employee_ids is None or employee_id in employee_ids else []
        return self._attendance.list_for_organization(
            ctx.organization_id,
            start_date=start_date,
            end_date=end_date,
            employee_ids=employee_ids,
            status=parse_status(status) if status else None,
        )

    def admin_update(self, ctx: RequestContext, attendance_id: str, patch: Mapping[str, Any]) -> AttendanceRecord:
        """Correct a record; hours are recomputed whenever the day is closed."""
        ctx.require_manager()
        record = self._attendance.get_by_id(ctx.organization_id, attendance_id)
        if not record:
            raise NotFoundError("Attendance record not found")

        changes: dict[str, Any] = {}
        if "check_in_time" in patch:
            changes["check_in_time"] = optional_utc(patch["check_in_time"])
        if "check_out_time" in patch:
            changes["check_out_time"] = optional_utc(patch["check_out_time"])
        if "status" in patch:
            changes["status"] = parse_status(patch["status"])
        if "notes" in patch:
            changes["notes"] = patch["notes"] or None
        if "breaks" in patch:
            changes["breaks"] = parse_breaks(patch["breaks"])
        updated = record.with_changes(**changes)

        if updated.check_out_time is not None:
            if updated.check_in_time is None:
                raise ValidationError("check_out_time requires check_in_time")
            if updated.check_out_time <= updated.check_in_time:
                raise ValidationError("Check-out must be later than check-in")
            employee = self._employees.get_by_id(ctx.organization_id, record.employee_id)
            schedule, _ = self._schedule(employee, ctx.organization_id)
            worked = compute_worked_hours(updated.check_in_time, updated.check_out_time, updated.breaks)
            updated = updated.with_changes(
                work_hours=worked,
                overtime_hours=compute_overtime(worked, schedule.standard_daily_hours),
            )
        else:
            updated = updated.with_changes(work_hours=0.0, overtime_hours=0.0)

        logger.info("attendance %s corrected by %s: %s", attendance_id, ctx.employee_id, sorted(changes))
        return self._attendance.save(updated)

    def mark_absent(
        self,
        ctx: RequestContext,
        employee_id: str,
        work_date: Any,
        *,
        status: Any = AttendanceStatus.ABSENT,
        notes: Optional[str] = None,
    ) -> AttendanceRecord:
        """Record a day without check-in (absent, sick leave, vacation)."""
        ctx.require_manager()
        day_status = parse_status(status)
        if day_status.is_present:
            raise ValidationError(f"{day_status.value} requires a check-in")
        employee = self._employee(ctx, employee_id)
        record = AttendanceRecord(
            attendance_id=self._new_id(),
            organization_id=ctx.organization_id,
            employee_id=employee.employee_id,
            work_date=parse_iso_date(work_date),
            check_in_time=None,
            check_out_time=None,
            status=day_status,
            notes=notes,
        )
        stored, created = self._attendance.record_checkin(record)
        if not created:
            raise ConflictError("Attendance already recorded for that day", details={"attendance_id": stored.attendance_id})
        return stored
