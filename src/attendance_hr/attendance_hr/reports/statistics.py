"""Aggregation of attendance records into rates and per-group summaries.

Every rate is a percentage rounded to 2 decimals and is exactly 0.0 when its
denominator is 0. Groupings keep the order in which keys first appear.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date, timedelta
from typing import Iterable, Mapping, Optional, Protocol, Sequence

from ..core.constants import DEFAULT_WORKING_DAYS
from ..core.enums import AttendanceStatus


class StatRecord(Protocol):
    employee_id: str
    work_date: date
    status: AttendanceStatus
    work_hours: float
    overtime_hours: float


def _pct(numerator: float, denominator: float) -> float:
    if not denominator:
        return 0.0
    return round(numerator / denominator * 100, 2)


def attendance_rate(present_count: int, expected_count: int) -> float:
    return _pct(present_count, expected_count)


def punctuality_rate(on_time_count: int, present_count: int) -> float:
    return _pct(on_time_count, present_count)


def absenteeism_rate(absent_count: int, expected_count: int) -> float:
    return _pct(absent_count, expected_count)


def average_hours(total_hours: float, present_days: int) -> float:
    if not present_days:
        return 0.0
    return round(total_hours / present_days, 2)


def expected_working_days(start_date: date, end_date: date, working_days: Iterable[int] = DEFAULT_WORKING_DAYS) -> int:
    """Days in [start_date, end_date] whose weekday (Monday=0) is a working day."""
    if end_date < start_date:
        return 0
    mask = frozenset(working_days)
    total = (end_date - start_date).days + 1
    full_weeks, rest = divmod(total, 7)
    count = full_weeks * len(mask)
    for offset in range(rest):
        if (start_date + timedelta(days=full_weeks * 7 + offset)).weekday() in mask:
            count += 1
    return count


@dataclass(frozen=True)
class AttendanceSummary:
    records: int
    expected_days: int
    present_days: int
    on_time_days: int
    late_days: int
    early_leave_days: int
    absent_days: int
    total_hours: float
    overtime_hours: float
    attendance_rate: float
    punctuality_rate: float
    absenteeism_rate: float
    average_hours: float

    def to_dict(self) -> dict:
        return asdict(self)


def summarize(records: Iterable[StatRecord], expected_days: int) -> AttendanceSummary:
    """Reduce records to counts and rates against `expected_days` person-days."""
    count = present = late = early = 0
    hours = overtime = 0.0
    for r in records:
        count += 1
        hours += float(r.work_hours or 0)
        overtime += float(r.overtime_hours or 0)
        if not r.status.is_present:
            continue
        present += 1
        if r.status == AttendanceStatus.LATE:
            late += 1
        elif r.status == AttendanceStatus.EARLY_LEAVE:
            early += 1

    expected = max(int(expected_days), 0)
    absent = max(expected - present, 0)
    on_time = present - late
    return AttendanceSummary(
        records=count,
        expected_days=expected,
        present_days=present,
        on_time_days=on_time,
        late_days=late,
        early_leave_days=early,
        absent_days=absent,
        total_hours=round(hours, 2),
        overtime_hours=round(overtime, 2),
        attendance_rate=attendance_rate(present, expected),
        punctuality_rate=punctuality_rate(on_time, present),
        absenteeism_rate=absenteeism_rate(absent, expected),
        average_hours=average_hours(hours, present),
    )


def week_start(day: date) -> date:
    """Monday of the ISO week containing `day`."""
    return day - timedelta(days=day.weekday())


def _partition(records: Iterable, key) -> dict:
    groups: dict = {}
    for r in records:
        groups.setdefault(key(r), []).append(r)
    return groups


def group_by_week(
    records: Iterable[StatRecord],
    *,
    headcount: Optional[int] = None,
    working_days: Iterable[int] = DEFAULT_WORKING_DAYS,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> dict[date, AttendanceSummary]:
    """Summaries keyed by ISO week start.

    With a headcount, expected days are headcount x working days of that week
    (clipped to start_date/end_date); without one, every record is expected.
    """
    mask = frozenset(working_days)
    result = {}
    for monday, items in _partition(records, lambda r: week_start(r.work_date)).items():
        if headcount is None:
            expected = len(items)
        else:
            lo = max(monday, start_date) if start_date else monday
            hi = min(monday + timedelta(days=6), end_date) if end_date else monday + timedelta(days=6)
            expected = headcount * expected_working_days(lo, hi, mask)
        result[monday] = summarize(items, expected)
    return result


def group_by_department(
    rows: Iterable,
    *,
    headcounts: Optional[Mapping[Optional[str], int]] = None,
    working_days_in_period: int = 0,
) -> dict[Optional[str], AttendanceSummary]:
    """Summaries keyed by department id (None for employees without one).

    `rows` need a `department_id` attribute besides the record fields.
    """
    result = {}
    for dept, items in _partition(rows, lambda r: r.department_id).items():
        if headcounts is None:
            expected = len(items)
        else:
            expected = headcounts.get(dept, 0) * working_days_in_period
        result[dept] = summarize(items, expected)
    return result


@dataclass(frozen=True)
class EmployeeBreakdown:
    employee_id: str
    employee_name: str
    department_name: str
    total_hours: float
    regular_hours: float
    overtime_hours: float
    days_recorded: int
    late_arrivals: int
    early_departures: int
    absent_days: int
    attendance_rate: float
    punctuality_rate: float

    def to_dict(self) -> dict:
        return asdict(self)


def group_by_employee(rows: Sequence, expected_days: int) -> list[EmployeeBreakdown]:
    """Per-employee totals; `rows` are report rows carrying the employee's name."""
    out = []
    for employee_id, items in _partition(rows, lambda r: r.employee_id).items():
        s = summarize(items, expected_days)
        regular = sum(max(0.0, float(r.work_hours or 0) - float(r.overtime_hours or 0)) for r in items)
        first = items[0]
        out.append(
            EmployeeBreakdown(
                employee_id=employee_id,
                employee_name=first.employee_name,
                department_name=first.department_name or "No department",
                total_hours=s.total_hours,
                regular_hours=round(regular, 2),
                overtime_hours=s.overtime_hours,
                days_recorded=s.records,
                late_arrivals=s.late_days,
                early_departures=s.early_leave_days,
                absent_days=s.absent_days,
                attendance_rate=s.attendance_rate,
                punctuality_rate=s.punctuality_rate,
            )
        )
    return out
