from dataclasses import dataclass
from datetime import date
from typing import Optional

import pytest

from src.attendance_hr.attendance_hr.core.enums import AttendanceStatus
from src.attendance_hr.attendance_hr.reports.statistics import (
    absenteeism_rate,
    attendance_rate,
    average_hours,
    expected_working_days,
    group_by_department,
    group_by_employee,
    group_by_week,
    punctuality_rate,
    summarize,
)


@dataclass
class Row:
    employee_id: str
    work_date: date
    status: AttendanceStatus
    work_hours: float = 8.0
    overtime_hours: float = 0.0
    department_id: Optional[str] = None
    employee_name: str = "Someone"
    department_name: Optional[str] = None


@pytest.mark.parametrize("fn", [attendance_rate, punctuality_rate, absenteeism_rate])
def test_rates_are_zero_when_denominator_is_zero(fn):
    assert fn(0, 0) == 0
    assert fn(5, 0) == 0.0


def test_average_hours_zero_guard():
    assert average_hours(12.0, 0) == 0.0
    assert average_hours(17.0, 2) == 8.5


def test_rates():
    assert attendance_rate(7, 10) == 70.0
    assert punctuality_rate(2, 3) == 66.67
    assert absenteeism_rate(1, 8) == 12.5


def test_expected_working_days_default_mask():
    # Mon 2 .. Sun 15 March 2026: two full weeks
    assert expected_working_days(date(2026, 3, 2), date(2026, 3, 15)) == 10
    assert expected_working_days(date(2026, 3, 7), date(2026, 3, 8)) == 0
    assert expected_working_days(date(2026, 3, 4), date(2026, 3, 4)) == 1
    assert expected_working_days(date(2026, 3, 5), date(2026, 3, 4)) == 0


def test_expected_working_days_custom_mask():
    # Monday..Saturday in a 10 day window starting on a Wednesday
    assert expected_working_days(date(2026, 3, 4), date(2026, 3, 13), frozenset(range(6))) == 9


def test_summarize_counts_present_late_and_absent():
    rows = [
        Row("a", date(2026, 3, 2), AttendanceStatus.ON_TIME, 8.0),
        Row("a", date(2026, 3, 3), AttendanceStatus.LATE, 7.5),
        Row("a", date(2026, 3, 4), AttendanceStatus.OVERTIME, 9.0, 1.0),
        Row("a", date(2026, 3, 5), AttendanceStatus.SICK_LEAVE, 0.0),
    ]

    s = summarize(rows, expected_days=5)

    assert s.records == 4
    assert s.present_days == 3
    assert s.late_days == 1
    assert s.on_time_days == 2
    assert s.absent_days == 2
    assert s.total_hours == 24.5
    assert s.overtime_hours == 1.0
    assert s.attendance_rate == 60.0
    assert s.punctuality_rate == 66.67
    assert s.absenteeism_rate == 40.0
    assert s.average_hours == 8.17


def test_summarize_empty():
    s = summarize([], expected_days=0)
    assert (s.attendance_rate, s.punctuality_rate, s.absenteeism_rate, s.average_hours) == (0, 0, 0, 0)


def test_absent_count_never_negative():
    rows = [Row("a", date(2026, 3, 7), AttendanceStatus.PRESENT)]
    assert summarize(rows, expected_days=0).absent_days == 0


def test_group_by_department_empty():
    assert group_by_department([]) == {}


def test_group_by_department_keeps_first_seen_order():
    rows = [
        Row("a", date(2026, 3, 2), AttendanceStatus.ON_TIME, department_id="sales"),
        Row("b", date(2026, 3, 2), AttendanceStatus.LATE, department_id="it"),
        Row("c", date(2026, 3, 2), AttendanceStatus.ON_TIME, department_id="sales"),
    ]

    groups = group_by_department(rows, headcounts={"sales": 4, "it": 1}, working_days_in_period=1)

    assert list(groups) == ["sales", "it"]
    assert groups["sales"].attendance_rate == 50.0
    assert groups["it"].punctuality_rate == 0.0


def test_group_by_week_uses_iso_week_start():
    rows = [
        Row("a", date(2026, 3, 11), AttendanceStatus.ON_TIME),
        Row("a", date(2026, 3, 2), AttendanceStatus.ON_TIME),
        Row("a", date(2026, 3, 4), AttendanceStatus.LATE),
    ]

    weeks = group_by_week(rows, headcount=1, start_date=date(2026, 3, 2), end_date=date(2026, 3, 11))

    assert list(weeks) == [date(2026, 3, 9), date(2026, 3, 2)]
    assert weeks[date(2026, 3, 2)].present_days == 2
    assert weeks[date(2026, 3, 2)].expected_days == 5
    # clipped at end_date (Wednesday)
    assert weeks[date(2026, 3, 9)].expected_days == 3


def test_group_by_employee():
    rows = [
        Row("a", date(2026, 3, 2), AttendanceStatus.LATE, 9.0, 1.0, employee_name="Ann", department_name="IT"),
        Row("a", date(2026, 3, 3), AttendanceStatus.ON_TIME, 8.0, employee_name="Ann", department_name="IT"),
        Row("b", date(2026, 3, 2), AttendanceStatus.EARLY_LEAVE, 6.0, employee_name="Bob"),
    ]

    ann, bob = group_by_employee(rows, expected_days=4)

    assert ann.employee_name == "Ann"
    assert ann.total_hours == 17.0
    assert ann.regular_hours == 16.0
    assert ann.late_arrivals == 1
    assert ann.attendance_rate == 50.0
    assert ann.punctuality_rate == 50.0
    assert bob.department_name == "No department"
    assert bob.early_departures == 1
    assert bob.absent_days == 3
