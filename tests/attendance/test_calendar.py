import calendar
from datetime import date, datetime, timezone

import pytest

from src.attendance_hr.attendance_hr.attendance.calendar import build_month_grid
from src.attendance_hr.attendance_hr.attendance.model import AttendanceRecord
from src.attendance_hr.attendance_hr.core.enums import AttendanceStatus, DayStatus
from src.attendance_hr.attendance_hr.core.exceptions import ValidationError


def _record(day: date, *, out: bool = True) -> AttendanceRecord:
    check_in = datetime(day.year, day.month, day.day, 9, 0, tzinfo=timezone.utc)
    return AttendanceRecord(
        attendance_id=f"a-{day.isoformat()}",
        organization_id="org-1",
        employee_id="e1",
        work_date=day,
        check_in_time=check_in,
        check_out_time=check_in.replace(hour=17) if out else None,
        status=AttendanceStatus.ON_TIME,
    )


@pytest.mark.parametrize("year, month", [(2026, 2), (2026, 3), (2024, 2), (2025, 6), (2026, 8), (2027, 1)])
def test_grid_always_has_42_cells(year, month):
    grid = build_month_grid(year, month, [], today=date(2026, 3, 4))

    assert len(grid) == 42
    assert sum(1 for c in grid if c.is_current_month) == calendar.monthrange(year, month)[1]


def test_grid_starts_on_sunday():
    grid = build_month_grid(2026, 4, [], today=date(2026, 3, 4))

    # April 1st 2026 is a Wednesday: three leading days from March
    assert grid[0].day == date(2026, 3, 29)
    assert grid[0].day.weekday() == 6
    assert [c.is_current_month for c in grid[:4]] == [False, False, False, True]


def test_statuses_follow_records_and_today():
    records = [_record(date(2026, 3, 2)), _record(date(2026, 3, 3), out=False)]
    grid = {c.day: c for c in build_month_grid(2026, 3, records, today=date(2026, 3, 4))}

    assert grid[date(2026, 3, 2)].status == DayStatus.COMPLETE
    assert grid[date(2026, 3, 3)].status == DayStatus.INCOMPLETE
    # today and future weekdays are not absent yet
    assert grid[date(2026, 3, 4)].status == DayStatus.NONE
    assert grid[date(2026, 3, 4)].is_today
    assert grid[date(2026, 3, 5)].status == DayStatus.NONE
    # Sunday 1st is not a working day
    assert grid[date(2026, 3, 1)].status == DayStatus.NONE


def test_past_weekday_without_record_is_absent():
    grid = {c.day: c for c in build_month_grid(2026, 2, [], today=date(2026, 3, 4))}

    assert grid[date(2026, 2, 2)].status == DayStatus.ABSENT
    assert grid[date(2026, 2, 7)].status == DayStatus.NONE


def test_neighbour_month_cells_are_none_even_with_data():
    records = [_record(date(2026, 3, 2))]
    grid = build_month_grid(2026, 2, records, today=date(2026, 4, 15))
    trailing = [c for c in grid if not c.is_current_month]

    assert trailing
    assert all(c.status == DayStatus.NONE for c in trailing)
    assert all(c.record is None for c in trailing)


def test_custom_working_days():
    # Monday..Saturday
    grid = {c.day: c for c in build_month_grid(2026, 2, [], today=date(2026, 3, 4), working_days=frozenset(range(6)))}
    assert grid[date(2026, 2, 7)].status == DayStatus.ABSENT


def test_invalid_month():
    with pytest.raises(ValidationError):
        build_month_grid(2026, 13, [], today=date(2026, 3, 4))
