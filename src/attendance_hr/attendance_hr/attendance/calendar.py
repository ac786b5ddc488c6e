"""Month calendar projection: a fixed 6x7 grid of days, weeks starting on Sunday."""
from __future__ import annotations

import calendar as _calendar
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Optional

from ..core.constants import CALENDAR_CELLS, DEFAULT_WORKING_DAYS
from ..core.enums import DayStatus
from ..core.exceptions import ValidationError
from .model import AttendanceRecord
from .time_accounting import classify_day


@dataclass(frozen=True)
class CalendarDay:
    day: date
    label: str
    is_current_month: bool
    is_today: bool
    status: DayStatus
    record: Optional[AttendanceRecord] = None

    def to_dict(self) -> dict:
        return {
            "date": self.day.isoformat(),
            "label": self.label,
            "is_current_month": self.is_current_month,
            "is_today": self.is_today,
            "status": self.status.value,
            "record": self.record.to_dict() if self.record else None,
        }


def grid_start(year: int, month: int) -> date:
    first = date(year, month, 1)
    # weekday(): Monday=0 .. Sunday=6
    return first - timedelta(days=(first.weekday() + 1) % 7)


def build_month_grid(
    year: int,
    month: int,
    records: Iterable[AttendanceRecord],
    today: date,
    working_days: frozenset[int] = DEFAULT_WORKING_DAYS,
) -> list[CalendarDay]:
    """Always 42 cells; cells from neighbouring months carry status NONE."""
    if not 1 <= int(month) <= 12:
        raise ValidationError(f"Invalid month: {month!r}")

    by_date = {r.work_date: r for r in records}
    start = grid_start(year, month)
    days_in_month = _calendar.monthrange(year, month)[1]
    first = date(year, month, 1)
    last = date(year, month, days_in_month)

    cells = []
    for offset in range(CALENDAR_CELLS):
        day = start + timedelta(days=offset)
        in_month = first <= day <= last
        record = by_date.get(day) if in_month else None
        if in_month:
            status = classify_day(record, is_working_day=day.weekday() in working_days, is_past=day < today)
        else:
            status = DayStatus.NONE
        cells.append(
            CalendarDay(
                day=day,
                label=str(day.day),
                is_current_month=in_month,
                is_today=day == today,
                status=status,
                record=record,
            )
        )
    return cells
