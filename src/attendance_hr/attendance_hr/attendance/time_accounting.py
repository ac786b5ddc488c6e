"""Time accounting for attendance records.

Pure functions: given the timestamps of one working day, derive worked hours,
overtime and punctuality. Timestamps are UTC instants (aware datetimes or
ISO-8601 strings with an offset); wall-clock comparisons happen in the
organization timezone passed by the caller.
"""
from __future__ import annotations

from datetime import datetime, time, timedelta, timezone, tzinfo
from typing import Iterable, Optional

from ..common.datetime_utils import Timestamp, ensure_utc, optional_utc
from ..core.enums import AttendanceStatus, DayStatus, Punctuality
from ..core.exceptions import ValidationError
from .model import AttendanceRecord, BreakInterval


def break_minutes(
    breaks: Iterable[BreakInterval],
    *,
    check_in: Timestamp,
    check_out: Timestamp,
) -> float:
    """Minutes of break time inside [check_in, check_out].

    A break still running at check-out counts up to check-out.
    """
    start_bound = ensure_utc(check_in)
    end_bound = ensure_utc(check_out)
    total = 0.0
    for b in breaks:
        start = max(ensure_utc(b.start), start_bound)
        end = min(ensure_utc(b.end) if b.end else end_bound, end_bound)
        if end > start:
            total += (end - start).total_seconds() / 60
    return total


def compute_worked_hours(
    check_in: Optional[Timestamp],
    check_out: Optional[Timestamp],
    breaks: Iterable[BreakInterval] = (),
) -> float:
    """Elapsed hours between check-in and check-out minus breaks, 2 decimals.

    A missing check-in or check-out means the day is not closed yet: 0.0.
    """
    start = optional_utc(check_in)
    end = optional_utc(check_out)
    if start is None or end is None:
        return 0.0
    if end <= start:
        raise ValidationError("check-out must be later than check-in")

    elapsed = (end - start).total_seconds() / 60
    worked = elapsed - break_minutes(breaks, check_in=start, check_out=end)
    return round(max(worked, 0.0) / 60, 2)


def compute_overtime(worked_hours: float, standard_daily_hours: float) -> float:
    return round(max(0.0, float(worked_hours) - float(standard_daily_hours)), 2)


def _scheduled_instant(check_in: datetime, scheduled_start: time, tz: tzinfo) -> datetime:
    local = check_in.astimezone(tz)
    return datetime.combine(local.date(), scheduled_start, tzinfo=tz)


def minutes_late(check_in: Timestamp, scheduled_start: Optional[time], tz: tzinfo = timezone.utc) -> int:
    """Whole minutes after the scheduled start (0 when early or unscheduled)."""
    if scheduled_start is None:
        return 0
    instant = ensure_utc(check_in)
    delta = instant - _scheduled_instant(instant, scheduled_start, tz)
    return max(0, int(delta.total_seconds() // 60))


def classify_punctuality(
    check_in: Timestamp,
    scheduled_start: Optional[time],
    late_threshold_minutes: int,
    tz: tzinfo = timezone.utc,
) -> Punctuality:
    """ON_TIME when check-in <= scheduled start + threshold on the local date."""
    instant = ensure_utc(check_in)
    if scheduled_start is None:
        return Punctuality.ON_TIME
    limit = _scheduled_instant(instant, scheduled_start, tz) + timedelta(minutes=int(late_threshold_minutes or 0))
    return Punctuality.ON_TIME if instant <= limit else Punctuality.LATE


def classify_day(
    record: Optional[AttendanceRecord],
    *,
    is_working_day: bool,
    is_past: bool,
) -> DayStatus:
    """Calendar status of one day.

    Precedence: complete, incomplete, absent, none.
    """
    if record is not None and record.check_in_time is not None:
        if record.check_out_time is not None:
            if ensure_utc(record.check_out_time) <= ensure_utc(record.check_in_time):
                raise ValidationError(f"Attendance {record.attendance_id} checks out before it checks in")
            return DayStatus.COMPLETE
        return DayStatus.INCOMPLETE
    if record is None:
        return DayStatus.ABSENT if is_working_day and is_past else DayStatus.NONE
    # leave days and other rows without a check-in are not absences
    return DayStatus.ABSENT if record.status == AttendanceStatus.ABSENT else DayStatus.NONE
