from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from typing import Optional

from ..core.constants import DEFAULT_LATE_THRESHOLD_MINUTES, DEFAULT_STANDARD_DAILY_HOURS, DEFAULT_WORKING_DAYS
from ..employees.model import Employee
from ..organization.model import WorkPolicy


@dataclass(frozen=True)
class EffectiveSchedule:
    """The schedule that applies to one employee: personal override first, then policy."""

    start_time: Optional[time]
    end_time: Optional[time]
    late_threshold: int = DEFAULT_LATE_THRESHOLD_MINUTES
    standard_daily_hours: float = DEFAULT_STANDARD_DAILY_HOURS
    working_days: frozenset[int] = DEFAULT_WORKING_DAYS
    allow_remote: bool = True
    require_geolocation: bool = False


def resolve_schedule(
    employee: Optional[Employee],
    policy: Optional[WorkPolicy],
    *,
    standard_daily_hours: float = DEFAULT_STANDARD_DAILY_HOURS,
) -> EffectiveSchedule:
    override = employee.work_schedule if employee else None

    start = policy.start_time if policy else None
    end = policy.end_time if policy else None
    hours = (policy.standard_daily_hours if policy else None) or standard_daily_hours
    working_days = policy.working_weekdays if policy else DEFAULT_WORKING_DAYS

    if override is not None:
        start = override.start_time or start
        end = override.end_time or end
        hours = override.hours_per_day
        working_days = frozenset(range(override.days_per_week))
        if override.flexible_hours:
            # no fixed start: nobody is late
            start = None

    return EffectiveSchedule(
        start_time=start,
        end_time=end,
        late_threshold=policy.late_threshold if policy else DEFAULT_LATE_THRESHOLD_MINUTES,
        standard_daily_hours=float(hours),
        working_days=working_days,
        allow_remote=policy.allow_remote if policy else True,
        require_geolocation=policy.require_geolocation if policy else False,
    )
