from __future__ import annotations

from datetime import datetime, tzinfo

from ...core.enums import AttendanceStatus
from ..schedule import EffectiveSchedule
from ..time_accounting import minutes_late
from .base import AttendanceStrategy, StatusDecision


class LateStrategy(AttendanceStrategy):
    """Late check-in."""

    def decide_checkin(self, *, now: datetime, schedule: EffectiveSchedule, tz: tzinfo) -> StatusDecision:
        late = minutes_late(now, schedule.start_time, tz)
        return StatusDecision(status=AttendanceStatus.LATE, note=f"Late by {late} min")
