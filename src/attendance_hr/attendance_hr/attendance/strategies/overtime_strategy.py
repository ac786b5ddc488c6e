from __future__ import annotations

from datetime import datetime, tzinfo

from ...core.enums import AttendanceStatus
from ..schedule import EffectiveSchedule
from .base import AttendanceStrategy, StatusDecision


class OvertimeStrategy(AttendanceStrategy):
    """Worked past the standard day after an on-time start."""

    def decide_checkin(self, *, now: datetime, schedule: EffectiveSchedule, tz: tzinfo) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.ON_TIME)

    def decide_checkout(self, *, now, schedule, tz, current, overtime_hours) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.OVERTIME, note=f"Overtime {overtime_hours:.2f} h")
