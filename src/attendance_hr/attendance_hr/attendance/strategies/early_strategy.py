from __future__ import annotations

from datetime import datetime, tzinfo

from ...core.enums import AttendanceStatus
from ..schedule import EffectiveSchedule
from .base import AttendanceStrategy, StatusDecision


class EarlyLeaveStrategy(AttendanceStrategy):
    """Left before the scheduled end of an on-time day."""

    def decide_checkin(self, *, now: datetime, schedule: EffectiveSchedule, tz: tzinfo) -> StatusDecision:
        # an early leave starts out as an on-time day
        return StatusDecision(status=AttendanceStatus.ON_TIME)

    def decide_checkout(self, *, now, schedule, tz, current, overtime_hours) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.EARLY_LEAVE)
