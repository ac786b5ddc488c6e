from __future__ import annotations

from datetime import datetime, tzinfo

from ...core.enums import AttendanceStatus
from ..schedule import EffectiveSchedule
from .base import AttendanceStrategy, StatusDecision


class NormalStrategy(AttendanceStrategy):
    """On-time check-in; check-out keeps whatever status the day already has."""

    def decide_checkin(self, *, now: datetime, schedule: EffectiveSchedule, tz: tzinfo) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.ON_TIME)
