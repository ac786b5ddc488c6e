from __future__ import annotations

from datetime import datetime, tzinfo

from ...core.enums import AttendanceStatus
from ..schedule import EffectiveSchedule
from .base import AttendanceStrategy, StatusDecision


class RemoteStrategy(AttendanceStrategy):
    """Remote work day. Punctuality is not tracked for remote check-ins."""

    def decide_checkin(self, *, now: datetime, schedule: EffectiveSchedule, tz: tzinfo) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.REMOTE)
