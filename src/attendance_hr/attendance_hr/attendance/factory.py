from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, tzinfo

from ..core.enums import AttendanceStatus, Punctuality
from .schedule import EffectiveSchedule
from .strategies.base import AttendanceStrategy
from .strategies.early_strategy import EarlyLeaveStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.normal_strategy import NormalStrategy
from .strategies.overtime_strategy import OvertimeStrategy
from .strategies.remote_strategy import RemoteStrategy
from .time_accounting import classify_punctuality


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on rules."""

    def for_checkin(self, *, now: datetime, schedule: EffectiveSchedule, tz: tzinfo, remote: bool = False) -> AttendanceStrategy:
        if remote:
            return RemoteStrategy()
        punctuality = classify_punctuality(now, schedule.start_time, schedule.late_threshold, tz)
        if punctuality is Punctuality.LATE:
            return LateStrategy()
        return NormalStrategy()

    def for_checkout(
        self,
        *,
        now: datetime,
        schedule: EffectiveSchedule,
        tz: tzinfo,
        current_status: AttendanceStatus,
        overtime_hours: float,
    ) -> AttendanceStrategy:
        if current_status != AttendanceStatus.ON_TIME:
            return NormalStrategy()
        if overtime_hours > 0:
            return OvertimeStrategy()
        if schedule.end_time is not None:
            local_now = now.astimezone(tz)
            if local_now.time() < schedule.end_time:
                return EarlyLeaveStrategy()
        return NormalStrategy()
