from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Optional

from ...core.enums import AttendanceStatus
from ..schedule import EffectiveSchedule


@dataclass(frozen=True)
class StatusDecision:
    status: AttendanceStatus
    note: Optional[str] = None


class AttendanceStrategy(ABC):
    """Strategy Pattern: encapsulate how we decide an attendance status."""

    @abstractmethod
    def decide_checkin(self, *, now: datetime, schedule: EffectiveSchedule, tz: tzinfo) -> StatusDecision:
        raise NotImplementedError

    def decide_checkout(
        self,
        *,
        now: datetime,
        schedule: EffectiveSchedule,
        tz: tzinfo,
        current: AttendanceStatus,
        overtime_hours: float,
    ) -> StatusDecision:
        return StatusDecision(status=current)
