from datetime import datetime, time, timezone

import pytest

from src.attendance_hr.attendance_hr.attendance.factory import AttendanceStrategyFactory
from src.attendance_hr.attendance_hr.attendance.schedule import EffectiveSchedule
from src.attendance_hr.attendance_hr.attendance.strategies.base import StatusDecision
from src.attendance_hr.attendance_hr.attendance.strategies.early_strategy import EarlyLeaveStrategy
from src.attendance_hr.attendance_hr.attendance.strategies.late_strategy import LateStrategy
from src.attendance_hr.attendance_hr.attendance.strategies.normal_strategy import NormalStrategy
from src.attendance_hr.attendance_hr.attendance.strategies.overtime_strategy import OvertimeStrategy
from src.attendance_hr.attendance_hr.attendance.strategies.remote_strategy import RemoteStrategy
from src.attendance_hr.attendance_hr.core.enums import AttendanceStatus

UTC = timezone.utc
SCHEDULE = EffectiveSchedule(start_time=time(8, 0), end_time=time(17, 0), late_threshold=5)


def test_factory_checkin_on_time_within_grace():
    now = datetime(2025, 1, 1, 8, 4, 59, tzinfo=UTC)

    strategy = AttendanceStrategyFactory().for_checkin(now=now, schedule=SCHEDULE, tz=UTC)

    assert isinstance(strategy, NormalStrategy)


def test_factory_checkin_late_after_grace():
    now = datetime(2025, 1, 1, 8, 6, 0, tzinfo=UTC)

    strategy = AttendanceStrategyFactory().for_checkin(now=now, schedule=SCHEDULE, tz=UTC)
    decision = strategy.decide_checkin(now=now, schedule=SCHEDULE, tz=UTC)

    assert isinstance(strategy, LateStrategy)
    assert decision.status == AttendanceStatus.LATE
    assert decision.note == "Late by 6 min"


def test_factory_remote_checkin_skips_punctuality():
    now = datetime(2025, 1, 1, 11, 0, tzinfo=UTC)

    strategy = AttendanceStrategyFactory().for_checkin(now=now, schedule=SCHEDULE, tz=UTC, remote=True)

    assert isinstance(strategy, RemoteStrategy)


def test_factory_checkout_early_leave_only_after_on_time_checkin():
    now = datetime(2025, 1, 1, 15, 0, tzinfo=UTC)
    factory = AttendanceStrategyFactory()

    on_time = factory.for_checkout(
        now=now, schedule=SCHEDULE, tz=UTC, current_status=AttendanceStatus.ON_TIME, overtime_hours=0
    )
    late = factory.for_checkout(
        now=now, schedule=SCHEDULE, tz=UTC, current_status=AttendanceStatus.LATE, overtime_hours=0
    )

    assert isinstance(on_time, EarlyLeaveStrategy)
    assert isinstance(late, NormalStrategy)


def test_factory_checkout_overtime():
    now = datetime(2025, 1, 1, 19, 0, tzinfo=UTC)

    strategy = AttendanceStrategyFactory().for_checkout(
        now=now, schedule=SCHEDULE, tz=UTC, current_status=AttendanceStatus.ON_TIME, overtime_hours=1.5
    )
    decision = strategy.decide_checkout(
        now=now, schedule=SCHEDULE, tz=UTC, current=AttendanceStatus.ON_TIME, overtime_hours=1.5
    )

    assert isinstance(strategy, OvertimeStrategy)
    assert decision.status == AttendanceStatus.OVERTIME


def test_normal_checkout_keeps_status():
    now = datetime(2025, 1, 1, 17, 30, tzinfo=UTC)
    decision = NormalStrategy().decide_checkout(
        now=now, schedule=SCHEDULE, tz=UTC, current=AttendanceStatus.LATE, overtime_hours=0
    )
    assert decision.status == AttendanceStatus.LATE


@pytest.mark.parametrize("strategy", [EarlyLeaveStrategy(), OvertimeStrategy()])
def test_checkout_strategies_still_answer_checkin(strategy):
    now = datetime(2025, 1, 1, 8, 0, tzinfo=UTC)

    decision = strategy.decide_checkin(now=now, schedule=SCHEDULE, tz=UTC)

    assert isinstance(decision, StatusDecision)
    assert decision.status == AttendanceStatus.ON_TIME
