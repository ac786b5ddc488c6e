from datetime import date, datetime, timedelta, timezone

import pytest

from src.attendance_hr.attendance_hr.core.enums import AttendanceStatus, DayStatus
from src.attendance_hr.attendance_hr.core.exceptions import AuthorizationError, ConflictError, ValidationError
from src.attendance_hr.attendance_hr.database.client import Entity

UTC = timezone.utc


def _at(hour, minute=0, day=4):
    return datetime(2026, 3, day, hour, minute, tzinfo=UTC)


def test_checkin_within_threshold_is_on_time(container, org, fixed_now):
    record = container.attendance_service.check_in(org.employee_ctx, now=fixed_now)

    assert record.status == AttendanceStatus.ON_TIME
    assert record.check_in_time == fixed_now
    assert record.check_out_time is None
    assert record.work_date == date(2026, 3, 4)


def test_checkin_after_threshold_is_late(container, org):
    record = container.attendance_service.check_in(org.employee_ctx, now=_at(9, 20))

    assert record.status == AttendanceStatus.LATE
    assert "Late by 20 min" in record.notes


def test_full_day_with_break_counts_worked_and_overtime_hours(container, org):
    svc = container.attendance_service
    svc.check_in(org.employee_ctx, now=_at(8))
    svc.start_break(org.employee_ctx, "lunch", now=_at(12))
    svc.end_break(org.employee_ctx, now=_at(12, 30))

    record = svc.check_out(org.employee_ctx, now=_at(17))

    assert record.work_hours == 8.5
    assert record.overtime_hours == 0.5
    assert record.status == AttendanceStatus.OVERTIME
    assert record.breaks[0].end == _at(12, 30)


def test_second_checkin_same_day_is_a_conflict_and_keeps_one_row(container, org, memory_data, fixed_now):
    svc = container.attendance_service
    first = svc.check_in(org.employee_ctx, now=fixed_now)

    with pytest.raises(ConflictError) as exc:
        svc.check_in(org.employee_ctx, now=fixed_now + timedelta(minutes=5))

    assert exc.value.details == {"attendance_id": first.attendance_id}
    assert len(memory_data.rows(Entity.ATTENDANCES)) == 1


def test_checkin_is_keyed_on_employee_and_date_at_the_data_layer(container, org, fixed_now):
    svc = container.attendance_service
    record = svc.check_in(org.employee_ctx, now=fixed_now)

    duplicate = record.with_changes(attendance_id="another-id")
    stored, created = container.attendance_repo.record_checkin(duplicate)

    assert created is False
    assert stored.attendance_id == record.attendance_id


def test_checkout_without_checkin(container, org, fixed_now):
    with pytest.raises(ValidationError):
        container.attendance_service.check_out(org.employee_ctx, now=fixed_now)


def test_checkout_twice(container, org):
    svc = container.attendance_service
    svc.check_in(org.employee_ctx, now=_at(9))
    svc.check_out(org.employee_ctx, now=_at(18))

    with pytest.raises(ConflictError):
        svc.check_out(org.employee_ctx, now=_at(18, 5))


def test_early_leave_after_on_time_checkin(container, org):
    svc = container.attendance_service
    svc.check_in(org.employee_ctx, now=_at(9))

    record = svc.check_out(org.employee_ctx, now=_at(16))

    assert record.status == AttendanceStatus.EARLY_LEAVE
    assert record.work_hours == 7.0
    assert record.overtime_hours == 0.0


def test_late_day_stays_late_at_checkout(container, org):
    svc = container.attendance_service
    svc.check_in(org.employee_ctx, now=_at(9, 30))

    record = svc.check_out(org.employee_ctx, now=_at(19))

    assert record.status == AttendanceStatus.LATE
    assert record.overtime_hours == 1.5


def test_checkout_closes_running_break(container, org):
    svc = container.attendance_service
    svc.check_in(org.employee_ctx, now=_at(9))
    svc.start_break(org.employee_ctx, "short_break", now=_at(16, 45))

    record = svc.check_out(org.employee_ctx, now=_at(17))

    assert record.breaks[0].end == _at(17)
    assert record.work_hours == 7.75


def test_break_rules(container, org):
    svc = container.attendance_service
    with pytest.raises(ValidationError):
        svc.start_break(org.employee_ctx, "lunch", now=_at(12))

    svc.check_in(org.employee_ctx, now=_at(9))
    with pytest.raises(ValidationError):
        svc.end_break(org.employee_ctx, now=_at(12))
    with pytest.raises(ValidationError):
        svc.start_break(org.employee_ctx, "nap", now=_at(12))

    svc.start_break(org.employee_ctx, "lunch", now=_at(12))
    with pytest.raises(ConflictError):
        svc.start_break(org.employee_ctx, "lunch", now=_at(12, 10))


def test_remote_checkin_requires_policy_permission(container, org, fixed_now):
    svc = container.attendance_service
    with pytest.raises(ValidationError):
        svc.check_in(org.employee_ctx, now=fixed_now, remote=True)

    container.organization_service.save_policy(
        org.admin_ctx,
        {"start_time": "09:00", "end_time": "18:00", "late_threshold": 15, "allow_remote": True},
    )
    record = svc.check_in(org.employee_ctx, now=_at(11), remote=True)

    assert record.status == AttendanceStatus.REMOTE


def test_geolocation_policy(container, org, fixed_now):
    container.organization_service.save_policy(
        org.admin_ctx,
        {"start_time": "09:00", "end_time": "18:00", "require_geolocation": True},
    )
    svc = container.attendance_service
    with pytest.raises(ValidationError):
        svc.check_in(org.employee_ctx, now=fixed_now)

    record = svc.check_in(org.employee_ctx, now=fixed_now, location={"lat": 40.4, "lng": -3.7, "accuracy": 12})

    assert record.location.latitude == 40.4
    assert record.location.label() == "40.40000,-3.70000"


def test_attendance_date_follows_organization_timezone(container, org):
    container.organization_service.set_setting(
        org.admin_ctx, {"category": "general", "key": "timezone", "value": "Asia/Tokyo"}
    )
    # 00:05 UTC on the 4th is 09:05 in Tokyo
    record = container.attendance_service.check_in(org.employee_ctx, now=_at(0, 5))

    assert record.work_date == date(2026, 3, 4)
    assert record.status == AttendanceStatus.ON_TIME


def test_today_is_none_before_checkin(container, org, fixed_now):
    assert container.attendance_service.today(org.employee_ctx, now=fixed_now) is None


def test_history_is_scoped_to_self_for_employees(container, org):
    svc = container.attendance_service
    svc.check_in(org.employee_ctx, now=_at(9, day=3))
    svc.check_in(org.employee_ctx, now=_at(9, day=4))

    own = svc.history(org.employee_ctx)
    assert [r.work_date.day for r in own] == [4, 3]
    assert len(svc.history(org.admin_ctx, org.employee.employee_id, limit=1)) == 1

    with pytest.raises(AuthorizationError):
        svc.history(org.employee_ctx, org.admin.employee_id)


def test_month_calendar(container, org):
    svc = container.attendance_service
    svc.check_in(org.employee_ctx, now=_at(9, day=2))
    svc.check_out(org.employee_ctx, now=_at(18, day=2))
    svc.check_in(org.employee_ctx, now=_at(9, day=4))

    days = svc.month_calendar(org.employee_ctx, 2026, 3, now=_at(10))
    by_day = {d.day: d for d in days}

    assert len(days) == 42
    assert by_day[date(2026, 3, 2)].status == DayStatus.COMPLETE
    assert by_day[date(2026, 3, 3)].status == DayStatus.ABSENT
    assert by_day[date(2026, 3, 4)].status == DayStatus.INCOMPLETE
    assert by_day[date(2026, 3, 4)].is_today


def test_admin_update_recomputes_hours(container, org):
    svc = container.attendance_service
    record = svc.check_in(org.employee_ctx, now=_at(9))

    updated = svc.admin_update(
        org.admin_ctx,
        record.attendance_id,
        {"check_out_time": "2026-03-04T19:00:00Z", "notes": "forgot to check out"},
    )

    assert updated.work_hours == 10.0
    assert updated.overtime_hours == 2.0
    assert updated.notes == "forgot to check out"


def test_admin_update_rejects_inverted_times(container, org):
    svc = container.attendance_service
    record = svc.check_in(org.employee_ctx, now=_at(9))

    with pytest.raises(ValidationError):
        svc.admin_update(org.admin_ctx, record.attendance_id, {"check_out_time": "2026-03-04T08:00:00Z"})


def test_admin_update_requires_admin(container, org):
    record = container.attendance_service.check_in(org.employee_ctx, now=_at(9))

    with pytest.raises(AuthorizationError):
        container.attendance_service.admin_update(org.employee_ctx, record.attendance_id, {"notes": "x"})


def test_mark_absent_then_checkin_fills_the_day(container, org):
    svc = container.attendance_service
    absent = svc.mark_absent(org.admin_ctx, org.employee.employee_id, "2026-03-04")
    assert absent.status == AttendanceStatus.ABSENT

    with pytest.raises(ConflictError):
        svc.mark_absent(org.admin_ctx, org.employee.employee_id, "2026-03-04")

    record = svc.check_in(org.employee_ctx, now=_at(9, 5))
    assert record.attendance_id == absent.attendance_id
    assert record.status == AttendanceStatus.ON_TIME


def test_calendar_leave_day_is_not_an_absence(container, org):
    svc = container.attendance_service
    svc.mark_absent(org.admin_ctx, org.employee.employee_id, "2026-03-02", status="vacation")
    svc.mark_absent(org.admin_ctx, org.employee.employee_id, "2026-03-03", status=AttendanceStatus.SICK_LEAVE)

    days = svc.month_calendar(org.employee_ctx, 2026, 3, now=_at(10, day=10))
    by_day = {d.day: d for d in days}

    assert by_day[date(2026, 3, 2)].status == DayStatus.NONE
    assert by_day[date(2026, 3, 3)].status == DayStatus.NONE
    assert by_day[date(2026, 3, 4)].status == DayStatus.ABSENT


def test_mark_absent_rejects_present_statuses(container, org):
    with pytest.raises(ValidationError):
        container.attendance_service.mark_absent(
            org.admin_ctx, org.employee.employee_id, "2026-03-04", status="on_time"
        )


def test_list_for_organization_filters(container, org):
    svc = container.attendance_service
    svc.check_in(org.employee_ctx, now=_at(9, 30))
    svc.check_in(org.admin_ctx, now=_at(8, 50))

    late = svc.list_for_organization(org.admin_ctx, start_date=date(2026, 3, 4), status="late")
    mine = svc.list_for_organization(org.admin_ctx, employee_id=org.admin.employee_id)

    assert [r.employee_id for r in late] == [org.employee.employee_id]
    assert [r.employee_id for r in mine] == [org.admin.employee_id]
    with pytest.raises(AuthorizationError):
        svc.list_for_organization(org.employee_ctx)
