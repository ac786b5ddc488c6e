from datetime import date, datetime, timezone

import pytest

from src.attendance_hr.attendance_hr.core.exceptions import AuthorizationError, ValidationError

UTC = timezone.utc


def _at(hour, minute=0, day=4):
    return datetime(2026, 3, day, hour, minute, tzinfo=UTC)


@pytest.fixture
def day_worked(container, org):
    """Employee on time and checked out; admin late and still in."""
    svc = container.attendance_service
    svc.check_in(org.employee_ctx, now=_at(9, 5))
    svc.check_out(org.employee_ctx, now=_at(18))
    svc.check_in(org.admin_ctx, now=_at(9, 40))
    return org


def test_dashboard_counts_today(container, day_worked, fixed_now):
    stats = container.report_service.dashboard_stats(day_worked.admin_ctx, now=fixed_now)

    assert stats["date"] == "2026-03-04"
    assert stats["total_employees"] == 2
    assert stats["present_today"] == 2
    assert stats["late_today"] == 1
    assert stats["on_time_today"] == 1
    assert stats["absent_today"] == 0
    assert stats["attendance_rate"] == 100.0
    assert stats["punctuality_rate"] == 50.0


def test_dashboard_with_nobody_in(container, org, fixed_now):
    stats = container.report_service.dashboard_stats(org.admin_ctx, now=fixed_now)

    assert stats["present_today"] == 0
    assert stats["absent_today"] == 2
    assert stats["attendance_rate"] == 0.0
    assert stats["punctuality_rate"] == 0.0


def test_dashboard_requires_a_viewer(container, org, fixed_now):
    with pytest.raises(AuthorizationError):
        container.report_service.dashboard_stats(org.employee_ctx, now=fixed_now)


def test_today_activity_lists_latest_first(container, day_worked, fixed_now):
    activity = container.report_service.today_activity(day_worked.admin_ctx, now=fixed_now)

    assert activity["check_ins"] == 2
    assert activity["check_outs"] == 1
    assert activity["pending_checkout"] == 1
    assert [r["employee_name"] for r in activity["recent"]] == ["Wes Worker", "Ada Admin"]


def test_absent_employees_today(container, org, fixed_now):
    container.attendance_service.check_in(org.employee_ctx, now=fixed_now)

    absent = container.report_service.absent_employees_today(org.admin_ctx, now=fixed_now)

    assert [e.employee_id for e in absent] == [org.admin.employee_id]


def test_personal_report_defaults_to_last_week(container, day_worked, fixed_now):
    report = container.report_service.personal_report(day_worked.employee_ctx, now=fixed_now)

    assert report.start == date(2026, 2, 26)
    assert report.end == date(2026, 3, 4)
    # Thu, Fri, Mon, Tue, Wed
    assert report.summary.expected_days == 5
    assert report.summary.present_days == 1
    assert report.summary.attendance_rate == 20.0
    assert [r.employee_id for r in report.rows] == [day_worked.employee.employee_id]


def test_personal_report_of_someone_else_needs_a_viewer(container, org, fixed_now):
    with pytest.raises(AuthorizationError):
        container.report_service.personal_report(
            org.employee_ctx, employee_id=org.admin.employee_id, now=fixed_now
        )

    report = container.report_service.personal_report(
        org.admin_ctx, employee_id=org.employee.employee_id, now=fixed_now
    )
    assert report.summary.records == 0


def test_personal_report_rejects_reversed_period(container, org):
    with pytest.raises(ValidationError):
        container.report_service.personal_report(
            org.employee_ctx, start=date(2026, 3, 5), end=date(2026, 3, 1)
        )


def test_period_analytics_breakdowns(container, day_worked):
    data = container.report_service.period_analytics(
        day_worked.admin_ctx, start=date(2026, 3, 2), end=date(2026, 3, 6)
    )

    assert data.summary.expected_days == 10
    assert data.summary.present_days == 2
    assert data.summary.attendance_rate == 20.0
    assert list(data.weekly) == [date(2026, 3, 2)]
    assert [d["department_name"] for d in data.departments] == ["No department"]
    assert {e["employee_name"] for e in data.employees} == {"Wes Worker", "Ada Admin"}

    payload = data.to_dict()
    assert payload["start"] == "2026-03-02"
    assert payload["weekly"][0]["week_start"] == "2026-03-02"


def test_monthly_trends_oldest_first(container, day_worked, fixed_now):
    trends = container.report_service.monthly_trends(day_worked.admin_ctx, months=3, now=fixed_now)

    assert [t["month"] for t in trends] == ["2026-01", "2026-02", "2026-03"]
    assert trends[0]["records"] == 0
    assert trends[-1]["present_days"] == 2
    # March 2..4 for two people
    assert trends[-1]["expected_days"] == 6


def test_deactivated_employees_drop_out_of_rates(container, day_worked, fixed_now):
    container.employee_service.deactivate(day_worked.admin_ctx, day_worked.employee.employee_id)
    reports = container.report_service

    stats = reports.dashboard_stats(day_worked.admin_ctx, now=fixed_now)
    data = reports.period_analytics(day_worked.admin_ctx, start=date(2026, 3, 4), end=date(2026, 3, 4))
    trends = reports.monthly_trends(day_worked.admin_ctx, months=1, now=fixed_now)

    assert stats["total_employees"] == 1
    assert stats["present_today"] == 1
    assert stats["attendance_rate"] == 100.0
    assert data.summary.expected_days == 1
    assert data.summary.present_days == 1
    assert data.summary.attendance_rate == 100.0
    assert {e["employee_name"] for e in data.employees} == {"Ada Admin"}
    assert trends[-1]["present_days"] == 1
    assert trends[-1]["expected_days"] == 3


@pytest.mark.parametrize("months", [0, 25])
def test_monthly_trends_bounds(container, org, fixed_now, months):
    with pytest.raises(ValidationError):
        container.report_service.monthly_trends(org.admin_ctx, months=months, now=fixed_now)
