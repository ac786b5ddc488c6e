from __future__ import annotations

import json
from dataclasses import dataclass, replace
from datetime import date, time
from typing import Any, Mapping, Optional

from ..common.datetime_utils import parse_iso_date, parse_time
from ..common.validators import require_range
from ..core.enums import Role
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class WorkSchedule:
    """Per-employee override of the organization work policy."""

    hours_per_day: float = 8.0
    days_per_week: int = 5
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    break_duration: int = 60
    flexible_hours: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "WorkSchedule":
        schedule = cls(
            hours_per_day=require_range(data.get("hours_per_day", 8), "hours_per_day", low=1, high=24),
            days_per_week=int(require_range(data.get("days_per_week", 5), "days_per_week", low=1, high=7)),
            start_time=parse_time(data.get("start_time")),
            end_time=parse_time(data.get("end_time")),
            break_duration=int(require_range(data.get("break_duration", 60), "break_duration", low=0, high=480)),
            flexible_hours=bool(data.get("flexible_hours", False)),
        )
        if schedule.start_time and schedule.end_time and schedule.end_time <= schedule.start_time:
            raise ValidationError("end_time must be later than start_time")
        return schedule

    def to_dict(self) -> dict:
        return {
            "hours_per_day": self.hours_per_day,
            "days_per_week": self.days_per_week,
            "start_time": self.start_time.strftime("%H:%M") if self.start_time else None,
            "end_time": self.end_time.strftime("%H:%M") if self.end_time else None,
            "break_duration": self.break_duration,
            "flexible_hours": self.flexible_hours,
        }


@dataclass(frozen=True)
class Employee:
    """Domain entity: Employee.

    Plain data object; no data-access code.
    """

    employee_id: str
    organization_id: str
    employee_code: str
    first_name: str
    last_name: str
    email: str
    role: Role
    hire_date: date
    phone: Optional[str] = None
    department_id: Optional[str] = None
    position_id: Optional[str] = None
    is_active: bool = True
    work_schedule: Optional[WorkSchedule] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def with_changes(self, **changes) -> "Employee":
        return replace(self, **changes)

    def to_dict(self) -> dict:
        return {
            "id": self.employee_id,
            "organization_id": self.organization_id,
            "employee_code": self.employee_code,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "full_name": self.full_name,
            "email": self.email,
            "phone": self.phone,
            "department_id": self.department_id,
            "position_id": self.position_id,
            "role": self.role.value,
            "is_active": self.is_active,
            "hire_date": self.hire_date.isoformat(),
            "work_schedule": self.work_schedule.to_dict() if self.work_schedule else None,
        }


def parse_role(value: Any) -> Role:
    if isinstance(value, Role):
        return value
    try:
        return Role(value)
    except ValueError:
        raise ValidationError(f"Invalid role: {value!r}") from None


def employee_from_row(row: Mapping[str, Any]) -> Employee:
    schedule = row.get("work_schedule")
    if isinstance(schedule, (str, bytes)):
        schedule = json.loads(schedule)
    try:
        return Employee(
            employee_id=str(row["id"]),
            organization_id=str(row["organization_id"]),
            employee_code=str(row["employee_code"]),
            first_name=str(row["first_name"]),
            last_name=str(row["last_name"]),
            email=str(row["email"]),
            role=parse_role(row.get("role") or Role.EMPLOYEE.value),
            hire_date=parse_iso_date(row["hire_date"]),
            phone=row.get("phone"),
            department_id=row.get("department_id"),
            position_id=row.get("position_id"),
            is_active=bool(row.get("is_active", True)),
            work_schedule=WorkSchedule.from_dict(schedule) if schedule else None,
        )
    except KeyError as e:
        raise ValidationError(f"Employee row missing column {e.args[0]!r}") from None


def employee_to_row(employee: Employee) -> dict:
    return {
        "id": employee.employee_id,
        "organization_id": employee.organization_id,
        "employee_code": employee.employee_code,
        "first_name": employee.first_name,
        "last_name": employee.last_name,
        "email": employee.email,
        "phone": employee.phone,
        "department_id": employee.department_id,
        "position_id": employee.position_id,
        "role": employee.role.value,
        "is_active": employee.is_active,
        "hire_date": employee.hire_date,
        "work_schedule": json.dumps(employee.work_schedule.to_dict()) if employee.work_schedule else None,
    }
