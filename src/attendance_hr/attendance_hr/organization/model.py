from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time
from typing import Any, Mapping, Optional

from ..common.datetime_utils import parse_time
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class Department:
    department_id: str
    organization_id: str
    name: str
    code: str
    manager_id: Optional[str] = None
    is_active: bool = True

    def to_dict(self) -> dict:
        return {
            "id": self.department_id,
            "name": self.name,
            "code": self.code,
            "manager_id": self.manager_id,
            "is_active": self.is_active,
        }


@dataclass(frozen=True)
class Position:
    position_id: str
    organization_id: str
    title: str
    code: str
    department_id: Optional[str] = None
    level: int = 1
    is_active: bool = True

    def to_dict(self) -> dict:
        return {
            "id": self.position_id,
            "title": self.title,
            "code": self.code,
            "department_id": self.department_id,
            "level": self.level,
            "is_active": self.is_active,
        }


@dataclass(frozen=True)
class WorkPolicy:
    """Organization schedule defaults used to classify attendance."""

    policy_id: str
    organization_id: str
    name: str
    start_time: Optional[time]
    end_time: Optional[time]
    break_duration: int = 60
    late_threshold: int = 15
    working_days: int = 5
    allow_remote: bool = False
    require_geolocation: bool = False
    max_daily_hours: float = 12.0
    is_active: bool = True

    @property
    def working_weekdays(self) -> frozenset[int]:
        """Weekday numbers (Monday=0) covered by `working_days`, counted from Monday."""
        return frozenset(range(max(0, min(self.working_days, 7))))

    @property
    def standard_daily_hours(self) -> Optional[float]:
        if not self.start_time or not self.end_time:
            return None
        start = datetime.combine(datetime.min, self.start_time)
        end = datetime.combine(datetime.min, self.end_time)
        minutes = (end - start).total_seconds() / 60 - self.break_duration
        return round(max(minutes, 0) / 60, 2)

    def to_dict(self) -> dict:
        return {
            "id": self.policy_id,
            "name": self.name,
            "start_time": self.start_time.strftime("%H:%M") if self.start_time else None,
            "end_time": self.end_time.strftime("%H:%M") if self.end_time else None,
            "break_duration": self.break_duration,
            "late_threshold": self.late_threshold,
            "working_days": self.working_days,
            "allow_remote": self.allow_remote,
            "require_geolocation": self.require_geolocation,
            "max_daily_hours": self.max_daily_hours,
            "is_active": self.is_active,
        }


@dataclass(frozen=True)
class SystemSetting:
    setting_id: str
    organization_id: str
    category: str
    key: str
    value: Optional[str]
    description: Optional[str] = None
    is_public: bool = False
    is_active: bool = True

    def to_dict(self) -> dict:
        return {
            "id": self.setting_id,
            "category": self.category,
            "key": self.key,
            "value": self.value,
            "description": self.description,
            "is_public": self.is_public,
        }


def _row_error(entity: str, e: KeyError) -> ValidationError:
    return ValidationError(f"{entity} row missing column {e.args[0]!r}")


def department_from_row(row: Mapping[str, Any]) -> Department:
    try:
        return Department(
            department_id=str(row["id"]),
            organization_id=str(row["organization_id"]),
            name=str(row["name"]),
            code=str(row["code"]),
            manager_id=row.get("manager_id"),
            is_active=bool(row.get("is_active", True)),
        )
    except KeyError as e:
        raise _row_error("Department", e) from None


def position_from_row(row: Mapping[str, Any]) -> Position:
    try:
        return Position(
            position_id=str(row["id"]),
            organization_id=str(row["organization_id"]),
            title=str(row["title"]),
            code=str(row["code"]),
            department_id=row.get("department_id"),
            level=int(row.get("level") or 1),
            is_active=bool(row.get("is_active", True)),
        )
    except KeyError as e:
        raise _row_error("Position", e) from None


def policy_from_row(row: Mapping[str, Any]) -> WorkPolicy:
    try:
        return WorkPolicy(
            policy_id=str(row["id"]),
            organization_id=str(row["organization_id"]),
            name=str(row.get("name") or "Default"),
            start_time=parse_time(row.get("start_time")),
            end_time=parse_time(row.get("end_time")),
            break_duration=int(row.get("break_duration") or 0),
            late_threshold=int(row.get("late_threshold") or 0),
            working_days=int(row.get("working_days") or 5),
            allow_remote=bool(row.get("allow_remote", False)),
            require_geolocation=bool(row.get("require_geolocation", False)),
            max_daily_hours=float(row.get("max_daily_hours") or 12),
            is_active=bool(row.get("is_active", True)),
        )
    except KeyError as e:
        raise _row_error("Work policy", e) from None


def setting_from_row(row: Mapping[str, Any]) -> SystemSetting:
    try:
        return SystemSetting(
            setting_id=str(row["id"]),
            organization_id=str(row["organization_id"]),
            category=str(row["category"]),
            key=str(row["key"]),
            value=None if row.get("value") is None else str(row["value"]),
            description=row.get("description"),
            is_public=bool(row.get("is_public", False)),
            is_active=bool(row.get("is_active", True)),
        )
    except KeyError as e:
        raise _row_error("Setting", e) from None
