from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Any, Mapping, Optional, Sequence

from ..common.datetime_utils import ensure_utc, optional_utc, parse_iso_date
from ..core.enums import AttendanceStatus, BreakType
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class BreakInterval:
    """A pause inside the working day; `end` is None while the break is running."""

    break_type: BreakType
    start: datetime
    end: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.end is None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BreakInterval":
        try:
            break_type = BreakType(data.get("type") or BreakType.SHORT_BREAK.value)
        except ValueError:
            raise ValidationError(f"Invalid break type: {data.get('type')!r}") from None
        start = ensure_utc(data["start_time"])
        end = optional_utc(data.get("end_time"))
        if end is not None and end < start:
            raise ValidationError("Break end must not be before its start")
        return cls(break_type=break_type, start=start, end=end)

    def to_dict(self) -> dict:
        return {
            "type": self.break_type.value,
            "start_time": self.start.isoformat(),
            "end_time": self.end.isoformat() if self.end else None,
        }


@dataclass(frozen=True)
class LocationData:
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    accuracy: Optional[float] = None
    address: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LocationData":
        lat = data.get("lat", data.get("latitude"))
        lng = data.get("lng", data.get("longitude"))
        address = (data.get("address") or "").strip() or None
        if (lat is None) != (lng is None):
            raise ValidationError("Location needs both latitude and longitude")
        if lat is None and address is None:
            raise ValidationError("Location needs an address or coordinates")
        try:
            location = cls(
                latitude=None if lat is None else float(lat),
                longitude=None if lng is None else float(lng),
                accuracy=None if data.get("accuracy") is None else float(data["accuracy"]),
                address=address,
            )
        except (TypeError, ValueError):
            raise ValidationError("Location coordinates must be numbers") from None
        if location.latitude is not None and not -90 <= location.latitude <= 90:
            raise ValidationError("Latitude out of range")
        if location.longitude is not None and not -180 <= location.longitude <= 180:
            raise ValidationError("Longitude out of range")
        return location

    def to_dict(self) -> dict:
        return {"lat": self.latitude, "lng": self.longitude, "accuracy": self.accuracy, "address": self.address}

    def label(self) -> str:
        if self.address:
            return self.address
        if self.latitude is None:
            return ""
        return f"{self.latitude:.5f},{self.longitude:.5f}"


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one employee's attendance on one calendar date."""

    attendance_id: str
    organization_id: str
    employee_id: str
    work_date: date
    check_in_time: Optional[datetime]
    check_out_time: Optional[datetime]
    status: AttendanceStatus
    work_hours: float = 0.0
    overtime_hours: float = 0.0
    notes: Optional[str] = None
    location: Optional[LocationData] = None
    breaks: tuple[BreakInterval, ...] = field(default_factory=tuple)

    @property
    def is_in_progress(self) -> bool:
        return self.check_in_time is not None and self.check_out_time is None

    @property
    def open_break(self) -> Optional[BreakInterval]:
        for b in self.breaks:
            if b.is_open:
                return b
        return None

    def with_changes(self, **changes) -> "AttendanceRecord":
        return replace(self, **changes)

    def to_dict(self) -> dict:
        return {
            "id": self.attendance_id,
            "employee_id": self.employee_id,
            "attendance_date": self.work_date.isoformat(),
            "check_in_time": self.check_in_time.isoformat() if self.check_in_time else None,
            "check_out_time": self.check_out_time.isoformat() if self.check_out_time else None,
            "work_hours": self.work_hours,
            "overtime_hours": self.overtime_hours,
            "status": self.status.value,
            "notes": self.notes,
            "location": self.location.to_dict() if self.location else None,
            "breaks": [b.to_dict() for b in self.breaks],
        }


@dataclass(frozen=True)
class AttendanceReportRow:
    """Read-model for reports and exports: a record joined with its employee."""

    record: AttendanceRecord
    employee_name: str
    employee_code: str
    department_id: Optional[str] = None
    department_name: Optional[str] = None

    @property
    def employee_id(self) -> str:
        return self.record.employee_id

    @property
    def work_date(self) -> date:
        return self.record.work_date

    @property
    def status(self) -> AttendanceStatus:
        return self.record.status

    @property
    def work_hours(self) -> float:
        return self.record.work_hours

    @property
    def overtime_hours(self) -> float:
        return self.record.overtime_hours


def _json_value(value: Any) -> Any:
    if isinstance(value, (str, bytes)):
        return json.loads(value) if value else None
    return value


def parse_status(value: Any) -> AttendanceStatus:
    if isinstance(value, AttendanceStatus):
        return value
    try:
        return AttendanceStatus(value)
    except ValueError:
        raise ValidationError(f"Invalid attendance status: {value!r}") from None


def parse_breaks(value: Any) -> tuple[BreakInterval, ...]:
    items = _json_value(value) or []
    if not isinstance(items, Sequence):
        raise ValidationError("breaks must be a list")
    return tuple(b if isinstance(b, BreakInterval) else BreakInterval.from_dict(b) for b in items)


def attendance_from_row(row: Mapping[str, Any]) -> AttendanceRecord:
    try:
        check_in = optional_utc(row.get("check_in_time"))
        check_out = optional_utc(row.get("check_out_time"))
        location = _json_value(row.get("location_data"))
        record = AttendanceRecord(
            attendance_id=str(row["id"]),
            organization_id=str(row["organization_id"]),
            employee_id=str(row["employee_id"]),
            work_date=parse_iso_date(row["attendance_date"]),
            check_in_time=check_in,
            check_out_time=check_out,
            status=parse_status(row.get("status") or AttendanceStatus.PRESENT.value),
            work_hours=float(row.get("work_hours") or 0),
            overtime_hours=float(row.get("overtime_hours") or 0),
            notes=row.get("notes"),
            location=LocationData.from_dict(location) if location else None,
            breaks=parse_breaks(row.get("breaks")),
        )
    except KeyError as e:
        raise ValidationError(f"Attendance row missing column {e.args[0]!r}") from None
    if check_out is not None and check_in is None:
        raise ValidationError(f"Attendance {record.attendance_id} has a check-out without check-in")
    if check_in is not None and check_out is not None and check_out <= check_in:
        raise ValidationError(f"Attendance {record.attendance_id} checks out before it checks in")
    return record


def attendance_to_row(record: AttendanceRecord) -> dict:
    return {
        "id": record.attendance_id,
        "organization_id": record.organization_id,
        "employee_id": record.employee_id,
        "attendance_date": record.work_date,
        "check_in_time": record.check_in_time,
        "check_out_time": record.check_out_time,
        "work_hours": record.work_hours,
        "overtime_hours": record.overtime_hours,
        "status": record.status.value,
        "notes": record.notes,
        "location_data": json.dumps(record.location.to_dict()) if record.location else None,
        "breaks": json.dumps([b.to_dict() for b in record.breaks]),
    }
