from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..common.datetime_utils import now_utc
from ..core.enums import AttendanceStatus
from ..core.exceptions import NotFoundError
from ..database.client import DataClient, Entity, Order, eq, gte, is_in, lte
from .model import AttendanceRecord, attendance_from_row, attendance_to_row
from .repository import AttendanceRepository

# unique key of the attendances table
NATURAL_KEY = ("employee_id", "attendance_date")


class DataAttendanceRepository(AttendanceRepository):
    def __init__(self, data: DataClient):
        self._data = data

    def get_by_id(self, organization_id: str, attendance_id: str) -> Optional[AttendanceRecord]:
        rows = self._data.query(
            Entity.ATTENDANCES,
            filters=[eq("organization_id", organization_id), eq("id", attendance_id)],
            limit=1,
        )
        return attendance_from_row(rows[0]) if rows else None

    def get_for_employee_and_date(self, organization_id: str, employee_id: str, work_date: date) -> Optional[AttendanceRecord]:
        rows = self._data.query(
            Entity.ATTENDANCES,
            filters=[
                eq("organization_id", organization_id),
                eq("employee_id", employee_id),
                eq("attendance_date", work_date),
            ],
            limit=1,
        )
        return attendance_from_row(rows[0]) if rows else None

    def list_for_employee(
        self,
        organization_id: str,
        employee_id: str,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> Sequence[AttendanceRecord]:
        filters = [eq("organization_id", organization_id), eq("employee_id", employee_id)]
        if start_date:
            filters.append(gte("attendance_date", start_date))
        if end_date:
            filters.append(lte("attendance_date", end_date))
        rows = self._data.query(
            Entity.ATTENDANCES,
            filters=filters,
            order=[Order("attendance_date", ascending=False)],
            limit=limit,
        )
        return [attendance_from_row(r) for r in rows]

    def list_for_organization(
        self,
        organization_id: str,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        employee_ids: Optional[Sequence[str]] = None,
        status: Optional[AttendanceStatus] = None,
    ) -> Sequence[AttendanceRecord]:
        filters = [eq("organization_id", organization_id)]
        if start_date:
            filters.append(gte("attendance_date", start_date))
        if end_date:
            filters.append(lte("attendance_date", end_date))
        if employee_ids is not None:
            if not employee_ids:
                return []
            filters.append(is_in("employee_id", employee_ids))
        if status is not None:
            filters.append(eq("status", status.value))
        rows = self._data.query(
            Entity.ATTENDANCES,
            filters=filters,
            order=[Order("attendance_date"), Order("check_in_time")],
        )
        return [attendance_from_row(r) for r in rows]

    def record_checkin(self, record: AttendanceRecord) -> tuple[AttendanceRecord, bool]:
        row = attendance_to_row(record)
        row["created_at"] = row["updated_at"] = now_utc()
        stored = attendance_from_row(
            self._data.upsert(Entity.ATTENDANCES, row, on_conflict=NATURAL_KEY, ignore_duplicates=True)
        )
        return stored, stored.attendance_id == record.attendance_id

    def save(self, record: AttendanceRecord) -> AttendanceRecord:
        if not self.get_by_id(record.organization_id, record.attendance_id):
            raise NotFoundError("Attendance record not found")
        row = attendance_to_row(record)
        for key in ("id", "organization_id", "employee_id"):
            row.pop(key)
        row["updated_at"] = now_utc()
        return attendance_from_row(self._data.update(Entity.ATTENDANCES, record.attendance_id, row))
